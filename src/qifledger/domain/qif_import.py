"""QIF import domain service."""

import logging
from collections import Counter, defaultdict
from pathlib import Path
from typing import Any, Optional

from qifledger.database.base import Database
from qifledger.domain.actions import CASH_IMPACT_ACTIONS, InvestmentAction
from qifledger.domain.entities import (
    Account,
    BankTransaction,
    InvestmentTransaction,
    Price,
    Security,
    Split,
    Transaction,
)
from qifledger.domain.errors import (
    ConflictError,
    NotFoundError,
    account_conflict,
    account_not_found,
    security_not_found,
)
from qifledger.domain.lots import EPSILON, LotLedgerService
from qifledger.qif import ParsedQif, parse
from qifledger.qif.entries import AccountEntry, BankTransactionEntry, InvestmentTransactionEntry
from qifledger.utils.identity import stable_id

logger = logging.getLogger(__name__)


def account_id_for(name: str) -> str:
    return stable_id("Account", {"name": name})


def security_id_for(name: str) -> str:
    return stable_id("Security", {"name": name})


def price_id_for(security_id: str, price_date) -> str:
    return stable_id("Price", {"security_id": security_id, "date": price_date})


def account_conflicts(existing: Account, entry: AccountEntry) -> list[str]:
    """Differences between a stored account and a re-imported record.

    Only fields the new record actually carries are compared.
    """
    conflicts = []
    if entry.type and entry.type != existing.type:
        conflicts.append(f'type: existing="{existing.type}", new="{entry.type}"')
    if entry.description and entry.description != existing.description:
        conflicts.append(
            f'description: existing="{existing.description}", new="{entry.description}"'
        )
    if entry.credit_limit is not None and entry.credit_limit != existing.credit_limit:
        conflicts.append(f"credit_limit: existing={existing.credit_limit}, new={entry.credit_limit}")
    return conflicts


def cash_impact(transaction: Transaction) -> float:
    """How much a transaction changes its account's own cash balance."""
    if transaction.amount is None:
        return 0.0
    if isinstance(transaction, InvestmentTransaction):
        action = InvestmentAction.from_code(transaction.investment_action or "")
        return transaction.amount if action in CASH_IMPACT_ACTIONS else 0.0
    return transaction.amount


class QIFImportService:
    """Service for importing QIF files."""

    def __init__(self, db: Database):
        """Initialize QIF import service.

        Args:
            db: Database instance
        """
        self.db = db
        self.lot_service = LotLedgerService(db)

    def import_qif(self, qif_file_path: str) -> dict[str, Any]:
        """Import a QIF file.

        Args:
            qif_file_path: Path to QIF file

        Returns:
            Dict with import statistics (see import_text)

        Raises:
            FileNotFoundError: If QIF file doesn't exist
            DomainError: If the file cannot be parsed or stored
        """
        qif_path = Path(qif_file_path)
        if not qif_path.exists():
            raise FileNotFoundError(f"QIF file not found: {qif_file_path}")

        # Quicken writes Windows-1252; anything undecodable is replaced rather than fatal
        text = qif_path.read_text(encoding="utf-8-sig", errors="replace")
        return self.import_text(text)

    def import_text(self, text: str) -> dict[str, Any]:
        """Parse QIF text and store everything in it, then rebuild the lot ledger.

        Parsing happens before anything is written; storing runs in one store
        transaction, so the import either fully succeeds or leaves the store
        as it was.

        Returns:
            Dict with:
            - accounts: number of new accounts
            - securities: number of new securities
            - transactions_imported: number of new transactions
            - transactions_skipped: number of transactions already stored
            - prices: number of new price quotes (file quotes plus trade prices)
            - lots: number of lots in the rebuilt ledger
            - allocations: number of allocations in the rebuilt ledger
            - warnings: reinvestments skipped by the ledger for lack of a cost basis

        Raises:
            ParseError: If the text is not valid QIF
            ValidationError: If transactions lack accounts or securities
            ConflictError: If an account is re-imported with different details
            NotFoundError: If a transaction or price names an unknown security
            ReplayError: If the lot ledger cannot be rebuilt
        """
        parsed = parse(text)

        with self.db.transaction():
            accounts = self._import_accounts(parsed)
            logger.debug("Imported %d new accounts", accounts)

            securities = self._import_securities(parsed)
            logger.debug("Imported %d new securities", securities)

            imported, skipped = self._import_transactions(parsed)
            logger.debug("Imported %d transactions, skipped %d existing", imported, skipped)

            prices = self._import_prices(parsed) + self._prices_from_transactions()
            logger.debug("Imported %d new prices", prices)

            self._update_running_balances()
            logger.debug("Recomputed running balances")

            lots = self.lot_service.import_lots()

        return {
            "accounts": accounts,
            "securities": securities,
            "transactions_imported": imported,
            "transactions_skipped": skipped,
            "prices": prices,
            "lots": lots["lots"],
            "allocations": lots["allocations"],
            "warnings": lots["warnings"],
        }

    def _import_accounts(self, parsed: ParsedQif) -> int:
        created = 0
        for entry in parsed.accounts:
            account_id = account_id_for(entry.name)
            existing = self.db.get_account(account_id)
            if existing is None:
                self.db.create_account(
                    Account(
                        id=account_id,
                        name=entry.name,
                        type=entry.type,
                        description=entry.description,
                        credit_limit=entry.credit_limit,
                    )
                )
                created += 1
                continue

            conflicts = account_conflicts(existing, entry)
            if conflicts:
                raise ConflictError(account_conflict(entry.name, conflicts))
        return created

    def _import_securities(self, parsed: ParsedQif) -> int:
        created = 0
        for entry in parsed.securities:
            security_id = security_id_for(entry.name)
            if self.db.get_security(security_id) is None:
                self.db.create_security(
                    Security(
                        id=security_id,
                        name=entry.name,
                        symbol=entry.symbol,
                        type=entry.type,
                        goal=entry.goal,
                    )
                )
                created += 1
        return created

    def _security_lookup(self) -> dict[str, str]:
        """Map security names and symbols to IDs; a name wins over an equal symbol."""
        securities = self.db.list_securities()
        lookup = {sec.symbol: sec.id for sec in securities if sec.symbol}
        lookup.update({sec.name: sec.id for sec in securities})
        return lookup

    def _import_transactions(self, parsed: ParsedQif) -> tuple[int, int]:
        account_ids = {account.name: account.id for account in self.db.list_accounts()}
        security_ids = self._security_lookup()
        seen: Counter[str] = Counter()
        imported = 0
        skipped = 0

        def account_for(name: str) -> str:
            account_id = account_ids.get(name)
            if account_id is None:
                raise NotFoundError(account_not_found(name))
            return account_id

        def unique_id(base_id: str) -> str:
            # Identical records in one file are distinct transactions
            seen[base_id] += 1
            return base_id if seen[base_id] == 1 else f"{base_id}-{seen[base_id]}"

        for entry in parsed.bank_transactions:
            transaction, splits = self._bank_transaction(entry, account_for(entry.account), unique_id)
            if self.db.get_transaction(transaction.id) is not None:
                skipped += 1
                continue
            self.db.create_transaction(transaction, splits)
            imported += 1

        for entry in parsed.investment_transactions:
            security_id = None
            if entry.security:
                security_id = security_ids.get(entry.security)
                if security_id is None:
                    raise NotFoundError(security_not_found(entry.security))
            transaction = self._investment_transaction(
                entry, account_for(entry.account), security_id, unique_id
            )
            if self.db.get_transaction(transaction.id) is not None:
                skipped += 1
                continue
            self.db.create_transaction(transaction)
            imported += 1

        return imported, skipped

    def _bank_transaction(
        self, entry: BankTransactionEntry, account_id: str, unique_id
    ) -> tuple[BankTransaction, list[Split]]:
        base_id = stable_id(
            "Transaction",
            {
                "account_id": account_id,
                "date": entry.date,
                "amount": entry.amount,
                "payee": entry.payee,
                "memo": entry.memo,
                "number": entry.number,
            },
        )
        transaction = BankTransaction(
            id=unique_id(base_id),
            account_id=account_id,
            date=entry.date,
            amount=entry.amount,
            payee=entry.payee,
            memo=entry.memo,
            number=entry.number,
            cleared=entry.cleared,
            category=entry.category,
            address="\n".join(entry.address) or None,
        )
        splits = [
            Split(
                id=stable_id("Split", {"transaction_id": transaction.id, "position": position}),
                transaction_id=transaction.id,
                amount=split.amount,
                category=split.category,
                memo=split.memo,
            )
            for position, split in enumerate(entry.splits)
        ]
        return transaction, splits

    def _investment_transaction(
        self,
        entry: InvestmentTransactionEntry,
        account_id: str,
        security_id: Optional[str],
        unique_id,
    ) -> InvestmentTransaction:
        base_id = stable_id(
            "Transaction",
            {
                "account_id": account_id,
                "date": entry.date,
                "amount": entry.amount,
                "security_id": security_id,
                "action": entry.action.value,
                "quantity": entry.quantity,
                "price": entry.price,
                "memo": entry.memo,
            },
        )
        return InvestmentTransaction(
            id=unique_id(base_id),
            account_id=account_id,
            date=entry.date,
            amount=entry.amount,
            investment_action=entry.action.value,
            security_id=security_id,
            quantity=entry.quantity,
            price=entry.price,
            commission=entry.commission,
            payee=entry.payee,
            memo=entry.memo,
            cleared=entry.cleared,
            category=entry.category,
            address="\n".join(entry.address) or None,
        )

    def _store_price(self, security_id: str, price_date, price: float, label: str) -> bool:
        """Insert a quote unless one exists for that day. Returns True if inserted."""
        existing = self.db.get_price(security_id, price_date)
        if existing is None:
            self.db.create_price(
                Price(
                    id=price_id_for(security_id, price_date),
                    security_id=security_id,
                    date=price_date,
                    price=price,
                )
            )
            return True
        if abs(existing.price - price) > EPSILON:
            logger.warning(
                "Price conflict for %s on %s: existing=%s, new=%s (keeping existing)",
                label,
                price_date.isoformat(),
                existing.price,
                price,
            )
        return False

    def _import_prices(self, parsed: ParsedQif) -> int:
        security_ids = self._security_lookup()
        created = 0
        for entry in parsed.prices:
            security_id = security_ids.get(entry.symbol)
            if security_id is None:
                raise NotFoundError(security_not_found(entry.symbol))
            if self._store_price(security_id, entry.date, entry.price, entry.symbol):
                created += 1
        return created

    def _prices_from_transactions(self) -> int:
        """Add trade prices as quotes for days that have none."""
        created = 0
        for transaction in self.db.list_transactions(transaction_type="investment"):
            if transaction.security_id is None or not transaction.price or transaction.price <= 0:
                continue
            if self.db.get_price(transaction.security_id, transaction.date) is not None:
                continue
            self.db.create_price(
                Price(
                    id=price_id_for(transaction.security_id, transaction.date),
                    security_id=transaction.security_id,
                    date=transaction.date,
                    price=transaction.price,
                )
            )
            created += 1
        return created

    def _update_running_balances(self) -> None:
        by_account: dict[str, list[Transaction]] = defaultdict(list)
        for transaction in self.db.list_transactions():
            by_account[transaction.account_id].append(transaction)

        balances: dict[str, float] = {}
        for transactions in by_account.values():
            balance = 0.0
            for transaction in transactions:
                balance += cash_impact(transaction)
                balances[transaction.id] = balance
        self.db.update_running_balances(balances)
