"""FIFO lot ledger.

The ledger is rebuilt from scratch by replaying every investment transaction
in (date, id) order. Long positions are lots with positive quantity; short
positions are lots with negative quantity and zero cost basis.

Reducing transactions consume sign-matched open lots oldest first and record a
LotAllocation for each lot they touch. Whatever quantity is left over after all
matching lots are consumed opens a new lot of the opposite sign, which is how a
sale past zero turns into a short position and a buy past zero turns back long.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Any, Iterable, Optional

from qifledger.database.base import Database
from qifledger.domain.actions import ActionKind, InvestmentAction
from qifledger.domain.entities import InvestmentTransaction, Lot, LotAllocation
from qifledger.domain.errors import (
    ReplayNotFoundError,
    UnhandledInvestmentActionError,
    account_not_found,
    security_not_found,
    unhandled_investment_action,
)
from qifledger.domain.prices import PriceHistory
from qifledger.utils.identity import stable_id

logger = logging.getLogger(__name__)

# Quantities and amounts at or below this magnitude are treated as zero
EPSILON = 1e-10

LONG = 1
SHORT = -1


def is_significant(value: Optional[float]) -> bool:
    return value is not None and abs(value) > EPSILON


def is_open(lot: Lot) -> bool:
    return lot.closed_date is None and is_significant(lot.remaining_quantity)


def lot_id(account_id: str, security_id: str, transaction: InvestmentTransaction) -> str:
    return stable_id(
        "Lot",
        {
            "account_id": account_id,
            "security_id": security_id,
            "purchase_date": transaction.date,
            "created_by_transaction_id": transaction.id,
        },
    )


def allocation_id(lot_id: str, transaction_id: str) -> str:
    return stable_id("LotAllocation", {"lot_id": lot_id, "transaction_id": transaction_id})


class LotLedger:
    """In-memory lot ledger built by replaying investment transactions.

    Args:
        account_ids: IDs of the accounts transactions may refer to
        security_ids: IDs of the securities transactions may refer to
        price_history: Quotes used to value reinvestments that carry neither
            an amount nor a price
    """

    def __init__(
        self,
        account_ids: Iterable[str],
        security_ids: Iterable[str],
        price_history: Optional[PriceHistory] = None,
    ):
        self.account_ids = set(account_ids)
        self.security_ids = set(security_ids)
        self.price_history = price_history if price_history is not None else PriceHistory([])
        self.allocations: list[LotAllocation] = []
        self.warnings: list[str] = []
        self._lots: dict[str, Lot] = {}
        # lot IDs per (account_id, security_id), oldest first
        self._pair_lots: dict[tuple[str, str], list[str]] = defaultdict(list)

    @property
    def lots(self) -> list[Lot]:
        """All lots, open and closed, in creation order."""
        return list(self._lots.values())

    def open_lots(self, account_id: str, security_id: str) -> list[Lot]:
        """Open lots for an account/security pair, oldest first."""
        lots = (self._lots[i] for i in self._pair_lots[(account_id, security_id)])
        return [lot for lot in lots if is_open(lot)]

    def replay(self, transactions: Iterable[InvestmentTransaction]) -> "LotLedger":
        """Apply transactions in (date, id) order. Returns self."""
        for transaction in sorted(transactions, key=lambda t: (t.date, t.id)):
            self.apply(transaction)
        return self

    def apply(self, transaction: InvestmentTransaction) -> None:
        """Apply a single transaction to the ledger.

        Raises:
            UnhandledInvestmentActionError: If the action is not a known action code
            ReplayNotFoundError: If a lot-affecting transaction names an unknown
                account or security
        """
        action = (
            InvestmentAction.from_code(transaction.investment_action)
            if transaction.investment_action
            else None
        )
        if action is None:
            raise UnhandledInvestmentActionError(
                unhandled_investment_action(transaction.investment_action, transaction.id)
            )

        kind = action.kind
        if kind is ActionKind.CASH_ONLY:
            return

        pair = self._resolve_pair(transaction)
        quantity = transaction.quantity or 0.0

        if kind is ActionKind.BUY:
            self._buy(transaction, pair, abs(quantity))
        elif kind is ActionKind.SELL:
            self._sell(transaction, pair, abs(quantity))
        elif kind is ActionKind.REINVEST:
            self._reinvest(transaction, pair, quantity)
        elif kind is ActionKind.SPLIT:
            self._split(pair, quantity)
        elif kind is ActionKind.VEST:
            self._vest(transaction, pair, quantity)
        elif kind is ActionKind.EXERCISE:
            self._exercise(transaction, pair, abs(quantity))
        else:
            raise UnhandledInvestmentActionError(
                unhandled_investment_action(transaction.investment_action, transaction.id)
            )

    def _resolve_pair(self, transaction: InvestmentTransaction) -> tuple[str, str]:
        if transaction.account_id not in self.account_ids:
            raise ReplayNotFoundError(account_not_found(transaction.account_id))
        if transaction.security_id is None or transaction.security_id not in self.security_ids:
            raise ReplayNotFoundError(security_not_found(transaction.security_id))
        return transaction.account_id, transaction.security_id

    def _buy(self, transaction: InvestmentTransaction, pair: tuple[str, str], quantity: float) -> None:
        if not is_significant(quantity):
            return
        remaining = self._reduce(transaction, pair, quantity, SHORT)
        if is_significant(remaining):
            cost = self._trade_value(transaction, quantity) * remaining / quantity
            self._open_lot(transaction, pair, remaining, cost)

    def _sell(self, transaction: InvestmentTransaction, pair: tuple[str, str], quantity: float) -> None:
        if not is_significant(quantity):
            return
        remaining = self._reduce(transaction, pair, quantity, LONG)
        if is_significant(remaining):
            # A short position carries no cost basis until it is covered
            self._open_lot(transaction, pair, -remaining, 0.0)

    def _reinvest(self, transaction: InvestmentTransaction, pair: tuple[str, str], quantity: float) -> None:
        if not is_significant(quantity):
            return
        if quantity < 0:
            self._sell(transaction, pair, abs(quantity))
            return

        cost = self._reinvest_cost_basis(transaction, pair[1], quantity)
        if cost is None:
            message = (
                f"Skipping reinvestment {transaction.id} of {quantity} shares on "
                f"{transaction.date.isoformat()}: no amount, price or quote for security "
                f"{pair[1]}"
            )
            logger.warning(message)
            self.warnings.append(message)
            return
        self._open_lot(transaction, pair, quantity, cost)

    def _reinvest_cost_basis(
        self, transaction: InvestmentTransaction, security_id: str, quantity: float
    ) -> Optional[float]:
        """Cost of a reinvestment: amount, else price * quantity, else last quote * quantity."""
        if is_significant(transaction.amount):
            return abs(transaction.amount)
        if is_significant(transaction.price):
            return transaction.price * quantity
        quote = self.price_history.at_or_before(security_id, transaction.date)
        if quote is not None and is_significant(quote.price):
            return quote.price * quantity
        return None

    def _split(self, pair: tuple[str, str], quantity: float) -> None:
        # QIF writes the ratio times ten: 20 is a 2-for-1 split
        ratio = quantity / 10
        if ratio <= 0:
            return
        split_lot_ids = set()
        for lot in self.open_lots(*pair):
            split_lot_ids.add(lot.id)
            self._lots[lot.id] = replace(
                lot,
                quantity=lot.quantity * ratio,
                remaining_quantity=lot.remaining_quantity * ratio,
            )
        # Earlier draws on a split lot are restated in post-split shares
        self.allocations = [
            replace(a, shares_allocated=a.shares_allocated * ratio) if a.lot_id in split_lot_ids else a
            for a in self.allocations
        ]

    def _vest(self, transaction: InvestmentTransaction, pair: tuple[str, str], quantity: float) -> None:
        if is_significant(quantity):
            self._open_lot(transaction, pair, quantity, 0.0)

    def _exercise(self, transaction: InvestmentTransaction, pair: tuple[str, str], quantity: float) -> None:
        # Exercised options leave the ledger without an allocation record
        if is_significant(quantity):
            self._reduce(transaction, pair, quantity, LONG, allocate=False)

    def _reduce(
        self,
        transaction: InvestmentTransaction,
        pair: tuple[str, str],
        shares: float,
        lot_sign: int,
        allocate: bool = True,
    ) -> float:
        """Consume open lots of the given sign, oldest first.

        Returns:
            Shares (unsigned) left over once every matching lot is consumed
        """
        remaining = shares
        for lot in self.open_lots(*pair):
            if not is_significant(remaining):
                break
            if lot.remaining_quantity * lot_sign <= EPSILON:
                continue

            to_reduce = min(abs(lot.remaining_quantity), remaining)
            signed_shares = lot_sign * to_reduce
            new_remaining = lot.remaining_quantity - signed_shares
            closed = not is_significant(new_remaining)

            reduced = replace(
                lot,
                remaining_quantity=0.0 if closed else new_remaining,
                closed_date=transaction.date if closed else None,
            )
            if not allocate:
                # Without an allocation the lot itself shrinks, keeping its per-share basis
                reduced = replace(
                    reduced,
                    quantity=lot.quantity - signed_shares,
                    cost_basis=lot.cost_basis - signed_shares * lot.cost_basis_per_share,
                )
            self._lots[lot.id] = reduced
            if allocate:
                self.allocations.append(
                    LotAllocation(
                        id=allocation_id(lot.id, transaction.id),
                        lot_id=lot.id,
                        transaction_id=transaction.id,
                        shares_allocated=signed_shares,
                        cost_basis_allocated=signed_shares * lot.cost_basis_per_share,
                        date=transaction.date,
                    )
                )
            remaining -= to_reduce

        return remaining if is_significant(remaining) else 0.0

    def _trade_value(self, transaction: InvestmentTransaction, quantity: float) -> float:
        if is_significant(transaction.amount):
            return abs(transaction.amount)
        return abs(transaction.price or 0.0) * quantity

    def _open_lot(
        self,
        transaction: InvestmentTransaction,
        pair: tuple[str, str],
        quantity: float,
        cost_basis: float,
    ) -> Lot:
        account_id, security_id = pair
        lot = Lot(
            id=lot_id(account_id, security_id, transaction),
            account_id=account_id,
            security_id=security_id,
            purchase_date=transaction.date,
            quantity=quantity,
            cost_basis=cost_basis,
            remaining_quantity=quantity,
            created_by_transaction_id=transaction.id,
        )
        self._lots[lot.id] = lot
        self._pair_lots[pair].append(lot.id)
        return lot


class LotLedgerService:
    """Service that rebuilds the stored lot ledger and reads it back."""

    def __init__(self, db: Database):
        """Initialize lot ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def import_lots(self) -> dict[str, Any]:
        """Clear all lots and allocations and rebuild them from stored transactions.

        Runs inside one store transaction: if the replay fails, the previously
        stored ledger is left untouched.

        Returns:
            Dict with:
            - lots: number of lots written
            - allocations: number of allocations written
            - warnings: reinvestments skipped for lack of a cost basis

        Raises:
            UnhandledInvestmentActionError: On an unknown action code
            ReplayNotFoundError: On a transaction naming an unknown account or security
        """
        with self.db.transaction():
            self.db.delete_all_lots()

            ledger = LotLedger(
                account_ids=[account.id for account in self.db.list_accounts()],
                security_ids=[security.id for security in self.db.list_securities()],
                price_history=PriceHistory(self.db.list_prices()),
            )
            ledger.replay(self.db.list_transactions(transaction_type="investment"))

            self.db.create_lots(ledger.lots)
            self.db.create_lot_allocations(ledger.allocations)

        logger.debug(
            "Rebuilt lot ledger: %d lots, %d allocations", len(ledger.lots), len(ledger.allocations)
        )
        return {
            "lots": len(ledger.lots),
            "allocations": len(ledger.allocations),
            "warnings": ledger.warnings,
        }

    def list_lots(
        self,
        account_id: Optional[str] = None,
        security_id: Optional[str] = None,
        open_only: bool = False,
    ) -> list[Lot]:
        """List stored lots ordered by purchase date."""
        return self.db.list_lots(account_id=account_id, security_id=security_id, open_only=open_only)

    def list_allocations(self, lot_id: Optional[str] = None) -> list[LotAllocation]:
        """List stored allocations ordered by date."""
        return self.db.list_lot_allocations(lot_id=lot_id)
