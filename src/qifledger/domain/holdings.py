"""Point-in-time holdings and valuation.

Stored lots reflect the ledger as of today. To see holdings on an earlier date
the engine starts from each lot's original quantity and cost basis and
subtracts only the allocations dated on or before that date.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Optional

from qifledger.database.base import Database
from qifledger.domain.entities import (
    Account,
    Holding,
    Lot,
    LotAllocation,
    Price,
    Security,
    Transaction,
)
from qifledger.domain.lots import EPSILON
from qifledger.domain.prices import PriceHistory

# Reserved security ID for the cash position of an account
CASH_SECURITY_ID = "sec_000000000000"

# A quote older than this many days before the valuation date is stale
STALE_DAYS = 1


def is_lot_open_on(lot: Lot, as_of_date: date) -> bool:
    return lot.purchase_date <= as_of_date and (
        lot.closed_date is None or lot.closed_date > as_of_date
    )


def matches_search(holding: Holding, query: Optional[str]) -> bool:
    """Case-insensitive match against security name, symbol or account name."""
    if not query:
        return True
    needle = query.lower()
    return any(
        needle in (text or "").lower()
        for text in (holding.security_name, holding.security_symbol, holding.account_name)
    )


def cash_balance_as_of(transactions: list[Transaction], as_of_date: date) -> float:
    """Running balance of the last transaction dated on or before as_of_date.

    Transactions must be ordered by (date, id).
    """
    balance = 0.0
    for transaction in transactions:
        if transaction.date > as_of_date:
            break
        balance = transaction.running_balance or 0.0
    return balance


def cash_holding(account: Account, balance: float) -> Holding:
    return Holding(
        account_id=account.id,
        account_name=account.name,
        security_id=CASH_SECURITY_ID,
        security_name="Cash",
        security_symbol="CASH",
        security_type="Cash",
        security_goal=None,
        quantity=balance,
        cost_basis=balance,
        avg_cost_per_share=1.0,
        quote_price=1.0,
        price_date=None,
        market_value=balance,
        unrealized_gain_loss=0.0,
        unrealized_gain_loss_pct=0.0,
        day_gain_loss=0.0,
        day_gain_loss_pct=0.0,
        is_stale=False,
    )


def _security_holding(
    account: Optional[Account],
    account_id: str,
    security: Optional[Security],
    security_id: str,
    quantity: float,
    cost_basis: float,
    prices: PriceHistory,
    as_of_date: date,
) -> Holding:
    quote = prices.at_or_before(security_id, as_of_date)
    previous = prices.at_or_before(security_id, as_of_date - timedelta(days=1))

    quote_price = quote.price if quote is not None else 0.0
    previous_price = previous.price if previous is not None else quote_price
    is_stale = quote is None or (as_of_date - quote.date).days > STALE_DAYS

    market_value = quantity * quote_price
    gain = market_value - cost_basis

    return Holding(
        account_id=account_id,
        account_name=account.name if account is not None else "",
        security_id=security_id,
        security_name=security.name if security is not None else "",
        security_symbol=(security.symbol or "") if security is not None else "",
        security_type=security.type if security is not None else None,
        security_goal=security.goal if security is not None else None,
        quantity=quantity,
        cost_basis=cost_basis,
        avg_cost_per_share=cost_basis / quantity if quantity else 0.0,
        quote_price=quote_price,
        price_date=quote.date if quote is not None else None,
        market_value=market_value,
        unrealized_gain_loss=gain,
        unrealized_gain_loss_pct=gain / abs(cost_basis) if cost_basis else 0.0,
        day_gain_loss=quantity * (quote_price - previous_price),
        day_gain_loss_pct=(quote_price - previous_price) / previous_price if previous_price else 0.0,
        is_stale=is_stale,
    )


def compute_holdings_as_of(
    lots: Iterable[Lot],
    allocations: Iterable[LotAllocation],
    prices: Iterable[Price],
    accounts: Iterable[Account],
    securities: Iterable[Security],
    transactions: Iterable[Transaction],
    as_of_date: date,
    selected_account_ids: Optional[Iterable[str]] = None,
    filter_query: Optional[str] = None,
) -> list[Holding]:
    """Compute holdings as they stood at the end of as_of_date.

    Args:
        lots: Every stored lot
        allocations: Every stored lot allocation
        prices: Price quotes
        accounts: Accounts, for names and cash holdings
        securities: Securities, for names and symbols
        transactions: Transactions with running balances, for cash holdings
        as_of_date: Valuation date
        selected_account_ids: Only include these accounts (all when empty)
        filter_query: Only include holdings whose security name, symbol or
            account name contains this text, case-insensitive

    Returns:
        One holding per account/security pair with a non-zero position, plus
        one cash holding for every account with a security holding, ordered by account name with
        the cash holding after the securities. Each holding's market_value_pct
        is its share of the returned holdings' total market value.
    """
    account_by_id = {account.id: account for account in accounts}
    security_by_id = {security.id: security for security in securities}
    price_history = PriceHistory(prices)
    selected = set(selected_account_ids or ())

    allocations_by_lot: dict[str, list[LotAllocation]] = defaultdict(list)
    for allocation in allocations:
        if allocation.date <= as_of_date:
            allocations_by_lot[allocation.lot_id].append(allocation)

    positions: dict[tuple[str, str], list[float]] = defaultdict(lambda: [0.0, 0.0])
    for lot in lots:
        if selected and lot.account_id not in selected:
            continue
        if not is_lot_open_on(lot, as_of_date):
            continue
        drawn = allocations_by_lot.get(lot.id, [])
        position = positions[(lot.account_id, lot.security_id)]
        position[0] += lot.quantity - sum(a.shares_allocated for a in drawn)
        position[1] += lot.cost_basis - sum(a.cost_basis_allocated for a in drawn)

    holdings = [
        _security_holding(
            account_by_id.get(account_id),
            account_id,
            security_by_id.get(security_id),
            security_id,
            quantity,
            cost_basis,
            price_history,
            as_of_date,
        )
        for (account_id, security_id), (quantity, cost_basis) in positions.items()
        if abs(quantity) > EPSILON
    ]

    transactions_by_account: dict[str, list[Transaction]] = defaultdict(list)
    for transaction in sorted(transactions, key=lambda t: (t.date, t.id)):
        transactions_by_account[transaction.account_id].append(transaction)

    for account_id in sorted({h.account_id for h in holdings}):
        balance = cash_balance_as_of(transactions_by_account[account_id], as_of_date)
        account = account_by_id.get(account_id) or Account(id=account_id, name="")
        holdings.append(cash_holding(account, balance))

    holdings = [h for h in holdings if matches_search(h, filter_query)]
    holdings.sort(
        key=lambda h: (h.account_name, h.security_id == CASH_SECURITY_ID, h.security_name, h.security_id)
    )

    total = sum(h.market_value for h in holdings)
    return [replace(h, market_value_pct=h.market_value / total if total else 0.0) for h in holdings]


class HoldingsService:
    """Service that values stored lots as of a date."""

    def __init__(self, db: Database):
        self.db = db

    def holdings_as_of(
        self,
        as_of_date: date,
        selected_account_ids: Optional[Iterable[str]] = None,
        filter_query: Optional[str] = None,
    ) -> list[Holding]:
        """Load the ledger, prices and balances from the store and compute holdings."""
        return compute_holdings_as_of(
            lots=self.db.list_lots(),
            allocations=self.db.list_lot_allocations(),
            prices=self.db.list_prices(),
            accounts=self.db.list_accounts(),
            securities=self.db.list_securities(),
            transactions=self.db.list_transactions(),
            as_of_date=as_of_date,
            selected_account_ids=selected_account_ids,
            filter_query=filter_query,
        )
