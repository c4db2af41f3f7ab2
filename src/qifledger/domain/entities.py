"""Domain model entities for qifledger.

These are pure data classes representing persisted and derived business
concepts, independent of database schema. IDs are content-derived strings (see
qifledger.utils.identity) so re-importing the same file yields the same rows.
"""

from dataclasses import dataclass
from datetime import datetime, date
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: str
    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    credit_limit: Optional[float] = None


@dataclass(frozen=True)
class Security:
    """Security domain entity."""

    id: str
    name: str
    symbol: Optional[str] = None
    type: Optional[str] = None
    goal: Optional[str] = None


@dataclass(frozen=True)
class Price:
    """Price quote for a security on a day."""

    id: str
    security_id: str
    date: date
    price: float


@dataclass(frozen=True)
class Split:
    """One category line of a split bank transaction."""

    id: str
    transaction_id: str
    amount: Optional[float] = None
    category: Optional[str] = None
    memo: Optional[str] = None


@dataclass(frozen=True)
class BankTransaction:
    """Transaction in a bank, cash, credit card or other non-investment account."""

    transaction_type: ClassVar[str] = "bank"

    id: str
    account_id: str
    date: date
    amount: Optional[float]
    payee: Optional[str] = None
    memo: Optional[str] = None
    number: Optional[str] = None
    cleared: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    running_balance: Optional[float] = None


@dataclass(frozen=True)
class InvestmentTransaction:
    """Transaction in an investment account."""

    transaction_type: ClassVar[str] = "investment"

    id: str
    account_id: str
    date: date
    amount: Optional[float]
    investment_action: str
    security_id: Optional[str] = None
    quantity: Optional[float] = None
    price: Optional[float] = None
    commission: Optional[float] = None
    payee: Optional[str] = None
    memo: Optional[str] = None
    cleared: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    running_balance: Optional[float] = None


Transaction = Union[BankTransaction, InvestmentTransaction]


@dataclass(frozen=True)
class Lot:
    """Cost-basis lot.

    Short positions are lots with negative quantity; cost_basis carries the same
    sign as quantity so cost_basis / quantity is always the per-share price.
    Only remaining_quantity and closed_date change as the lot is consumed (and
    quantity, for stock splits).
    """

    id: str
    account_id: str
    security_id: str
    purchase_date: date
    quantity: float
    cost_basis: float
    remaining_quantity: float
    created_by_transaction_id: str
    closed_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @property
    def cost_basis_per_share(self) -> float:
        return self.cost_basis / self.quantity if self.quantity else 0.0


@dataclass(frozen=True)
class LotAllocation:
    """Shares and cost basis a transaction drew from a lot.

    shares_allocated carries the sign of the lot's quantity, so for every lot
    quantity == remaining_quantity + sum(shares_allocated).
    """

    id: str
    lot_id: str
    transaction_id: str
    shares_allocated: float
    cost_basis_allocated: float
    date: date


@dataclass(frozen=True)
class Holding:
    """Position in one security within one account as of a date (derived)."""

    account_id: str
    account_name: str
    security_id: str
    security_name: str
    security_symbol: str
    security_type: Optional[str]
    security_goal: Optional[str]
    quantity: float
    cost_basis: float
    avg_cost_per_share: float
    quote_price: float
    price_date: Optional[date]
    market_value: float
    unrealized_gain_loss: float
    unrealized_gain_loss_pct: float
    day_gain_loss: float
    day_gain_loss_pct: float
    is_stale: bool
    market_value_pct: float = 0.0
