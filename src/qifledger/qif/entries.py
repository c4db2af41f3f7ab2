"""Typed records produced from QIF line groups.

Each QIF context has exactly one entry type; ``Entry`` is the closed union of
all of them. Entries are immutable and carry the values exactly as the file
stated them, after date/amount parsing and account-type normalisation.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Union

from qifledger.domain.actions import InvestmentAction


class QifContext(str, Enum):
    """Record context selected by ``!Type:`` (or ``!Account``) directives."""

    ACCOUNT = "Account"
    BANK = "Bank"
    CASH = "Cash"
    CATEGORY = "Category"
    CLASS = "Class"
    CREDIT_CARD = "Credit Card"
    INVESTMENT = "Investment"
    INVOICE = "Invoice"
    MEMORIZED = "Memorized"
    OTHER_ASSET = "Other Asset"
    OTHER_LIABILITY = "Other Liability"
    PAYEES = "Payees"
    PRICES = "Prices"
    SECURITY = "Security"
    TAG = "Tag"
    BILL = "Bill"
    BUDGET = "Budget"
    INVOICE_ITEM = "Invoice Item"
    TAX_RELATED = "Tax-related"
    BUSINESS_TEMPLATE = "Business Template"


@dataclass(frozen=True)
class AccountEntry:
    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    credit_limit: Optional[float] = None


@dataclass(frozen=True)
class CategoryEntry:
    name: str
    description: Optional[str] = None
    budget_amount: Optional[float] = None
    excluded: bool = False
    is_income_category: bool = False
    is_tax_related: bool = False
    tax_schedule: Optional[str] = None


@dataclass(frozen=True)
class ClassEntry:
    name: str
    description: Optional[str] = None
    subclass: Optional[str] = None


@dataclass(frozen=True)
class PayeeEntry:
    name: str
    address: tuple[str, ...] = ()
    memo: Optional[str] = None
    default_category: Optional[str] = None


@dataclass(frozen=True)
class SecurityEntry:
    name: str
    symbol: Optional[str] = None
    type: Optional[str] = None
    goal: Optional[str] = None


@dataclass(frozen=True)
class TagEntry:
    name: str
    color: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class PriceEntry:
    symbol: str
    price: float
    date: date


@dataclass(frozen=True)
class SplitEntry:
    category: Optional[str] = None
    memo: Optional[str] = None
    amount: Optional[float] = None


@dataclass(frozen=True)
class BankTransactionEntry:
    """Transaction from a Bank, Cash, Credit Card, Invoice or Other Asset/Liability context.

    ``transaction_type`` is the context that was active when the record was read.
    """

    account: str
    transaction_type: QifContext
    date: date
    amount: Optional[float] = None
    payee: Optional[str] = None
    memo: Optional[str] = None
    number: Optional[str] = None
    cleared: Optional[str] = None
    category: Optional[str] = None
    address: tuple[str, ...] = ()
    splits: tuple[SplitEntry, ...] = ()


@dataclass(frozen=True)
class InvestmentTransactionEntry:
    """Transaction from an Investment context.

    ``amount`` is signed: negative when cash leaves the account. For stock
    splits ``quantity`` keeps the file's ten-times ratio encoding.
    """

    account: str
    date: date
    action: InvestmentAction
    security: Optional[str] = None
    quantity: Optional[float] = None
    price: Optional[float] = None
    commission: Optional[float] = None
    amount: Optional[float] = None
    payee: Optional[str] = None
    memo: Optional[str] = None
    number: Optional[str] = None
    cleared: Optional[str] = None
    category: Optional[str] = None
    address: tuple[str, ...] = ()


@dataclass(frozen=True)
class OtherEntry:
    """Record from a context that has no structured model (memorized, budget, ...)."""

    context: QifContext
    lines: tuple[str, ...] = field(default_factory=tuple)


Entry = Union[
    AccountEntry,
    CategoryEntry,
    ClassEntry,
    PayeeEntry,
    SecurityEntry,
    TagEntry,
    PriceEntry,
    BankTransactionEntry,
    InvestmentTransactionEntry,
    OtherEntry,
]
