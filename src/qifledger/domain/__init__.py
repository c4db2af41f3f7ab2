"""Domain layer for qifledger.

Services live in their own modules (qif_import, lots, holdings) and are
imported from there; this package only re-exports the plain data types.
"""

from qifledger.domain.actions import InvestmentAction
from qifledger.domain.entities import (
    Account,
    BankTransaction,
    Holding,
    InvestmentTransaction,
    Lot,
    LotAllocation,
    Price,
    Security,
    Split,
)

__all__ = [
    "Account",
    "BankTransaction",
    "Holding",
    "InvestmentAction",
    "InvestmentTransaction",
    "Lot",
    "LotAllocation",
    "Price",
    "Security",
    "Split",
]
