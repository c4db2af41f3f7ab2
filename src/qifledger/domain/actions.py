"""Investment action codes and how each one affects lots and cash."""

from enum import Enum
from typing import Optional


class InvestmentAction(str, Enum):
    """Action codes found on the N (or K) line of an investment record."""

    BUY = "Buy"
    BUY_X = "BuyX"
    CASH = "Cash"
    CG_LONG = "CGLong"
    CG_SHORT = "CGShort"
    CONTRIB_X = "ContribX"
    COVER_SHORT = "CvrShrt"
    DIV = "Div"
    DIV_X = "DivX"
    EXERCISE = "Exercise"
    EXPIRE = "Expire"
    GRANT = "Grant"
    INT_INC = "IntInc"
    MARG_INT = "MargInt"
    MISC_EXP = "MiscExp"
    MISC_INC = "MiscInc"
    MISC_INC_X = "MiscIncX"
    REINV_DIV = "ReinvDiv"
    REINV_INT = "ReinvInt"
    REINV_LG = "ReinvLg"
    REINV_MD = "ReinvMd"
    REINV_SH = "ReinvSh"
    REMINDER = "Reminder"
    RTRN_CAP_X = "RtrnCapX"
    SELL = "Sell"
    SELL_X = "SellX"
    SHARES_IN = "ShrsIn"
    SHARES_OUT = "ShrsOut"
    SHORT_SELL = "ShtSell"
    STOCK_SPLIT = "StkSplit"
    VEST = "Vest"
    WITHDRAW_X = "WithdrwX"
    X_IN = "XIn"
    X_OUT = "XOut"

    @classmethod
    def from_code(cls, code: str) -> Optional["InvestmentAction"]:
        """Look up an action by its QIF code, returning None when unknown."""
        try:
            return cls(code.strip())
        except ValueError:
            return None

    @property
    def kind(self) -> "ActionKind":
        return ACTION_KINDS[self]


class ActionKind(Enum):
    """Lot-ledger behaviour of an investment action."""

    CASH_ONLY = "cash_only"
    BUY = "buy"
    SELL = "sell"
    REINVEST = "reinvest"
    SPLIT = "split"
    VEST = "vest"
    EXERCISE = "exercise"


_A = InvestmentAction

ACTION_KINDS: dict[InvestmentAction, ActionKind] = {
    _A.DIV: ActionKind.CASH_ONLY,
    _A.DIV_X: ActionKind.CASH_ONLY,
    _A.INT_INC: ActionKind.CASH_ONLY,
    _A.MISC_INC: ActionKind.CASH_ONLY,
    _A.MISC_INC_X: ActionKind.CASH_ONLY,
    _A.MISC_EXP: ActionKind.CASH_ONLY,
    _A.MARG_INT: ActionKind.CASH_ONLY,
    _A.CASH: ActionKind.CASH_ONLY,
    _A.CG_SHORT: ActionKind.CASH_ONLY,
    _A.CG_LONG: ActionKind.CASH_ONLY,
    _A.CONTRIB_X: ActionKind.CASH_ONLY,
    _A.WITHDRAW_X: ActionKind.CASH_ONLY,
    _A.RTRN_CAP_X: ActionKind.CASH_ONLY,
    _A.REMINDER: ActionKind.CASH_ONLY,
    _A.EXPIRE: ActionKind.CASH_ONLY,
    _A.X_OUT: ActionKind.CASH_ONLY,
    _A.X_IN: ActionKind.CASH_ONLY,
    _A.BUY: ActionKind.BUY,
    _A.BUY_X: ActionKind.BUY,
    _A.COVER_SHORT: ActionKind.BUY,
    _A.SHARES_IN: ActionKind.BUY,
    _A.SELL: ActionKind.SELL,
    _A.SELL_X: ActionKind.SELL,
    _A.SHORT_SELL: ActionKind.SELL,
    _A.SHARES_OUT: ActionKind.SELL,
    _A.REINV_DIV: ActionKind.REINVEST,
    _A.REINV_INT: ActionKind.REINVEST,
    _A.REINV_LG: ActionKind.REINVEST,
    _A.REINV_SH: ActionKind.REINVEST,
    _A.REINV_MD: ActionKind.REINVEST,
    _A.STOCK_SPLIT: ActionKind.SPLIT,
    _A.GRANT: ActionKind.VEST,
    _A.VEST: ActionKind.VEST,
    _A.EXERCISE: ActionKind.EXERCISE,
}

# Amount is money leaving the account.
OUTFLOW_ACTIONS = frozenset(
    {_A.BUY, _A.BUY_X, _A.COVER_SHORT, _A.MISC_EXP, _A.MARG_INT, _A.X_OUT, _A.WITHDRAW_X}
)

# Proceeds are reduced by commission rather than increased.
SALE_ACTIONS = frozenset({_A.SELL, _A.SELL_X, _A.SHORT_SELL})

# Amount changes the account's own cash balance.
CASH_IMPACT_ACTIONS = frozenset(
    {
        _A.BUY,
        _A.CASH,
        _A.CG_LONG,
        _A.CG_SHORT,
        _A.CONTRIB_X,
        _A.COVER_SHORT,
        _A.DIV,
        _A.INT_INC,
        _A.MARG_INT,
        _A.MISC_EXP,
        _A.MISC_INC,
        _A.SELL,
        _A.SHORT_SELL,
        _A.WITHDRAW_X,
        _A.X_IN,
        _A.X_OUT,
    }
)
