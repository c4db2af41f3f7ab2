"""Turn QIF line groups into typed entries.

The meaning of a record depends on the directives that came before it, so the
builder is a fold over the line groups: each step takes a ``ParserState`` and a
group and returns the next state plus the entries built from that group.
"""

import csv
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Iterator, Mapping, Optional, Union

from qifledger.domain.actions import OUTFLOW_ACTIONS, SALE_ACTIONS, InvestmentAction
from qifledger.domain.errors import (
    InvalidFieldError,
    ParseError,
    TransactionWithoutAccountError,
    UnknownContextError,
    UnknownInvestmentActionError,
    transaction_without_account,
    unknown_context,
)
from qifledger.qif.entries import (
    AccountEntry,
    BankTransactionEntry,
    CategoryEntry,
    ClassEntry,
    Entry,
    InvestmentTransactionEntry,
    OtherEntry,
    PayeeEntry,
    PriceEntry,
    QifContext,
    SecurityEntry,
    SplitEntry,
    TagEntry,
)
from qifledger.qif.grouper import LineGroup
from qifledger.utils.amount_parser import parse_amount
from qifledger.utils.date_parser import parse_qif_date

logger = logging.getLogger(__name__)

CONTEXTS: dict[str, QifContext] = {
    "!Type:Bank": QifContext.BANK,
    "!Type:Cash": QifContext.CASH,
    "!Type:Cat": QifContext.CATEGORY,
    "!Type:CCard": QifContext.CREDIT_CARD,
    "!Type:Class": QifContext.CLASS,
    "!Type:Invst": QifContext.INVESTMENT,
    "!Type:Memorized": QifContext.MEMORIZED,
    "!Type:Oth A": QifContext.OTHER_ASSET,
    "!Type:Oth L": QifContext.OTHER_LIABILITY,
    "!Type:Payee": QifContext.PAYEES,
    "!Type:Port": QifContext.INVESTMENT,
    "!Type:Prices": QifContext.PRICES,
    "!Type:Security": QifContext.SECURITY,
    "!Type:Tag": QifContext.TAG,
    "!Type:Bill": QifContext.BILL,
    "!Type:Budget": QifContext.BUDGET,
    "!Type:Invitem": QifContext.INVOICE_ITEM,
    "!Type:Invoice": QifContext.INVOICE,
    "!Type:Tax": QifContext.TAX_RELATED,
    "!Type:Template": QifContext.BUSINESS_TEMPLATE,
}

TRANSACTION_CONTEXTS = frozenset(
    {
        QifContext.BANK,
        QifContext.CASH,
        QifContext.CREDIT_CARD,
        QifContext.INVESTMENT,
        QifContext.INVOICE,
        QifContext.OTHER_ASSET,
        QifContext.OTHER_LIABILITY,
    }
)

ACCOUNT_TYPES = {
    "Bank": "Bank",
    "Cash": "Cash",
    "CCard": "Credit Card",
    "Invst": "Investment",
    "Oth A": "Other Asset",
    "Oth L": "Other Liability",
    "Mutual": "Investment",
    "Port": "Investment",
    "401(k)/403(b)": "Investment",
}

ACCOUNT_START = "!Account"

# (source line number, line text); the number is None when groups come unnumbered
NumberedLine = tuple[Optional[int], str]


@dataclass(frozen=True)
class ParserState:
    """Everything a record's meaning depends on besides its own lines."""

    context: Optional[QifContext] = None
    account: Optional[AccountEntry] = None
    options: Mapping[str, bool] = field(default_factory=dict)


def build_entries(
    groups: Iterable[Union[LineGroup, tuple[int, LineGroup]]],
    state: Optional[ParserState] = None,
) -> tuple[list[Entry], ParserState]:
    """Build entries from line groups, in source order.

    Groups may be given plain or paired with their starting line number (as
    returned by ``group_lines_with_numbers``); numbered groups give errors a
    line reference.

    Returns:
        Tuple of (entries, final parser state)

    Raises:
        UnknownContextError: On a ``!Type:`` directive we do not recognise
        TransactionWithoutAccountError: On a transaction record before any account
        ParseError: On other malformed records
    """
    state = state if state is not None else ParserState()
    entries: list[Entry] = []
    for item in groups:
        line_number, group = item if isinstance(item, tuple) else (None, item)
        state, built = step(state, group, line_number)
        entries.extend(built)
    return entries, state


def step(
    state: ParserState, group: LineGroup, line_number: Optional[int] = None
) -> tuple[ParserState, list[Entry]]:
    """Apply one line group to the parser state."""
    if isinstance(group, str):
        return _apply_directive(state, group, line_number), []

    lines = [
        (None if line_number is None else line_number + offset, line)
        for offset, line in enumerate(group)
        if line
    ]
    if not lines:
        return state, []

    if lines[0][1] == ACCOUNT_START:
        account = _build_account(lines[1:], line_number)
        return replace(state, context=QifContext.ACCOUNT, account=account), [account]

    return _apply_record(state, lines, line_number)


def _apply_directive(state: ParserState, directive: str, line_number: Optional[int]) -> ParserState:
    _, _, value = directive.partition(":")
    if directive.startswith("!Option"):
        return replace(state, options={**state.options, value: True})
    if directive.startswith("!Clear"):
        return replace(state, options={**state.options, value: False})

    context = CONTEXTS.get(directive)
    if context is None:
        raise UnknownContextError(unknown_context(directive), line_number)
    return replace(state, context=context)


def _apply_record(
    state: ParserState, lines: list[NumberedLine], line_number: Optional[int]
) -> tuple[ParserState, list[Entry]]:
    context = state.context
    if context is None:
        raise ParseError("Record found before any !Type or !Account directive", line_number)
    if context in TRANSACTION_CONTEXTS and state.account is None:
        raise TransactionWithoutAccountError(transaction_without_account(context.value, line_number))

    entries = RECORD_BUILDERS[context](lines, state, line_number)
    if context is QifContext.ACCOUNT:
        return replace(state, account=entries[-1]), entries
    return state, entries


def _fields(lines: list[NumberedLine], allowed: str, kind: str) -> Iterator[tuple[str, str, Optional[int]]]:
    """Yield (key, value, line number) for each line, skipping unknown keys."""
    for number, line in lines:
        key, value = line[0], line[1:]
        if key not in allowed:
            logger.warning("Don't understand key %s in %s record (line %s): %r", key, kind, number, line)
            continue
        yield key, value, number


def _amount(value: str, line_number: Optional[int]) -> float:
    try:
        return parse_amount(value)
    except ValueError as e:
        raise InvalidFieldError(str(e), line_number) from e


def _date(value: str, line_number: Optional[int]):
    try:
        return parse_qif_date(value)
    except ValueError as e:
        raise InvalidFieldError(str(e), line_number) from e


def _require(values: dict, key: str, kind: str, line_number: Optional[int]):
    if values.get(key) in (None, ""):
        raise InvalidFieldError(f"{kind} record has no {key}", line_number)
    return values[key]


def _build_account(lines: list[NumberedLine], line_number: Optional[int]) -> AccountEntry:
    values: dict = {}
    for key, value, number in _fields(lines, "DLNT", "Account"):
        if key == "D":
            values["description"] = value
        elif key == "L":
            values["credit_limit"] = _amount(value, number)
        elif key == "N":
            values["name"] = value
        elif key == "T":
            values["type"] = ACCOUNT_TYPES.get(value, value)
    _require(values, "name", "Account", line_number)
    return AccountEntry(**values)


def _account_records(lines, state, line_number) -> list[Entry]:
    return [_build_account(lines, line_number)]


def _category_records(lines, state, line_number) -> list[Entry]:
    values: dict = {}
    for key, value, number in _fields(lines, "BCDEINRT", "Category"):
        if key == "B":
            values["budget_amount"] = _amount(value, number)
        elif key == "D":
            values["description"] = value
        elif key == "E":
            values["excluded"] = True
        elif key == "I":
            values["is_income_category"] = True
        elif key == "N":
            values["name"] = value
        elif key == "R":
            values["tax_schedule"] = value
        elif key == "T":
            values["is_tax_related"] = True
    _require(values, "name", "Category", line_number)
    return [CategoryEntry(**values)]


def _class_records(lines, state, line_number) -> list[Entry]:
    values: dict = {}
    for key, value, _ in _fields(lines, "CDN", "Class"):
        values[{"C": "subclass", "D": "description", "N": "name"}[key]] = value
    _require(values, "name", "Class", line_number)
    return [ClassEntry(**values)]


def _payee_records(lines, state, line_number) -> list[Entry]:
    values: dict = {}
    address: list[str] = []
    for key, value, _ in _fields(lines, "AMNT", "Payee"):
        if key == "A":
            address.append(value)
        elif key == "M":
            values["memo"] = value
        elif key == "N":
            values["name"] = value
        elif key == "T":
            values["default_category"] = value
    _require(values, "name", "Payee", line_number)
    return [PayeeEntry(address=tuple(address), **values)]


def _security_records(lines, state, line_number) -> list[Entry]:
    values: dict = {}
    for key, value, _ in _fields(lines, "GNST", "Security"):
        values[{"G": "goal", "N": "name", "S": "symbol", "T": "type"}[key]] = value
    _require(values, "name", "Security", line_number)
    return [SecurityEntry(**values)]


def _tag_records(lines, state, line_number) -> list[Entry]:
    values: dict = {}
    for key, value, _ in _fields(lines, "CDN", "Tag"):
        values[{"C": "color", "D": "description", "N": "name"}[key]] = value
    _require(values, "name", "Tag", line_number)
    return [TagEntry(**values)]


def _price_records(lines, state, line_number) -> list[Entry]:
    """Each line of a Prices record is a quote: "SYMBOL",price,"date"."""
    prices: list[Entry] = []
    for number, line in lines:
        row = [column.strip() for column in next(csv.reader([line], skipinitialspace=True))]
        if len(row) < 2 or not row[1]:
            continue
        if len(row) < 3:
            raise InvalidFieldError(f"Price quote has no date: {line}", number)
        price = _amount(row[1], number)
        if not price:
            continue
        prices.append(PriceEntry(symbol=row[0], price=price, date=_date(row[2], number)))
    return prices


def _bank_records(lines, state, line_number) -> list[Entry]:
    values: dict = {}
    address: list[str] = []
    splits: list[dict] = []

    def current_split(number):
        if not splits:
            raise InvalidFieldError("Split detail without a preceding S line", number)
        return splits[-1]

    for key, value, number in _fields(lines, "$ACDELMNPSTU", "Bank transaction"):
        if key == "$":
            current_split(number)["amount"] = _amount(value, number)
        elif key == "A":
            address.append(value)
        elif key == "C":
            values["cleared"] = value
        elif key == "D":
            values["date"] = _date(value, number)
        elif key == "E":
            current_split(number)["memo"] = value
        elif key == "L":
            values["category"] = value
        elif key == "M":
            values["memo"] = value
        elif key == "N":
            values["number"] = value
        elif key == "P":
            values["payee"] = value
        elif key == "S":
            splits.append({"category": value})
        elif key in "TU":
            values["amount"] = _amount(value, number)

    _require(values, "date", "Transaction", line_number)
    return [
        BankTransactionEntry(
            account=state.account.name,
            transaction_type=state.context,
            address=tuple(address),
            splits=tuple(SplitEntry(**split) for split in splits),
            **values,
        )
    ]


def _investment_records(lines, state, line_number) -> list[Entry]:
    values: dict = {}
    address: list[str] = []
    for key, value, number in _fields(lines, "#$ACDIKLMNOPQTUY", "Investment transaction"):
        if key == "$":
            continue
        if key == "#":
            values["number"] = value
        elif key == "A":
            address.append(value)
        elif key == "C":
            values["cleared"] = value
        elif key == "D":
            values["date"] = _date(value, number)
        elif key == "I":
            values["price"] = _amount(value, number)
        elif key in "KN":
            action = InvestmentAction.from_code(value)
            if action is None:
                raise UnknownInvestmentActionError(f"Unknown investment action '{value}'", number)
            values["action"] = action
        elif key == "L":
            values["category"] = value
        elif key == "M":
            values["memo"] = value
        elif key == "O":
            values["commission"] = _amount(value, number)
        elif key == "P":
            values["payee"] = value
        elif key == "Q":
            values["quantity"] = _amount(value, number)
        elif key in "TU":
            values["amount"] = _amount(value, number)
        elif key == "Y":
            values["security"] = value

    _require(values, "date", "Investment transaction", line_number)
    _require(values, "action", "Investment transaction", line_number)

    action = values["action"]
    amount, price, quantity = values.get("amount"), values.get("price"), values.get("quantity")
    if amount is None and price and quantity:
        proceeds = price * quantity
        commission = values.get("commission") or 0.0
        amount = proceeds - commission if action in SALE_ACTIONS else proceeds + commission
    values["amount"] = signed_amount(action, amount)

    return [InvestmentTransactionEntry(account=state.account.name, address=tuple(address), **values)]


def signed_amount(action: InvestmentAction, amount: Optional[float]) -> Optional[float]:
    """Sign an investment amount: negative when cash leaves the account.

    QIF writes investment amounts unsigned. Stock splits carry no amount.
    """
    if amount is None or action is InvestmentAction.STOCK_SPLIT:
        return None
    return -abs(amount) if action in OUTFLOW_ACTIONS else abs(amount)


def _other_records(lines, state, line_number) -> list[Entry]:
    return [OtherEntry(context=state.context, lines=tuple(line for _, line in lines))]


RecordBuilder = Callable[[list[NumberedLine], ParserState, Optional[int]], list[Entry]]

RECORD_BUILDERS: dict[QifContext, RecordBuilder] = {
    QifContext.ACCOUNT: _account_records,
    QifContext.BANK: _bank_records,
    QifContext.CASH: _bank_records,
    QifContext.CATEGORY: _category_records,
    QifContext.CLASS: _class_records,
    QifContext.CREDIT_CARD: _bank_records,
    QifContext.INVESTMENT: _investment_records,
    QifContext.INVOICE: _bank_records,
    QifContext.MEMORIZED: _other_records,
    QifContext.OTHER_ASSET: _bank_records,
    QifContext.OTHER_LIABILITY: _bank_records,
    QifContext.PAYEES: _payee_records,
    QifContext.PRICES: _price_records,
    QifContext.SECURITY: _security_records,
    QifContext.TAG: _tag_records,
    QifContext.BILL: _other_records,
    QifContext.BUDGET: _other_records,
    QifContext.INVOICE_ITEM: _other_records,
    QifContext.TAX_RELATED: _other_records,
    QifContext.BUSINESS_TEMPLATE: _other_records,
}
