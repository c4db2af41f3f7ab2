"""Bucket built entries by kind and check that they reference each other."""

from dataclasses import dataclass, field
from typing import Callable, Hashable, Iterable, TypeVar

from qifledger.domain.errors import (
    MissingAccountsError,
    MissingSecuritiesError,
    TransactionMissingAccountError,
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
    SecurityEntry,
    TagEntry,
)

T = TypeVar("T")


@dataclass(frozen=True)
class ParsedQif:
    """Result of parsing a QIF file, one list per kind of entry."""

    accounts: list[AccountEntry] = field(default_factory=list)
    categories: list[CategoryEntry] = field(default_factory=list)
    classes: list[ClassEntry] = field(default_factory=list)
    securities: list[SecurityEntry] = field(default_factory=list)
    bank_transactions: list[BankTransactionEntry] = field(default_factory=list)
    investment_transactions: list[InvestmentTransactionEntry] = field(default_factory=list)
    payees: list[PayeeEntry] = field(default_factory=list)
    prices: list[PriceEntry] = field(default_factory=list)
    tags: list[TagEntry] = field(default_factory=list)
    others: list[OtherEntry] = field(default_factory=list)


BUCKETS: dict[type, str] = {
    AccountEntry: "accounts",
    CategoryEntry: "categories",
    ClassEntry: "classes",
    SecurityEntry: "securities",
    BankTransactionEntry: "bank_transactions",
    InvestmentTransactionEntry: "investment_transactions",
    PayeeEntry: "payees",
    PriceEntry: "prices",
    TagEntry: "tags",
    OtherEntry: "others",
}


def unique_by(items: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Drop items whose key was already seen, keeping the first occurrence."""
    seen = set()
    unique = []
    for item in items:
        item_key = key(item)
        if item_key not in seen:
            seen.add(item_key)
            unique.append(item)
    return unique


def classify(entries: Iterable[Entry]) -> ParsedQif:
    """Partition entries into buckets and validate them.

    QIF exports often repeat list records, so named entries are de-duplicated by
    name and prices by (symbol, date). Accounts come back sorted by name.

    Raises:
        MissingSecuritiesError: Investment transactions but no securities
        MissingAccountsError: Transactions but no accounts
        TransactionMissingAccountError: A transaction with an empty account reference
    """
    buckets: dict[str, list] = {name: [] for name in BUCKETS.values()}
    for entry in entries:
        buckets[BUCKETS[type(entry)]].append(entry)

    bank_transactions = buckets["bank_transactions"]
    investment_transactions = buckets["investment_transactions"]

    if investment_transactions and not buckets["securities"]:
        raise MissingSecuritiesError("Investment transactions found but no securities defined")
    if (bank_transactions or investment_transactions) and not buckets["accounts"]:
        raise MissingAccountsError("Transactions found but no accounts defined")
    if any(not t.account for t in bank_transactions):
        raise TransactionMissingAccountError("Found bank transactions without account information")
    if any(not t.account for t in investment_transactions):
        raise TransactionMissingAccountError(
            "Found investment transactions without account information"
        )

    by_name = lambda entry: entry.name
    return ParsedQif(
        accounts=sorted(unique_by(buckets["accounts"], by_name), key=by_name),
        categories=unique_by(buckets["categories"], by_name),
        classes=unique_by(buckets["classes"], by_name),
        securities=unique_by(buckets["securities"], by_name),
        bank_transactions=bank_transactions,
        investment_transactions=investment_transactions,
        payees=unique_by(buckets["payees"], by_name),
        prices=unique_by(buckets["prices"], lambda p: (p.symbol, p.date)),
        tags=unique_by(buckets["tags"], by_name),
        others=buckets["others"],
    )
