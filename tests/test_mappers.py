"""Tests for ORM-to-domain mappers."""

from datetime import date, datetime

from qifledger.database import models
from qifledger.database.mappers import (
    lot_allocation_to_domain,
    lot_to_domain,
    price_to_domain,
    transaction_to_domain,
)
from qifledger.domain.entities import BankTransaction, InvestmentTransaction


def test_bank_transaction_mapping():
    orm = models.Transaction(
        id="txn_1",
        account_id="acc_1",
        transaction_type="bank",
        date=date(2024, 1, 2),
        amount=-5.0,
        payee="Bakery",
        number="12",
        running_balance=95.0,
    )

    transaction = transaction_to_domain(orm)

    assert isinstance(transaction, BankTransaction)
    assert transaction.number == "12"
    assert transaction.running_balance == 95.0


def test_investment_transaction_mapping():
    orm = models.Transaction(
        id="txn_2",
        account_id="acc_1",
        transaction_type="investment",
        date=date(2024, 1, 2),
        amount=-100.0,
        investment_action="Buy",
        security_id="sec_1",
        quantity=10.0,
        price=10.0,
    )

    transaction = transaction_to_domain(orm)

    assert isinstance(transaction, InvestmentTransaction)
    assert transaction.investment_action == "Buy"
    assert transaction.security_id == "sec_1"
    assert transaction.quantity == 10.0


def test_lot_mapping_keeps_created_at():
    created = datetime(2024, 1, 2, 12, 0)
    orm = models.Lot(
        id="lot_1",
        account_id="acc_1",
        security_id="sec_1",
        purchase_date=date(2024, 1, 2),
        quantity=-5.0,
        cost_basis=-75.0,
        remaining_quantity=-5.0,
        created_by_transaction_id="txn_1",
        created_at=created,
    )

    lot = lot_to_domain(orm)

    assert lot.created_at == created
    assert lot.cost_basis_per_share == 15.0
    assert lot.closed_date is None


def test_allocation_and_price_mapping():
    allocation = lot_allocation_to_domain(
        models.LotAllocation(
            id="la_1",
            lot_id="lot_1",
            transaction_id="txn_2",
            shares_allocated=-2.0,
            cost_basis_allocated=-30.0,
            date=date(2024, 2, 1),
        )
    )
    price = price_to_domain(models.Price(id="prc_1", security_id="sec_1", date=date(2024, 2, 1), price=9.5))

    assert allocation.shares_allocated == -2.0
    assert allocation.date == date(2024, 2, 1)
    assert price.price == 9.5
