"""Tests for rebuilding and reading the stored lot ledger."""

from dataclasses import replace
from datetime import date

import pytest

from qifledger.domain.entities import InvestmentTransaction
from qifledger.domain.errors import ReplayError, UnhandledInvestmentActionError


def without_timestamps(lots):
    return [replace(lot, created_at=None) for lot in lots]


def test_import_lots_is_idempotent(lot_service, imported_brokerage):
    lots_before = lot_service.list_lots()
    allocations_before = lot_service.list_allocations()

    result = lot_service.import_lots()

    assert result == {"lots": 3, "allocations": 2, "warnings": []}
    assert without_timestamps(lot_service.list_lots()) == without_timestamps(lots_before)
    assert lot_service.list_allocations() == allocations_before


def test_stored_ledger_is_conserved(lot_service, imported_brokerage):
    for lot in lot_service.list_lots():
        drawn = sum(a.shares_allocated for a in lot_service.list_allocations(lot_id=lot.id))
        assert lot.remaining_quantity + drawn == pytest.approx(lot.quantity)


def test_list_lots_filters(temp_db, lot_service, imported_brokerage):
    acme = [s for s in temp_db.list_securities() if s.symbol == "ACME"][0]
    brokerage = temp_db.get_account_by_name("Brokerage")
    checking = temp_db.get_account_by_name("Checking")

    acme_lots = lot_service.list_lots(security_id=acme.id)
    open_lots = lot_service.list_lots(account_id=brokerage.id, open_only=True)

    assert [lot.purchase_date for lot in acme_lots] == [date(2024, 1, 15), date(2024, 2, 1)]
    assert acme_lots[0].closed_date == date(2024, 3, 1)
    assert acme_lots[0].created_at is not None
    assert len(open_lots) == 2
    assert all(lot.closed_date is None for lot in open_lots)
    assert lot_service.list_lots(account_id=checking.id) == []


def test_failed_replay_keeps_previous_ledger(temp_db, lot_service, imported_brokerage):
    lots_before = lot_service.list_lots()
    brokerage = temp_db.get_account_by_name("Brokerage")
    acme = [s for s in temp_db.list_securities() if s.symbol == "ACME"][0]
    temp_db.create_transaction(
        InvestmentTransaction(
            id="txn_bogus",
            account_id=brokerage.id,
            date=date(2024, 4, 1),
            amount=1.0,
            investment_action="Bogus",
            security_id=acme.id,
            quantity=1.0,
        )
    )

    with pytest.raises(UnhandledInvestmentActionError) as excinfo:
        lot_service.import_lots()

    assert isinstance(excinfo.value, ReplayError)
    assert "txn_bogus" in str(excinfo.value)
    assert lot_service.list_lots() == lots_before
    assert len(lot_service.list_allocations()) == 2
