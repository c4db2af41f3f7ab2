"""Tests for point-in-time holdings."""

from datetime import date

import pytest

from qifledger.domain.entities import (
    Account,
    BankTransaction,
    InvestmentTransaction,
    Lot,
    LotAllocation,
    Price,
    Security,
)
from qifledger.domain.holdings import (
    CASH_SECURITY_ID,
    cash_balance_as_of,
    compute_holdings_as_of,
    is_lot_open_on,
)
from qifledger.domain.lots import LotLedger

BROKERAGE = Account(id="acc_b", name="Brokerage", type="Investment")
IRA = Account(id="acc_i", name="IRA", type="Investment")
ACME = Security(id="sec_acme", name="Acme Corp", symbol="ACME", type="Stock")
GLOBEX = Security(id="sec_globex", name="Globex", symbol="GBX")


def lot(lot_id, account, security, purchased, quantity, cost, closed=None, remaining=None):
    return Lot(
        id=lot_id,
        account_id=account.id,
        security_id=security.id,
        purchase_date=purchased,
        quantity=quantity,
        cost_basis=cost,
        remaining_quantity=quantity if remaining is None else remaining,
        created_by_transaction_id=f"txn_{lot_id}",
        closed_date=closed,
    )


def quote(security, on, price):
    return Price(id=f"prc_{security.id}_{on}", security_id=security.id, date=on, price=price)


def all_holdings(lots, as_of, allocations=(), prices=(), transactions=(), **kwargs):
    return compute_holdings_as_of(
        lots=lots,
        allocations=allocations,
        prices=prices,
        accounts=[BROKERAGE, IRA],
        securities=[ACME, GLOBEX],
        transactions=transactions,
        as_of_date=as_of,
        **kwargs,
    )


def holdings(*args, **kwargs):
    """Security holdings only, without the per-account cash rows."""
    return [h for h in all_holdings(*args, **kwargs) if h.security_id != CASH_SECURITY_ID]


class TestTimeTravel:
    """A lot fully sold on 2024-03-01 is reconstructed for earlier dates."""

    sold = lot("1", BROKERAGE, ACME, date(2024, 1, 15), 100, 1000.0, closed=date(2024, 3, 1), remaining=0.0)
    sale = LotAllocation(
        id="la_1",
        lot_id="1",
        transaction_id="txn_sell",
        shares_allocated=100,
        cost_basis_allocated=1000.0,
        date=date(2024, 3, 1),
    )

    def test_before_sale_reports_pre_sale_quantity(self):
        result = holdings([self.sold], date(2024, 2, 15), allocations=[self.sale])

        assert len(result) == 1
        assert result[0].quantity == 100
        assert result[0].cost_basis == 1000.0
        assert result[0].avg_cost_per_share == 10.0

    def test_after_sale_lot_is_absent(self):
        assert holdings([self.sold], date(2024, 3, 15), allocations=[self.sale]) == []

    def test_before_purchase_lot_is_absent(self):
        assert holdings([self.sold], date(2024, 1, 14), allocations=[self.sale]) == []

    def test_partial_sale_subtracts_only_earlier_allocations(self):
        open_lot = lot("2", BROKERAGE, ACME, date(2024, 1, 15), 100, 1000.0, remaining=40.0)
        allocations = [
            LotAllocation("la_a", "2", "txn_a", 25, 250.0, date(2024, 2, 1)),
            LotAllocation("la_b", "2", "txn_b", 35, 350.0, date(2024, 4, 1)),
        ]

        (march,) = holdings([open_lot], date(2024, 3, 1), allocations=allocations)
        (may,) = holdings([open_lot], date(2024, 5, 1), allocations=allocations)

        assert march.quantity == 75
        assert march.cost_basis == 750.0
        assert may.quantity == 40
        assert may.cost_basis == 400.0


def test_is_lot_open_on():
    closed = lot("1", BROKERAGE, ACME, date(2024, 1, 15), 1, 1.0, closed=date(2024, 3, 1))

    assert not is_lot_open_on(closed, date(2024, 1, 14))
    assert is_lot_open_on(closed, date(2024, 1, 15))
    assert is_lot_open_on(closed, date(2024, 2, 29))
    assert not is_lot_open_on(closed, date(2024, 3, 1))


def test_lots_in_same_pair_are_summed():
    lots = [
        lot("1", BROKERAGE, ACME, date(2024, 1, 2), 10, 100.0),
        lot("2", BROKERAGE, ACME, date(2024, 1, 3), 30, 420.0),
    ]

    (holding,) = holdings(lots, date(2024, 2, 1))

    assert holding.quantity == 40
    assert holding.cost_basis == 520.0
    assert holding.avg_cost_per_share == 13.0


def test_valuation_and_day_gain():
    lots = [lot("1", BROKERAGE, ACME, date(2024, 1, 2), 10, 100.0)]
    prices = [quote(ACME, date(2024, 2, 14), 11.0), quote(ACME, date(2024, 2, 15), 12.0)]

    (holding,) = holdings(lots, date(2024, 2, 15), prices=prices)

    assert holding.quote_price == 12.0
    assert holding.price_date == date(2024, 2, 15)
    assert holding.market_value == 120.0
    assert holding.unrealized_gain_loss == 20.0
    assert holding.unrealized_gain_loss_pct == pytest.approx(0.2)
    assert holding.day_gain_loss == pytest.approx(10.0)
    assert holding.day_gain_loss_pct == pytest.approx(1 / 11)
    assert holding.is_stale is False
    assert holding.security_symbol == "ACME"
    assert holding.security_type == "Stock"


class TestStaleness:
    lots = [lot("1", BROKERAGE, ACME, date(2024, 1, 2), 10, 100.0)]

    def test_quote_from_previous_day_is_fresh(self):
        (holding,) = holdings(self.lots, date(2024, 2, 15), prices=[quote(ACME, date(2024, 2, 14), 11.0)])

        assert holding.is_stale is False
        assert holding.day_gain_loss == 0.0

    def test_older_quote_is_stale(self):
        (holding,) = holdings(self.lots, date(2024, 2, 15), prices=[quote(ACME, date(2024, 2, 13), 11.0)])

        assert holding.is_stale is True
        assert holding.market_value == 110.0

    def test_missing_quote_is_stale(self):
        (holding,) = holdings(self.lots, date(2024, 2, 15))

        assert holding.is_stale is True
        assert holding.quote_price == 0.0
        assert holding.price_date is None
        assert holding.market_value == 0.0


def test_short_position_is_reported():
    short = lot("1", BROKERAGE, ACME, date(2024, 1, 2), -5, 0.0)

    (holding,) = holdings([short], date(2024, 2, 15), prices=[quote(ACME, date(2024, 2, 15), 10.0)])

    assert holding.quantity == -5
    assert holding.cost_basis == 0.0
    assert holding.avg_cost_per_share == 0.0
    assert holding.market_value == -50.0
    assert holding.unrealized_gain_loss == pytest.approx(-50.0)
    assert holding.unrealized_gain_loss_pct == 0.0


class TestLedgerEvents:
    """Holdings computed from a replayed ledger match each lot's remaining quantity."""

    def replay(self, *transactions):
        ledger = LotLedger(account_ids=[BROKERAGE.id], security_ids=[ACME.id])
        return ledger.replay(
            InvestmentTransaction(
                id=f"txn_{n}",
                account_id=BROKERAGE.id,
                date=on,
                amount=amount,
                investment_action=action,
                security_id=ACME.id,
                quantity=quantity,
            )
            for n, (action, on, quantity, amount) in enumerate(transactions)
        )

    def test_split_after_partial_sale(self):
        ledger = self.replay(
            ("Buy", date(2024, 1, 2), 100, -1000.0),
            ("Sell", date(2024, 2, 1), 40, 480.0),
            ("StkSplit", date(2024, 3, 1), 20, None),
        )
        (acme_lot,) = ledger.lots
        allocated = sum(a.shares_allocated for a in ledger.allocations)

        assert acme_lot.remaining_quantity == pytest.approx(120)
        assert acme_lot.remaining_quantity + allocated == pytest.approx(acme_lot.quantity)

        (holding,) = holdings(ledger.lots, date(2024, 4, 1), allocations=ledger.allocations)
        assert holding.quantity == pytest.approx(120)
        assert holding.cost_basis == pytest.approx(600.0)

    def test_partial_exercise(self):
        ledger = self.replay(
            ("Vest", date(2024, 1, 2), 100, None),
            ("Exercise", date(2024, 6, 1), 40, None),
        )
        (option_lot,) = ledger.lots

        assert option_lot.quantity == pytest.approx(60)
        assert option_lot.remaining_quantity == pytest.approx(60)

        (holding,) = holdings(ledger.lots, date(2024, 7, 1), allocations=ledger.allocations)
        assert holding.quantity == pytest.approx(60)


def test_cash_holding_follows_security_holdings():
    lots = [lot("1", BROKERAGE, ACME, date(2024, 1, 2), 10, 100.0)]
    transactions = [
        BankTransaction("txn_a", BROKERAGE.id, date(2024, 1, 1), 500.0, running_balance=500.0),
        BankTransaction("txn_b", BROKERAGE.id, date(2024, 1, 2), -100.0, running_balance=400.0),
        BankTransaction("txn_c", BROKERAGE.id, date(2024, 3, 1), 50.0, running_balance=450.0),
        BankTransaction("txn_d", IRA.id, date(2024, 1, 1), 900.0, running_balance=900.0),
    ]
    prices = [quote(ACME, date(2024, 2, 1), 10.0)]

    result = all_holdings(lots, date(2024, 2, 1), prices=prices, transactions=transactions)

    assert [h.security_id for h in result] == [ACME.id, CASH_SECURITY_ID]
    cash = result[1]
    assert cash.account_name == "Brokerage"
    assert cash.security_name == "Cash"
    assert cash.quantity == 400.0
    assert cash.market_value == 400.0
    assert cash.quote_price == 1.0
    assert cash.is_stale is False
    assert [h.market_value_pct for h in result] == pytest.approx([0.2, 0.8])


def test_zero_cash_balance_still_gets_a_cash_holding():
    lots = [lot("1", BROKERAGE, ACME, date(2024, 1, 2), 10, 100.0)]
    transactions = [
        BankTransaction("txn_a", BROKERAGE.id, date(2024, 1, 1), 100.0, running_balance=100.0),
        BankTransaction("txn_b", BROKERAGE.id, date(2024, 1, 2), -100.0, running_balance=0.0),
    ]

    result = all_holdings(lots, date(2024, 2, 1), transactions=transactions)

    assert [h.security_id for h in result] == [ACME.id, CASH_SECURITY_ID]
    assert result[1].quantity == 0.0
    assert result[1].market_value == 0.0


def test_cash_balance_as_of():
    transactions = [
        BankTransaction("txn_a", "acc", date(2024, 1, 1), 5.0, running_balance=5.0),
        BankTransaction("txn_b", "acc", date(2024, 1, 3), 2.0, running_balance=7.0),
    ]

    assert cash_balance_as_of(transactions, date(2023, 12, 31)) == 0.0
    assert cash_balance_as_of(transactions, date(2024, 1, 2)) == 5.0
    assert cash_balance_as_of(transactions, date(2024, 1, 3)) == 7.0


class TestFilters:
    lots = [
        lot("1", BROKERAGE, ACME, date(2024, 1, 2), 10, 100.0),
        lot("2", BROKERAGE, GLOBEX, date(2024, 1, 2), 10, 100.0),
        lot("3", IRA, ACME, date(2024, 1, 2), 30, 300.0),
    ]
    prices = [quote(ACME, date(2024, 2, 1), 10.0), quote(GLOBEX, date(2024, 2, 1), 20.0)]

    def test_sorted_by_account_then_security(self):
        result = holdings(self.lots, date(2024, 2, 1), prices=self.prices)

        assert [(h.account_name, h.security_name) for h in result] == [
            ("Brokerage", "Acme Corp"),
            ("Brokerage", "Globex"),
            ("IRA", "Acme Corp"),
        ]
        assert sum(h.market_value_pct for h in result) == pytest.approx(1.0)
        assert result[1].market_value_pct == pytest.approx(200.0 / 600.0)

    def test_account_selection(self):
        result = holdings(
            self.lots, date(2024, 2, 1), prices=self.prices, selected_account_ids=[IRA.id]
        )

        assert [h.account_id for h in result] == [IRA.id]
        assert result[0].market_value_pct == 1.0

    def test_text_filter_matches_symbol_name_or_account(self):
        by_symbol = holdings(self.lots, date(2024, 2, 1), prices=self.prices, filter_query="gbx")
        by_name = holdings(self.lots, date(2024, 2, 1), prices=self.prices, filter_query="ACME CORP")
        by_account = holdings(self.lots, date(2024, 2, 1), prices=self.prices, filter_query="ira")

        assert [h.security_id for h in by_symbol] == [GLOBEX.id]
        assert by_symbol[0].market_value_pct == 1.0
        assert len(by_name) == 2
        assert [h.account_id for h in by_account] == [IRA.id]


class TestHoldingsService:
    """Holdings over an imported brokerage file."""

    def test_before_sale(self, holdings_service, imported_brokerage):
        result = holdings_service.holdings_as_of(date(2024, 2, 15))

        assert [(h.security_symbol, h.quantity) for h in result] == [
            ("ACME", 150),
            ("VTI", 2),
            ("CASH", 3425.0),
        ]
        acme, vti, cash = result
        assert acme.cost_basis == pytest.approx(1600.0)
        assert acme.market_value == pytest.approx(1650.0)
        assert acme.is_stale is False
        assert vti.market_value == pytest.approx(104.0)
        assert cash.account_name == "Brokerage"
        assert sum(h.market_value_pct for h in result) == pytest.approx(1.0)

    def test_after_sale(self, holdings_service, imported_brokerage):
        result = holdings_service.holdings_as_of(date(2024, 3, 15))

        acme, vti, cash = result
        assert acme.quantity == pytest.approx(30)
        assert acme.cost_basis == pytest.approx(360.0)
        assert acme.quote_price == 16.0
        assert acme.market_value == pytest.approx(480.0)
        assert vti.market_value == pytest.approx(110.0)
        assert cash.quantity == pytest.approx(5225.0)

    def test_filter_by_account(self, temp_db, holdings_service, imported_brokerage):
        checking = temp_db.get_account_by_name("Checking")

        assert holdings_service.holdings_as_of(date(2024, 3, 15), [checking.id]) == []
