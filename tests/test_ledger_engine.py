"""Tests for plainledger.ledger — Ledger context, posting index, price series."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from plainledger.core.amount import Amount, Commodity
from plainledger.core.result import Err, Ok
from plainledger.infra.loader import LoadReport
from plainledger.ledger.engine import DEFAULT_DECIMALS, FileState, Ledger
from plainledger.ledger.prices import PriceIndex
from plainledger.ledger.transactions import Posting, Price, Transaction

Load = Callable[..., LoadReport]

CAD = Commodity(id="CAD", decimals=2)
USD = Commodity(id="USD", decimals=2)
TDB = Commodity(id="TDB162", decimals=3)


def _price(commodity: Commodity, magnitude: int, currency: Commodity, posted: date) -> Price:
    return Price(
        commodity=commodity, value=Amount(magnitude=magnitude, commodity=currency), posted=posted,
    )


# ---------------------------------------------------------------------------
# Commodities
# ---------------------------------------------------------------------------


class TestCommodities:
    def test_first_reference_fixes_precision(self) -> None:
        ledger = Ledger()
        first = ledger.commodity("TDB162", 3)
        assert ledger.commodity("TDB162", 5) is first
        assert first.decimals == 3

    def test_default_precision(self) -> None:
        assert Ledger().commodity("CAD").decimals == DEFAULT_DECIMALS

    def test_declare_keeps_note(self) -> None:
        ledger = Ledger()
        ledger.declare_commodity("CAD", 2, "Canadian dollar")
        assert ledger.commodities["CAD"].note == "Canadian dollar"


# ---------------------------------------------------------------------------
# Posting index
# ---------------------------------------------------------------------------


class TestPostingIndex:
    def test_add_transaction_books_in_order(self) -> None:
        ledger = Ledger()
        cash, food = ledger.account("Assets:Cash"), ledger.account("Expenses:Food")
        for magnitude in (100, 250):
            tx = Transaction(posted=date(2000, 5, 1))
            tx.post(food, cash, Amount(magnitude=magnitude, commodity=CAD))
            ledger.add_transaction(tx)
        assert [p.quantity.magnitude for p in cash.postings] == [-100, -250]
        assert cash.balance_in(CAD) == Amount(magnitude=-350, commodity=CAD)
        assert all(p.transaction is not None for p in food.postings)

    def test_append_posting_returns_running_balance(self) -> None:
        ledger = Ledger()
        cash = ledger.account("Assets:Cash")
        running = ledger.append_posting(
            Posting(account=cash, quantity=Amount(magnitude=5, commodity=CAD)),
        )
        assert running == Amount(magnitude=5, commodity=CAD)

    def test_clear_leaves_index_until_reindex(self, ledger: Ledger, load: Load) -> None:
        load("2000/05/01 x\n  AA 1.00 CAD\n  BB -1.00 CAD\n")
        aa = ledger.accounts.by_name("AA")
        assert aa is not None
        ledger.clear_transactions()
        assert ledger.transactions == []
        assert len(aa.postings) == 1
        ledger.reindex()
        assert aa.postings == []
        assert aa.balance_in(ledger.commodities["CAD"]).is_zero()

    def test_reindex_rebuilds_from_transactions(self, ledger: Ledger, load: Load) -> None:
        load("2000/05/01 x\n  AA 1.00 CAD\n  BB -1.00 CAD\n\n2000/05/02 y\n  AA 2.00 CAD\n  BB\n")
        bb = ledger.accounts.by_name("BB")
        assert bb is not None
        before = (list(bb.postings), bb.balance)
        ledger.reindex()
        assert (list(bb.postings), bb.balance) == before

    def test_file_state(self, ledger: Ledger, load: Load) -> None:
        assert ledger.file_state("test.coin") is FileState.UNLOADED
        load("commodity CAD\n")
        assert ledger.file_state("test.coin") is FileState.RESOLVED

    def test_separate_ledgers_are_independent(self) -> None:
        a, b = Ledger(), Ledger()
        a.account("Assets:Cash")
        a.commodity("CAD")
        assert b.accounts.by_name("Assets:Cash") is None
        assert "CAD" not in b.commodities


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TestTransaction:
    def test_other_side(self) -> None:
        ledger = Ledger()
        tx = Transaction(posted=date(2000, 5, 1))
        tx.post(ledger.account("A"), ledger.account("B"), Amount(magnitude=1, commodity=CAD))
        first, second = tx.postings
        assert tx.other(first) is second
        assert tx.other(second) is first

    def test_is_equal_ignores_notes(self) -> None:
        ledger = Ledger()
        a, b = ledger.account("A"), ledger.account("B")
        one = Transaction(posted=date(2000, 5, 1), description="x")
        one.post(a, b, Amount(magnitude=1, commodity=CAD), note="first")
        two = Transaction(posted=date(2000, 5, 1), description="x")
        two.post(a, b, Amount(magnitude=1, commodity=CAD))
        assert one.is_equal(two)
        three = Transaction(posted=date(2000, 5, 1), description="x")
        three.post(a, b, Amount(magnitude=2, commodity=CAD))
        assert not one.is_equal(three)

    def test_generated_location_text(self) -> None:
        assert Transaction(posted=date(2000, 5, 1)).location_text() == "<generated>"


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------


class TestPriceIndex:
    def test_lookup_at_or_before(self) -> None:
        index = PriceIndex()
        index.add(_price(USD, 125, CAD, date(2000, 5, 1)))
        index.add(_price(USD, 130, CAD, date(2000, 6, 1)))
        assert index.lookup(USD, CAD, date(2000, 4, 30)) is None
        found = index.lookup(USD, CAD, date(2000, 5, 31))
        assert found is not None and found.value.magnitude == 125
        found = index.lookup(USD, CAD, date(2000, 6, 1))
        assert found is not None and found.value.magnitude == 130

    def test_same_date_later_wins(self) -> None:
        index = PriceIndex()
        index.add(_price(USD, 125, CAD, date(2000, 5, 1)))
        index.add(_price(USD, 126, CAD, date(2000, 5, 1)))
        found = index.lookup(USD, CAD, date(2000, 5, 1))
        assert found is not None and found.value.magnitude == 126
        assert len(index) == 2

    def test_out_of_order_adds_sorted(self) -> None:
        index = PriceIndex()
        index.add(_price(USD, 130, CAD, date(2000, 6, 1)))
        index.add(_price(USD, 125, CAD, date(2000, 5, 1)))
        assert [p.posted for p in index] == [date(2000, 5, 1), date(2000, 6, 1)]

    def test_convert_direct(self) -> None:
        index = PriceIndex()
        index.add(_price(USD, 125, CAD, date(2000, 5, 1)))
        result = index.convert(Amount(magnitude=10000, commodity=USD), CAD, date(2000, 5, 2))
        assert result == Ok(Amount(magnitude=12500, commodity=CAD))

    def test_convert_inverse(self) -> None:
        index = PriceIndex()
        index.add(_price(USD, 125, CAD, date(2000, 5, 1)))
        result = index.convert(Amount(magnitude=12500, commodity=CAD), USD, date(2000, 5, 2))
        assert result == Ok(Amount(magnitude=10000, commodity=USD))

    def test_convert_rounds_half_even(self) -> None:
        index = PriceIndex()
        # 1 TDB162 = 0.50 CAD; 0.010 and 0.030 TDB162 land exactly on half a cent
        index.add(_price(TDB, 50, CAD, date(2000, 5, 1)))
        on = date(2000, 5, 1)
        assert index.convert(Amount(magnitude=10, commodity=TDB), CAD, on) == Ok(
            Amount(magnitude=0, commodity=CAD),
        )
        assert index.convert(Amount(magnitude=30, commodity=TDB), CAD, on) == Ok(
            Amount(magnitude=2, commodity=CAD),
        )

    def test_convert_same_commodity_is_identity(self) -> None:
        amount = Amount(magnitude=7, commodity=CAD)
        assert PriceIndex().convert(amount, CAD, date(2000, 5, 1)) == Ok(amount)

    def test_convert_without_price_is_err(self) -> None:
        result = PriceIndex().convert(Amount(magnitude=7, commodity=USD), CAD, date(2000, 5, 1))
        assert isinstance(result, Err)
