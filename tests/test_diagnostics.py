"""Tests for plainledger.reporting.diagnostics."""

from __future__ import annotations

from collections.abc import Callable

from conftest import HOUSEHOLD

from plainledger.infra.loader import LoadReport
from plainledger.ledger.engine import Ledger
from plainledger.reporting.diagnostics import (
    LedgerStats,
    assertion_mismatches,
    find_duplicates,
    stats,
    unbalanced_transactions,
    warnings_of_kind,
)

Load = Callable[..., LoadReport]


class TestDuplicates:
    def test_same_day_same_postings(self, ledger: Ledger, load: Load) -> None:
        load("""
2000/05/01 coffee
  Expenses:Coffee  3.50 CAD ; first
  Cash

2000/05/01 coffee
  Expenses:Coffee  3.50 CAD
  Cash
""")
        (pair,) = find_duplicates(ledger)
        assert pair.first is ledger.transactions[0]
        assert pair.second is ledger.transactions[1]

    def test_different_days_are_not_duplicates(self, ledger: Ledger, load: Load) -> None:
        load("""
2000/05/01 coffee
  Expenses:Coffee  3.50 CAD
  Cash

2000/05/02 coffee
  Expenses:Coffee  3.50 CAD
  Cash
""")
        assert find_duplicates(ledger) == ()

    def test_interleaved_load_order(self, ledger: Ledger, load: Load) -> None:
        load("""
2000/05/01 coffee
  Expenses:Coffee  3.50 CAD
  Cash

2000/05/02 tea
  Expenses:Coffee  2.00 CAD
  Cash

2000/05/01 coffee
  Expenses:Coffee  3.50 CAD
  Cash
""")
        assert len(find_duplicates(ledger)) == 1

    def test_clean_ledger(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD)
        assert find_duplicates(ledger) == ()


class TestWarnings:
    def test_unbalanced_listed(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD + "\n2000/06/02 typo\n  Expenses:Rent  500.00 CAD\n  Assets:Bank:Checking  -50.00 CAD\n")
        (tx,) = unbalanced_transactions(ledger)
        assert tx.description == "typo"
        assert len(warnings_of_kind(ledger, "UNBALANCED")) == 1

    def test_assertion_mismatches(self, ledger: Ledger, load: Load) -> None:
        load("2000/05/01 x\n  AA  1.00 CAD = 2.00 CAD\n  BB\n")
        (warning,) = assertion_mismatches(ledger)
        assert warning.path == "test.coin"
        assert warning.line == 2


class TestStats:
    def test_counts(self, ledger: Ledger, load: Load) -> None:
        load("P 2000/01/01 USD 1.25 CAD\n" + HOUSEHOLD)
        s = stats(ledger)
        # Unbalanced, Assets, Assets:Bank, Checking, Expenses, Rent, Food, Groceries, Dining
        assert s == LedgerStats(commodities=2, prices=1, accounts=9, transactions=5)

    def test_render(self) -> None:
        assert LedgerStats(commodities=1, prices=0, accounts=3, transactions=2).render() == (
            "Commodities: 1\nPrices: 0\nAccounts: 3\nTransactions: 2\n"
        )
