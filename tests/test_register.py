"""Tests for plainledger.reporting.register — fixed-width report text."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

import pytest
from conftest import HOUSEHOLD

from plainledger.core.dates import Period
from plainledger.infra.loader import LoadReport
from plainledger.ledger.accounts import Account
from plainledger.ledger.engine import Ledger
from plainledger.reporting.aggregate import (
    DateWindow,
    bucketed_register,
    flat_register,
    recursive_postings,
    rollup,
)
from plainledger.reporting.register import (
    header,
    render_bucketed,
    render_flat,
    render_recursive,
    render_rollup,
    shorten_account_name,
)

Load = Callable[..., LoadReport]

SPRING = DateWindow(begin=date(2000, 4, 1), end=date(2000, 6, 1))


def _account(ledger: Ledger, name: str) -> Account:
    account = ledger.accounts.by_name(name)
    assert account is not None
    return account


class TestShortenAccountName:
    @pytest.mark.parametrize(("name", "width", "expected"), [
        ("Expenses:Household:Utilities", 100, "Expenses:Household:Utilities"),
        ("Expenses:Household:Utilities", 21, "E:Household:Utilities"),
        ("Expenses:Household:Utilities", 14, "E:H:Utilities"),
        ("Expenses:Household:Utilities", 5, "E:H:U"),
        ("Groceries", 4, "Groc"),
    ])
    def test_shorten(self, name: str, width: int, expected: str) -> None:
        assert shorten_account_name(name, width) == expected


class TestRender:
    def test_header(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD)
        checking = _account(ledger, "Assets:Bank:Checking")
        assert header(checking, checking.commodity) == "Assets:Bank:Checking CAD\n"
        assert header(checking, None) == "Assets:Bank:Checking\n"

    def test_flat(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD)
        rows = flat_register(ledger, _account(ledger, "Assets:Bank:Checking"), SPRING)
        assert render_flat(rows) == (
            "2000/04/01 | groceries | Expenses:Food:Groceries |     -50.00 |     -50.00\n"
            "2000/04/15 |    dining |    Expenses:Food:Dining |     -30.00 |     -80.00\n"
            "2000/05/07 |      rent |           Expenses:Rent |    -500.00 |    -580.00\n"
        )

    def test_bucketed(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD)
        rows = bucketed_register(ledger, _account(ledger, "Assets:Bank:Checking"), Period.MONTH, SPRING)
        assert render_bucketed(rows, Period.MONTH) == (
            "2000/04 |       -80.00 |       -80.00\n"
            "2000/05 |      -500.00 |      -580.00\n"
        )

    def test_recursive_names_relative_to_account(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD)
        food = _account(ledger, "Expenses:Food")
        text = render_recursive(food, recursive_postings(ledger, food, SPRING))
        assert text == (
            "2000/04/01 | groceries | :Groceries | Assets:Bank:Checking |      50.00 CAD\n"
            "2000/04/15 |    dining |    :Dining | Assets:Bank:Checking |      30.00 CAD\n"
        )

    def test_rollup(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD)
        r = rollup(ledger, _account(ledger, "Expenses"), Period.MONTH)
        assert render_rollup(r) == (
            "        |  Food |   Rent | Totals\n"
            "2000/03 |  0.00 | 500.00 | 500.00\n"
            "2000/04 | 80.00 |   0.00 |  80.00\n"
            "2000/05 |  0.00 | 500.00 | 500.00\n"
            "2000/06 | 20.00 |   0.00 |  20.00\n"
        )

    def test_rollup_labels_are_shortened(self, ledger: Ledger, load: Load) -> None:
        load("2000/05/01 x\n  Top:Household:Utilities  1.00 CAD\n  Cash\n")
        r = rollup(ledger, _account(ledger, "Top"), Period.YEAR)
        first_line = render_rollup(r, width=6).splitlines()[0]
        assert first_line.split(" | ")[1].strip() == "Househ"

    def test_empty_rollup_renders_nothing(self, ledger: Ledger, load: Load) -> None:
        load(HOUSEHOLD)
        r = rollup(
            ledger, _account(ledger, "Expenses"), Period.YEAR,
            window=DateWindow(begin=date(2001, 1, 1)),
        )
        assert render_rollup(r) == ""
