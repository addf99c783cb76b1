"""Hypothesis strategies and pytest fixtures for plainledger.

Strategies are composable: amounts are built from commodities, ledger text
from amounts. Test modules import them with `from conftest import ...`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, settings
from hypothesis import strategies as st
from hypothesis.strategies import SearchStrategy

from plainledger.core.amount import Amount, Commodity
from plainledger.core.result import unwrap
from plainledger.infra.loader import LoadReport, load_text
from plainledger.ledger.engine import Ledger

# ---------------------------------------------------------------------------
# Hypothesis global settings
# ---------------------------------------------------------------------------

settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.register_profile(
    "dev",
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.load_profile("dev")

REFERENCE_DATE = date(2000, 5, 7)


# ===================================================================
# PRIMITIVE STRATEGIES
# ===================================================================


def symbols() -> SearchStrategy[str]:
    """Alphabetic commodity symbols, e.g. CAD, USD."""
    return st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ", min_size=3, max_size=4)


def commodities(max_decimals: int = 4) -> SearchStrategy[Commodity]:
    return st.builds(
        Commodity,
        id=symbols(),
        decimals=st.integers(min_value=0, max_value=max_decimals),
    )


def magnitudes(bound: int = 10**12) -> SearchStrategy[int]:
    return st.integers(min_value=-bound, max_value=bound)


@st.composite
def amounts(draw: st.DrawFn, commodity: Commodity | None = None) -> Amount:
    c = commodity if commodity is not None else draw(commodities())
    return Amount(magnitude=draw(magnitudes()), commodity=c)


@st.composite
def amount_lists(
    draw: st.DrawFn, min_size: int = 1, max_size: int = 20,
) -> list[Amount]:
    """Several amounts sharing one commodity."""
    c = draw(commodities())
    return draw(st.lists(amounts(commodity=c), min_size=min_size, max_size=max_size))


def decimal_texts(places: int = 2) -> SearchStrategy[str]:
    """Signed decimal number text with exactly `places` fractional digits."""
    return st.decimals(
        min_value=Decimal("-1000000"),
        max_value=Decimal("1000000"),
        places=places,
        allow_nan=False,
        allow_infinity=False,
    ).map(lambda d: f"{d:.{places}f}")


def dates(min_year: int = 1990, max_year: int = 2030) -> SearchStrategy[date]:
    return st.dates(min_value=date(min_year, 1, 1), max_value=date(max_year, 12, 31))


# ===================================================================
# FIXTURES
# ===================================================================


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


@pytest.fixture
def load(ledger: Ledger) -> Callable[..., LoadReport]:
    """Load ledger text into the `ledger` fixture, failing the test on a parse error."""

    def _load(text: str, path: str = "test.coin", reference: date = REFERENCE_DATE) -> LoadReport:
        return unwrap(load_text(ledger, text, path, reference))

    return _load


# ===================================================================
# SAMPLE LEDGERS
# ===================================================================

HOUSEHOLD = """
commodity CAD
  format 1.00 CAD
account Assets:Bank:Checking
  commodity CAD
account Expenses
  commodity CAD

2000/03/15 rent
  Expenses:Rent  500.00 CAD
  Assets:Bank:Checking

2000/04/01 groceries
  Expenses:Food:Groceries  50.00 CAD
  Assets:Bank:Checking

2000/04/15 dining
  Expenses:Food:Dining  30.00 CAD ; #reimbursable
  Assets:Bank:Checking

2000/05/07 rent
  Expenses:Rent  500.00 CAD
  Assets:Bank:Checking

2000/06/01 groceries
  Expenses:Food:Groceries  20.00 CAD
  Assets:Bank:Checking
"""
