"""Run the test blocks embedded in ledger files.

Each block's command runs against the loaded ledger and its output is
compared byte for byte with the block's expected text:

    OK tests/register.coin:12 register -m Expenses
    FAIL tests/register.coin:30 register Groceries
    --- expected
    +++ actual
    @@ ...
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from datetime import date
from typing import final

from plainledger.core.result import Err, Ok
from plainledger.infra.logging_setup import get_logger
from plainledger.ledger.engine import Ledger
from plainledger.ledger.transactions import TestItem
from plainledger.tooling.commands import run

logger = get_logger(__name__)


@final
@dataclass(frozen=True, slots=True)
class TestOutcome:
    """Result of one embedded test block."""

    __test__ = False  # not a pytest class

    item: TestItem
    passed: bool
    actual: bytes
    diff: str  # unified diff, empty when passed

    def render(self) -> str:
        status = "OK" if self.passed else "FAIL"
        return f"{status} {self.item.location} {self.item.cmd}\n{self.diff}"


def unified_diff(expected: bytes, actual: bytes) -> str:
    """Line diff of expected against actual, three lines of context."""
    return "".join(difflib.unified_diff(
        expected.decode("utf-8").splitlines(keepends=True),
        actual.decode("utf-8").splitlines(keepends=True),
        fromfile="expected",
        tofile="actual",
        n=3,
    ))


def run_test(ledger: Ledger, item: TestItem, reference: date) -> TestOutcome:
    match run(ledger, item.cmd, reference):
        case Err(e):
            actual = f"ERROR {e.code}: {e.message}\n".encode()
        case Ok(text):
            actual = text.encode("utf-8")
    passed = actual == item.result
    if not passed:
        logger.info("%s: test '%s' failed", item.location, item.cmd)
    return TestOutcome(
        item=item,
        passed=passed,
        actual=actual,
        diff="" if passed else unified_diff(item.result, actual),
    )


def run_tests(ledger: Ledger, reference: date) -> tuple[TestOutcome, ...]:
    """Run every embedded test block in load order."""
    return tuple(run_test(ledger, item, reference) for item in ledger.tests)


def render_outcomes(outcomes: tuple[TestOutcome, ...]) -> str:
    return "".join(o.render() for o in outcomes)
