"""Ledger health checks: duplicates, unbalanced transactions, assertion mismatches, counts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from itertools import groupby
from typing import final

from plainledger.core.errors import ResolutionWarning
from plainledger.ledger.engine import Ledger
from plainledger.ledger.transactions import Transaction

UNBALANCED = "UNBALANCED"
ASSERTION_MISMATCH = "ASSERTION_MISMATCH"


@final
@dataclass(frozen=True, slots=True)
class DuplicatePair:
    """Two transactions with the same date, description and postings."""

    first: Transaction
    second: Transaction


@final
@dataclass(frozen=True, slots=True)
class LedgerStats:
    commodities: int
    prices: int
    accounts: int
    transactions: int

    def render(self) -> str:
        return (
            f"Commodities: {self.commodities}\n"
            f"Prices: {self.prices}\n"
            f"Accounts: {self.accounts}\n"
            f"Transactions: {self.transactions}\n"
        )


def _posted(tx: Transaction) -> date:
    return tx.posted


def find_duplicates(ledger: Ledger) -> tuple[DuplicatePair, ...]:
    """Pairs of equal transactions posted on the same day, earlier one first."""
    pairs: list[DuplicatePair] = []
    for _, day in groupby(sorted(ledger.transactions, key=_posted), key=_posted):
        seen: list[Transaction] = []
        for tx in day:
            pairs.extend(DuplicatePair(first=s, second=tx) for s in seen if tx.is_equal(s))
            seen.append(tx)
    return tuple(pairs)


def unbalanced_transactions(ledger: Ledger) -> tuple[Transaction, ...]:
    """Transactions that were diverted to the Unbalanced account."""
    return tuple(
        tx for tx in ledger.transactions
        if any(p.account is ledger.unbalanced for p in tx.postings)
    )


def warnings_of_kind(ledger: Ledger, kind: str) -> tuple[ResolutionWarning, ...]:
    return tuple(w for w in ledger.warnings if w.kind == kind)


def assertion_mismatches(ledger: Ledger) -> tuple[ResolutionWarning, ...]:
    return warnings_of_kind(ledger, ASSERTION_MISMATCH)


def stats(ledger: Ledger) -> LedgerStats:
    return LedgerStats(
        commodities=len(ledger.commodities),
        prices=len(ledger.prices),
        accounts=len(ledger.accounts),
        transactions=len(ledger.transactions),
    )
