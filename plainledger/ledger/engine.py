"""Ledger — the explicit context object shared by parser, resolver and reports.

Lifecycle: empty at creation, populated by successive load calls (one file
at a time, never concurrently), then read by any number of concurrent
queries. Nothing is process-global; two Ledger objects never share state.

Ledger is @final but NOT a dataclass — it holds mutable internal state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import final

from plainledger.core.amount import Amount, Commodity
from plainledger.core.errors import AccountLookupError, ResolutionWarning
from plainledger.core.result import Err, Ok
from plainledger.ledger.accounts import Account, AccountRegistry
from plainledger.ledger.prices import PriceIndex
from plainledger.ledger.transactions import Posting, Price, TestItem, Transaction

UNBALANCED_ACCOUNT = "Unbalanced"

# Precision for commodities referenced before any amount or format fixes it.
DEFAULT_DECIMALS = 2


class FileState(Enum):
    UNLOADED = "UNLOADED"
    PARSING = "PARSING"
    RESOLVED = "RESOLVED"
    FAILED = "FAILED"


@final
@dataclass(slots=True)
class Checkpoint:
    """Ledger sizes when a file started loading, plus older state changed since.

    Commodities and accounts are only ever appended, so their counts are
    enough to undo creations. Edits to accounts that already existed and
    prices added are journaled so rollback can restore them.
    """

    commodities: int
    accounts: int
    prices: list[Price] = field(default_factory=list)
    account_edits: list[tuple[Account, Commodity | None, str]] = field(default_factory=list)


@final
class Ledger:
    """Commodities, accounts, prices, transactions and load diagnostics."""

    def __init__(self) -> None:
        self.commodities: dict[str, Commodity] = {}
        self.accounts = AccountRegistry()
        self.prices = PriceIndex()
        self.transactions: list[Transaction] = []
        self.tests: list[TestItem] = []
        self.warnings: list[ResolutionWarning] = []
        self.files: dict[str, FileState] = {}
        self.unbalanced: Account = self.accounts.ensure(UNBALANCED_ACCOUNT)
        self._checkpoint: Checkpoint | None = None

    # --- commodities ---

    def commodity(self, symbol: str, decimals: int | None = None) -> Commodity:
        """Return the commodity, creating it on first reference.

        Precision is fixed by whichever reference comes first; later
        references never change it.
        """
        return self.declare_commodity(symbol, decimals)

    def declare_commodity(self, symbol: str, decimals: int | None, note: str = "") -> Commodity:
        existing = self.commodities.get(symbol)
        if existing is not None:
            return existing
        created = Commodity(
            id=symbol, decimals=DEFAULT_DECIMALS if decimals is None else decimals, note=note,
        )
        self.commodities[symbol] = created
        return created

    # --- accounts ---

    def account(self, full_name: str) -> Account:
        return self.accounts.ensure(full_name)

    def find_account(self, pattern: str) -> Ok[Account] | Err[AccountLookupError]:
        return self.accounts.find(pattern)

    def set_account_defaults(
        self, account: Account, commodity: Commodity | None = None, note: str = "",
    ) -> None:
        """Set the default commodity and/or note; empty arguments leave a field alone."""
        cp = self._checkpoint
        if cp is not None and account.index <= cp.accounts:
            cp.account_edits.append((account, account.commodity, account.note))
        if commodity is not None:
            account.commodity = commodity
        if note:
            account.note = note

    # --- prices ---

    def add_price(self, price: Price) -> None:
        self.prices.add(price)
        if self._checkpoint is not None:
            self._checkpoint.prices.append(price)

    # --- staged loading ---

    def checkpoint(self) -> Checkpoint:
        """Start journaling changes so that rollback() can undo them."""
        self._checkpoint = Checkpoint(commodities=len(self.commodities), accounts=len(self.accounts))
        return self._checkpoint

    def commit(self) -> None:
        self._checkpoint = None

    def rollback(self) -> None:
        """Undo commodities, accounts, account edits and prices since checkpoint().

        Transactions are not journaled; callers book them only after every
        item of the batch has been bound.
        """
        cp = self._checkpoint
        if cp is None:
            return
        for account, commodity, note in reversed(cp.account_edits):
            account.commodity = commodity
            account.note = note
        for price in reversed(cp.prices):
            self.prices.remove(price)
        self.accounts.truncate(cp.accounts)
        for symbol in list(self.commodities)[cp.commodities:]:
            del self.commodities[symbol]
        self._checkpoint = None

    # --- transactions ---

    def append_posting(self, posting: Posting) -> Amount:
        """Index the posting under its account and return the new running balance."""
        posting.account.postings.append(posting)
        return posting.account.accumulate(posting.quantity)

    def add_transaction(self, transaction: Transaction) -> None:
        """Record a transaction and book its postings in order."""
        self.transactions.append(transaction)
        for posting in transaction.postings:
            self.append_posting(posting)

    def clear_transactions(self) -> None:
        """Forget the transaction list.

        Postings stay indexed under their accounts, and account balances keep
        their totals, until reindex() is called.
        """
        self.transactions = []

    def reindex(self) -> None:
        """Rebuild every account's posting index and balance from the transaction list."""
        for account in self.accounts:
            account.postings.clear()
            account.balances.clear()
        for transaction in self.transactions:
            for posting in transaction.postings:
                self.append_posting(posting)

    def warn(self, warning: ResolutionWarning) -> None:
        self.warnings.append(warning)

    def file_state(self, path: str) -> FileState:
        return self.files.get(path, FileState.UNLOADED)
