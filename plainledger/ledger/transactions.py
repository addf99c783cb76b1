"""Resolved ledger entities: Posting, Transaction, Price, TestItem."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import final

from plainledger.core.amount import Amount, Commodity
from plainledger.core.tags import Tags
from plainledger.core.types import FrozenMap, SourceLocation
from plainledger.ledger.accounts import Account


@final
@dataclass(eq=False, slots=True)
class Posting:
    """One signed quantity booked to one account.

    account_name keeps the name as written; it differs from account.full_name
    only when the transaction was diverted to the Unbalanced account.
    """

    account: Account
    quantity: Amount
    account_name: str = ""
    balance: Amount | None = None  # asserted running balance after this posting
    note: str = ""
    tags: Tags = FrozenMap.EMPTY
    location: SourceLocation | None = None
    transaction: Transaction | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.account_name:
            self.account_name = self.account.full_name

    @property
    def commodity(self) -> Commodity:
        return self.quantity.commodity

    def same_entry(self, other: Posting) -> bool:
        """Same account name and quantity; notes are ignored."""
        return self.account_name == other.account_name and self.quantity == other.quantity


@final
@dataclass(eq=False, slots=True)
class Transaction:
    """Dated group of postings whose converted quantities sum to zero."""

    posted: date
    description: str = ""
    code: str = ""
    note: str = ""
    tags: Tags = FrozenMap.EMPTY
    postings: list[Posting] = field(default_factory=list)
    location: SourceLocation | None = None

    def add_posting(self, posting: Posting) -> Posting:
        posting.transaction = self
        self.postings.append(posting)
        return posting

    def post(self, to: Account, from_: Account, amount: Amount, note: str = "") -> None:
        """Add a balanced pair: +amount to `to`, -amount to `from_`."""
        self.add_posting(Posting(account=to, quantity=amount, note=note))
        self.add_posting(Posting(account=from_, quantity=-amount))

    def other(self, posting: Posting) -> Posting:
        """First posting that is not `posting` (the counter side in a 2-posting entry)."""
        for p in self.postings:
            if p is not posting:
                return p
        return posting

    def is_equal(self, other: Transaction) -> bool:
        """Same date, description and postings; used by the duplicate scan."""
        return (
            self.posted == other.posted
            and self.description == other.description
            and len(self.postings) == len(other.postings)
            and all(a.same_entry(b) for a, b in zip(self.postings, other.postings, strict=True))
        )

    def location_text(self) -> str:
        return str(self.location) if self.location is not None else "<generated>"


@final
@dataclass(frozen=True, slots=True)
class Price:
    """Value of one unit of commodity, expressed in currency, as of posted."""

    commodity: Commodity
    value: Amount
    posted: date
    location: SourceLocation | None = None

    @property
    def currency(self) -> Commodity:
        return self.value.commodity


@final
@dataclass(frozen=True, slots=True)
class TestItem:
    """Embedded self-test: command line plus expected output bytes."""

    __test__ = False  # not a pytest class

    cmd: str
    result: bytes
    location: SourceLocation
