"""Account tree with index-based parent links.

Every Account lives in one AccountRegistry list. Parents and children refer
to each other by position in that list, so the tree has no upward object
references; children are kept ordered by name.
"""

from __future__ import annotations

import bisect
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, final

from plainledger.core.amount import Amount, Commodity
from plainledger.core.errors import AccountLookupError
from plainledger.core.result import Err, Ok
from plainledger.core.types import UtcDatetime

if TYPE_CHECKING:
    from plainledger.ledger.transactions import Posting

SEPARATOR = ":"
ROOT_INDEX = 0


@final
@dataclass(eq=False, slots=True)
class Account:
    """Node of the account tree.

    postings is an append-order index of the postings booked to this account
    and balances accumulates their quantities per commodity in the same order.
    """

    index: int
    full_name: str
    parent_index: int | None
    children: list[int] = field(default_factory=list)
    commodity: Commodity | None = None
    note: str = ""
    postings: list[Posting] = field(default_factory=list)
    balances: dict[str, Amount] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Last segment of the full name."""
        return self.full_name.rsplit(SEPARATOR, 1)[-1]

    @property
    def depth(self) -> int:
        return 0 if not self.full_name else self.full_name.count(SEPARATOR) + 1

    def balance_in(self, commodity: Commodity) -> Amount:
        return self.balances.get(commodity.id, Amount.zero(commodity))

    @property
    def balance(self) -> Amount | None:
        """Running balance in the default commodity; None if there is none."""
        if self.commodity is None:
            return None
        return self.balance_in(self.commodity)

    def accumulate(self, quantity: Amount) -> Amount:
        """Add quantity to the running balance and return the new balance."""
        new = self.balance_in(quantity.commodity) + quantity
        self.balances[quantity.commodity.id] = new
        return new

    def __repr__(self) -> str:
        return f"Account({self.full_name!r})"


def _segment_matches(patterns: list[re.Pattern[str]], full_name: str) -> bool:
    segments = full_name.split(SEPARATOR)
    if len(segments) < len(patterns):
        return False
    tail = segments[len(segments) - len(patterns):]
    return all(p.search(s) for p, s in zip(patterns, tail, strict=True))


@final
class AccountRegistry:
    """Owns every Account. Index 0 is the unnamed root."""

    def __init__(self) -> None:
        self._accounts: list[Account] = [Account(index=ROOT_INDEX, full_name="", parent_index=None)]
        self._by_name: dict[str, int] = {"": ROOT_INDEX}

    @property
    def root(self) -> Account:
        return self._accounts[ROOT_INDEX]

    def __len__(self) -> int:
        """Number of named accounts (the root is not counted)."""
        return len(self._accounts) - 1

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts[1:])

    def get(self, index: int) -> Account:
        return self._accounts[index]

    def by_name(self, full_name: str) -> Account | None:
        index = self._by_name.get(full_name)
        return None if index is None else self._accounts[index]

    def parent(self, account: Account) -> Account | None:
        if account.parent_index is None:
            return None
        return self._accounts[account.parent_index]

    def children(self, account: Account) -> tuple[Account, ...]:
        return tuple(self._accounts[i] for i in account.children)

    def ensure(self, full_name: str) -> Account:
        """Return the named account, creating it and any missing ancestors."""
        existing = self.by_name(full_name)
        if existing is not None:
            return existing
        parent_name, _, _ = full_name.rpartition(SEPARATOR)
        parent = self.ensure(parent_name) if parent_name else self.root
        account = Account(index=len(self._accounts), full_name=full_name, parent_index=parent.index)
        self._accounts.append(account)
        self._by_name[full_name] = account.index
        pos = bisect.bisect_left(
            parent.children, account.full_name, key=lambda i: self._accounts[i].full_name,
        )
        parent.children.insert(pos, account.index)
        return account

    def truncate(self, count: int) -> None:
        """Forget every account created after the first `count` named ones."""
        while len(self._accounts) > count + 1:
            account = self._accounts.pop()
            del self._by_name[account.full_name]
            if account.parent_index is not None:
                self._accounts[account.parent_index].children.remove(account.index)

    def walk(self, account: Account) -> Iterator[Account]:
        """Pre-order: the account, then each child subtree in name order."""
        yield account
        for child in account.children:
            yield from self.walk(self._accounts[child])

    def walk_post_order(self, account: Account) -> Iterator[Account]:
        """Post-order: every child subtree before the account itself."""
        for child in account.children:
            yield from self.walk_post_order(self._accounts[child])
        yield account

    def find(self, pattern: str) -> Ok[Account] | Err[AccountLookupError]:
        """Find exactly one account by full name or by a suffix pattern.

        A pattern is colon-separated case-insensitive regular expressions,
        each searched in the matching trailing name segment: 'Checking' and
        'Bank:Check' both find Assets:Bank:Checking. Ambiguous candidates are
        listed in tree order.
        """
        exact = self.by_name(pattern)
        if exact is not None and exact.index != ROOT_INDEX:
            return Ok(exact)
        try:
            patterns = [re.compile(p, re.IGNORECASE) for p in pattern.split(SEPARATOR)]
        except re.error as e:
            return Err(_lookup_error(pattern, f"invalid account pattern: {e}", "INVALID_PATTERN", ()))
        matches = tuple(
            a.full_name for a in self.walk(self.root)
            if a.index != ROOT_INDEX and _segment_matches(patterns, a.full_name)
        )
        if not matches:
            return Err(_lookup_error(pattern, "no account matches", "ACCOUNT_NOT_FOUND", ()))
        if len(matches) > 1:
            return Err(_lookup_error(
                pattern,
                f"{len(matches)} accounts match: {', '.join(matches)}",
                "AMBIGUOUS_ACCOUNT",
                matches,
            ))
        return Ok(self._accounts[self._by_name[matches[0]]])


def _lookup_error(
    pattern: str, message: str, code: str, candidates: tuple[str, ...],
) -> AccountLookupError:
    return AccountLookupError(
        message=f"'{pattern}': {message}",
        code=code,
        timestamp=UtcDatetime.now(),
        source="ledger.accounts.AccountRegistry.find",
        pattern=pattern,
        candidates=candidates,
    )
