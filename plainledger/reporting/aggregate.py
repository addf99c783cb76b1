"""Aggregation over a loaded ledger: registers, buckets and hierarchy rollups.

Every function here only reads the ledger. Postings are copied into fresh
lists before sorting, so any number of threads may aggregate the same
ledger at once after loading has finished.

Rollup (account A, period P, top N):

    1. bucket each node's own postings by P.start(posted)
    2. merge bucket totals upward in post order
    3. align every row to the union of bucket dates
    4. keep A's N largest direct children by final-bucket magnitude,
       merge the rest into "Other", add A's own postings, then "Totals"

so Totals equals the sum of every other row, bucket by bucket.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import final

from plainledger.core.amount import Amount, Commodity
from plainledger.core.dates import Period
from plainledger.core.errors import InvariantViolation
from plainledger.core.result import Err, Ok
from plainledger.core.tags import TagMatcher
from plainledger.ledger.accounts import Account
from plainledger.ledger.engine import Ledger
from plainledger.ledger.transactions import Posting

DEFAULT_TOP = 5


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DateWindow:
    """Half-open posting date range [begin, end); None leaves a side open."""

    begin: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.begin is not None and self.end is not None and self.end < self.begin:
            raise TypeError(f"DateWindow end {self.end} is before begin {self.begin}")

    def contains(self, d: date) -> bool:
        return (self.begin is None or d >= self.begin) and (self.end is None or d < self.end)


ALL_TIME = DateWindow()


def _posted(p: Posting) -> date:
    assert p.transaction is not None
    return p.transaction.posted


def by_date(postings: Iterable[Posting]) -> list[Posting]:
    """New list sorted by posted date; equal dates keep their input order."""
    return sorted(postings, key=_posted)


def trim(postings: Sequence[Posting], window: DateWindow) -> Sequence[Posting]:
    """Slice of date-sorted postings inside the window."""
    lo = 0 if window.begin is None else bisect.bisect_left(postings, window.begin, key=_posted)
    hi = len(postings) if window.end is None else bisect.bisect_left(postings, window.end, key=_posted)
    return postings[lo:hi]


def _tagged(p: Posting, tag: TagMatcher | None) -> bool:
    if tag is None:
        return True
    tx_tags = p.transaction.tags if p.transaction is not None else None
    return tag.match(p.tags) or (tx_tags is not None and tag.match(tx_tags))


def select(
    postings: Iterable[Posting], window: DateWindow = ALL_TIME, tag: TagMatcher | None = None,
) -> list[Posting]:
    """Date-sorted postings inside the window carrying a matching tag."""
    return [p for p in trim(by_date(postings), window) if _tagged(p, tag)]


# ---------------------------------------------------------------------------
# Commodity of a report
# ---------------------------------------------------------------------------


def report_commodity(ledger: Ledger, account: Account) -> Commodity | None:
    """The account's default commodity, else that of its first posting in the subtree."""
    if account.commodity is not None:
        return account.commodity
    for node in ledger.accounts.walk(account):
        if node.commodity is not None:
            return node.commodity
        if node.postings:
            return node.postings[0].commodity
    return None


def in_commodity(ledger: Ledger, p: Posting, commodity: Commodity) -> Amount:
    """Posting quantity in the report commodity, priced at the posting date."""
    match ledger.prices.convert(p.quantity, commodity, _posted(p)):
        case Err(e):
            raise InvariantViolation(f"{p.account.full_name}: {e}")
        case Ok(amount):
            return amount


# ---------------------------------------------------------------------------
# Flat and bucketed registers
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class FlatRow:
    posted: date
    description: str
    other: str  # counter account of the posting's transaction
    quantity: Amount
    total: Amount
    posting: Posting


@final
@dataclass(frozen=True, slots=True)
class BucketRow:
    start: date
    amount: Amount
    total: Amount


def flat_register(
    ledger: Ledger,
    account: Account,
    window: DateWindow = ALL_TIME,
    tag: TagMatcher | None = None,
) -> tuple[FlatRow, ...]:
    """One row per posting of the account, with a running total."""
    commodity = report_commodity(ledger, account)
    postings = select(account.postings, window, tag)
    if commodity is None or not postings:
        return ()
    rows: list[FlatRow] = []
    total = Amount.zero(commodity)
    for p in postings:
        assert p.transaction is not None
        quantity = in_commodity(ledger, p, commodity)
        total = total + quantity
        rows.append(FlatRow(
            posted=p.transaction.posted,
            description=p.transaction.description,
            other=p.transaction.other(p).account.full_name,
            quantity=quantity,
            total=total,
            posting=p,
        ))
    return tuple(rows)


def _buckets(
    ledger: Ledger, postings: Iterable[Posting], period: Period, commodity: Commodity,
) -> dict[date, Amount]:
    buckets: dict[date, Amount] = {}
    for p in postings:
        start = period.start(_posted(p))
        amount = in_commodity(ledger, p, commodity)
        buckets[start] = buckets[start] + amount if start in buckets else amount
    return buckets


def bucketed_register(
    ledger: Ledger,
    account: Account,
    period: Period,
    window: DateWindow = ALL_TIME,
    tag: TagMatcher | None = None,
) -> tuple[BucketRow, ...]:
    """One row per period bucket holding postings, in date order, with a running total."""
    commodity = report_commodity(ledger, account)
    postings = select(account.postings, window, tag)
    if commodity is None or not postings:
        return ()
    rows: list[BucketRow] = []
    total = Amount.zero(commodity)
    for start, amount in sorted(_buckets(ledger, postings, period, commodity).items()):
        total = total + amount
        rows.append(BucketRow(start=start, amount=amount, total=total))
    return tuple(rows)


def recursive_postings(
    ledger: Ledger,
    account: Account,
    window: DateWindow = ALL_TIME,
    tag: TagMatcher | None = None,
) -> tuple[Posting, ...]:
    """Postings of the account and all its descendants, date sorted."""
    gathered = [p for node in ledger.accounts.walk(account) for p in node.postings]
    return tuple(select(gathered, window, tag))


# ---------------------------------------------------------------------------
# Rollup
# ---------------------------------------------------------------------------


class RowKind(Enum):
    CHILD = "CHILD"
    OTHER = "OTHER"
    OWN = "OWN"
    TOTAL = "TOTAL"


@final
@dataclass(frozen=True, slots=True)
class RollupRow:
    kind: RowKind
    account: Account | None  # the child for CHILD rows, the queried account otherwise
    amounts: tuple[Amount, ...]  # one per Rollup.dates entry

    @property
    def final(self) -> Amount:
        return self.amounts[-1]


@final
@dataclass(frozen=True, slots=True)
class Rollup:
    account: Account
    commodity: Commodity | None
    period: Period
    dates: tuple[date, ...]
    rows: tuple[RollupRow, ...]

    def row(self, kind: RowKind) -> RollupRow | None:
        return next((r for r in self.rows if r.kind is kind), None)


def _merge(into: dict[date, Amount], other: dict[date, Amount]) -> None:
    for d, amount in other.items():
        into[d] = into[d] + amount if d in into else amount


def _aligned(buckets: dict[date, Amount], dates: Sequence[date], commodity: Commodity) -> tuple[Amount, ...]:
    zero = Amount.zero(commodity)
    return tuple(buckets.get(d, zero) for d in dates)


def _sum_rows(rows: Iterable[tuple[Amount, ...]], width: int, commodity: Commodity) -> tuple[Amount, ...]:
    totals = [Amount.zero(commodity)] * width
    for amounts in rows:
        totals = [t + a for t, a in zip(totals, amounts, strict=True)]
    return tuple(totals)


def _running(amounts: tuple[Amount, ...]) -> tuple[Amount, ...]:
    out: list[Amount] = []
    for a in amounts:
        out.append(out[-1] + a if out else a)
    return tuple(out)


def rollup(
    ledger: Ledger,
    account: Account,
    period: Period,
    top: int = DEFAULT_TOP,
    cumulative: bool = False,
    window: DateWindow = ALL_TIME,
    tag: TagMatcher | None = None,
) -> Rollup:
    """Per-bucket totals for the account's largest children, Other, own postings and Totals."""
    if top < 0:
        raise InvariantViolation(f"rollup top must be >= 0, got {top}")
    commodity = report_commodity(ledger, account)
    empty = Rollup(account=account, commodity=commodity, period=period, dates=(), rows=())
    if commodity is None:
        return empty

    own: dict[int, dict[date, Amount]] = {}
    totals: dict[int, dict[date, Amount]] = {}
    for node in ledger.accounts.walk_post_order(account):
        own[node.index] = _buckets(ledger, select(node.postings, window, tag), period, commodity)
        merged = dict(own[node.index])
        for child in node.children:
            _merge(merged, totals[child])
        totals[node.index] = merged

    dates = tuple(sorted(totals[account.index]))
    if not dates:
        return empty

    # children with nothing in the window neither take a top-N slot nor make an Other row
    children = [c for c in ledger.accounts.children(account) if totals[c.index]]
    aligned = {c.index: _aligned(totals[c.index], dates, commodity) for c in children}
    ranked = sorted(children, key=lambda c: (-abs(aligned[c.index][-1].magnitude), c.full_name))
    chosen, rest = ranked[:top], ranked[top:]

    rows = [RollupRow(kind=RowKind.CHILD, account=c, amounts=aligned[c.index]) for c in chosen]
    if rest:
        rows.append(RollupRow(
            kind=RowKind.OTHER, account=account,
            amounts=_sum_rows((aligned[c.index] for c in rest), len(dates), commodity),
        ))
    if own[account.index]:
        rows.append(RollupRow(
            kind=RowKind.OWN, account=account,
            amounts=_aligned(own[account.index], dates, commodity),
        ))
    rows.append(RollupRow(
        kind=RowKind.TOTAL, account=account,
        amounts=_aligned(totals[account.index], dates, commodity),
    ))
    if cumulative:
        rows = [RollupRow(kind=r.kind, account=r.account, amounts=_running(r.amounts)) for r in rows]
    return Rollup(account=account, commodity=commodity, period=period, dates=dates, rows=tuple(rows))
