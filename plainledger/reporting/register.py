"""Fixed-width text rendering of register and rollup results.

Columns are separated by ' | '. Quantities are printed as bare numbers; the
report commodity appears once, in the header line 'FULLNAME COMMODITY'.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import assert_never

from plainledger.core.amount import Commodity
from plainledger.core.dates import DATE_FORMAT, Period
from plainledger.ledger.accounts import SEPARATOR, Account
from plainledger.ledger.transactions import Posting
from plainledger.reporting.aggregate import BucketRow, FlatRow, Rollup, RollupRow, RowKind

DEFAULT_LABEL_WIDTH = 12
MAX_TEXT_WIDTH = 50
AMOUNT_WIDTH = 10
BUCKET_AMOUNT_WIDTH = 12


def shorten_account_name(name: str, width: int) -> str:
    """Abbreviate leading segments to one letter, left to right, until name fits.

    Expenses:Household:Utilities at width 14 -> E:H:Utilities.
    """
    if len(name) <= width:
        return name
    segments = name.split(SEPARATOR)
    for i in range(len(segments) - 1):
        segments[i] = segments[i][:1]
        short = SEPARATOR.join(segments)
        if len(short) <= width:
            return short
    return SEPARATOR.join(segments)[:max(width, 0)]


def header(account: Account, commodity: Commodity | None) -> str:
    if commodity is None:
        return f"{account.full_name}\n"
    return f"{account.full_name} {commodity.id}\n"


def render_flat(rows: Sequence[FlatRow]) -> str:
    desc = min(max((len(r.description) for r in rows), default=0), MAX_TEXT_WIDTH)
    acct = min(max((len(r.other) for r in rows), default=0), MAX_TEXT_WIDTH)
    return "".join(
        f"{r.posted.strftime(DATE_FORMAT)} | {r.description:>{desc}} | {r.other:>{acct}} | "
        f"{r.quantity.number_text():>{AMOUNT_WIDTH}} | {r.total.number_text():>{AMOUNT_WIDTH}}\n"
        for r in rows
    )


def render_bucketed(rows: Sequence[BucketRow], period: Period) -> str:
    return "".join(
        f"{period.label(r.start)} | {r.amount.number_text():>{BUCKET_AMOUNT_WIDTH}} | "
        f"{r.total.number_text():>{BUCKET_AMOUNT_WIDTH}}\n"
        for r in rows
    )


def _relative(full_name: str, prefix: str) -> str:
    return full_name.removeprefix(prefix)


def render_recursive(account: Account, postings: Sequence[Posting]) -> str:
    """Every posting of the subtree; account names shown relative to account."""
    prefix = account.full_name
    lines: list[tuple[str, str, str, str, str, str]] = []
    for p in postings:
        assert p.transaction is not None
        lines.append((
            p.transaction.posted.strftime(DATE_FORMAT),
            p.transaction.description,
            _relative(p.account.full_name, prefix),
            _relative(p.transaction.other(p).account.full_name, prefix),
            p.quantity.number_text(),
            p.commodity.id,
        ))
    desc = min(max((len(x[1]) for x in lines), default=0), MAX_TEXT_WIDTH)
    own = min(max((len(x[2]) for x in lines), default=0), MAX_TEXT_WIDTH)
    other = min(max((len(x[3]) for x in lines), default=0), MAX_TEXT_WIDTH)
    return "".join(
        f"{d} | {s:>{desc}} | {a:>{own}} | {o:>{other}} | {q:>{AMOUNT_WIDTH}} {c}\n"
        for d, s, a, o, q, c in lines
    )


def row_label(rollup: Rollup, row: RollupRow, width: int = DEFAULT_LABEL_WIDTH) -> str:
    match row.kind:
        case RowKind.CHILD:
            assert row.account is not None
            name = _relative(row.account.full_name, rollup.account.full_name).lstrip(SEPARATOR)
            return shorten_account_name(name, width)
        case RowKind.OTHER:
            return "Other"
        case RowKind.OWN:
            return shorten_account_name(rollup.account.name or "Own", width)
        case RowKind.TOTAL:
            return "Totals"
        case _never:
            assert_never(_never)


def render_rollup(rollup: Rollup, width: int = DEFAULT_LABEL_WIDTH) -> str:
    """One column per row of the rollup, one line per bucket date."""
    if not rollup.rows:
        return ""
    labels = [row_label(rollup, r, width) for r in rollup.rows]
    cells = [[a.number_text() for a in r.amounts] for r in rollup.rows]
    widths = [max(len(label), *(len(c) for c in col)) for label, col in zip(labels, cells, strict=True)]
    date_labels = [rollup.period.label(d) for d in rollup.dates]
    date_width = max(len(x) for x in date_labels)

    lines = [" | ".join([" " * date_width, *(f"{lb:>{w}}" for lb, w in zip(labels, widths, strict=True))])]
    for i, dl in enumerate(date_labels):
        lines.append(" | ".join([dl, *(f"{col[i]:>{w}}" for col, w in zip(cells, widths, strict=True))]))
    return "".join(f"{line}\n" for line in lines)
