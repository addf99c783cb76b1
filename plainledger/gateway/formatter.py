"""Render prices and transactions as ledger text in either style.

Output parses back to the same entities, and rendering the re-parsed
entities gives the same bytes. Within one transaction the account names are
left-aligned and the quantities right-aligned to a common column.
"""

from __future__ import annotations

from collections.abc import Iterable

from plainledger.core.dates import format_date
from plainledger.core.types import RenderStyle
from plainledger.ledger.transactions import Posting, Price, Transaction

INDENT = "  "
NOTE_PREFIX = "; "


def _note_lines(note: str) -> list[str]:
    return note.split("\n") if note else []


def render_price(price: Price, style: RenderStyle = RenderStyle.NATIVE) -> str:
    """'P 2018/10/01 TDB162 12.98 CAD' followed by a newline."""
    return (
        f"P {format_date(price.posted)} {price.commodity.safe_id(style)} "
        f"{price.value.format(style)}\n"
    )


def _header(tx: Transaction, first_note: str | None) -> str:
    parts = [format_date(tx.posted)]
    if tx.code:
        parts.append(f"({tx.code})")
    if tx.description:
        parts.append(tx.description)
    line = " ".join(parts)
    if first_note is not None:
        line += f" {NOTE_PREFIX}{first_note}"
    return line


def _posting_line(p: Posting, account_width: int, quantity_width: int, style: RenderStyle) -> list[str]:
    line = f"{INDENT}{p.account_name:<{account_width}}  {p.quantity.format(style):>{quantity_width}}"
    if p.balance is not None:
        line += f" = {p.balance.format(style)}"
    notes = _note_lines(p.note)
    if notes:
        line += f" {NOTE_PREFIX}{notes[0]}"
    return [line] + [f"{INDENT}{INDENT}{NOTE_PREFIX}{n}" for n in notes[1:]]


def render_transaction(tx: Transaction, style: RenderStyle = RenderStyle.NATIVE) -> str:
    """Header line, note continuation lines, then one line per posting."""
    notes = _note_lines(tx.note)
    lines = [_header(tx, notes[0] if notes else None)]
    lines.extend(f"{INDENT}{NOTE_PREFIX}{n}" for n in notes[1:])
    account_width = max((len(p.account_name) for p in tx.postings), default=0)
    quantity_width = max((len(p.quantity.format(style)) for p in tx.postings), default=0)
    for p in tx.postings:
        lines.extend(_posting_line(p, account_width, quantity_width, style))
    return "".join(f"{line}\n" for line in lines)


def render_transactions(
    transactions: Iterable[Transaction], style: RenderStyle = RenderStyle.NATIVE,
) -> str:
    """Transactions separated by blank lines."""
    return "".join(f"{render_transaction(tx, style)}\n" for tx in transactions)
