"""Ledger text parser — lines to a lazy stream of raw items.

iter_items is the single entry point for ledger text. It yields one
Ok[Item] per directive, transaction or test block, in file order, and stops
after the first Err[ParseError]. A fresh generator restarts parsing.

Grammar (indented lines belong to the directive above them):

    commodity CAD
      format 1.00 CAD
    account Assets:Bank:Checking
      commodity CAD
    P 2018/10/01 TDB162 12.98 CAD
    2018/10/01 (code) payee ; note #tag: value
      Expenses:Groceries   37.92 CAD
      Assets:Bank:Checking  -37.92 CAD = 100.00 CAD
    test register -m Expenses
    ...expected output...
    end test
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date

from plainledger.core.amount import AMOUNT_PATTERN, SYMBOL_PATTERN, ParsedAmount, parse_amount_text
from plainledger.core.dates import DATE_PATTERN, parse_date
from plainledger.core.errors import ParseError, parse_error
from plainledger.core.result import Err, Ok, sequence
from plainledger.core.tags import parse_tags
from plainledger.core.types import SourceLocation
from plainledger.gateway.types import (
    AccountDecl,
    CommodityDecl,
    Item,
    PriceDecl,
    RawPosting,
    RawTransaction,
    TestBlock,
)

_SOURCE = "gateway.parser.iter_items"

_HEADER_RE = re.compile(
    rf"(?P<date>{DATE_PATTERN})"
    r"(?:\s+\((?P<code>[^)]*)\))?"
    r"(?:\s+(?P<description>[^;]*?))?"
    r"\s*(?:;[ \t]?(?P<note>.*))?"
)
_POSTING_RE = re.compile(
    r"\s+(?P<account>[^\s;=]+)"
    rf"(?:\s+(?P<quantity>{AMOUNT_PATTERN}))?"
    rf"(?:\s*=\s*(?P<balance>{AMOUNT_PATTERN}))?"
    r"\s*(?:;[ \t]?(?P<note>.*))?"
)
_PRICE_RE = re.compile(
    rf"P\s+(?P<date>{DATE_PATTERN})\s+(?P<symbol>{SYMBOL_PATTERN})\s+(?P<amount>{AMOUNT_PATTERN})"
    r"\s*(?:;.*)?"
)
_COMMODITY_RE = re.compile(rf"commodity\s+(?P<symbol>{SYMBOL_PATTERN})\s*")
_ACCOUNT_RE = re.compile(r"account\s+(?P<name>[^\s;]+)\s*")
_NOTE_LINE_RE = re.compile(r"\s*;[ \t]?(?P<text>.*)")
_SUBLINE_RE = re.compile(r"\s+(?P<keyword>\w+)(?:\s+(?P<rest>.*?))?\s*")
_TEST_END = "end test"


def _is_indented(line: str) -> bool:
    return bool(line) and line[0] in " \t"


def _is_blank(line: str) -> bool:
    return not line.strip()


def _is_note(line: str) -> bool:
    return line.lstrip().startswith(";")


def _unquote(symbol: str) -> str:
    return symbol[1:-1] if symbol.startswith('"') else symbol


@dataclass
class _Cursor:
    """Line cursor over one file. Line numbers reported 1-based."""

    lines: list[str]
    path: str
    index: int = 0

    def at_end(self) -> bool:
        return self.index >= len(self.lines)

    def peek(self) -> str:
        return self.lines[self.index]

    def location(self, index: int | None = None) -> SourceLocation:
        return SourceLocation(path=self.path, line=(self.index if index is None else index) + 1)

    def error(self, message: str, code: str, index: int | None = None) -> Err[ParseError]:
        return Err(parse_error(message, code, self.location(index), _SOURCE))

    def sublines(self) -> Iterator[tuple[int, str]]:
        """Consume the indented, non-blank lines following the current one."""
        while not self.at_end() and _is_indented(self.peek()) and not _is_blank(self.peek()):
            yield self.index, self.peek()
            self.index += 1


@dataclass
class _NoteBuilder:
    lines: list[str] = field(default_factory=list)

    def append(self, line: str) -> None:
        m = _NOTE_LINE_RE.fullmatch(line)
        self.lines.append(m["text"] if m else line)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def _parse_amount(
    cur: _Cursor, text: str | None, index: int,
) -> Ok[ParsedAmount | None] | Err[ParseError]:
    if text is None:
        return Ok(None)
    match parse_amount_text(text):
        case Err(e):
            return cur.error(e, "INVALID_AMOUNT", index)
        case Ok(amt):
            return Ok(amt)


def _parse_commodity(cur: _Cursor) -> Ok[CommodityDecl] | Err[ParseError]:
    start = cur.index
    m = _COMMODITY_RE.fullmatch(cur.peek())
    if m is None:
        return cur.error("invalid commodity directive", "INVALID_COMMODITY")
    cur.index += 1
    places: int | None = None
    notes: list[str] = []
    for idx, line in cur.sublines():
        if _is_note(line):
            continue
        sub = _SUBLINE_RE.fullmatch(line)
        keyword, rest = (sub["keyword"], sub["rest"] or "") if sub else ("", "")
        match keyword:
            case "format":
                match parse_amount_text(rest):
                    case Err(e):
                        return cur.error(e, "INVALID_AMOUNT", idx)
                    case Ok(amt):
                        places = amt.places
            case "note":
                notes.append(rest)
            case _:
                return cur.error(f"unknown commodity sub-directive '{line.strip()}'",
                                 "INVALID_COMMODITY", idx)
    return Ok(CommodityDecl(
        symbol=_unquote(m["symbol"]), places=places,
        note="\n".join(notes), location=cur.location(start),
    ))


def _parse_account(cur: _Cursor) -> Ok[AccountDecl] | Err[ParseError]:
    start = cur.index
    m = _ACCOUNT_RE.fullmatch(cur.peek())
    if m is None:
        return cur.error("invalid account directive", "INVALID_ACCOUNT")
    cur.index += 1
    commodity: str | None = None
    notes: list[str] = []
    for idx, line in cur.sublines():
        if _is_note(line):
            continue
        sub = _SUBLINE_RE.fullmatch(line)
        keyword, rest = (sub["keyword"], sub["rest"] or "") if sub else ("", "")
        match keyword:
            case "commodity" if re.fullmatch(SYMBOL_PATTERN, rest):
                commodity = _unquote(rest)
            case "note":
                notes.append(rest)
            case _:
                return cur.error(f"unknown account sub-directive '{line.strip()}'",
                                 "INVALID_ACCOUNT", idx)
    return Ok(AccountDecl(
        name=m["name"], commodity=commodity,
        note="\n".join(notes), location=cur.location(start),
    ))


def _parse_price(cur: _Cursor, reference: date) -> Ok[PriceDecl] | Err[ParseError]:
    m = _PRICE_RE.fullmatch(cur.peek())
    if m is None:
        return cur.error("invalid price line", "INVALID_PRICE")
    match parse_date(m["date"], reference):
        case Err(e):
            return cur.error(e, "INVALID_DATE")
        case Ok(posted):
            pass
    match _parse_amount(cur, m["amount"], cur.index):
        case Err() as err:
            return err
        case Ok(value):
            pass
    if value is None or value.symbol is None:
        return cur.error("price amount requires a currency", "INVALID_PRICE")
    location = cur.location()
    cur.index += 1
    return Ok(PriceDecl(
        posted=posted, commodity=_unquote(m["symbol"]), value=value, location=location,
    ))


def _parse_test(cur: _Cursor) -> Ok[TestBlock] | Err[ParseError]:
    start = cur.index
    cmd = cur.peek()[len("test"):].strip()
    if not cmd:
        return cur.error("test block is missing a command", "INVALID_TEST")
    cur.index += 1
    expected: list[str] = []
    while not cur.at_end():
        line = cur.peek()
        cur.index += 1
        if line.rstrip() == _TEST_END:
            return Ok(TestBlock(
                cmd=cmd,
                result="".join(f"{x}\n" for x in expected).encode("utf-8"),
                location=cur.location(start),
            ))
        expected.append(line)
    return cur.error("test block is missing 'end test'", "INVALID_TEST", start)


@dataclass
class _PostingBuilder:
    account: str
    quantity: ParsedAmount | None
    balance: ParsedAmount | None
    note: _NoteBuilder
    location: SourceLocation

    def build(self) -> RawPosting:
        return RawPosting(
            account=self.account, quantity=self.quantity, balance=self.balance,
            note=self.note.text, tags=parse_tags(*self.note.lines), location=self.location,
        )


def _parse_transaction(cur: _Cursor, reference: date) -> Ok[RawTransaction] | Err[ParseError]:
    start = cur.index
    m = _HEADER_RE.fullmatch(cur.peek())
    if m is None:
        return cur.error("invalid transaction header", "INVALID_TRANSACTION")
    match parse_date(m["date"], reference):
        case Err(e):
            return cur.error(e, "INVALID_DATE")
        case Ok(posted):
            pass
    cur.index += 1

    note = _NoteBuilder()
    if m["note"] is not None:
        note.lines.append(m["note"])
    postings: list[_PostingBuilder] = []
    for idx, line in cur.sublines():
        if _is_note(line):
            (postings[-1].note if postings else note).append(line)
            continue
        pm = _POSTING_RE.fullmatch(line)
        if pm is None:
            return cur.error("invalid posting", "INVALID_POSTING", idx)
        match _parse_amount(cur, pm["quantity"], idx):
            case Err() as err:
                return err
            case Ok(quantity):
                pass
        match _parse_amount(cur, pm["balance"], idx):
            case Err() as err:
                return err
            case Ok(balance):
                pass
        if quantity is None and any(p.quantity is None for p in postings):
            return cur.error("only one posting may omit its quantity", "MULTIPLE_ELISION", idx)
        posting_note = _NoteBuilder()
        if pm["note"] is not None:
            posting_note.lines.append(pm["note"])
        postings.append(_PostingBuilder(
            account=pm["account"], quantity=quantity, balance=balance,
            note=posting_note, location=cur.location(idx),
        ))

    if len(postings) < 2:
        return cur.error(
            f"transaction needs at least 2 postings, got {len(postings)}",
            "TOO_FEW_POSTINGS", start,
        )
    return Ok(RawTransaction(
        posted=posted,
        code=m["code"] or "",
        description=(m["description"] or "").strip(),
        note=note.text,
        tags=parse_tags(*note.lines),
        postings=tuple(p.build() for p in postings),
        location=cur.location(start),
    ))


def iter_items(
    text: str, path: str, reference: date,
) -> Iterator[Ok[Item] | Err[ParseError]]:
    """Lazily parse ledger text into raw items.

    reference resolves relative dates (+3d, -1m, ...). The stream ends after
    the first Err; items before it were well formed.
    """
    cur = _Cursor(lines=text.splitlines(), path=path)
    while not cur.at_end():
        line = cur.peek()
        if _is_blank(line) or _is_note(line):
            cur.index += 1
            continue
        if _is_indented(line):
            yield cur.error("unexpected indented line", "UNEXPECTED_INDENT")
            return
        word = line.split(None, 1)[0]
        result: Ok[Item] | Err[ParseError]
        match word:
            case "commodity":
                result = _parse_commodity(cur)
            case "account":
                result = _parse_account(cur)
            case "P":
                result = _parse_price(cur, reference)
            case "test":
                result = _parse_test(cur)
            case _ if word[0].isdigit() or word[0] in "+-":
                result = _parse_transaction(cur, reference)
            case _:
                result = cur.error(f"unknown directive '{word}'", "UNKNOWN_DIRECTIVE")
        yield result
        if isinstance(result, Err):
            return


def parse_items(text: str, path: str, reference: date) -> Ok[list[Item]] | Err[ParseError]:
    """Parse a whole text; Err if any line fails."""
    return sequence(iter_items(text, path, reference))
