"""Raw items produced by the parser, before any linking.

Names are still plain strings and amounts are still ParsedAmount values;
the resolver binds them to Account and Commodity objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import final

from plainledger.core.amount import ParsedAmount
from plainledger.core.tags import Tags
from plainledger.core.types import SourceLocation


@final
@dataclass(frozen=True, slots=True)
class CommodityDecl:
    symbol: str
    places: int | None  # from a 'format' sub-line
    note: str
    location: SourceLocation


@final
@dataclass(frozen=True, slots=True)
class AccountDecl:
    name: str
    commodity: str | None  # default commodity sub-line
    note: str
    location: SourceLocation


@final
@dataclass(frozen=True, slots=True)
class PriceDecl:
    posted: date
    commodity: str
    value: ParsedAmount  # symbol is the currency
    location: SourceLocation


@final
@dataclass(frozen=True, slots=True)
class RawPosting:
    account: str
    quantity: ParsedAmount | None  # None = elided
    balance: ParsedAmount | None  # '= AMOUNT' assertion
    note: str
    tags: Tags
    location: SourceLocation


@final
@dataclass(frozen=True, slots=True)
class RawTransaction:
    posted: date
    code: str
    description: str
    note: str
    tags: Tags
    postings: tuple[RawPosting, ...]
    location: SourceLocation


@final
@dataclass(frozen=True, slots=True)
class TestBlock:
    """Embedded self-test: a command line and its expected output bytes."""

    __test__ = False  # not a pytest class

    cmd: str
    result: bytes
    location: SourceLocation


type Item = CommodityDecl | AccountDecl | PriceDecl | RawTransaction | TestBlock
