"""Commodity, Amount, decimal context, and the amount text grammar.

An Amount is an integer magnitude scaled by its commodity's fixed number of
decimals: 37.92 CAD is Amount(magnitude=3792, commodity=CAD/2). Integer
arithmetic keeps every result exact and platform independent. Decimal is used
only at the text boundary and for price conversion, always inside
LEDGER_DECIMAL_CONTEXT.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_EVEN as _ROUND_HALF_EVEN
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import final

from plainledger.core.errors import InvariantViolation
from plainledger.core.result import Err, Ok
from plainledger.core.types import RenderStyle

LEDGER_DECIMAL_CONTEXT = Context(
    prec=60,
    rounding=_ROUND_HALF_EVEN,
    Emin=-999999,
    Emax=999999,
    capitals=1,
    clamp=0,
    flags=[],
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

# ---------------------------------------------------------------------------
# Amount text grammar
# ---------------------------------------------------------------------------

SYMBOL_PATTERN = r'"[^"\n]+"|[^\W\d]\w*|[$€£¥]'
NUMBER_PATTERN = r"[-+]?\d+(?:\.\d*)?"
AMOUNT_PATTERN = (
    rf"(?:(?:{SYMBOL_PATTERN})[ \t]*{NUMBER_PATTERN}"
    rf"|{NUMBER_PATTERN}(?:[ \t]*(?:{SYMBOL_PATTERN}))?)"
)

_LEADING_RE = re.compile(rf"(?P<symbol>{SYMBOL_PATTERN})[ \t]*(?P<number>{NUMBER_PATTERN})")
_TRAILING_RE = re.compile(rf"(?P<number>{NUMBER_PATTERN})(?:[ \t]*(?P<symbol>{SYMBOL_PATTERN}))?")
_PLAIN_SYMBOL_RE = re.compile(r"[^\W\d_]+")
_BARE_SYMBOL_RE = re.compile(r"[^\W\d]\w*|[$€£¥]")


@final
@dataclass(frozen=True, slots=True)
class ParsedAmount:
    """Amount text split into its parts, before a commodity is bound."""

    number: Decimal
    symbol: str | None  # unquoted; None when the text carries no symbol
    places: int  # digits written after the decimal point


def _unquote(symbol: str) -> str:
    if len(symbol) >= 2 and symbol[0] == '"' and symbol[-1] == '"':
        return symbol[1:-1]
    return symbol


def parse_amount_text(text: str) -> Ok[ParsedAmount] | Err[str]:
    """Parse '10.00 CAD', 'CAD -10.00', '"TDB162" 1.5' or a bare number."""
    raw = text.strip()
    match_ = _TRAILING_RE.fullmatch(raw) or _LEADING_RE.fullmatch(raw)
    if match_ is None:
        return Err(f"invalid amount '{text}'")
    number = match_.group("number")
    symbol = match_.group("symbol")
    places = len(number.split(".", 1)[1]) if "." in number else 0
    with localcontext(LEDGER_DECIMAL_CONTEXT):
        value = Decimal(number)
    return Ok(ParsedAmount(
        number=value,
        symbol=_unquote(symbol) if symbol is not None else None,
        places=places,
    ))


# ---------------------------------------------------------------------------
# Commodity
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class Commodity:
    """Unit of value with a fixed decimal precision."""

    id: str
    decimals: int
    note: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise TypeError("Commodity.id must be non-empty")
        if self.decimals < 0:
            raise TypeError(f"Commodity.decimals must be >= 0, got {self.decimals}")

    def safe_id(self, style: RenderStyle) -> str:
        """Symbol as written in the given style.

        Ledger style quotes ids that are not purely alphabetic; native style
        quotes only ids the bare symbol grammar cannot read back.
        """
        plain = _PLAIN_SYMBOL_RE if style is RenderStyle.LEDGER else _BARE_SYMBOL_RE
        if not plain.fullmatch(self.id):
            return f'"{self.id}"'
        return self.id


def scale_to_magnitude(number: Decimal, decimals: int) -> Ok[int] | Err[str]:
    """Exact number * 10^decimals as int; Err when digits would be lost."""
    with localcontext(LEDGER_DECIMAL_CONTEXT):
        scaled = number.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            return Err(f"{number} has more than {decimals} decimal places")
        return Ok(int(scaled))


def _render_magnitude(magnitude: int, decimals: int) -> str:
    sign = "-" if magnitude < 0 else ""
    digits = str(abs(magnitude))
    if decimals == 0:
        return sign + digits
    digits = digits.rjust(decimals + 1, "0")
    return f"{sign}{digits[:-decimals]}.{digits[-decimals:]}"


# ---------------------------------------------------------------------------
# Amount
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class Amount:
    """Exact fixed-point quantity of one commodity.

    Operators (+, -, unary -, <, <=, >, >=) raise InvariantViolation when the
    commodities differ; equality simply compares both fields. Use add() where
    mixing commodities is an expected data condition rather than a bug.
    """

    magnitude: int
    commodity: Commodity

    def __post_init__(self) -> None:
        if not isinstance(self.magnitude, int) or isinstance(self.magnitude, bool):
            raise TypeError(f"Amount.magnitude must be int, got {self.magnitude!r}")

    @staticmethod
    def zero(commodity: Commodity) -> Amount:
        return Amount(magnitude=0, commodity=commodity)

    @staticmethod
    def from_decimal(value: Decimal, commodity: Commodity) -> Ok[Amount] | Err[str]:
        match scale_to_magnitude(value, commodity.decimals):
            case Err(e):
                return Err(f"{commodity.id}: {e}")
            case Ok(m):
                return Ok(Amount(magnitude=m, commodity=commodity))

    @property
    def value(self) -> Decimal:
        with localcontext(LEDGER_DECIMAL_CONTEXT):
            return Decimal(self.magnitude).scaleb(-self.commodity.decimals)

    def _check(self, other: Amount, op: str) -> None:
        if self.commodity != other.commodity:
            raise InvariantViolation(
                f"cannot {op} {self.commodity.id} and {other.commodity.id} "
                f"without price conversion"
            )

    def add(self, other: Amount) -> Ok[Amount] | Err[str]:
        """Add, returning Err on commodity mismatch."""
        if self.commodity != other.commodity:
            return Err(f"Commodity mismatch: {self.commodity.id} vs {other.commodity.id}")
        return Ok(Amount(magnitude=self.magnitude + other.magnitude, commodity=self.commodity))

    def __add__(self, other: Amount) -> Amount:
        self._check(other, "add")
        return Amount(magnitude=self.magnitude + other.magnitude, commodity=self.commodity)

    def __sub__(self, other: Amount) -> Amount:
        self._check(other, "subtract")
        return Amount(magnitude=self.magnitude - other.magnitude, commodity=self.commodity)

    def __neg__(self) -> Amount:
        return Amount(magnitude=-self.magnitude, commodity=self.commodity)

    def negated(self) -> Amount:
        return -self

    def __abs__(self) -> Amount:
        return Amount(magnitude=abs(self.magnitude), commodity=self.commodity)

    def __lt__(self, other: Amount) -> bool:
        self._check(other, "compare")
        return self.magnitude < other.magnitude

    def __le__(self, other: Amount) -> bool:
        self._check(other, "compare")
        return self.magnitude <= other.magnitude

    def __gt__(self, other: Amount) -> bool:
        self._check(other, "compare")
        return self.magnitude > other.magnitude

    def __ge__(self, other: Amount) -> bool:
        self._check(other, "compare")
        return self.magnitude >= other.magnitude

    def div(self, divisor: int) -> Amount:
        """Euclidean integer division of the magnitude (remainder is never negative)."""
        if divisor == 0:
            raise InvariantViolation("Amount.div by zero")
        if divisor > 0:
            q = self.magnitude // divisor
        else:
            q = -(self.magnitude // -divisor)
        return Amount(magnitude=q, commodity=self.commodity)

    def is_zero(self) -> bool:
        return self.magnitude == 0

    @property
    def sign(self) -> int:
        return (self.magnitude > 0) - (self.magnitude < 0)

    def number_text(self) -> str:
        """Digits with the decimal point inserted, no symbol: '-37.92'."""
        return _render_magnitude(self.magnitude, self.commodity.decimals)

    def format(self, style: RenderStyle = RenderStyle.NATIVE, *, with_commodity: bool = True) -> str:
        number = self.number_text()
        if not with_commodity:
            return number
        match style:
            case RenderStyle.NATIVE:
                return f"{number} {self.commodity.safe_id(style)}"
            case RenderStyle.LEDGER:
                return f"{self.commodity.safe_id(style)} {number}"

    def __str__(self) -> str:
        return self.format(RenderStyle.NATIVE)
