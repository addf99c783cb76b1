"""Error value hierarchy.

Load and query failures are frozen dataclass values carried in Err and
recorded on the ledger, never raised. Base class LedgerError, four @final
subclasses. The one exception type, InvariantViolation, is reserved for
internal contract failures that must not produce a wrong monetary value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from plainledger.core.types import SourceLocation, UtcDatetime


class InvariantViolation(TypeError):
    """Internal contract broken, e.g. adding amounts of different commodities."""


@dataclass(frozen=True, slots=True)
class LedgerError:
    """Base error value. NOT @final — has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error


@final
@dataclass(frozen=True, slots=True)
class FieldViolation:
    """Describes a single field validation failure."""

    path: str  # e.g. "register.top"
    constraint: str  # e.g. "must be an integer"
    actual_value: str


@final
@dataclass(frozen=True, slots=True)
class ValidationError(LedgerError):
    """One or more configuration or command fields failed validation."""

    fields: tuple[FieldViolation, ...]


@final
@dataclass(frozen=True, slots=True)
class ParseError(LedgerError):
    """Ledger text did not match the grammar. Fatal to its file only."""

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}: {self.message}"


@final
@dataclass(frozen=True, slots=True)
class ResolutionWarning(LedgerError):
    """Non-fatal resolution problem: assertion mismatch or unbalanced transaction."""

    path: str
    line: int
    kind: str  # "ASSERTION_MISMATCH" | "UNBALANCED"

    def __str__(self) -> str:
        return f"{self.path}:{self.line}: {self.message}"


@final
@dataclass(frozen=True, slots=True)
class AccountLookupError(LedgerError):
    """An account pattern matched no account, or more than one."""

    pattern: str
    candidates: tuple[str, ...]  # every matching full name when ambiguous


def parse_error(message: str, code: str, location: SourceLocation, source: str) -> ParseError:
    """ParseError at a location, stamped now."""
    return ParseError(
        message=message, code=code, timestamp=UtcDatetime.now(), source=source,
        path=location.path, line=location.line,
    )
