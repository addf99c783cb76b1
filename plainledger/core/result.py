"""Result[T, E] — explicit success/failure values for plainledger.

Fallible domain operations (parsing a line, loading a file, finding an
account) return Ok[T] or Err[E] instead of raising. Exceptions are kept for
broken internal invariants only (see core.errors.InvariantViolation).

Method: .bind. Free functions: unwrap, sequence.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, final


@final
@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful outcome carrying a value."""

    value: T

    def bind[U, E](self, f: Callable[[T], Ok[U] | Err[E]]) -> Ok[U] | Err[E]:
        """Chain a further fallible step."""
        return f(self.value)


@final
@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed outcome carrying an error value."""

    error: E

    def bind(self, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        """Short-circuits: the next step never runs."""
        return self


def unwrap[T](result: Ok[T] | Err[Any]) -> T:
    """Extract the Ok value or raise RuntimeError. Boundary and test code only."""
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        raise RuntimeError(f"unwrap on Err: {result.error}")
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")


def sequence[T, E](results: Iterable[Ok[T] | Err[E]]) -> Ok[list[T]] | Err[E]:
    """Collect values in order, stopping at the first Err."""
    values: list[T] = []
    for r in results:
        if isinstance(r, Err):
            return r
        values.append(r.value)
    return Ok(values)
