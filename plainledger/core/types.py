"""Core types: UtcDatetime, FrozenMap, SourceLocation, RenderStyle."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar, final


@final
@dataclass(frozen=True, slots=True)
class UtcDatetime:
    """Timezone-aware UTC datetime. Naive datetimes are rejected."""

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is None:
            raise TypeError("UtcDatetime requires timezone-aware datetime, got naive")

    @staticmethod
    def now() -> UtcDatetime:
        return UtcDatetime(value=datetime.now(tz=UTC))


@final
@dataclass(frozen=True, slots=True)
class FrozenMap[K, V]:
    """Immutable mapping kept as a tuple of (key, value) pairs sorted by key.

    Used for transaction and posting tags, so two tag sets written in a
    different order compare and hash equal.
    """

    _entries: tuple[tuple[K, V], ...]

    EMPTY: ClassVar[FrozenMap[Any, Any]]  # Assigned after class definition

    def get(self, key: K, default: V | None = None) -> V | None:
        for k, v in self._entries:
            if k == key:
                return v
        return default

    def __getitem__(self, key: K) -> V:
        for k, v in self._entries:
            if k == key:
                return v
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self._entries)

    def __iter__(self) -> Iterator[K]:
        return (k for k, _ in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def items(self) -> tuple[tuple[K, V], ...]:
        return self._entries

    def to_dict(self) -> dict[K, V]:
        return dict(self._entries)


FrozenMap.EMPTY = FrozenMap(_entries=())


@final
@dataclass(frozen=True, slots=True)
class SourceLocation:
    """File and 1-based line number an item was parsed from."""

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


class RenderStyle(Enum):
    """Textual style for amounts, prices and transactions.

    NATIVE:  -37.92 CAD   (sign first, symbol trailing)
    LEDGER:  CAD -37.92   (symbol leading, quoted unless alphabetic)
    """

    NATIVE = "native"
    LEDGER = "ledger"
