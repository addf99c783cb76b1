"""Ledger configuration: where the files live and how to read and render them.

Pure configuration data plus one constructor from environment variables:

    COINDB                      ledger root directory (required by from_env)
    PLAINLEDGER_REFERENCE_DATE  YYYY/MM/DD anchor for relative dates
    PLAINLEDGER_STYLE           native | ledger
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import final

from plainledger.core.dates import parse_date
from plainledger.core.errors import FieldViolation, ValidationError
from plainledger.core.result import Err, Ok
from plainledger.core.types import RenderStyle, UtcDatetime

ENV_ROOT = "COINDB"
ENV_REFERENCE_DATE = "PLAINLEDGER_REFERENCE_DATE"
ENV_STYLE = "PLAINLEDGER_STYLE"

COMMODITIES_FILE = "commodities.coin"
ACCOUNTS_FILE = "accounts.coin"
PRICES_FILE = "prices.coin"
LEDGER_GLOB = "**/*.coin"


@final
@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Ledger root and load settings."""

    root: Path
    reference_date: date
    style: RenderStyle = RenderStyle.NATIVE
    commodities_file: str = COMMODITIES_FILE
    accounts_file: str = ACCOUNTS_FILE
    prices_file: str = PRICES_FILE
    glob: str = LEDGER_GLOB

    def __post_init__(self) -> None:
        if not str(self.root):
            raise TypeError("LedgerConfig.root must be non-empty")

    @property
    def declaration_files(self) -> tuple[Path, ...]:
        """Commodities, accounts and prices files, in load order."""
        return (
            self.root / self.commodities_file,
            self.root / self.accounts_file,
            self.root / self.prices_file,
        )

    @staticmethod
    def from_env(
        environ: Mapping[str, str], *, today: date | None = None,
    ) -> Ok[LedgerConfig] | Err[ValidationError]:
        """Read configuration from an environment mapping.

        today is the reference date when PLAINLEDGER_REFERENCE_DATE is unset;
        it defaults to the current UTC date.
        """
        violations: list[FieldViolation] = []
        fallback = today or UtcDatetime.now().value.date()

        root = environ.get(ENV_ROOT, "").strip()
        if not root:
            violations.append(FieldViolation(
                path=ENV_ROOT, constraint="required ledger directory",
                actual_value=repr(environ.get(ENV_ROOT)),
            ))

        reference = fallback
        raw_date = environ.get(ENV_REFERENCE_DATE, "").strip()
        if raw_date:
            match parse_date(raw_date, fallback):
                case Err(e):
                    violations.append(FieldViolation(
                        path=ENV_REFERENCE_DATE, constraint=e, actual_value=raw_date,
                    ))
                case Ok(d):
                    reference = d

        style = RenderStyle.NATIVE
        raw_style = environ.get(ENV_STYLE, "").strip().lower()
        if raw_style:
            try:
                style = RenderStyle(raw_style)
            except ValueError:
                violations.append(FieldViolation(
                    path=ENV_STYLE,
                    constraint=f"one of {', '.join(s.value for s in RenderStyle)}",
                    actual_value=raw_style,
                ))

        if violations:
            return Err(ValidationError(
                message=f"LedgerConfig.from_env failed: {len(violations)} field error(s)",
                code="CONFIG",
                timestamp=UtcDatetime.now(),
                source="infra.config.LedgerConfig.from_env",
                fields=tuple(violations),
            ))
        return Ok(LedgerConfig(root=Path(root), reference_date=reference, style=style))
