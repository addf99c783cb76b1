"""File-system loader: read ledger files, parse, resolve, track per-file state.

A file is parsed completely before any of its items are resolved, and
resolved as one batch, so a file with a syntax or binding error contributes
nothing; files loaded before or after it are unaffected. Loading is
single-threaded; queries may run concurrently once it has finished.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import final

from plainledger.core.errors import ParseError, parse_error
from plainledger.core.result import Err, Ok
from plainledger.core.types import SourceLocation
from plainledger.gateway.parser import parse_items
from plainledger.infra.config import LedgerConfig
from plainledger.infra.logging_setup import get_logger
from plainledger.ledger.engine import FileState, Ledger
from plainledger.ledger.resolver import ResolveSummary, resolve_items

logger = get_logger(__name__)


@final
@dataclass(frozen=True, slots=True)
class LoadReport:
    """Outcome of loading one file successfully."""

    path: str
    items: int
    summary: ResolveSummary


@final
@dataclass(frozen=True, slots=True)
class LoadSummary:
    """Per-file outcomes of load_all, in load order."""

    results: tuple[Ok[LoadReport] | Err[ParseError], ...]

    @property
    def reports(self) -> tuple[LoadReport, ...]:
        return tuple(r.value for r in self.results if isinstance(r, Ok))

    @property
    def errors(self) -> tuple[ParseError, ...]:
        return tuple(r.error for r in self.results if isinstance(r, Err))

    @property
    def ok(self) -> bool:
        return not self.errors


def load_text(
    ledger: Ledger, text: str, path: str, reference: date,
) -> Ok[LoadReport] | Err[ParseError]:
    """Parse and resolve one file's text into the ledger."""
    ledger.files[path] = FileState.PARSING
    match parse_items(text, path, reference):
        case Err(e):
            ledger.files[path] = FileState.FAILED
            logger.error("%s", e)
            return Err(e)
        case Ok(items):
            pass
    match resolve_items(ledger, items):
        case Err(e):
            ledger.files[path] = FileState.FAILED
            logger.error("%s", e)
            return Err(e)
        case Ok(summary):
            ledger.files[path] = FileState.RESOLVED
            logger.debug(
                "%s: %d items, %d transactions, %d warnings",
                path, len(items), summary.transactions, summary.warnings,
            )
            return Ok(LoadReport(path=path, items=len(items), summary=summary))


def load_file(ledger: Ledger, path: Path, reference: date) -> Ok[LoadReport] | Err[ParseError]:
    """Read a UTF-8 file and load it; an unreadable file is a ParseError at line 0."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        ledger.files[str(path)] = FileState.FAILED
        err = parse_error(
            f"cannot read file: {e}", "IO_ERROR",
            SourceLocation(path=str(path), line=0), "infra.loader.load_file",
        )
        logger.error("%s", err)
        return Err(err)
    return load_text(ledger, text, str(path), reference)


def ledger_files(config: LedgerConfig) -> list[Path]:
    """Files in load order: declarations first, then the rest sorted by path."""
    declarations = [p for p in config.declaration_files if p.is_file()]
    skip = {p.resolve() for p in declarations}
    rest = sorted(
        p for p in config.root.glob(config.glob)
        if p.is_file() and p.resolve() not in skip
    )
    return declarations + rest


def load_all(ledger: Ledger, config: LedgerConfig) -> LoadSummary:
    """Load every ledger file under config.root."""
    files = ledger_files(config)
    logger.info("loading %d files from %s", len(files), config.root)
    results = tuple(load_file(ledger, p, config.reference_date) for p in files)
    summary = LoadSummary(results=results)
    logger.info(
        "loaded %d files (%d failed): %d transactions, %d warnings",
        len(files), len(summary.errors), len(ledger.transactions), len(ledger.warnings),
    )
    return summary
