"""Command layer: argument lists to command values, command values to report text.

Commands are a tagged union dispatched with match:

    register | reg | r   PATTERN [-r] [-b DATE] [-e DATE] [-w|-m|-y] [-t N] [-c] [-l N] [--tag EXPR]
    stats    | s         [-d] [-u] [-a]
    format   | fmt | f   [--ledger|--native] [PATH ...]

Parsing returns Err[ValidationError] for bad arguments instead of exiting.
Transactions printed by stats and format use the caller's default render
style (LedgerConfig.style) unless --ledger or --native overrides it.
"""

from __future__ import annotations

import argparse
import shlex
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import NoReturn, assert_never, final

from plainledger.core.dates import Period, parse_date
from plainledger.core.errors import AccountLookupError, FieldViolation, ValidationError
from plainledger.core.result import Err, Ok
from plainledger.core.tags import TagMatcher
from plainledger.core.types import RenderStyle, UtcDatetime
from plainledger.gateway.formatter import render_transactions
from plainledger.infra.config import LedgerConfig
from plainledger.ledger.engine import Ledger
from plainledger.reporting.aggregate import (
    ALL_TIME,
    DEFAULT_TOP,
    DateWindow,
    bucketed_register,
    flat_register,
    recursive_postings,
    report_commodity,
    rollup,
)
from plainledger.reporting.diagnostics import (
    assertion_mismatches,
    find_duplicates,
    stats,
    unbalanced_transactions,
)
from plainledger.reporting.register import (
    DEFAULT_LABEL_WIDTH,
    header,
    render_bucketed,
    render_flat,
    render_recursive,
    render_rollup,
)

_SOURCE = "tooling.commands.parse_command"


@final
@dataclass(frozen=True, slots=True)
class RegisterCommand:
    pattern: str
    recurse: bool = False
    window: DateWindow = ALL_TIME
    period: Period | None = None
    top: int = DEFAULT_TOP
    cumulative: bool = False
    label_width: int = DEFAULT_LABEL_WIDTH
    tag: TagMatcher | None = None


@final
@dataclass(frozen=True, slots=True)
class StatsCommand:
    duplicates: bool = False
    unbalanced: bool = False
    assertions: bool = False
    style: RenderStyle = RenderStyle.NATIVE


@final
@dataclass(frozen=True, slots=True)
class FormatCommand:
    style: RenderStyle = RenderStyle.NATIVE
    paths: tuple[str, ...] = ()  # only transactions loaded from these files; all when empty


type Command = RegisterCommand | StatsCommand | FormatCommand

ALIASES: dict[str, str] = {
    "register": "register", "reg": "register", "r": "register",
    "stats": "stats", "s": "stats",
    "format": "format", "fmt": "format", "f": "format",
}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class _UsageError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing usage and exiting."""

    def error(self, message: str) -> NoReturn:
        raise _UsageError(message)


def _positive(text: str) -> int:
    try:
        n = int(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got '{text}'") from e
    if n < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {n}")
    return n


def _date_type(reference: date) -> Callable[[str], date]:
    def convert(text: str) -> date:
        match parse_date(text, reference):
            case Err(e):
                raise argparse.ArgumentTypeError(e)
            case Ok(d):
                return d
    return convert


def _tag_type(text: str) -> TagMatcher:
    match TagMatcher.parse(text):
        case Err(e):
            raise argparse.ArgumentTypeError(e)
        case Ok(matcher):
            return matcher


def _register_parser(reference: date) -> _ArgumentParser:
    p = _ArgumentParser(prog="register", add_help=False)
    p.add_argument("pattern")
    p.add_argument("-r", dest="recurse", action="store_true")
    p.add_argument("-b", dest="begin", type=_date_type(reference))
    p.add_argument("-e", dest="end", type=_date_type(reference))
    period = p.add_mutually_exclusive_group()
    period.add_argument("-w", dest="period", action="store_const", const=Period.WEEK)
    period.add_argument("-m", dest="period", action="store_const", const=Period.MONTH)
    period.add_argument("-y", dest="period", action="store_const", const=Period.YEAR)
    p.add_argument("-t", dest="top", type=_positive, default=DEFAULT_TOP)
    p.add_argument("-c", dest="cumulative", action="store_true")
    p.add_argument("-l", dest="label_width", type=_positive, default=DEFAULT_LABEL_WIDTH)
    p.add_argument("--tag", type=_tag_type)
    return p


def _stats_parser() -> _ArgumentParser:
    p = _ArgumentParser(prog="stats", add_help=False)
    p.add_argument("-d", dest="duplicates", action="store_true")
    p.add_argument("-u", dest="unbalanced", action="store_true")
    p.add_argument("-a", dest="assertions", action="store_true")
    return p


def _format_parser() -> _ArgumentParser:
    p = _ArgumentParser(prog="format", add_help=False)
    style = p.add_mutually_exclusive_group()
    style.add_argument("--ledger", dest="style", action="store_const", const=RenderStyle.LEDGER)
    style.add_argument("--native", dest="style", action="store_const", const=RenderStyle.NATIVE)
    p.add_argument("paths", nargs="*")
    return p


def _usage_error(command: str, message: str, actual: str) -> Err[ValidationError]:
    return Err(ValidationError(
        message=f"{command}: {message}",
        code="COMMAND_USAGE",
        timestamp=UtcDatetime.now(),
        source=_SOURCE,
        fields=(FieldViolation(path=command, constraint=message, actual_value=actual),),
    ))


def parse_command(
    args: Sequence[str], reference: date, style: RenderStyle = RenderStyle.NATIVE,
) -> Ok[Command] | Err[ValidationError]:
    """Turn ['register', '-m', 'Expenses'] into a command value.

    reference resolves relative dates given to -b and -e; style is the render
    style for stats and format when no flag picks one.
    """
    if not args:
        return _usage_error("command", "missing command name", "")
    name = ALIASES.get(args[0])
    rest = list(args[1:])
    try:
        match name:
            case "register":
                ns = _register_parser(reference).parse_args(rest)
                if ns.begin is not None and ns.end is not None and ns.end < ns.begin:
                    return _usage_error(name, "end date is before begin date", " ".join(rest))
                return Ok(RegisterCommand(
                    pattern=ns.pattern,
                    recurse=ns.recurse,
                    window=DateWindow(begin=ns.begin, end=ns.end),
                    period=ns.period,
                    top=ns.top,
                    cumulative=ns.cumulative,
                    label_width=ns.label_width,
                    tag=ns.tag,
                ))
            case "stats":
                ns = _stats_parser().parse_args(rest)
                return Ok(StatsCommand(
                    duplicates=ns.duplicates, unbalanced=ns.unbalanced, assertions=ns.assertions,
                    style=style,
                ))
            case "format":
                ns = _format_parser().parse_args(rest)
                return Ok(FormatCommand(
                    style=ns.style or style,
                    paths=tuple(ns.paths),
                ))
            case _:
                return _usage_error("command", f"unknown command '{args[0]}'", args[0])
    except _UsageError as e:
        return _usage_error(name or args[0], str(e), " ".join(rest))


def split_command(line: str) -> Ok[list[str]] | Err[ValidationError]:
    """Split a command line with shell quoting rules."""
    try:
        return Ok(shlex.split(line))
    except ValueError as e:
        return _usage_error("command", str(e), line)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def _register(ledger: Ledger, cmd: RegisterCommand) -> Ok[str] | Err[AccountLookupError]:
    match ledger.find_account(cmd.pattern):
        case Err() as err:
            return err
        case Ok(account):
            pass
    out = header(account, report_commodity(ledger, account))
    match (cmd.recurse, cmd.period):
        case (False, None):
            out += render_flat(flat_register(ledger, account, cmd.window, cmd.tag))
        case (False, Period() as period):
            out += render_bucketed(bucketed_register(ledger, account, period, cmd.window, cmd.tag), period)
        case (True, None):
            out += render_recursive(account, recursive_postings(ledger, account, cmd.window, cmd.tag))
        case (True, Period() as period):
            result = rollup(
                ledger, account, period,
                top=cmd.top, cumulative=cmd.cumulative, window=cmd.window, tag=cmd.tag,
            )
            out += render_rollup(result, cmd.label_width)
    return Ok(out)


def _stats(ledger: Ledger, cmd: StatsCommand) -> str:
    style = cmd.style
    if cmd.duplicates:
        return "".join(
            f"DUPLICATE TRANSACTION?\n{d.first.location_text()}\n{render_transactions([d.first], style)}"
            f"{d.second.location_text()}\n{render_transactions([d.second], style)}"
            for d in find_duplicates(ledger)
        )
    if cmd.unbalanced:
        return "".join(
            f"UNBALANCED TRANSACTION!\n{tx.location_text()}\n{render_transactions([tx], style)}"
            for tx in unbalanced_transactions(ledger)
        )
    if cmd.assertions:
        return "".join(f"{w}\n" for w in assertion_mismatches(ledger))
    return stats(ledger).render()


def _format(ledger: Ledger, cmd: FormatCommand) -> str:
    wanted = set(cmd.paths)
    selected = [
        tx for tx in ledger.transactions
        if not wanted or (tx.location is not None and tx.location.path in wanted)
    ]
    return render_transactions(selected, cmd.style)


def execute(ledger: Ledger, command: Command) -> Ok[str] | Err[AccountLookupError]:
    """Run a command against a loaded ledger and return its output text."""
    match command:
        case RegisterCommand():
            return _register(ledger, command)
        case StatsCommand():
            return Ok(_stats(ledger, command))
        case FormatCommand():
            return Ok(_format(ledger, command))
        case _never:
            assert_never(_never)


def run(
    ledger: Ledger, line: str, reference: date, style: RenderStyle = RenderStyle.NATIVE,
) -> Ok[str] | Err[ValidationError | AccountLookupError]:
    """Split, parse and execute one command line."""
    match split_command(line).bind(lambda args: parse_command(args, reference, style)):
        case Err() as err:
            return err
        case Ok(command):
            return execute(ledger, command)


def run_configured(
    ledger: Ledger, line: str, config: LedgerConfig,
) -> Ok[str] | Err[ValidationError | AccountLookupError]:
    """run() with the reference date and default render style of a configuration."""
    return run(ledger, line, config.reference_date, config.style)
