"""Synthetic transaction generator for demos and load tests.

Rules are written in a small text format, one rule per block:

    <-2,8> FOOD MART|WENDY'S|BURGERKING
      Groceries|Dining <30,200> CAD
      Checking|Card1|Card2

    <0,0> CARD INTEREST
      Expenses:Interest <from/50>
      Liabilities:Card

Line 1: monthly date rule <a,b> (the 1st of each month shifted by a random
number of days in [a,b]) and '|'-separated payees.
Line 2: '|'-separated destination account patterns, then the amount:
<min,max> whole units drawn from [min,max), or <from/N> / <to/N> for the
negated balance of the chosen source / destination account divided by N.
An optional commodity follows; it defaults to the source account's.
Line 3: '|'-separated source account patterns.

All randomness comes from the random.Random passed to generate(), so a seeded
generator reproduces the same ledger.
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal, assert_never, final

from dateutil.relativedelta import relativedelta

from plainledger.core.amount import SYMBOL_PATTERN, Amount, Commodity
from plainledger.core.errors import InvariantViolation, ParseError, parse_error
from plainledger.core.result import Err, Ok
from plainledger.core.types import SourceLocation
from plainledger.infra.logging_setup import get_logger
from plainledger.ledger.accounts import Account
from plainledger.ledger.engine import Ledger
from plainledger.ledger.transactions import Transaction

logger = get_logger(__name__)

_SOURCE = "tooling.generator.parse_rules"

_DATES_RE = re.compile(r"<(?P<a>[-+]?\d+),(?P<b>[-+]?\d+)>\s+(?P<payees>.+?)\s*")
_TO_RE = re.compile(
    r"\s+(?P<accounts>\S+)\s+"
    r"(?:<(?P<min>-?\d+),(?P<max>-?\d+)>|<(?P<side>from|to)/(?P<divisor>\d+)>)"
    rf"(?:\s+(?P<symbol>{SYMBOL_PATTERN}))?\s*"
)
_FROM_RE = re.compile(r"\s+(?P<accounts>\S+)\s*")


@final
@dataclass(frozen=True, slots=True)
class MonthlyDates:
    """1st of every month, shifted by a random day offset in [low, high]."""

    low: int
    high: int

    def dates(self, begin: date, end: date, rng: random.Random) -> list[date]:
        out: list[date] = []
        month = begin.replace(day=1) - relativedelta(months=1)
        while month < end + relativedelta(months=1):
            posted = month + timedelta(days=rng.randint(self.low, self.high))
            if begin <= posted < end:
                out.append(posted)
            month += relativedelta(months=1)
        return out


@final
@dataclass(frozen=True, slots=True)
class AmountRange:
    """Whole units drawn uniformly from [low, high); a single value when equal."""

    low: int
    high: int


@final
@dataclass(frozen=True, slots=True)
class BalanceShare:
    """Negated balance of one side's account divided by divisor."""

    side: Literal["from", "to"]
    divisor: int


@final
@dataclass(frozen=True, slots=True)
class Rule:
    dates: MonthlyDates
    payees: tuple[str, ...]
    to: tuple[Account, ...]
    from_: tuple[Account, ...]
    amount: AmountRange | BalanceShare
    commodity: Commodity | None = None


# ---------------------------------------------------------------------------
# Rule text
# ---------------------------------------------------------------------------


def _accounts(
    ledger: Ledger, patterns: str, location: SourceLocation,
) -> Ok[tuple[Account, ...]] | Err[ParseError]:
    found: list[Account] = []
    for pattern in patterns.split("|"):
        match ledger.find_account(pattern):
            case Err(e):
                return Err(parse_error(e.message, e.code, location, _SOURCE))
            case Ok(account):
                found.append(account)
    return Ok(tuple(found))


def _parse_rule(
    ledger: Ledger, lines: Sequence[tuple[int, str]], path: str,
) -> Ok[Rule] | Err[ParseError]:
    def loc(i: int) -> SourceLocation:
        return SourceLocation(path=path, line=lines[i][0] + 1)

    if len(lines) != 3:
        return Err(parse_error(
            f"rule needs 3 lines, got {len(lines)}", "INVALID_RULE", loc(0), _SOURCE,
        ))
    head, to_line, from_line = (text for _, text in lines)
    dm = _DATES_RE.fullmatch(head)
    if dm is None:
        return Err(parse_error("invalid date rule", "INVALID_RULE", loc(0), _SOURCE))
    tm = _TO_RE.fullmatch(to_line)
    if tm is None:
        return Err(parse_error("invalid destination line", "INVALID_RULE", loc(1), _SOURCE))
    fm = _FROM_RE.fullmatch(from_line)
    if fm is None:
        return Err(parse_error("invalid source line", "INVALID_RULE", loc(2), _SOURCE))

    low, high = sorted((int(dm["a"]), int(dm["b"])))
    amount: AmountRange | BalanceShare
    if tm["side"] is not None:
        divisor = int(tm["divisor"])
        if divisor == 0:
            return Err(parse_error("balance divisor must be non-zero", "INVALID_RULE", loc(1), _SOURCE))
        amount = BalanceShare(side="from" if tm["side"] == "from" else "to", divisor=divisor)
    else:
        a, b = sorted((int(tm["min"]), int(tm["max"])))
        amount = AmountRange(low=a, high=b)

    match _accounts(ledger, tm["accounts"], loc(1)):
        case Err() as err:
            return err
        case Ok(to):
            pass
    match _accounts(ledger, fm["accounts"], loc(2)):
        case Err() as err:
            return err
        case Ok(from_):
            pass
    symbol = tm["symbol"]
    if symbol is None:
        priced = from_ if isinstance(amount, AmountRange) or amount.side == "from" else to
        bare = [a.full_name for a in priced if a.commodity is None]
        if bare:
            return Err(parse_error(
                f"no commodity for {', '.join(bare)}; name one in the rule",
                "UNKNOWN_COMMODITY", loc(1), _SOURCE,
            ))
    return Ok(Rule(
        dates=MonthlyDates(low=low, high=high),
        payees=tuple(p.strip() for p in dm["payees"].split("|")),
        to=to,
        from_=from_,
        amount=amount,
        commodity=ledger.commodity(symbol.strip('"')) if symbol else None,
    ))


def parse_rules(ledger: Ledger, text: str, path: str = "<rules>") -> Ok[list[Rule]] | Err[ParseError]:
    """Parse blank-line separated rule blocks; ';' lines are comments."""
    rules: list[Rule] = []
    block: list[tuple[int, str]] = []
    for index, line in enumerate([*text.splitlines(), ""]):
        if line.lstrip().startswith(";"):
            continue
        if line.strip():
            block.append((index, line))
            continue
        if block:
            match _parse_rule(ledger, block, path):
                case Err() as err:
                    return err
                case Ok(rule):
                    rules.append(rule)
            block = []
    return Ok(rules)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _commodity(rule: Rule, account: Account) -> Commodity:
    commodity = rule.commodity or account.commodity
    if commodity is None:
        raise InvariantViolation(f"{account.full_name} has no commodity and the rule names none")
    return commodity


def _amount(rule: Rule, from_: Account, to: Account, rng: random.Random) -> Amount:
    match rule.amount:
        case AmountRange(low=low, high=high):
            commodity = _commodity(rule, from_)
            units = low if low == high else rng.randrange(low, high)
            return Amount(magnitude=units * 10 ** commodity.decimals, commodity=commodity)
        case BalanceShare(side=side, divisor=divisor):
            account = from_ if side == "from" else to
            return (-account.balance_in(_commodity(rule, account))).div(divisor)
        case _never:
            assert_never(_never)


def generate(
    ledger: Ledger,
    rules: Sequence[Rule],
    begin: date,
    end: date,
    rng: random.Random,
) -> list[Transaction]:
    """Post balanced two-posting transactions for every rule date in [begin, end).

    Transactions are booked in date order so balance-based amounts see the
    balances produced by everything generated before them.
    """
    samples: list[tuple[Rule, Transaction]] = []
    for rule in rules:
        for posted in rule.dates.dates(begin, end, rng):
            samples.append((rule, Transaction(posted=posted, description=rng.choice(rule.payees))))
    samples.sort(key=lambda s: s[1].posted)

    for rule, tx in samples:
        from_ = rng.choice(rule.from_)
        to = rng.choice(rule.to)
        tx.post(to, from_, _amount(rule, from_, to, rng))
        ledger.add_transaction(tx)
    logger.info("generated %d transactions from %d rules", len(samples), len(rules))
    return [tx for _, tx in samples]
