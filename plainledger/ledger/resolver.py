"""Resolver — links raw parsed items into the Ledger model.

For each transaction, in order:
  1. link account names to Account nodes (ancestors created on demand)
  2. bind quantities to commodities (explicit symbol, else account default)
  3. infer the one elided quantity, if any
  4. check that converted quantities sum to zero; otherwise divert every
     posting to the Unbalanced account and record a warning
  5. book postings in load order, checking balance assertions as they land

Steps 1-4 run over a whole file before step 5 books any of it, so a file
that fails to bind leaves the ledger as it was. Assertions see load-order
running balances, not date order.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import final

from plainledger.core.amount import Amount, Commodity, ParsedAmount
from plainledger.core.errors import ParseError, ResolutionWarning, parse_error
from plainledger.core.result import Err, Ok
from plainledger.core.types import SourceLocation, UtcDatetime
from plainledger.gateway.types import (
    AccountDecl,
    CommodityDecl,
    Item,
    PriceDecl,
    RawPosting,
    RawTransaction,
    TestBlock,
)
from plainledger.infra.logging_setup import get_logger
from plainledger.ledger.accounts import Account
from plainledger.ledger.engine import Ledger
from plainledger.ledger.transactions import Posting, Price, TestItem, Transaction

logger = get_logger(__name__)

_SOURCE = "ledger.resolver.resolve_items"


@final
@dataclass(frozen=True, slots=True)
class ResolveSummary:
    """What one batch of items added to the ledger."""

    transactions: int = 0
    prices: int = 0
    commodities: int = 0
    accounts: int = 0
    tests: int = 0
    warnings: int = 0


def _warning(message: str, kind: str, location: SourceLocation | None) -> ResolutionWarning:
    loc = location or SourceLocation(path="<generated>", line=0)
    return ResolutionWarning(
        message=message, code=kind, timestamp=UtcDatetime.now(), source=_SOURCE,
        path=loc.path, line=loc.line, kind=kind,
    )


def _bind(
    ledger: Ledger,
    parsed: ParsedAmount,
    fallback: Commodity | None,
    location: SourceLocation,
) -> Ok[Amount] | Err[ParseError]:
    """Bind parsed text to a commodity: its own symbol, else the fallback."""
    if parsed.symbol is not None:
        commodity = ledger.commodity(parsed.symbol, parsed.places)
    elif fallback is not None:
        commodity = fallback
    else:
        return Err(parse_error(
            "amount has no commodity and the account has no default commodity",
            "UNKNOWN_COMMODITY", location, _SOURCE,
        ))
    match Amount.from_decimal(parsed.number, commodity):
        case Err(e):
            return Err(parse_error(e, "TOO_PRECISE", location, _SOURCE))
        case Ok(amount):
            return Ok(amount)


def _sum_by_commodity(amounts: Iterable[Amount]) -> dict[str, Amount]:
    """Per-commodity sums, keyed in order of first appearance."""
    sums: dict[str, Amount] = {}
    for a in amounts:
        sums[a.commodity.id] = sums[a.commodity.id] + a if a.commodity.id in sums else a
    return sums


def _majority(amounts: list[Amount]) -> Commodity:
    counts = Counter(a.commodity.id for a in amounts)
    best = max(counts.values())
    return next(a.commodity for a in amounts if counts[a.commodity.id] == best)


def _residual(
    ledger: Ledger, amounts: list[Amount], posted: date,
) -> Ok[Amount] | Err[str]:
    """Signed sum of amounts in the first amount's commodity.

    Err when some commodity has no applicable price (an implicit exchange).
    """
    sums = list(_sum_by_commodity(amounts).values())
    reference = sums[0].commodity
    total = Amount.zero(reference)
    for s in sums:
        match ledger.prices.convert(s, reference, posted):
            case Err(e):
                return Err(e)
            case Ok(converted):
                total = total + converted
    return Ok(total)


def _infer_elided(
    ledger: Ledger, target: Commodity | None, others: list[Amount], posted: date,
) -> Ok[Amount] | Err[str]:
    target = target or _majority(others)
    total = Amount.zero(target)
    for s in _sum_by_commodity(others).values():
        match ledger.prices.convert(s, target, posted):
            case Err(e):
                return Err(f"cannot infer elided quantity: {e}")
            case Ok(converted):
                total = total + converted
    return Ok(-total)


@final
@dataclass(frozen=True, slots=True)
class _Bound:
    """A transaction with every quantity bound, not yet booked."""

    transaction: Transaction
    problem: str | None  # why it does not balance; None when it does


def _bind_transaction(ledger: Ledger, raw: RawTransaction) -> Ok[_Bound] | Err[ParseError]:
    """Link accounts, bind quantities, infer the elided one and check the balance.

    Accounts without a default commodity adopt the commodity of their first
    posting, but only from a transaction that balances.
    """
    tx = Transaction(
        posted=raw.posted, description=raw.description, code=raw.code,
        note=raw.note, tags=raw.tags, location=raw.location,
    )
    adopted: dict[int, Commodity] = {}

    def default(account: Account) -> Commodity | None:
        return account.commodity or adopted.get(account.index)

    elided: tuple[int, RawPosting, Account] | None = None
    for position, rp in enumerate(raw.postings):
        account = ledger.account(rp.account)
        if rp.quantity is None:
            elided = (position, rp, account)
            continue
        match _bind(ledger, rp.quantity, default(account), rp.location):
            case Err() as err:
                return err
            case Ok(quantity):
                pass
        adopted.setdefault(account.index, quantity.commodity)
        tx.add_posting(Posting(
            account=account, quantity=quantity, note=rp.note, tags=rp.tags,
            location=rp.location,
        ))

    problem: str | None = None
    amounts = [p.quantity for p in tx.postings]
    if elided is not None:
        position, rp, account = elided
        match _infer_elided(ledger, default(account), amounts, raw.posted):
            case Err(e):
                problem = e
                inferred = Amount.zero(default(account) or _majority(amounts))
            case Ok(inferred):
                pass
        adopted.setdefault(account.index, inferred.commodity)
        posting = Posting(
            account=account, quantity=inferred, note=rp.note, tags=rp.tags, location=rp.location,
        )
        # keep the posting in its written position
        posting.transaction = tx
        tx.postings.insert(position, posting)
    else:
        match _residual(ledger, amounts, raw.posted):
            case Err(e):
                logger.debug("%s: IMPLICIT_EXCHANGE accepted as balanced (%s)", raw.location, e)
            case Ok(residual) if not residual.is_zero():
                problem = f"transaction does not balance, residual {residual}"
            case Ok(_):
                pass

    # assertions bind after elision so an elided posting's commodity is known
    for rp, posting in zip(raw.postings, tx.postings, strict=True):
        if rp.balance is None:
            continue
        match _bind(ledger, rp.balance, default(posting.account) or posting.commodity, rp.location):
            case Err() as err:
                return err
            case Ok(balance):
                posting.balance = balance

    if problem is None:
        for index, commodity in adopted.items():
            account = ledger.accounts.get(index)
            if account.commodity is None:
                ledger.set_account_defaults(account, commodity)
    return Ok(_Bound(transaction=tx, problem=problem))


def _book(ledger: Ledger, bound: _Bound) -> None:
    """Append a bound transaction, diverting it first if it does not balance."""
    tx, problem = bound.transaction, bound.problem
    if problem is not None:
        for posting in tx.postings:
            posting.account = ledger.unbalanced
        warning = _warning(problem, "UNBALANCED", tx.location)
        ledger.warn(warning)
        logger.warning("%s", warning)

    ledger.transactions.append(tx)
    for posting in tx.postings:
        ledger.append_posting(posting)
        if posting.balance is None or problem is not None:
            continue
        running = posting.account.balance_in(posting.balance.commodity)
        if running != posting.balance:
            warning = _warning(
                f"{posting.account.full_name}: balance {running} does not match "
                f"asserted {posting.balance}",
                "ASSERTION_MISMATCH",
                posting.location,
            )
            ledger.warn(warning)
            logger.warning("%s", warning)


def _resolve_price(ledger: Ledger, decl: PriceDecl) -> Ok[Price] | Err[ParseError]:
    commodity = ledger.commodity(decl.commodity)
    match _bind(ledger, decl.value, None, decl.location):
        case Err() as err:
            return err
        case Ok(value):
            pass
    price = Price(commodity=commodity, value=value, posted=decl.posted, location=decl.location)
    ledger.add_price(price)
    return Ok(price)


def resolve_items(ledger: Ledger, items: Iterable[Item]) -> Ok[ResolveSummary] | Err[ParseError]:
    """Resolve one file's items as a unit.

    Every item is bound first; transactions and tests are added only once
    all of them bind. On the first failure the declarations and prices the
    batch already applied are rolled back, so the batch contributes nothing.
    Declarations are expected before the transactions that use them; that
    ordering is the caller's contract and is not checked here.
    """
    counts: Counter[str] = Counter()
    warnings_before = len(ledger.warnings)
    bound: list[_Bound] = []
    tests: list[TestItem] = []
    ledger.checkpoint()
    for item in items:
        match item:
            case CommodityDecl(symbol=symbol, places=places, note=note):
                ledger.declare_commodity(symbol, places, note)
                counts["commodities"] += 1
            case AccountDecl(name=name, commodity=symbol, note=note):
                ledger.set_account_defaults(
                    ledger.account(name),
                    ledger.commodity(symbol) if symbol is not None else None,
                    note,
                )
                counts["accounts"] += 1
            case PriceDecl():
                match _resolve_price(ledger, item):
                    case Err() as err:
                        ledger.rollback()
                        return err
                    case Ok(_):
                        counts["prices"] += 1
            case RawTransaction():
                match _bind_transaction(ledger, item):
                    case Err() as err:
                        ledger.rollback()
                        return err
                    case Ok(b):
                        bound.append(b)
            case TestBlock(cmd=cmd, result=result, location=location):
                tests.append(TestItem(cmd=cmd, result=result, location=location))
    ledger.commit()
    for b in bound:
        _book(ledger, b)
    ledger.tests.extend(tests)
    return Ok(ResolveSummary(
        transactions=len(bound),
        prices=counts["prices"],
        commodities=counts["commodities"],
        accounts=counts["accounts"],
        tests=len(tests),
        warnings=len(ledger.warnings) - warnings_before,
    ))
