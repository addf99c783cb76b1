"""Time-ordered price series and commodity conversion."""

from __future__ import annotations

import bisect
from collections.abc import Iterator
from datetime import date
from decimal import ROUND_HALF_EVEN, localcontext
from typing import final

from plainledger.core.amount import LEDGER_DECIMAL_CONTEXT, Amount, Commodity
from plainledger.core.result import Err, Ok
from plainledger.ledger.transactions import Price


@final
class PriceIndex:
    """Prices grouped per (commodity, currency) pair, ascending by date.

    A price loaded later for the same date sorts after the earlier one, so it
    wins lookups for that date.
    """

    def __init__(self) -> None:
        self._series: dict[tuple[str, str], list[Price]] = {}
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Price]:
        for series in self._series.values():
            yield from series

    def add(self, price: Price) -> None:
        series = self._series.setdefault((price.commodity.id, price.currency.id), [])
        bisect.insort_right(series, price, key=lambda p: p.posted)
        self._count += 1

    def remove(self, price: Price) -> None:
        """Drop this exact price object."""
        key = (price.commodity.id, price.currency.id)
        series = self._series[key]
        del series[next(i for i, p in enumerate(series) if p is price)]
        if not series:
            del self._series[key]
        self._count -= 1

    def lookup(self, commodity: Commodity, currency: Commodity, on: date) -> Price | None:
        """Most recent price of commodity in currency at or before `on`."""
        series = self._series.get((commodity.id, currency.id))
        if not series:
            return None
        i = bisect.bisect_right(series, on, key=lambda p: p.posted)
        return series[i - 1] if i else None

    def convert(self, amount: Amount, target: Commodity, on: date) -> Ok[Amount] | Err[str]:
        """Express amount in target using the direct or inverse price at `on`.

        The result is rounded half-even to the target's precision.
        """
        if amount.commodity == target:
            return Ok(amount)
        with localcontext(LEDGER_DECIMAL_CONTEXT):
            direct = self.lookup(amount.commodity, target, on)
            if direct is not None:
                value = amount.value * direct.value.value
            else:
                inverse = self.lookup(target, amount.commodity, on)
                if inverse is None or inverse.value.is_zero():
                    return Err(f"no price for {amount.commodity.id} in {target.id} on {on}")
                value = amount.value / inverse.value.value
            magnitude = value.scaleb(target.decimals).to_integral_value(rounding=ROUND_HALF_EVEN)
        return Ok(Amount(magnitude=int(magnitude), commodity=target))
