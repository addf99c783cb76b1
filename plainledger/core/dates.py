"""Date grammar and period bucketing.

Absolute dates are written YYYY/MM/DD. Relative dates (+3d, -2m, +1y) are
offsets from a reference date that callers pass explicitly; nothing here
reads the clock, so the same text always resolves to the same date.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from enum import Enum
from typing import assert_never

from dateutil.relativedelta import relativedelta

from plainledger.core.result import Err, Ok

DATE_PATTERN = r"\d{4}/\d{1,2}/\d{1,2}|[-+]\d+[dmy]"

DATE_FORMAT = "%Y/%m/%d"
MONTH_FORMAT = "%Y/%m"
YEAR_FORMAT = "%Y"

_ABSOLUTE_RE = re.compile(r"(?P<y>\d{4})/(?P<m>\d{1,2})/(?P<d>\d{1,2})")
_RELATIVE_RE = re.compile(r"(?P<n>[-+]\d+)(?P<unit>[dmy])")


def parse_date(text: str, reference: date) -> Ok[date] | Err[str]:
    """Parse an absolute or relative date; relative offsets apply to reference."""
    if m := _ABSOLUTE_RE.fullmatch(text):
        try:
            return Ok(date(int(m["y"]), int(m["m"]), int(m["d"])))
        except ValueError as e:
            return Err(f"invalid date '{text}': {e}")
    if m := _RELATIVE_RE.fullmatch(text):
        n = int(m["n"])
        match m["unit"]:
            case "d":
                return Ok(reference + timedelta(days=n))
            case "m":
                return Ok(reference + relativedelta(months=n))
            case _:
                return Ok(reference + relativedelta(years=n))
    return Err(f"invalid date '{text}'")


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------


class Period(Enum):
    """Time bucket granularity for aggregated registers."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    def start(self, d: date) -> date:
        """First day of the bucket containing d. Weeks start on Sunday."""
        match self:
            case Period.WEEK:
                return d - timedelta(days=(d.weekday() + 1) % 7)
            case Period.MONTH:
                return d.replace(day=1)
            case Period.YEAR:
                return d.replace(month=1, day=1)
            case _never:
                assert_never(_never)

    @property
    def label_format(self) -> str:
        match self:
            case Period.WEEK:
                return DATE_FORMAT
            case Period.MONTH:
                return MONTH_FORMAT
            case Period.YEAR:
                return YEAR_FORMAT
            case _never:
                assert_never(_never)

    def label(self, d: date) -> str:
        return d.strftime(self.label_format)
