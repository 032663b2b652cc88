# finance_engine/utilities/calendar_util.py
"""
Month/year stepping primitives shared by the occurrence and installment code.

All functions are pure; ``calendar.monthrange`` is the single source of truth
for month lengths so leap years are handled in one place.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Iterator, NamedTuple

from .constants import MONTH_KEY_FORMAT


class Period(NamedTuple):
    """A calendar month. Tuple ordering gives chronological ordering."""

    year: int
    month: int

    @classmethod
    def of(cls, d: date) -> "Period":
        return cls(d.year, d.month)

    def shift(self, months: int) -> "Period":
        index = self.year * 12 + (self.month - 1) + months
        return Period(index // 12, index % 12 + 1)

    def next(self) -> "Period":
        return self.shift(1)

    def days(self) -> int:
        return days_in_month(self.year, self.month)

    def on_day(self, day: int) -> date:
        """The date in this month for ``day``, clamped to the month's last day."""
        return date(self.year, self.month, clamp_day(self.year, self.month, day))

    def months_until(self, other: "Period") -> int:
        return (other.year - self.year) * 12 + (other.month - self.month)

    def key(self) -> str:
        return MONTH_KEY_FORMAT.format(year=self.year, month=self.month)


def validate_period(month: int, year: int) -> Period:
    """Build a Period from caller input, rejecting impossible months."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month!r}")
    if not 1 <= year <= 9999:
        raise ValueError(f"Year out of range: {year!r}")
    return Period(year, month)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Clamp ``day`` to the valid range of the given month."""
    return max(1, min(day, days_in_month(year, month)))


def add_months(d: date, n: int, *, anchor_day: int | None = None) -> date:
    """
    Add ``n`` months to ``d``.

    The day is taken from ``anchor_day`` when given (so a series anchored on the
    31st returns to the 31st after passing through February) and clamped to the
    target month's length.
    """
    target = Period.of(d).shift(n)
    return target.on_day(anchor_day if anchor_day is not None else d.day)


def iter_periods(start: Period, step: int = 1) -> Iterator[Period]:
    """Endless chronological walk from ``start`` (inclusive) by ``step`` months."""
    if step < 1:
        raise ValueError("step must be a positive number of months")
    current = start
    while True:
        yield current
        current = current.shift(step)
