"""Calendar arithmetic shared by the instrument services."""

from __future__ import annotations

import calendar
from datetime import date, timedelta


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def last_business_day(year: int, month: int) -> date:
    """Last weekday of the month (holidays not considered)."""
    d = month_end(year, month)
    while d.weekday() >= 5:
        d -= timedelta(days=1)
    return d


def days_30_360(start: date, end: date) -> int:
    """US 30/360 day count between two dates."""
    d1 = min(start.day, 30)
    d2 = end.day
    if d1 == 30 and d2 == 31:
        d2 = 30
    return 360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)
