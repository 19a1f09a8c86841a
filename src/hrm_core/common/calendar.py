"""Working-day arithmetic.

Weekends (Saturday, Sunday) are never working days; holidays are not modelled.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterator

from ..core.exceptions import ValidationError

WEEKEND_DAYS = frozenset({5, 6})


def is_working_day(day: date) -> bool:
    return day.weekday() not in WEEKEND_DAYS


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def iter_working_days(start: date, end: date) -> Iterator[date]:
    return (d for d in iter_days(start, end) if is_working_day(d))


def count_working_days(start: date, end: date) -> int:
    """Mon-Fri dates in the inclusive range; 0 when ``start > end``."""
    return sum(1 for _ in iter_working_days(start, end))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= int(month) <= 12:
        raise ValidationError("invalid_month", month=month)
    last = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Closed-interval overlap; ranges sharing a single day overlap."""
    return a_start <= b_end and a_end >= b_start
