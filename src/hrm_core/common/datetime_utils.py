from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol, Union

from ..core.constants import HOURS_PRECISION
from ..core.exceptions import ValidationError

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9]):([0-5][0-9])$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[date, str]
TimeLike = Union[time, str]


def parse_iso_date(value: DateLike, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = (value or "").strip() if isinstance(value, str) else ""
    if not _DATE_RE.match(raw):
        raise ValidationError("invalid_date_format", field=field_name, value=value, expected="YYYY-MM-DD")
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("invalid_date", field=field_name, value=value)


def parse_date_range(
    start_date: Optional[DateLike],
    end_date: Optional[DateLike],
) -> tuple[Optional[date], Optional[date]]:
    """Optional filter bounds; when both are given the end may not precede the start."""
    start = parse_iso_date(start_date, "start_date") if start_date else None
    end = parse_iso_date(end_date, "end_date") if end_date else None
    if start and end and end < start:
        raise ValidationError("end_before_start", start_date=start, end_date=end)
    return start, end


def parse_clock_time(value: TimeLike, field_name: str = "time") -> time:
    """Parse a 24-hour HH:MM:SS string into time."""
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)
    m = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not m:
        raise ValidationError("invalid_time_format", field=field_name, value=value, expected="HH:MM:SS")
    return time(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def hours_between(start: time, end: time) -> float:
    """Hours from ``start`` to ``end``; an earlier ``end`` falls on the next day."""
    anchor = date(1970, 1, 1)
    begin = datetime.combine(anchor, start)
    finish = datetime.combine(anchor, end)
    if finish < begin:
        finish += timedelta(days=1)
    return round((finish - begin).total_seconds() / 3600, HOURS_PRECISION)


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Current local time.

    Note: Injected into services so tests can pin time instead of patching.
    """

    def now(self) -> datetime:
        return datetime.now()


@dataclass
class FixedClock:
    """Clock pinned to a given instant (tests, back-dated scripts)."""

    current: datetime

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current = self.current + timedelta(**delta)


def today(clock: Clock) -> date:
    return clock.now().date()
