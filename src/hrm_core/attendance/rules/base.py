from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ...core.constants import DEFAULT_LATE_THRESHOLD_MINUTES, DEFAULT_STANDARD_WORK_HOURS, DEFAULT_WORKDAY_START
from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusPolicy:
    standard_work_hours: float = DEFAULT_STANDARD_WORK_HOURS
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    workday_start: time = DEFAULT_WORKDAY_START

    @property
    def late_after(self) -> time:
        start = datetime.combine(date(1970, 1, 1), self.workday_start)
        return (start + timedelta(minutes=self.late_threshold_minutes)).time()

    @property
    def half_day_below(self) -> float:
        return self.standard_work_hours / 2


@dataclass(frozen=True)
class StatusContext:
    """Input to the rules. ``work_hours`` is None until the employee checks out."""

    check_in_time: Optional[time]
    work_hours: Optional[float] = None


class StatusRule(ABC):
    """Strategy Pattern: one row of the ordered status rule table."""

    status: AttendanceStatus

    @abstractmethod
    def matches(self, ctx: StatusContext, policy: StatusPolicy) -> bool:
        raise NotImplementedError
