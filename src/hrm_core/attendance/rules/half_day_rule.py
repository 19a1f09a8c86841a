from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import StatusContext, StatusPolicy, StatusRule


class HalfDayRule(StatusRule):
    """Worked less than half the standard day. Only meaningful after check-out."""

    status = AttendanceStatus.HALF_DAY

    def matches(self, ctx: StatusContext, policy: StatusPolicy) -> bool:
        return ctx.work_hours is not None and ctx.work_hours < policy.half_day_below
