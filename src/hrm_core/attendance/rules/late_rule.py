from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import StatusContext, StatusPolicy, StatusRule


class LateRule(StatusRule):
    """Check-in after workday start plus the grace threshold."""

    status = AttendanceStatus.LATE

    def matches(self, ctx: StatusContext, policy: StatusPolicy) -> bool:
        return ctx.check_in_time is not None and ctx.check_in_time > policy.late_after
