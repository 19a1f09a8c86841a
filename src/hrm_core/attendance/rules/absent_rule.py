from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import StatusContext, StatusPolicy, StatusRule


class AbsentRule(StatusRule):
    """No check-in at all."""

    status = AttendanceStatus.ABSENT

    def matches(self, ctx: StatusContext, policy: StatusPolicy) -> bool:
        return ctx.check_in_time is None
