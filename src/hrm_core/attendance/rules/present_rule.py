from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import StatusContext, StatusPolicy, StatusRule


class PresentRule(StatusRule):
    """Fallback: checked in on time."""

    status = AttendanceStatus.PRESENT

    def matches(self, ctx: StatusContext, policy: StatusPolicy) -> bool:
        return ctx.check_in_time is not None
