from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from .rules.absent_rule import AbsentRule
from .rules.base import StatusContext, StatusPolicy, StatusRule
from .rules.half_day_rule import HalfDayRule
from .rules.late_rule import LateRule
from .rules.present_rule import PresentRule

CHECK_IN_RULES: tuple[StatusRule, ...] = (AbsentRule(), LateRule(), PresentRule())
CHECK_OUT_RULES: tuple[StatusRule, ...] = (AbsentRule(), HalfDayRule(), LateRule(), PresentRule())


@dataclass
class StatusRuleTable:
    """Ordered rule tables; the first matching rule decides the status.

    Before check-out only lateness can be judged, so the half-day rule is not
    part of the check-in table. After check-out HALF_DAY > LATE > PRESENT.
    """

    policy: StatusPolicy = field(default_factory=StatusPolicy)
    check_in_rules: Sequence[StatusRule] = CHECK_IN_RULES
    check_out_rules: Sequence[StatusRule] = CHECK_OUT_RULES

    @staticmethod
    def _first_match(rules: Sequence[StatusRule], ctx: StatusContext, policy: StatusPolicy) -> AttendanceStatus:
        for rule in rules:
            if rule.matches(ctx, policy):
                return rule.status
        raise LookupError("status rule table has no fallback rule")

    def status_at_check_in(self, check_in_time: Optional[time]) -> AttendanceStatus:
        return self._first_match(self.check_in_rules, StatusContext(check_in_time=check_in_time), self.policy)

    def status_at_check_out(self, check_in_time: Optional[time], work_hours: float) -> AttendanceStatus:
        ctx = StatusContext(check_in_time=check_in_time, work_hours=float(work_hours))
        return self._first_match(self.check_out_rules, ctx, self.policy)

    def determine_status(self, check_in_time: Optional[time], work_hours: Optional[float] = None) -> AttendanceStatus:
        """``work_hours=None`` means the employee has not checked out yet."""
        if work_hours is None:
            return self.status_at_check_in(check_in_time)
        return self.status_at_check_out(check_in_time, work_hours)


def determine_status(
    check_in_time: Optional[time],
    work_hours: Optional[float] = None,
    *,
    standard_work_hours: float = 8,
    late_threshold_minutes: int = 15,
) -> AttendanceStatus:
    table = StatusRuleTable(
        policy=StatusPolicy(standard_work_hours=standard_work_hours, late_threshold_minutes=late_threshold_minutes)
    )
    return table.determine_status(check_in_time, work_hours)
