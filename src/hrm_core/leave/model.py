from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus


@dataclass(frozen=True)
class LeavePolicy:
    """Read model owned by policy administration."""

    policy_id: int
    leave_type: str
    annual_limit: int
    max_consecutive_days: Optional[int] = None
    carry_forward_allowed: bool = False
    carry_forward_limit: int = 0
    min_notice_days: int = 1
    requires_approval: bool = True
    is_active: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    employee_id: int
    leave_type: str
    start_date: date
    end_date: date
    days_requested: int
    reason: str
    status: LeaveStatus
    approved_by: Optional[int] = None
    approval_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        """PENDING and APPROVED requests occupy their date range."""
        return self.status in (LeaveStatus.PENDING, LeaveStatus.APPROVED)

    def audit_values(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "leave_type": self.leave_type,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days_requested": self.days_requested,
            "reason": self.reason,
            "status": self.status.value,
            "approved_by": self.approved_by,
            "approval_notes": self.approval_notes,
        }

    def to_dict(self) -> dict:
        return {"request_id": self.request_id, **self.audit_values()}


@dataclass(frozen=True)
class LeaveTypeBalance:
    leave_type: str
    annual_limit: int
    used_days: int
    pending_days: int

    @property
    def available_days(self) -> int:
        # may go negative if a policy limit was lowered after approvals
        return self.annual_limit - self.used_days - self.pending_days

    def to_dict(self) -> dict:
        return {
            "leave_type": self.leave_type,
            "annual_limit": self.annual_limit,
            "used_days": self.used_days,
            "pending_days": self.pending_days,
            "available_days": self.available_days,
        }


@dataclass(frozen=True)
class LeaveBalance:
    employee_id: int
    year: int
    types: list[LeaveTypeBalance] = field(default_factory=list)

    def for_type(self, leave_type: str) -> Optional[LeaveTypeBalance]:
        for item in self.types:
            if item.leave_type == leave_type:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "year": self.year,
            "balances": [t.to_dict() for t in self.types],
        }


@dataclass(frozen=True)
class LeaveTypeStats:
    leave_type: str
    total_requests: int
    pending_requests: int
    approved_requests: int
    rejected_requests: int
    approved_days: int

    @property
    def average_approved_days(self) -> Optional[float]:
        if not self.approved_requests:
            return None
        return round(self.approved_days / self.approved_requests, 2)

    def to_dict(self) -> dict:
        return {
            "leave_type": self.leave_type,
            "total_requests": self.total_requests,
            "pending_requests": self.pending_requests,
            "approved_requests": self.approved_requests,
            "rejected_requests": self.rejected_requests,
            "approved_days": self.approved_days,
            "average_approved_days": self.average_approved_days,
        }


@dataclass(frozen=True)
class LeaveStatistics:
    """Request counts per leave type, busiest type first."""

    types: list[LeaveTypeStats] = field(default_factory=list)

    @property
    def total_requests(self) -> int:
        return sum(t.total_requests for t in self.types)

    @property
    def approved_days(self) -> int:
        return sum(t.approved_days for t in self.types)

    def to_dict(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "approved_days": self.approved_days,
            "by_type": [t.to_dict() for t in self.types],
        }
