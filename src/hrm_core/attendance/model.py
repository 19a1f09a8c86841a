from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus


def _fmt_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M:%S") if value else None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row per employee per day."""

    attendance_id: int
    employee_id: int
    work_date: date
    check_in_time: Optional[time]
    check_out_time: Optional[time]
    work_hours: float
    status: AttendanceStatus
    notes: Optional[str] = None
    leave_request_id: Optional[int] = None

    @property
    def is_leave_projection(self) -> bool:
        """Machine-generated leave day that the employee never attended."""
        return (
            self.status == AttendanceStatus.ON_LEAVE
            and self.leave_request_id is not None
            and self.check_in_time is None
            and self.check_out_time is None
        )

    def audit_values(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "date": self.work_date.isoformat(),
            "check_in_time": _fmt_time(self.check_in_time),
            "check_out_time": _fmt_time(self.check_out_time),
            "work_hours": self.work_hours,
            "status": self.status.value,
            "notes": self.notes,
            "leave_request_id": self.leave_request_id,
        }

    def to_dict(self) -> dict:
        return {"attendance_id": self.attendance_id, **self.audit_values()}


@dataclass(frozen=True)
class AttendanceSummary:
    """Presence figures for one employee over a date range (payroll input)."""

    employee_id: int
    start_date: date
    end_date: date
    working_days: int
    full_days: int
    half_days: int
    absent_days: int
    leave_days: int
    total_work_hours: float = 0.0
    status_counts: dict = field(default_factory=dict)

    @property
    def present_days(self) -> Decimal:
        # HALF_DAY counts as half a present day
        return Decimal(self.full_days) + Decimal(self.half_days) * Decimal("0.5")


@dataclass(frozen=True)
class AttendanceStats:
    """Aggregate figures across the records matching a filter."""

    total_records: int
    status_counts: dict
    total_work_hours: float

    @property
    def average_work_hours(self) -> float:
        if not self.total_records:
            return 0.0
        return round(self.total_work_hours / self.total_records, 2)

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "status_counts": dict(self.status_counts),
            "total_work_hours": self.total_work_hours,
            "average_work_hours": self.average_work_hours,
        }


@dataclass(frozen=True)
class DailyAttendanceSummary:
    work_date: date
    status_counts: dict
    departments: dict

    @property
    def total_records(self) -> int:
        return sum(self.status_counts.values())

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "total_records": self.total_records,
            "status_counts": dict(self.status_counts),
            "departments": {dept: dict(counts) for dept, counts in self.departments.items()},
        }
