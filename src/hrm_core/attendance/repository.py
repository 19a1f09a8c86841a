from __future__ import annotations

from datetime import date, time
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in_time: Optional[time],
        check_out_time: Optional[time],
        work_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
        leave_request_id: Optional[int] = None,
    ) -> int:
        """Insert a row; raises ConflictError when (employee_id, work_date) is taken."""

        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[time],
        check_out_time: Optional[time],
        work_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def record_check_out(
        self,
        *,
        attendance_id: int,
        check_out_time: time,
        work_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        """Set the check-out fields only while check_out_time is still NULL."""

        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_records(
        self,
        *,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        """Newest first; every filter is optional."""

        raise NotImplementedError

    def count_by_status(
        self,
        employee_id: Optional[int],
        *,
        start_date: Optional[date],
        end_date: Optional[date],
        department: Optional[str] = None,
    ) -> Mapping[AttendanceStatus, int]:
        raise NotImplementedError

    def total_work_hours(
        self,
        employee_id: Optional[int],
        *,
        start_date: Optional[date],
        end_date: Optional[date],
        department: Optional[str] = None,
    ) -> float:
        raise NotImplementedError

    def count_by_department(self, work_date: date) -> Mapping[tuple[Optional[str], AttendanceStatus], int]:
        """Row counts for one day keyed by (employee department, status)."""

        raise NotImplementedError
