from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeavePolicy, LeaveRequest, LeaveTypeStats


class LeavePolicyRepository(Protocol):
    def find_by_type(self, leave_type: str) -> Optional[LeavePolicy]:
        """Active policy for ``leave_type`` or None."""

        raise NotImplementedError

    def list_active(self) -> Sequence[LeavePolicy]:
        raise NotImplementedError


class LeaveRequestRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        leave_type: str,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_conflicting(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Collection[LeaveStatus],
        exclude_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        """Requests whose closed range shares at least one day with [start_date, end_date]."""

        raise NotImplementedError

    def sum_days(
        self,
        *,
        employee_id: int,
        leave_type: Optional[str],
        status: LeaveStatus,
        start_from: date,
        start_to: date,
    ) -> int:
        """Sum of days_requested for requests whose start_date lies in [start_from, start_to]."""

        raise NotImplementedError

    def sum_days_overlapping(
        self,
        *,
        employee_id: int,
        status: LeaveStatus,
        start_date: date,
        end_date: date,
    ) -> int:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[str] = None,
        department: Optional[str] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
        end_to: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def stats_by_type(
        self,
        *,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        start_from: Optional[date] = None,
        end_to: Optional[date] = None,
    ) -> Sequence[LeaveTypeStats]:
        """Per leave type counts for requests with start_date >= start_from and end_date <= end_to."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        decided_by: int,
        notes: Optional[str] = None,
    ) -> bool:
        """PENDING -> ``status``; False if the request was no longer PENDING."""

        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError
