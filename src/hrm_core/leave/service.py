from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from ..attendance.service import AttendanceService
from ..audit.sink import AuditTrail
from ..common.calendar import count_working_days
from ..common.datetime_utils import Clock, DateLike, SystemClock, parse_date_range, parse_iso_date, today
from ..common.validators import optional_text, parse_enum, require_non_empty
from ..core.actor import Actor, require_privileged, require_self_or_privileged
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_UPCOMING_DAYS, MAX_HISTORY_LIMIT
from ..core.enums import AuditAction, EntityType, LeaveStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PolicyViolationError,
    ValidationError,
)
from ..core.failures import EmployeeFailure
from ..employees.repository import EmployeeRepository
from .model import LeaveBalance, LeaveRequest, LeaveStatistics, LeaveTypeBalance
from .repository import LeavePolicyRepository, LeaveRequestRepository

logger = logging.getLogger(__name__)

OPEN_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def _clamp_limit(limit: int) -> int:
    return max(1, min(int(limit), MAX_HISTORY_LIMIT))


class LeaveService:
    """Leave request state machine.

    PENDING --approve--> APPROVED, PENDING --reject--> REJECTED,
    PENDING/APPROVED --cancel (before start)--> deleted.
    Approval and cancellation project the leave onto attendance as a
    best-effort side effect.
    """

    def __init__(
        self,
        requests: LeaveRequestRepository,
        policies: LeavePolicyRepository,
        employees: EmployeeRepository,
        attendance: AttendanceService,
        audit: AuditTrail,
        *,
        clock: Clock | None = None,
    ):
        self._requests = requests
        self._policies = policies
        self._employees = employees
        self._attendance = attendance
        self._audit = audit
        self._clock = clock or SystemClock()

    @staticmethod
    def _normalize_type(leave_type: str) -> str:
        return require_non_empty(getattr(leave_type, "value", leave_type), "leave_type").upper()

    def _require_employee(self, employee_id: int) -> None:
        if not self._employees.get_by_id(int(employee_id)):
            raise NotFoundError("employee_not_found", employee_id=employee_id)

    def _require_request(self, request_id: int) -> LeaveRequest:
        req = self._requests.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("leave_request_not_found", request_id=request_id)
        return req

    def submit(
        self,
        actor: Actor,
        employee_id: int,
        leave_type: str,
        start_date: DateLike,
        end_date: DateLike,
        reason: str,
    ) -> LeaveRequest:
        require_self_or_privileged(actor, employee_id, "leave.submit")
        start = parse_iso_date(start_date, "start_date")
        end = parse_iso_date(end_date, "end_date")
        if end < start:
            raise ValidationError("end_before_start", start_date=start, end_date=end)

        current = today(self._clock)
        if start < current:
            raise ValidationError("start_date_in_past", start_date=start, today=current)

        reason = require_non_empty(reason, "reason")
        leave_type = self._normalize_type(leave_type)
        self._require_employee(employee_id)

        days = count_working_days(start, end)
        if days <= 0:
            raise ValidationError("no_working_days", start_date=start, end_date=end)

        policy = self._policies.find_by_type(leave_type)
        if not policy:
            raise NotFoundError("leave_policy_not_found", leave_type=leave_type)

        if policy.max_consecutive_days and days > policy.max_consecutive_days:
            raise PolicyViolationError(
                "max_consecutive_days_exceeded",
                employee_id=employee_id,
                leave_type=leave_type,
                days_requested=days,
                max_consecutive_days=policy.max_consecutive_days,
            )

        year_start, year_end = _year_bounds(start.year)
        used = self._requests.sum_days(
            employee_id=int(employee_id),
            leave_type=leave_type,
            status=LeaveStatus.APPROVED,
            start_from=year_start,
            start_to=year_end,
        )
        if used + days > policy.annual_limit:
            raise PolicyViolationError(
                "annual_limit_exceeded",
                employee_id=employee_id,
                leave_type=leave_type,
                year=start.year,
                used_days=used,
                days_requested=days,
                annual_limit=policy.annual_limit,
            )

        conflicts = self._requests.find_conflicting(
            employee_id=int(employee_id),
            start_date=start,
            end_date=end,
            statuses=OPEN_STATUSES,
        )
        if conflicts:
            raise ConflictError(
                "leave_overlap",
                employee_id=employee_id,
                start_date=start,
                end_date=end,
                conflicting_request_id=conflicts[0].request_id,
            )

        request_id = self._requests.create(
            employee_id=int(employee_id),
            leave_type=leave_type,
            start_date=start,
            end_date=end,
            days_requested=days,
            reason=reason,
        )
        req = LeaveRequest(
            request_id=request_id,
            employee_id=int(employee_id),
            leave_type=leave_type,
            start_date=start,
            end_date=end,
            days_requested=days,
            reason=reason,
            status=LeaveStatus.PENDING,
        )

        self._audit.write(
            actor,
            AuditAction.LEAVE_REQUEST_SUBMITTED,
            EntityType.LEAVE_REQUEST,
            request_id,
            old_values=None,
            new_values=req.audit_values(),
        )
        logger.info(
            "Leave request submitted",
            extra={
                "event": "LEAVE_REQUEST_SUBMITTED",
                "request_id": request_id,
                "employee_id": employee_id,
                "leave_type": leave_type,
                "start_date": start,
                "end_date": end,
                "days_requested": days,
                "performed_by": actor.id,
            },
        )
        return req

    def approve(self, actor: Actor, request_id: int, notes: Optional[str] = None) -> LeaveRequest:
        require_privileged(actor, "leave.approve")
        req = self._require_request(request_id)
        if req.status != LeaveStatus.PENDING:
            raise InvalidStateError("leave_not_pending", request_id=req.request_id, status=req.status)

        # two PENDING requests may both pass submission; only one may be approved
        conflicts = self._requests.find_conflicting(
            employee_id=req.employee_id,
            start_date=req.start_date,
            end_date=req.end_date,
            statuses=(LeaveStatus.APPROVED,),
            exclude_id=req.request_id,
        )
        if conflicts:
            raise ConflictError(
                "leave_overlap",
                request_id=req.request_id,
                employee_id=req.employee_id,
                conflicting_request_id=conflicts[0].request_id,
            )

        approved = self._decide(actor, req, LeaveStatus.APPROVED, notes)

        try:
            self._attendance.materialize_leave_range(
                approved.employee_id,
                approved.start_date,
                approved.end_date,
                approved.leave_type,
                approved.request_id,
                actor=actor,
            )
        except Exception:
            logger.warning(
                "Leave attendance projection failed",
                exc_info=True,
                extra={
                    "event": "LEAVE_ATTENDANCE_FAILED",
                    "request_id": approved.request_id,
                    "employee_id": approved.employee_id,
                },
            )
        return approved

    def reject(self, actor: Actor, request_id: int, notes: Optional[str] = None) -> LeaveRequest:
        require_privileged(actor, "leave.reject")
        req = self._require_request(request_id)
        if req.status != LeaveStatus.PENDING:
            raise InvalidStateError("leave_not_pending", request_id=req.request_id, status=req.status)
        return self._decide(actor, req, LeaveStatus.REJECTED, notes)

    def _decide(self, actor: Actor, req: LeaveRequest, status: LeaveStatus, notes: Optional[str]) -> LeaveRequest:
        notes = optional_text(notes)
        ok = self._requests.decide(request_id=req.request_id, status=status, decided_by=actor.id, notes=notes)
        if not ok:
            # decided concurrently between our read and the conditional update
            raise InvalidStateError("leave_not_pending", request_id=req.request_id)

        decided = replace(req, status=status, approved_by=actor.id, approval_notes=notes)
        action = (
            AuditAction.LEAVE_REQUEST_APPROVED if status == LeaveStatus.APPROVED else AuditAction.LEAVE_REQUEST_REJECTED
        )
        self._audit.write(
            actor,
            action,
            EntityType.LEAVE_REQUEST,
            req.request_id,
            old_values={"status": req.status.value},
            new_values={"status": status.value, "approved_by": actor.id, "approval_notes": notes},
        )
        logger.info(
            "Leave request decided",
            extra={
                "event": action.value,
                "request_id": req.request_id,
                "employee_id": req.employee_id,
                "status": status,
                "performed_by": actor.id,
            },
        )
        return decided

    def cancel(self, actor: Actor, request_id: int) -> LeaveRequest:
        """Delete a PENDING or APPROVED request that has not started yet."""
        req = self._require_request(request_id)
        if not (actor.is_privileged or actor.owns(req.employee_id)):
            raise AuthorizationError(
                "request_owner_required",
                action="leave.cancel",
                actor_id=actor.id,
                request_id=req.request_id,
            )
        if req.status not in OPEN_STATUSES:
            raise InvalidStateError("leave_not_cancellable", request_id=req.request_id, status=req.status)

        current = today(self._clock)
        if req.start_date <= current:
            raise InvalidStateError(
                "leave_already_started",
                request_id=req.request_id,
                start_date=req.start_date,
                today=current,
            )

        if not self._requests.delete(req.request_id):
            raise NotFoundError("leave_request_not_found", request_id=req.request_id)

        self._audit.write(
            actor,
            AuditAction.LEAVE_REQUEST_CANCELLED,
            EntityType.LEAVE_REQUEST,
            req.request_id,
            old_values=req.audit_values(),
            new_values=None,
        )
        logger.info(
            "Leave request cancelled",
            extra={
                "event": "LEAVE_REQUEST_CANCELLED",
                "request_id": req.request_id,
                "employee_id": req.employee_id,
                "previous_status": req.status,
                "performed_by": actor.id,
            },
        )

        if req.status == LeaveStatus.APPROVED:
            try:
                self._attendance.dematerialize_leave_range(
                    req.employee_id,
                    req.start_date,
                    req.end_date,
                    req.request_id,
                    actor=actor,
                )
            except Exception:
                logger.warning(
                    "Leave attendance cleanup failed",
                    exc_info=True,
                    extra={
                        "event": "LEAVE_ATTENDANCE_FAILED",
                        "request_id": req.request_id,
                        "employee_id": req.employee_id,
                    },
                )
        return req

    # Balances

    def _balance(self, employee_id: int, year: int) -> LeaveBalance:
        year_start, year_end = _year_bounds(year)
        items = []
        for policy in self._policies.list_active():
            used, pending = (
                self._requests.sum_days(
                    employee_id=int(employee_id),
                    leave_type=policy.leave_type,
                    status=status,
                    start_from=year_start,
                    start_to=year_end,
                )
                for status in (LeaveStatus.APPROVED, LeaveStatus.PENDING)
            )
            items.append(
                LeaveTypeBalance(
                    leave_type=policy.leave_type,
                    annual_limit=policy.annual_limit,
                    used_days=used,
                    pending_days=pending,
                )
            )
        return LeaveBalance(employee_id=int(employee_id), year=year, types=items)

    def balance(self, actor: Actor, employee_id: int, year: Optional[int] = None) -> LeaveBalance:
        require_self_or_privileged(actor, employee_id, "leave.balance")
        self._require_employee(employee_id)
        return self._balance(employee_id, year or today(self._clock).year)

    def balances(
        self,
        actor: Actor,
        employee_ids: Optional[Iterable[int]] = None,
        year: Optional[int] = None,
    ) -> tuple[list[LeaveBalance], list[EmployeeFailure]]:
        require_privileged(actor, "leave.balances")
        year = year or today(self._clock).year
        if employee_ids is None:
            employee_ids = [e.employee_id for e in self._employees.list_active()]

        results: list[LeaveBalance] = []
        failures: list[EmployeeFailure] = []
        for employee_id in employee_ids:
            try:
                self._require_employee(employee_id)
                results.append(self._balance(employee_id, year))
            except Exception as exc:
                logger.warning(
                    "Leave balance failed",
                    exc_info=not isinstance(exc, NotFoundError),
                    extra={"event": "LEAVE_BALANCE_FAILED", "employee_id": employee_id},
                )
                failures.append(EmployeeFailure.from_exception(int(employee_id), exc))
        return results, failures

    # Reads

    def get_request(self, actor: Actor, request_id: int) -> LeaveRequest:
        req = self._require_request(request_id)
        require_self_or_privileged(actor, req.employee_id, "leave.view")
        return req

    def list_for_employee(
        self,
        actor: Actor,
        employee_id: int,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[str] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        require_self_or_privileged(actor, employee_id, "leave.view")
        return self._requests.list_requests(
            employee_id=int(employee_id),
            status=parse_enum(LeaveStatus, status, "status") if status else None,
            leave_type=self._normalize_type(leave_type) if leave_type else None,
            limit=_clamp_limit(limit),
            offset=max(0, int(offset)),
        )

    def list_pending(
        self,
        actor: Actor,
        *,
        leave_type: Optional[str] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        require_privileged(actor, "leave.list_pending")
        return self._requests.list_requests(
            status=LeaveStatus.PENDING,
            leave_type=self._normalize_type(leave_type) if leave_type else None,
            limit=_clamp_limit(limit),
            offset=max(0, int(offset)),
        )

    def list_upcoming(self, actor: Actor, days_ahead: int = DEFAULT_UPCOMING_DAYS) -> Sequence[LeaveRequest]:
        require_privileged(actor, "leave.list_upcoming")
        if int(days_ahead) < 0:
            raise ValidationError("invalid_days_ahead", days_ahead=days_ahead)
        current = today(self._clock)
        return self._requests.list_requests(
            status=LeaveStatus.APPROVED,
            start_from=current,
            start_to=current + timedelta(days=int(days_ahead)),
            limit=MAX_HISTORY_LIMIT,
        )

    def list_requests(
        self,
        actor: Actor,
        *,
        employee_id: Optional[int] = None,
        status: Optional[LeaveStatus | str] = None,
        leave_type: Optional[str] = None,
        department: Optional[str] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        """All employees' requests starting on/after ``start_date`` and ending on/before ``end_date``."""
        require_privileged(actor, "leave.list")
        start, end = parse_date_range(start_date, end_date)
        return self._requests.list_requests(
            employee_id=int(employee_id) if employee_id is not None else None,
            status=parse_enum(LeaveStatus, status, "status") if status else None,
            leave_type=self._normalize_type(leave_type) if leave_type else None,
            department=optional_text(department, "department"),
            start_from=start,
            end_to=end,
            limit=_clamp_limit(limit),
            offset=max(0, int(offset)),
        )

    def statistics(
        self,
        actor: Actor,
        *,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> LeaveStatistics:
        require_privileged(actor, "leave.statistics")
        start, end = parse_date_range(start_date, end_date)
        return LeaveStatistics(
            types=list(
                self._requests.stats_by_type(
                    employee_id=int(employee_id) if employee_id is not None else None,
                    department=optional_text(department, "department"),
                    start_from=start,
                    end_to=end,
                )
            )
        )

    def approved_days_in_period(self, employee_id: int, start_date: date, end_date: date) -> int:
        """Sum of APPROVED days_requested for requests overlapping [start_date, end_date]."""
        return self._requests.sum_days_overlapping(
            employee_id=int(employee_id),
            status=LeaveStatus.APPROVED,
            start_date=start_date,
            end_date=end_date,
        )
