from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..audit.sink import AuditTrail
from ..common.calendar import count_working_days, iter_working_days
from ..common.datetime_utils import (
    Clock,
    DateLike,
    SystemClock,
    TimeLike,
    hours_between,
    parse_clock_time,
    parse_date_range,
    parse_iso_date,
    today,
)
from ..common.validators import optional_text, parse_enum
from ..core.actor import Actor, require_admin, require_privileged, require_self_or_privileged
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT, UNASSIGNED_DEPARTMENT
from ..core.enums import AttendanceStatus, AuditAction, EntityType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .factory import StatusRuleTable
from .model import AttendanceRecord, AttendanceStats, AttendanceSummary, DailyAttendanceSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_UNSET = object()


class AttendanceService:
    """Owns the one-record-per-employee-per-day invariant and status derivation."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        audit: AuditTrail,
        *,
        rules: StatusRuleTable | None = None,
        clock: Clock | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._audit = audit
        self._rules = rules or StatusRuleTable()
        self._clock = clock or SystemClock()

    @property
    def rules(self) -> StatusRuleTable:
        return self._rules

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("employee_not_found", employee_id=employee_id)
        return employee

    def _require_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("attendance_not_found", attendance_id=attendance_id)
        return record

    def check_in(
        self,
        actor: Actor,
        employee_id: int,
        work_date: DateLike,
        check_in_time: TimeLike,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        require_self_or_privileged(actor, employee_id, "attendance.check_in")
        day = parse_iso_date(work_date, "date")
        clock_in = parse_clock_time(check_in_time, "check_in_time")
        self._require_employee(employee_id)

        if self._attendance.get_for_employee_and_date(int(employee_id), day):
            raise ConflictError("attendance_exists", employee_id=employee_id, work_date=day)

        status = self._rules.status_at_check_in(clock_in)
        note = optional_text(notes)
        attendance_id = self._attendance.create(
            employee_id=int(employee_id),
            work_date=day,
            check_in_time=clock_in,
            check_out_time=None,
            work_hours=0.0,
            status=status,
            notes=note,
        )
        record = AttendanceRecord(
            attendance_id=attendance_id,
            employee_id=int(employee_id),
            work_date=day,
            check_in_time=clock_in,
            check_out_time=None,
            work_hours=0.0,
            status=status,
            notes=note,
        )

        self._audit.write(
            actor,
            AuditAction.ATTENDANCE_CHECK_IN,
            EntityType.ATTENDANCE,
            attendance_id,
            old_values=None,
            new_values=record.audit_values(),
        )
        logger.info(
            "Employee checked in",
            extra={
                "event": "ATTENDANCE_CHECK_IN",
                "attendance_id": attendance_id,
                "employee_id": employee_id,
                "work_date": day,
                "status": status,
                "performed_by": actor.id,
            },
        )
        return record

    def check_out(
        self,
        actor: Actor,
        employee_id: int,
        work_date: DateLike,
        check_out_time: TimeLike,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        require_self_or_privileged(actor, employee_id, "attendance.check_out")
        day = parse_iso_date(work_date, "date")
        clock_out = parse_clock_time(check_out_time, "check_out_time")

        record = self._attendance.get_for_employee_and_date(int(employee_id), day)
        if not record or record.check_in_time is None:
            raise NotFoundError("check_in_not_found", employee_id=employee_id, work_date=day)
        if record.check_out_time is not None:
            raise ConflictError("already_checked_out", employee_id=employee_id, work_date=day)

        work_hours = hours_between(record.check_in_time, clock_out)
        status = self._rules.status_at_check_out(record.check_in_time, work_hours)
        note = optional_text(notes) or record.notes

        recorded = self._attendance.record_check_out(
            attendance_id=record.attendance_id,
            check_out_time=clock_out,
            work_hours=work_hours,
            status=status,
            notes=note,
        )
        if not recorded:
            # another check-out landed between our read and the conditional update
            raise ConflictError("already_checked_out", employee_id=employee_id, work_date=day)

        updated = AttendanceRecord(
            attendance_id=record.attendance_id,
            employee_id=record.employee_id,
            work_date=record.work_date,
            check_in_time=record.check_in_time,
            check_out_time=clock_out,
            work_hours=work_hours,
            status=status,
            notes=note,
            leave_request_id=record.leave_request_id,
        )

        self._audit.write(
            actor,
            AuditAction.ATTENDANCE_CHECK_OUT,
            EntityType.ATTENDANCE,
            record.attendance_id,
            old_values={
                "check_out_time": None,
                "work_hours": record.work_hours,
                "status": record.status.value,
            },
            new_values={
                "check_out_time": clock_out.strftime("%H:%M:%S"),
                "work_hours": work_hours,
                "status": status.value,
            },
        )
        logger.info(
            "Employee checked out",
            extra={
                "event": "ATTENDANCE_CHECK_OUT",
                "attendance_id": record.attendance_id,
                "employee_id": employee_id,
                "work_date": day,
                "work_hours": work_hours,
                "status": status,
                "performed_by": actor.id,
            },
        )
        return updated

    def update_record(
        self,
        actor: Actor,
        attendance_id: int,
        *,
        check_in_time: Optional[TimeLike] = None,
        check_out_time: Optional[TimeLike] = None,
        status: Optional[AttendanceStatus | str] = None,
        notes=_UNSET,
    ) -> AttendanceRecord:
        """Administrative override.

        Work hours (and status, unless given explicitly) are recomputed whenever
        both times are present after the edit; otherwise fields apply verbatim.
        """
        require_privileged(actor, "attendance.update")
        existing = self._require_record(attendance_id)

        changed: list[str] = []
        new_in = existing.check_in_time
        new_out = existing.check_out_time
        new_notes = existing.notes
        new_status = existing.status

        if check_in_time is not None:
            new_in = parse_clock_time(check_in_time, "check_in_time")
            changed.append("check_in_time")
        if check_out_time is not None:
            new_out = parse_clock_time(check_out_time, "check_out_time")
            changed.append("check_out_time")
        if status is not None:
            new_status = parse_enum(AttendanceStatus, status, "status")
            changed.append("status")
        if notes is not _UNSET:
            new_notes = optional_text(notes)
            changed.append("notes")

        if not changed:
            raise ValidationError("no_fields_to_update", attendance_id=attendance_id)

        new_hours = existing.work_hours
        if new_in is not None and new_out is not None:
            new_hours = hours_between(new_in, new_out)
            if status is None:
                new_status = self._rules.status_at_check_out(new_in, new_hours)
            changed.append("work_hours")

        self._attendance.update(
            attendance_id=existing.attendance_id,
            check_in_time=new_in,
            check_out_time=new_out,
            work_hours=new_hours,
            status=new_status,
            notes=new_notes,
        )
        updated = AttendanceRecord(
            attendance_id=existing.attendance_id,
            employee_id=existing.employee_id,
            work_date=existing.work_date,
            check_in_time=new_in,
            check_out_time=new_out,
            work_hours=new_hours,
            status=new_status,
            notes=new_notes,
            leave_request_id=existing.leave_request_id,
        )

        self._audit.write(
            actor,
            AuditAction.ATTENDANCE_UPDATED,
            EntityType.ATTENDANCE,
            existing.attendance_id,
            old_values=existing.audit_values(),
            new_values=updated.audit_values(),
        )
        logger.info(
            "Attendance record updated",
            extra={
                "event": "ATTENDANCE_UPDATED",
                "attendance_id": existing.attendance_id,
                "employee_id": existing.employee_id,
                "updated_fields": changed,
                "performed_by": actor.id,
            },
        )
        return updated

    def delete_record(self, actor: Actor, attendance_id: int) -> AttendanceRecord:
        require_admin(actor, "attendance.delete")
        existing = self._require_record(attendance_id)

        if not self._attendance.delete(existing.attendance_id):
            raise NotFoundError("attendance_not_found", attendance_id=attendance_id)

        self._audit.write(
            actor,
            AuditAction.ATTENDANCE_DELETED,
            EntityType.ATTENDANCE,
            existing.attendance_id,
            old_values=existing.audit_values(),
            new_values=None,
        )
        logger.info(
            "Attendance record deleted",
            extra={
                "event": "ATTENDANCE_DELETED",
                "attendance_id": existing.attendance_id,
                "employee_id": existing.employee_id,
                "performed_by": actor.id,
            },
        )
        return existing

    # Leave projections (called by the leave workflow, never by end users)

    def materialize_leave_day(
        self,
        employee_id: int,
        work_date: DateLike,
        leave_type: str,
        leave_request_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> Optional[AttendanceRecord]:
        """Create an ON_LEAVE row unless the day already has one. Returns the new row or None."""
        day = parse_iso_date(work_date, "date")
        if self._attendance.get_for_employee_and_date(int(employee_id), day):
            return None

        note = f"{leave_type} leave (request {leave_request_id})"
        try:
            attendance_id = self._attendance.create(
                employee_id=int(employee_id),
                work_date=day,
                check_in_time=None,
                check_out_time=None,
                work_hours=0.0,
                status=AttendanceStatus.ON_LEAVE,
                notes=note,
                leave_request_id=int(leave_request_id),
            )
        except ConflictError:
            # Lost the race against a concurrent check-in; the day is taken either way.
            return None

        record = AttendanceRecord(
            attendance_id=attendance_id,
            employee_id=int(employee_id),
            work_date=day,
            check_in_time=None,
            check_out_time=None,
            work_hours=0.0,
            status=AttendanceStatus.ON_LEAVE,
            notes=note,
            leave_request_id=int(leave_request_id),
        )
        self._audit.write(
            actor,
            AuditAction.ATTENDANCE_LEAVE_MARKED,
            EntityType.ATTENDANCE,
            attendance_id,
            old_values=None,
            new_values=record.audit_values(),
        )
        return record

    def dematerialize_leave_day(
        self,
        employee_id: int,
        work_date: DateLike,
        leave_request_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> bool:
        """Remove the row only if it is this request's untouched ON_LEAVE projection."""
        day = parse_iso_date(work_date, "date")
        record = self._attendance.get_for_employee_and_date(int(employee_id), day)
        if not record or not record.is_leave_projection:
            return False
        if int(record.leave_request_id) != int(leave_request_id):
            return False

        if not self._attendance.delete(record.attendance_id):
            return False

        self._audit.write(
            actor,
            AuditAction.ATTENDANCE_LEAVE_UNMARKED,
            EntityType.ATTENDANCE,
            record.attendance_id,
            old_values=record.audit_values(),
            new_values=None,
        )
        return True

    def materialize_leave_range(
        self,
        employee_id: int,
        start_date: date,
        end_date: date,
        leave_type: str,
        leave_request_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> list[AttendanceRecord]:
        created = []
        for day in iter_working_days(start_date, end_date):
            record = self.materialize_leave_day(employee_id, day, leave_type, leave_request_id, actor=actor)
            if record:
                created.append(record)

        logger.info(
            "Leave attendance records created",
            extra={
                "event": "LEAVE_ATTENDANCE_CREATED",
                "employee_id": employee_id,
                "leave_request_id": leave_request_id,
                "start_date": start_date,
                "end_date": end_date,
                "records_created": len(created),
            },
        )
        return created

    def dematerialize_leave_range(
        self,
        employee_id: int,
        start_date: date,
        end_date: date,
        leave_request_id: int,
        *,
        actor: Optional[Actor] = None,
    ) -> int:
        removed = 0
        for day in iter_working_days(start_date, end_date):
            if self.dematerialize_leave_day(employee_id, day, leave_request_id, actor=actor):
                removed += 1

        logger.info(
            "Leave attendance records removed",
            extra={
                "event": "LEAVE_ATTENDANCE_REMOVED",
                "employee_id": employee_id,
                "leave_request_id": leave_request_id,
                "start_date": start_date,
                "end_date": end_date,
                "records_removed": removed,
            },
        )
        return removed

    # Reads

    def get_record(self, actor: Actor, attendance_id: int) -> AttendanceRecord:
        record = self._require_record(attendance_id)
        require_self_or_privileged(actor, record.employee_id, "attendance.view")
        return record

    def get_for_day(self, employee_id: int, work_date: DateLike) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_employee_and_date(int(employee_id), parse_iso_date(work_date, "date"))

    def list_for_employee(
        self,
        actor: Actor,
        employee_id: int,
        *,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        require_self_or_privileged(actor, employee_id, "attendance.view")
        return self._attendance.list_records(
            employee_id=int(employee_id),
            start_date=parse_iso_date(start_date, "start_date") if start_date else None,
            end_date=parse_iso_date(end_date, "end_date") if end_date else None,
            status=parse_enum(AttendanceStatus, status, "status") if status else None,
            limit=max(1, min(int(limit), MAX_HISTORY_LIMIT)),
            offset=max(0, int(offset)),
        )

    def list_records(
        self,
        actor: Actor,
        *,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        status: Optional[AttendanceStatus | str] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        require_privileged(actor, "attendance.list")
        start, end = parse_date_range(start_date, end_date)
        return self._attendance.list_records(
            employee_id=int(employee_id) if employee_id is not None else None,
            department=optional_text(department, "department"),
            start_date=start,
            end_date=end,
            status=parse_enum(AttendanceStatus, status, "status") if status else None,
            limit=max(1, min(int(limit), MAX_HISTORY_LIMIT)),
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
    ) -> AttendanceStats:
        require_privileged(actor, "attendance.stats")
        start, end = parse_date_range(start_date, end_date)
        filters = {
            "start_date": start,
            "end_date": end,
            "department": optional_text(department, "department"),
        }
        employee = int(employee_id) if employee_id is not None else None
        counts = self._attendance.count_by_status(employee, **filters)
        return AttendanceStats(
            total_records=sum(counts.values()),
            status_counts={s.value: counts.get(s, 0) for s in AttendanceStatus},
            total_work_hours=round(self._attendance.total_work_hours(employee, **filters), 2),
        )

    def daily_summary(self, actor: Actor, work_date: Optional[DateLike] = None) -> DailyAttendanceSummary:
        """Per-status counts across all employees for one day, overall and per department."""
        require_privileged(actor, "attendance.daily_summary")
        day = parse_iso_date(work_date, "date") if work_date else today(self._clock)

        totals = {s.value: 0 for s in AttendanceStatus}
        departments: dict[str, dict[str, int]] = {}
        for (department, status), count in self._attendance.count_by_department(day).items():
            totals[status.value] += count
            per_department = departments.setdefault(department or UNASSIGNED_DEPARTMENT, {})
            per_department[status.value] = per_department.get(status.value, 0) + count
        return DailyAttendanceSummary(work_date=day, status_counts=totals, departments=departments)


    def summarize(self, employee_id: int, start_date: date, end_date: date) -> AttendanceSummary:
        counts = self._attendance.count_by_status(int(employee_id), start_date=start_date, end_date=end_date)
        return AttendanceSummary(
            employee_id=int(employee_id),
            start_date=start_date,
            end_date=end_date,
            working_days=count_working_days(start_date, end_date),
            full_days=counts.get(AttendanceStatus.PRESENT, 0) + counts.get(AttendanceStatus.LATE, 0),
            half_days=counts.get(AttendanceStatus.HALF_DAY, 0),
            absent_days=counts.get(AttendanceStatus.ABSENT, 0),
            leave_days=counts.get(AttendanceStatus.ON_LEAVE, 0),
            total_work_hours=self._attendance.total_work_hours(
                int(employee_id), start_date=start_date, end_date=end_date
            ),
            status_counts={s.value: n for s, n in counts.items()},
        )
