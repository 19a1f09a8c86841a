"""In-memory stand-ins for the MySQL repositories and the audit sink."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Collection, Optional

from hrm_core.attendance.model import AttendanceRecord
from hrm_core.common.calendar import ranges_overlap
from hrm_core.common.datetime_utils import FixedClock
from hrm_core.config.config import EngineSettings
from hrm_core.container import Container, wire_services
from hrm_core.core.enums import AttendanceStatus, LeaveStatus, PayrollStatus
from hrm_core.core.exceptions import ConflictError
from hrm_core.employees.model import Employee
from hrm_core.leave.model import LeavePolicy, LeaveRequest, LeaveTypeStats
from hrm_core.payroll.model import PayrollRecord, PayrollSummary
from hrm_core.salary.model import SalaryStructure


class InMemoryEmployees:
    def __init__(self, employees: list[Employee]):
        self.by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.by_id.get(employee_id)

    def list_active(self, *, department: Optional[str] = None):
        return [
            e
            for e in sorted(self.by_id.values(), key=lambda e: e.employee_id)
            if e.is_active and (department is None or e.department == department)
        ]


class InMemoryAttendance:
    def __init__(self, employees: Optional[InMemoryEmployees] = None):
        self.employees = employees
        self.by_id: dict[int, AttendanceRecord] = {}
        self._id = 0

    def _key_taken(self, employee_id: int, work_date: date) -> bool:
        return any(r.employee_id == employee_id and r.work_date == work_date for r in self.by_id.values())

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.by_id.get(attendance_id)

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        for r in self.by_id.values():
            if r.employee_id == employee_id and r.work_date == work_date:
                return r
        return None

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
        # mirrors uq_attendance_employee_day
        if self._key_taken(employee_id, work_date):
            raise ConflictError("attendance_exists", employee_id=employee_id, work_date=work_date)
        self._id += 1
        self.by_id[self._id] = AttendanceRecord(
            attendance_id=self._id,
            employee_id=employee_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            work_hours=work_hours,
            status=status,
            notes=notes,
            leave_request_id=leave_request_id,
        )
        return self._id

    def update(self, *, attendance_id, check_in_time, check_out_time, work_hours, status, notes=None) -> bool:
        rec = self.by_id.get(attendance_id)
        if not rec:
            return False
        self.by_id[attendance_id] = replace(
            rec,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            work_hours=work_hours,
            status=status,
            notes=notes,
        )
        return True

    def record_check_out(self, *, attendance_id, check_out_time, work_hours, status, notes=None) -> bool:
        rec = self.by_id.get(attendance_id)
        if not rec or rec.check_in_time is None or rec.check_out_time is not None:
            return False
        self.by_id[attendance_id] = replace(
            rec,
            check_out_time=check_out_time,
            work_hours=work_hours,
            status=status,
            notes=notes,
        )
        return True

    def delete(self, attendance_id: int) -> bool:
        return self.by_id.pop(attendance_id, None) is not None

    def _department(self, employee_id):
        employee = self.employees.get_by_id(employee_id) if self.employees else None
        return employee.department if employee else None

    def _matching(self, employee_id=None, department=None, start_date=None, end_date=None):
        return [
            r
            for r in self.by_id.values()
            if (employee_id is None or r.employee_id == employee_id)
            and (department is None or self._department(r.employee_id) == department)
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]

    def list_records(
        self, *, employee_id=None, department=None, start_date=None, end_date=None, status=None, limit=50, offset=0
    ):
        rows = [
            r
            for r in self._matching(employee_id, department, start_date, end_date)
            if status is None or r.status == status
        ]
        rows.sort(key=lambda r: (r.work_date, r.attendance_id), reverse=True)
        return rows[offset : offset + limit]

    def count_by_status(self, employee_id, *, start_date, end_date, department=None):
        counts: dict[AttendanceStatus, int] = {}
        for r in self._matching(employee_id, department, start_date, end_date):
            counts[r.status] = counts.get(r.status, 0) + 1
        return counts

    def total_work_hours(self, employee_id, *, start_date, end_date, department=None) -> float:
        return round(sum(r.work_hours for r in self._matching(employee_id, department, start_date, end_date)), 2)

    def count_by_department(self, work_date):
        counts: dict = {}
        for r in self._matching(start_date=work_date, end_date=work_date):
            key = (self._department(r.employee_id), r.status)
            counts[key] = counts.get(key, 0) + 1
        return counts


class InMemoryLeavePolicies:
    def __init__(self, policies: list[LeavePolicy]):
        self.policies = list(policies)

    def find_by_type(self, leave_type: str) -> Optional[LeavePolicy]:
        for p in self.policies:
            if p.leave_type == leave_type and p.is_active:
                return p
        return None

    def list_active(self):
        return sorted((p for p in self.policies if p.is_active), key=lambda p: p.leave_type)


class InMemoryLeaveRequests:
    def __init__(self, employees: Optional[InMemoryEmployees] = None):
        self.employees = employees
        self.by_id: dict[int, LeaveRequest] = {}
        self._id = 0

    def create(self, *, employee_id, leave_type, start_date, end_date, days_requested, reason) -> int:
        self._id += 1
        self.by_id[self._id] = LeaveRequest(
            request_id=self._id,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days_requested=days_requested,
            reason=reason,
            status=LeaveStatus.PENDING,
        )
        return self._id

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        return self.by_id.get(request_id)

    def find_conflicting(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Collection[LeaveStatus],
        exclude_id: Optional[int] = None,
    ):
        return [
            r
            for r in self.by_id.values()
            if r.employee_id == employee_id
            and r.status in statuses
            and r.request_id != exclude_id
            and ranges_overlap(r.start_date, r.end_date, start_date, end_date)
        ]

    def sum_days(self, *, employee_id, leave_type, status, start_from, start_to) -> int:
        return sum(
            r.days_requested
            for r in self.by_id.values()
            if r.employee_id == employee_id
            and r.status == status
            and (leave_type is None or r.leave_type == leave_type)
            and start_from <= r.start_date <= start_to
        )

    def sum_days_overlapping(self, *, employee_id, status, start_date, end_date) -> int:
        return sum(
            r.days_requested
            for r in self.by_id.values()
            if r.employee_id == employee_id
            and r.status == status
            and ranges_overlap(r.start_date, r.end_date, start_date, end_date)
        )

    def _department(self, employee_id):
        employee = self.employees.get_by_id(employee_id) if self.employees else None
        return employee.department if employee else None

    def _matching(self, employee_id=None, department=None, start_from=None, end_to=None):
        return [
            r
            for r in self.by_id.values()
            if (employee_id is None or r.employee_id == employee_id)
            and (department is None or self._department(r.employee_id) == department)
            and (start_from is None or r.start_date >= start_from)
            and (end_to is None or r.end_date <= end_to)
        ]

    def list_requests(
        self,
        *,
        employee_id=None,
        status=None,
        leave_type=None,
        department=None,
        start_from=None,
        start_to=None,
        end_to=None,
        limit=50,
        offset=0,
    ):
        rows = [
            r
            for r in self._matching(employee_id, department, start_from, end_to)
            if (status is None or r.status == status)
            and (leave_type is None or r.leave_type == leave_type)
            and (start_to is None or r.start_date <= start_to)
        ]
        rows.sort(key=lambda r: (r.start_date, r.request_id))
        return rows[offset : offset + limit]

    def stats_by_type(self, *, employee_id=None, department=None, start_from=None, end_to=None):
        grouped: dict[str, list[LeaveRequest]] = {}
        for r in self._matching(employee_id, department, start_from, end_to):
            grouped.setdefault(r.leave_type, []).append(r)
        stats = [
            LeaveTypeStats(
                leave_type=leave_type,
                total_requests=len(rows),
                pending_requests=sum(r.status == LeaveStatus.PENDING for r in rows),
                approved_requests=sum(r.status == LeaveStatus.APPROVED for r in rows),
                rejected_requests=sum(r.status == LeaveStatus.REJECTED for r in rows),
                approved_days=sum(r.days_requested for r in rows if r.status == LeaveStatus.APPROVED),
            )
            for leave_type, rows in grouped.items()
        ]
        return sorted(stats, key=lambda s: (-s.total_requests, s.leave_type))

    def decide(self, *, request_id, status, decided_by, notes=None) -> bool:
        req = self.by_id.get(request_id)
        if not req or req.status != LeaveStatus.PENDING:
            return False
        self.by_id[request_id] = replace(req, status=status, approved_by=decided_by, approval_notes=notes)
        return True

    def delete(self, request_id: int) -> bool:
        return self.by_id.pop(request_id, None) is not None


class InMemorySalaryStructures:
    def __init__(self):
        self.by_id: dict[int, SalaryStructure] = {}
        self._id = 0
        self.fail_insert = False

    def find_active_by_employee(self, employee_id: int) -> Optional[SalaryStructure]:
        active = self.list_active(employee_id)
        return active[0] if active else None

    def list_active(self, employee_id: int):
        rows = [s for s in self.by_id.values() if s.employee_id == employee_id and s.is_active]
        return sorted(rows, key=lambda s: (s.effective_from, s.structure_id), reverse=True)

    def supersede(self, *, employee_id, basic_salary, allowances, deductions, effective_from) -> tuple[int, int]:
        if self.fail_insert:
            # the whole transaction rolls back, deactivations included
            raise RuntimeError("insert failed")
        count = 0
        for sid, s in list(self.by_id.items()):
            if s.employee_id == employee_id and s.is_active and s.effective_from <= effective_from:
                self.by_id[sid] = replace(s, is_active=False)
                count += 1
        self._id += 1
        self.by_id[self._id] = SalaryStructure(
            structure_id=self._id,
            employee_id=employee_id,
            basic_salary=basic_salary,
            effective_from=effective_from,
            allowances=dict(allowances),
            deductions=dict(deductions),
        )
        return self._id, count


class InMemoryPayroll:
    def __init__(self):
        self.by_id: dict[int, PayrollRecord] = {}
        self._id = 0

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        return self.by_id.get(payroll_id)

    def get_by_period(self, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        for r in self.by_id.values():
            if (r.employee_id, r.month, r.year) == (employee_id, month, year):
                return r
        return None

    def create(self, *, employee_id, month, year, **amounts) -> int:
        # mirrors uq_payroll_employee_period
        if self.get_by_period(employee_id, month, year):
            raise ConflictError("payroll_exists", employee_id=employee_id, month=month, year=year)
        self._id += 1
        self.by_id[self._id] = PayrollRecord(payroll_id=self._id, employee_id=employee_id, month=month, year=year, **amounts)
        return self._id

    def _matching(self, month, year, employee_id, status):
        return [
            r
            for r in self.by_id.values()
            if (month is None or r.month == month)
            and (year is None or r.year == year)
            and (employee_id is None or r.employee_id == employee_id)
            and (status is None or r.status == status)
        ]

    def list_records(self, *, month=None, year=None, employee_id=None, status=None, limit=50, offset=0):
        rows = sorted(self._matching(month, year, employee_id, status), key=lambda r: (-r.year, -r.month, r.employee_id))
        return rows[offset : offset + limit]

    def summarize(self, *, month=None, year=None, employee_id=None, status=None) -> PayrollSummary:
        rows = self._matching(month, year, employee_id, status)
        return PayrollSummary(
            count=len(rows),
            total_gross=sum((r.gross_salary for r in rows), Decimal("0")),
            total_deductions=sum((r.deductions for r in rows), Decimal("0")),
            total_net=sum((r.net_salary for r in rows), Decimal("0")),
        )


class RecordingAuditSink:
    def __init__(self, *, fail: bool = False):
        self.entries: list[dict] = []
        self.fail = fail

    def record(self, **entry) -> None:
        if self.fail:
            raise RuntimeError("audit store unavailable")
        self.entries.append(entry)

    def actions(self) -> list:
        return [e["action"] for e in self.entries]


DEFAULT_POLICIES = [
    LeavePolicy(policy_id=1, leave_type="SICK", annual_limit=12),
    LeavePolicy(policy_id=2, leave_type="CASUAL", annual_limit=12, max_consecutive_days=3),
    LeavePolicy(policy_id=3, leave_type="ANNUAL", annual_limit=20),
    LeavePolicy(policy_id=4, leave_type="EMERGENCY", annual_limit=2),
]


@dataclass
class Env:
    clock: FixedClock
    employees: InMemoryEmployees
    attendance: InMemoryAttendance
    leave_requests: InMemoryLeaveRequests
    policies: InMemoryLeavePolicies
    salaries: InMemorySalaryStructures
    payroll: InMemoryPayroll
    audit_sink: RecordingAuditSink
    container: Container = field(init=False)

    def __post_init__(self):
        self.container = wire_services(
            employees=self.employees,
            attendance_repo=self.attendance,
            leave_repo=self.leave_requests,
            policy_repo=self.policies,
            salary_repo=self.salaries,
            payroll_repo=self.payroll,
            audit_sink=self.audit_sink,
            engine=EngineSettings(),
            clock=self.clock,
        )


def make_env(now: datetime = datetime(2026, 2, 2, 10, 0, 0), *, policies: Optional[list[LeavePolicy]] = None) -> Env:
    """2026-02-02 is a Monday."""
    employees = InMemoryEmployees(
        [
            Employee(employee_id=1, full_name="Alice Nguyen", department="Engineering"),
            Employee(employee_id=2, full_name="Bao Tran", department="Engineering"),
            Employee(employee_id=3, full_name="Chi Le", department="Finance"),
            Employee(employee_id=4, full_name="Dung Pham", department="Finance", is_active=False),
        ]
    )
    return Env(
        clock=FixedClock(now),
        employees=employees,
        attendance=InMemoryAttendance(employees),
        leave_requests=InMemoryLeaveRequests(employees),
        policies=InMemoryLeavePolicies(DEFAULT_POLICIES if policies is None else policies),
        salaries=InMemorySalaryStructures(),
        payroll=InMemoryPayroll(),
        audit_sink=RecordingAuditSink(),
    )
