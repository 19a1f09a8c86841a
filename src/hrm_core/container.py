from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import StatusRuleTable
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.rules.base import StatusPolicy
from .attendance.service import AttendanceService
from .audit.mysql_audit_sink import MySQLAuditSink
from .audit.sink import AuditSink, AuditTrail
from .common.datetime_utils import Clock, SystemClock
from .config.config import EngineSettings
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .leave.mysql_leave_repository import MySQLLeaveRequestRepository
from .leave.mysql_policy_repository import MySQLLeavePolicyRepository
from .leave.repository import LeavePolicyRepository, LeaveRequestRepository
from .leave.service import LeaveService
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .salary.mysql_salary_repository import MySQLSalaryStructureRepository
from .salary.repository import SalaryStructureRepository
from .salary.service import SalaryStructureService


@dataclass(frozen=True)
class Container:
    audit: AuditTrail
    attendance_service: AttendanceService
    leave_service: LeaveService
    salary_service: SalaryStructureService
    payroll_service: PayrollService

    conn: Optional[DatabaseConnection] = None


def wire_services(
    *,
    employees: EmployeeRepository,
    attendance_repo: AttendanceRepository,
    leave_repo: LeaveRequestRepository,
    policy_repo: LeavePolicyRepository,
    salary_repo: SalaryStructureRepository,
    payroll_repo: PayrollRepository,
    audit_sink: AuditSink,
    engine: EngineSettings = EngineSettings(),
    clock: Clock | None = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    clock = clock or SystemClock()
    audit = AuditTrail(audit_sink)
    rules = StatusRuleTable(
        policy=StatusPolicy(
            standard_work_hours=engine.standard_work_hours,
            late_threshold_minutes=engine.late_threshold_minutes,
            workday_start=engine.workday_start,
        )
    )

    attendance_service = AttendanceService(attendance_repo, employees, audit, rules=rules, clock=clock)
    leave_service = LeaveService(leave_repo, policy_repo, employees, attendance_service, audit, clock=clock)
    salary_service = SalaryStructureService(salary_repo, employees, audit, clock=clock)
    payroll_service = PayrollService(
        payroll_repo,
        salary_service,
        attendance_service,
        leave_service,
        employees,
        audit,
        clock=clock,
    )

    return Container(
        audit=audit,
        attendance_service=attendance_service,
        leave_service=leave_service,
        salary_service=salary_service,
        payroll_service=payroll_service,
        conn=conn,
    )


def build_container(*, db_config: dict, engine: EngineSettings = EngineSettings(), clock: Clock | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        employees=MySQLEmployeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leave_repo=MySQLLeaveRequestRepository(conn),
        policy_repo=MySQLLeavePolicyRepository(conn),
        salary_repo=MySQLSalaryStructureRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        audit_sink=MySQLAuditSink(conn),
        engine=engine,
        clock=clock,
        conn=conn,
    )
