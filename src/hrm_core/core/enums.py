from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles of the already-authenticated caller."""

    ADMIN = "Admin"
    HR_MANAGER = "HR_Manager"
    EMPLOYEE = "Employee"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored per employee per day."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    HALF_DAY = "HALF_DAY"
    LATE = "LATE"
    ON_LEAVE = "ON_LEAVE"


class LeaveStatus(str, Enum):
    """Leave request lifecycle. APPROVED and REJECTED are terminal."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveType(str, Enum):
    """Well-known leave types. Any type with an active policy is accepted."""

    SICK = "SICK"
    CASUAL = "CASUAL"
    ANNUAL = "ANNUAL"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    EMERGENCY = "EMERGENCY"


class PayrollStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"


class EntityType(str, Enum):
    ATTENDANCE = "ATTENDANCE"
    LEAVE_REQUEST = "LEAVE_REQUEST"
    PAYROLL = "PAYROLL"
    SALARY_STRUCTURE = "SALARY_STRUCTURE"


class AuditAction(str, Enum):
    ATTENDANCE_CHECK_IN = "ATTENDANCE_CHECK_IN"
    ATTENDANCE_CHECK_OUT = "ATTENDANCE_CHECK_OUT"
    ATTENDANCE_UPDATED = "ATTENDANCE_UPDATED"
    ATTENDANCE_DELETED = "ATTENDANCE_DELETED"
    ATTENDANCE_LEAVE_MARKED = "ATTENDANCE_LEAVE_MARKED"
    ATTENDANCE_LEAVE_UNMARKED = "ATTENDANCE_LEAVE_UNMARKED"
    LEAVE_REQUEST_SUBMITTED = "LEAVE_REQUEST_SUBMITTED"
    LEAVE_REQUEST_APPROVED = "LEAVE_REQUEST_APPROVED"
    LEAVE_REQUEST_REJECTED = "LEAVE_REQUEST_REJECTED"
    LEAVE_REQUEST_CANCELLED = "LEAVE_REQUEST_CANCELLED"
    PAYROLL_GENERATED = "PAYROLL_GENERATED"
    SALARY_STRUCTURE_CREATED = "SALARY_STRUCTURE_CREATED"
