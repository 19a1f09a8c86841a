from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PayrollStatus
from ..core.failures import EmployeeFailure


@dataclass(frozen=True)
class PayrollBreakdown:
    """Unrounded result of a payroll calculation."""

    employee_id: int
    month: int
    year: int
    basic_salary: Decimal
    total_allowances: Decimal
    gross_salary: Decimal
    deductions_total: Decimal
    working_days: int
    present_days: Decimal
    leave_days: int
    attendance_ratio: Decimal
    pro_rated_allowances: Decimal
    pro_rated_gross: Decimal
    pro_rated_deductions: Decimal

    @property
    def net_salary(self) -> Decimal:
        return self.pro_rated_gross - self.pro_rated_deductions


@dataclass(frozen=True)
class PayrollRecord:
    """Persisted payroll for one employee and period. Immutable except ``status``."""

    payroll_id: int
    employee_id: int
    month: int
    year: int
    basic_salary: Decimal
    allowances: Decimal
    gross_salary: Decimal
    deductions: Decimal
    net_salary: Decimal
    working_days: int
    present_days: Decimal
    leave_days: int
    overtime_hours: Decimal = Decimal("0")
    overtime_amount: Decimal = Decimal("0")
    status: PayrollStatus = PayrollStatus.PENDING
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "payroll_id": self.payroll_id,
            "employee_id": self.employee_id,
            "month": self.month,
            "year": self.year,
            "basic_salary": str(self.basic_salary),
            "allowances": str(self.allowances),
            "gross_salary": str(self.gross_salary),
            "deductions": str(self.deductions),
            "net_salary": str(self.net_salary),
            "working_days": self.working_days,
            "present_days": str(self.present_days),
            "leave_days": self.leave_days,
            "overtime_hours": str(self.overtime_hours),
            "overtime_amount": str(self.overtime_amount),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class PayrollSummary:
    count: int = 0
    total_gross: Decimal = Decimal("0")
    total_deductions: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")

    @property
    def average_net(self) -> Decimal:
        if not self.count:
            return Decimal("0")
        return self.total_net / self.count

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_gross": str(self.total_gross),
            "total_deductions": str(self.total_deductions),
            "total_net": str(self.total_net),
            "average_net": str(self.average_net.quantize(Decimal("0.01"))),
        }


@dataclass(frozen=True)
class BulkPayrollResult:
    month: int
    year: int
    generated: list[PayrollRecord] = field(default_factory=list)
    failures: list[EmployeeFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "year": self.year,
            "generated": [r.to_dict() for r in self.generated],
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass(frozen=True)
class YearlyPayroll:
    year: int
    months: dict[int, PayrollSummary] = field(default_factory=dict)

    @property
    def total_net(self) -> Decimal:
        return sum((s.total_net for s in self.months.values()), Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "months": [{"month": m, **s.to_dict()} for m, s in sorted(self.months.items())],
            "total_net": str(self.total_net),
        }
