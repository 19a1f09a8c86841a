from __future__ import annotations

from decimal import Decimal

from ...attendance.model import AttendanceSummary
from ...salary.model import SalaryStructure
from ..model import PayrollBreakdown
from .base import PayrollCalculator

_ZERO = Decimal(0)
_ONE = Decimal(1)


def attendance_ratio(present_days: Decimal, working_days: int) -> Decimal:
    """present / working, within [0, 1]; 0 for a month without working days."""
    if working_days <= 0:
        return _ZERO
    ratio = Decimal(present_days) / Decimal(working_days)
    return max(_ZERO, min(ratio, _ONE))


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: gross and deductions scaled by the attendance ratio.

    Percentage deductions apply to the full monthly gross before pro-ration.
    Nothing is rounded here.
    """

    def calculate(
        self,
        structure: SalaryStructure,
        attendance: AttendanceSummary,
        *,
        month: int,
        year: int,
        leave_days: int,
    ) -> PayrollBreakdown:
        gross = structure.gross_salary
        deductions = structure.deductions_total(gross)
        ratio = attendance_ratio(attendance.present_days, attendance.working_days)

        return PayrollBreakdown(
            employee_id=structure.employee_id,
            month=int(month),
            year=int(year),
            basic_salary=structure.basic_salary,
            total_allowances=structure.total_allowances,
            gross_salary=gross,
            deductions_total=deductions,
            working_days=attendance.working_days,
            present_days=attendance.present_days,
            leave_days=int(leave_days),
            attendance_ratio=ratio,
            pro_rated_allowances=structure.total_allowances * ratio,
            pro_rated_gross=gross * ratio,
            pro_rated_deductions=deductions * ratio,
        )
