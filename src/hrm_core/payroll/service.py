from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, Optional, Sequence

from ..attendance.service import AttendanceService
from ..audit.sink import AuditTrail
from ..common.calendar import month_bounds
from ..common.datetime_utils import Clock, SystemClock, today
from ..common.validators import parse_enum, quantize_money
from ..core.actor import Actor, require_privileged, require_self_or_privileged
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT, MIN_PAYROLL_YEAR
from ..core.enums import AuditAction, EntityType, PayrollStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.failures import EmployeeFailure
from ..employees.repository import EmployeeRepository
from ..leave.service import LeaveService
from ..salary.service import SalaryStructureService
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import BulkPayrollResult, PayrollBreakdown, PayrollRecord, PayrollSummary, YearlyPayroll
from .repository import PayrollRepository

logger = logging.getLogger(__name__)


class PayrollService:
    def __init__(
        self,
        payroll: PayrollRepository,
        salaries: SalaryStructureService,
        attendance: AttendanceService,
        leave: LeaveService,
        employees: EmployeeRepository,
        audit: AuditTrail,
        *,
        calculator: Optional[PayrollCalculator] = None,
        clock: Clock | None = None,
    ):
        self._payroll = payroll
        self._salaries = salaries
        self._attendance = attendance
        self._leave = leave
        self._employees = employees
        self._audit = audit
        self._calculator = calculator or StandardPayrollCalculator()
        self._clock = clock or SystemClock()

    def _validate_period(self, month: Any, year: Any) -> tuple[int, int]:
        try:
            month, year = int(month), int(year)
        except (TypeError, ValueError):
            raise ValidationError("invalid_period", month=month, year=year)
        if not 1 <= month <= 12:
            raise ValidationError("invalid_month", month=month)
        if year < MIN_PAYROLL_YEAR:
            raise ValidationError("invalid_year", year=year, min_year=MIN_PAYROLL_YEAR)

        current = today(self._clock)
        if (year, month) > (current.year, current.month):
            raise ValidationError("future_period", month=month, year=year)
        return month, year

    def calculate(self, employee_id: int, month: int, year: int) -> PayrollBreakdown:
        """Compute without persisting."""
        structure = self._salaries.get_active(employee_id)
        start, end = month_bounds(year, month)
        summary = self._attendance.summarize(employee_id, start, end)
        leave_days = self._leave.approved_days_in_period(employee_id, start, end)
        return self._calculator.calculate(structure, summary, month=month, year=year, leave_days=leave_days)

    def generate(self, actor: Actor, employee_id: int, month: Any, year: Any) -> PayrollRecord:
        require_privileged(actor, "payroll.generate")
        month, year = self._validate_period(month, year)
        return self._generate(actor, int(employee_id), month, year)

    def _generate(self, actor: Actor, employee_id: int, month: int, year: int) -> PayrollRecord:
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("employee_not_found", employee_id=employee_id)
        if self._payroll.get_by_period(employee_id, month, year):
            raise ConflictError("payroll_exists", employee_id=employee_id, month=month, year=year)

        b = self.calculate(employee_id, month, year)

        # money is rounded once, here, from the unrounded breakdown
        record = PayrollRecord(
            payroll_id=0,
            employee_id=employee_id,
            month=month,
            year=year,
            basic_salary=quantize_money(b.basic_salary),
            allowances=quantize_money(b.pro_rated_allowances),
            gross_salary=quantize_money(b.pro_rated_gross),
            deductions=quantize_money(b.pro_rated_deductions),
            net_salary=quantize_money(b.net_salary),
            working_days=b.working_days,
            present_days=b.present_days,
            leave_days=b.leave_days,
        )
        payroll_id = self._payroll.create(
            employee_id=record.employee_id,
            month=record.month,
            year=record.year,
            basic_salary=record.basic_salary,
            allowances=record.allowances,
            gross_salary=record.gross_salary,
            deductions=record.deductions,
            net_salary=record.net_salary,
            working_days=record.working_days,
            present_days=record.present_days,
            leave_days=record.leave_days,
            overtime_hours=record.overtime_hours,
            overtime_amount=record.overtime_amount,
        )
        record = replace(record, payroll_id=payroll_id)

        self._audit.write(
            actor,
            AuditAction.PAYROLL_GENERATED,
            EntityType.PAYROLL,
            payroll_id,
            old_values=None,
            new_values=record.to_dict(),
        )
        logger.info(
            "Payroll generated",
            extra={
                "event": "PAYROLL_GENERATED",
                "payroll_id": payroll_id,
                "employee_id": employee_id,
                "month": month,
                "year": year,
                "attendance_ratio": b.attendance_ratio,
                "net_salary": record.net_salary,
                "performed_by": actor.id,
            },
        )
        return record

    def generate_bulk(
        self,
        actor: Actor,
        month: Any,
        year: Any,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> BulkPayrollResult:
        """Generate for many employees; one employee's failure never stops the batch."""
        require_privileged(actor, "payroll.generate")
        month, year = self._validate_period(month, year)
        if employee_ids is None:
            employee_ids = [e.employee_id for e in self._employees.list_active()]

        result = BulkPayrollResult(month=month, year=year)
        for employee_id in employee_ids:
            try:
                result.generated.append(self._generate(actor, int(employee_id), month, year))
            except Exception as exc:
                logger.warning(
                    "Payroll generation failed for employee",
                    exc_info=not isinstance(exc, (ConflictError, NotFoundError)),
                    extra={
                        "event": "PAYROLL_GENERATION_FAILED",
                        "employee_id": employee_id,
                        "month": month,
                        "year": year,
                    },
                )
                result.failures.append(EmployeeFailure.from_exception(int(employee_id), exc))

        logger.info(
            "Bulk payroll finished",
            extra={
                "event": "PAYROLL_BULK_GENERATED",
                "month": month,
                "year": year,
                "generated": len(result.generated),
                "failed": len(result.failures),
                "performed_by": actor.id,
            },
        )
        return result

    # Reads

    def get_record(self, actor: Actor, payroll_id: int) -> PayrollRecord:
        record = self._payroll.get_by_id(int(payroll_id))
        if not record:
            raise NotFoundError("payroll_not_found", payroll_id=payroll_id)
        require_self_or_privileged(actor, record.employee_id, "payroll.view")
        return record

    def list_records(
        self,
        actor: Actor,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[PayrollRecord]:
        if employee_id is None:
            require_privileged(actor, "payroll.list")
        else:
            require_self_or_privileged(actor, employee_id, "payroll.list")
        return self._payroll.list_records(
            month=month,
            year=year,
            employee_id=employee_id,
            status=parse_enum(PayrollStatus, status, "status") if status else None,
            limit=max(1, min(int(limit), MAX_HISTORY_LIMIT)),
            offset=max(0, int(offset)),
        )

    def summary(
        self,
        actor: Actor,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
    ) -> PayrollSummary:
        require_privileged(actor, "payroll.summary")
        return self._payroll.summarize(
            month=month,
            year=year,
            employee_id=employee_id,
            status=parse_enum(PayrollStatus, status, "status") if status else None,
        )

    def yearly_analytics(self, actor: Actor, year: int) -> YearlyPayroll:
        require_privileged(actor, "payroll.analytics")
        year = int(year)
        if year < MIN_PAYROLL_YEAR:
            raise ValidationError("invalid_year", year=year, min_year=MIN_PAYROLL_YEAR)
        months = {m: self._payroll.summarize(month=m, year=year) for m in range(1, 13)}
        return YearlyPayroll(year=year, months=months)
