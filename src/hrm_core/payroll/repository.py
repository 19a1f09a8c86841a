from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import PayrollRecord, PayrollSummary


class PayrollRepository(Protocol):
    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def get_by_period(self, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        month: int,
        year: int,
        basic_salary: Decimal,
        allowances: Decimal,
        gross_salary: Decimal,
        deductions: Decimal,
        net_salary: Decimal,
        working_days: int,
        present_days: Decimal,
        leave_days: int,
        overtime_hours: Decimal = Decimal("0"),
        overtime_amount: Decimal = Decimal("0"),
    ) -> int:
        """Insert a PENDING record; ConflictError if the period already has one."""

        raise NotImplementedError

    def list_records(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def summarize(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
    ) -> PayrollSummary:
        raise NotImplementedError
