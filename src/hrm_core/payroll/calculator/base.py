from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceSummary
from ...salary.model import SalaryStructure
from ..model import PayrollBreakdown


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(
        self,
        structure: SalaryStructure,
        attendance: AttendanceSummary,
        *,
        month: int,
        year: int,
        leave_days: int,
    ) -> PayrollBreakdown:
        raise NotImplementedError
