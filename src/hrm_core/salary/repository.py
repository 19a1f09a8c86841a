from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Mapping, Optional, Protocol, Sequence

from .model import Deduction, SalaryStructure


class SalaryStructureRepository(Protocol):
    def find_active_by_employee(self, employee_id: int) -> Optional[SalaryStructure]:
        raise NotImplementedError

    def list_active(self, employee_id: int) -> Sequence[SalaryStructure]:
        raise NotImplementedError

    def supersede(
        self,
        *,
        employee_id: int,
        basic_salary: Decimal,
        allowances: Mapping[str, Decimal],
        deductions: Mapping[str, Deduction],
        effective_from: date,
    ) -> tuple[int, int]:
        """Deactivate active structures with effective_from <= the new one and insert it, atomically.

        Returns ``(structure_id, deactivated_count)``.
        """

        raise NotImplementedError
