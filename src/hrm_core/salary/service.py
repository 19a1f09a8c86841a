from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..audit.sink import AuditTrail
from ..common.datetime_utils import Clock, DateLike, SystemClock, parse_iso_date, today
from ..common.validators import quantize_money, to_decimal
from ..core.actor import Actor, require_privileged, require_self_or_privileged
from ..core.enums import AuditAction, EntityType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import SalaryStructure, parse_allowances, parse_deductions
from .repository import SalaryStructureRepository

logger = logging.getLogger(__name__)


class SalaryStructureService:
    def __init__(
        self,
        structures: SalaryStructureRepository,
        employees: EmployeeRepository,
        audit: AuditTrail,
        *,
        clock: Clock | None = None,
    ):
        self._structures = structures
        self._employees = employees
        self._audit = audit
        self._clock = clock or SystemClock()

    def create_structure(
        self,
        actor: Actor,
        employee_id: int,
        basic_salary: Any,
        allowances: Optional[Mapping[str, Any]] = None,
        deductions: Optional[Mapping[str, Any]] = None,
        effective_from: Optional[DateLike] = None,
    ) -> SalaryStructure:
        """Create the employee's active structure, retiring the ones it supersedes."""
        require_privileged(actor, "salary.create")

        basic = to_decimal(basic_salary, "basic_salary")
        if basic <= 0:
            raise ValidationError("basic_salary_not_positive", field="basic_salary", value=basic_salary)
        basic = quantize_money(basic)
        allowance_map = {k: quantize_money(v) for k, v in parse_allowances(allowances).items()}
        deduction_map = parse_deductions(deductions)
        effective = parse_iso_date(effective_from, "effective_from") if effective_from else today(self._clock)

        if not self._employees.get_by_id(int(employee_id)):
            raise NotFoundError("employee_not_found", employee_id=employee_id)

        later = [s for s in self._structures.list_active(int(employee_id)) if s.effective_from > effective]
        if later:
            raise ConflictError(
                "later_structure_active",
                employee_id=employee_id,
                effective_from=effective,
                active_effective_from=later[0].effective_from,
            )

        structure_id, retired = self._structures.supersede(
            employee_id=int(employee_id),
            basic_salary=basic,
            allowances=allowance_map,
            deductions=deduction_map,
            effective_from=effective,
        )
        structure = SalaryStructure(
            structure_id=structure_id,
            employee_id=int(employee_id),
            basic_salary=basic,
            effective_from=effective,
            allowances=allowance_map,
            deductions=deduction_map,
        )

        self._audit.write(
            actor,
            AuditAction.SALARY_STRUCTURE_CREATED,
            EntityType.SALARY_STRUCTURE,
            structure_id,
            old_values=None,
            new_values=structure.to_dict(),
        )
        logger.info(
            "Salary structure created",
            extra={
                "event": "SALARY_STRUCTURE_CREATED",
                "structure_id": structure_id,
                "employee_id": employee_id,
                "effective_from": effective,
                "structures_deactivated": retired,
                "performed_by": actor.id,
            },
        )
        return structure

    def get_active(self, employee_id: int) -> SalaryStructure:
        structure = self._structures.find_active_by_employee(int(employee_id))
        if not structure:
            raise NotFoundError("salary_structure_not_found", employee_id=employee_id)
        return structure

    def view_active(self, actor: Actor, employee_id: int) -> SalaryStructure:
        require_self_or_privileged(actor, employee_id, "salary.view")
        return self.get_active(employee_id)
