from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: the employee every attendance/leave/payroll row belongs to."""

    employee_id: int
    full_name: str
    department: Optional[str] = None
    is_active: bool = True
