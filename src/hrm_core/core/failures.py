from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import DomainError


@dataclass(frozen=True)
class EmployeeFailure:
    """One employee's failure inside a batch operation."""

    employee_id: int
    kind: str
    rule: str
    context: dict = field(default_factory=dict)

    @classmethod
    def from_exception(cls, employee_id: int, exc: Exception) -> "EmployeeFailure":
        if isinstance(exc, DomainError):
            payload = exc.to_dict()
            return cls(employee_id=employee_id, kind=payload["error"], rule=payload["rule"], context=payload["context"])
        return cls(employee_id=employee_id, kind="internal_error", rule=type(exc).__name__, context={})

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "error": self.kind,
            "rule": self.rule,
            "context": self.context,
        }
