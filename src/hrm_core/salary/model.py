from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from ..common.validators import to_decimal
from ..core.exceptions import ValidationError

_HUNDRED = Decimal(100)


@dataclass(frozen=True)
class FixedDeduction:
    amount: Decimal

    def amount_for(self, gross: Decimal) -> Decimal:
        return self.amount

    def to_raw(self) -> str:
        return str(self.amount)


@dataclass(frozen=True)
class PercentageDeduction:
    """``rate`` is in percent: 10 means 10% of gross."""

    rate: Decimal

    def amount_for(self, gross: Decimal) -> Decimal:
        return gross * self.rate / _HUNDRED

    def to_raw(self) -> str:
        return f"{self.rate}%"


Deduction = Union[FixedDeduction, PercentageDeduction]


def parse_deduction(name: str, value: Any) -> Deduction:
    """``"10%"`` becomes a percentage of gross, any other number a fixed amount."""
    if isinstance(value, (FixedDeduction, PercentageDeduction)):
        return value

    field_name = f"deductions.{name}"
    if isinstance(value, str) and value.strip().endswith("%"):
        rate = to_decimal(value.strip()[:-1], field_name)
        if rate < 0 or rate > _HUNDRED:
            raise ValidationError("invalid_percentage", field=field_name, value=value)
        return PercentageDeduction(rate=rate)

    amount = to_decimal(value, field_name)
    if amount < 0:
        raise ValidationError("negative_amount", field=field_name, value=value)
    return FixedDeduction(amount=amount)


def parse_deductions(raw: Optional[Mapping[str, Any]]) -> dict[str, Deduction]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError("invalid_mapping", field="deductions")
    return {str(name): parse_deduction(str(name), value) for name, value in raw.items()}


def parse_allowances(raw: Optional[Mapping[str, Any]]) -> dict[str, Decimal]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError("invalid_mapping", field="allowances")
    out: dict[str, Decimal] = {}
    for name, value in raw.items():
        amount = to_decimal(value, f"allowances.{name}")
        if amount < 0:
            raise ValidationError("negative_amount", field=f"allowances.{name}", value=value)
        out[str(name)] = amount
    return out


@dataclass(frozen=True)
class SalaryStructure:
    structure_id: int
    employee_id: int
    basic_salary: Decimal
    effective_from: date
    allowances: dict[str, Decimal] = field(default_factory=dict)
    deductions: dict[str, Deduction] = field(default_factory=dict)
    is_active: bool = True

    @property
    def total_allowances(self) -> Decimal:
        return sum(self.allowances.values(), Decimal(0))

    @property
    def gross_salary(self) -> Decimal:
        return self.basic_salary + self.total_allowances

    def deductions_total(self, gross: Optional[Decimal] = None) -> Decimal:
        base = self.gross_salary if gross is None else gross
        return sum((d.amount_for(base) for d in self.deductions.values()), Decimal(0))

    def to_dict(self) -> dict:
        return {
            "structure_id": self.structure_id,
            "employee_id": self.employee_id,
            "basic_salary": str(self.basic_salary),
            "allowances": {k: str(v) for k, v in self.allowances.items()},
            "deductions": {k: d.to_raw() for k, d in self.deductions.items()},
            "effective_from": self.effective_from.isoformat(),
            "is_active": self.is_active,
        }
