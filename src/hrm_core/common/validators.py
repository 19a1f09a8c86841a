from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, TypeVar

from ..core.constants import MONEY_QUANTUM
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def _require_text(value: Any, field_name: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError("invalid_text", field=field_name, value=value)
    return value


def require_non_empty(value: Optional[str], field_name: str) -> str:
    value = _require_text(value, field_name)
    if not value or not value.strip():
        raise ValidationError("required_field", field=field_name)
    return value.strip()


def optional_text(value: Optional[str], field_name: str = "notes") -> Optional[str]:
    return (_require_text(value, field_name) or "").strip() or None


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError("invalid_integer", field=field_name, value=value)
    if number <= 0:
        raise ValidationError("must_be_positive", field=field_name, value=value)
    return number


def to_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("invalid_amount", field=field_name, value=value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("invalid_amount", field=field_name, value=value)
    if not amount.is_finite():
        raise ValidationError("invalid_amount", field=field_name, value=value)
    return amount


def quantize_money(amount: Decimal) -> Decimal:
    """Round to cents, half-up. Applied only when a value is persisted."""
    return Decimal(amount).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def parse_enum(enum_cls: type[E], value: Any, field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError("invalid_choice", field=field_name, value=value, choices=[m.value for m in enum_cls])
