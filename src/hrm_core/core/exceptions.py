from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


class DomainError(Exception):
    """Base exception for business rule violations.

    ``rule`` is a stable machine-readable identifier of the violated rule and
    ``context`` carries the ids/dates/periods a caller needs to render a message.
    """

    kind = "domain_error"

    def __init__(self, rule: str, **context: Any):
        super().__init__(rule)
        self.rule = rule
        self.context = context

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "rule": self.rule,
            "context": {k: _plain(v) for k, v in self.context.items()},
        }


class ValidationError(DomainError):
    """Raised when input data is malformed or a computed quantity is not positive."""

    kind = "invalid_input"


class NotFoundError(DomainError):
    """Raised when a referenced employee, policy, structure or record is absent."""

    kind = "not_found"


class ConflictError(DomainError):
    """Raised when a natural key or date range is already taken."""

    kind = "conflict"


class PolicyViolationError(DomainError):
    """Raised when a leave policy limit would be exceeded."""

    kind = "policy_violation"


class InvalidStateError(DomainError):
    """Raised when a state-machine transition is not permitted from the current state."""

    kind = "invalid_state"


class AuthorizationError(DomainError):
    """Raised when the caller lacks a coarse permission owned by the engine."""

    kind = "forbidden"
