from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import AuthorizationError

PRIVILEGED_ROLES = frozenset({Role.ADMIN, Role.HR_MANAGER})


@dataclass(frozen=True)
class Actor:
    """Already-authenticated caller, resolved by the identity layer."""

    id: int
    role: Role
    employee_id: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def owns(self, employee_id: int) -> bool:
        return self.employee_id is not None and int(self.employee_id) == int(employee_id)


def require_privileged(actor: Actor, action: str) -> None:
    if not actor.is_privileged:
        raise AuthorizationError("privileged_role_required", action=action, actor_id=actor.id, role=actor.role)


def require_admin(actor: Actor, action: str) -> None:
    if actor.role != Role.ADMIN:
        raise AuthorizationError("admin_role_required", action=action, actor_id=actor.id, role=actor.role)


def require_self_or_privileged(actor: Actor, employee_id: int, action: str) -> None:
    if actor.is_privileged or actor.owns(employee_id):
        return
    raise AuthorizationError(
        "self_or_privileged_required",
        action=action,
        actor_id=actor.id,
        employee_id=employee_id,
    )
