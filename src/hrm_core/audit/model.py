from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.enums import AuditAction, EntityType


@dataclass(frozen=True)
class AuditEntry:
    """Before/after snapshot of one mutation."""

    action: AuditAction
    performed_by: Optional[int]
    entity_type: EntityType
    entity_id: Optional[int]
    old_values: Optional[Mapping[str, Any]] = None
    new_values: Optional[Mapping[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
