from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

from ..core.actor import Actor
from ..core.enums import AuditAction, EntityType
from .model import AuditEntry

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    """External collaborator that stores audit entries."""

    def record(
        self,
        *,
        action: AuditAction,
        performed_by: Optional[int],
        entity_type: EntityType,
        entity_id: Optional[int],
        old_values: Optional[Mapping[str, Any]] = None,
        new_values: Optional[Mapping[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        raise NotImplementedError


class AuditTrail:
    """Fire-and-forget front for an AuditSink.

    A failing sink never rolls back the primary operation; the failure is logged.
    """

    def __init__(self, sink: AuditSink):
        self._sink = sink

    def write(
        self,
        actor: Optional[Actor],
        action: AuditAction,
        entity_type: EntityType,
        entity_id: Optional[int],
        *,
        old_values: Optional[Mapping[str, Any]] = None,
        new_values: Optional[Mapping[str, Any]] = None,
    ) -> Optional[AuditEntry]:
        entry = AuditEntry(
            action=action,
            performed_by=actor.id if actor else None,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=actor.ip_address if actor else None,
            user_agent=actor.user_agent if actor else None,
        )
        try:
            self._sink.record(
                action=entry.action,
                performed_by=entry.performed_by,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                old_values=entry.old_values,
                new_values=entry.new_values,
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
            )
        except Exception:
            logger.warning(
                "Audit sink failed",
                exc_info=True,
                extra={
                    "event": "AUDIT_SINK_FAILED",
                    "action": action.value,
                    "entity_type": entity_type.value,
                    "entity_id": entity_id,
                },
            )
            return None
        return entry
