from __future__ import annotations

from typing import Any, Mapping, Optional

from ..core.enums import AuditAction, EntityType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, to_json
from .sink import AuditSink


class MySQLAuditSink(AuditSink):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(
                    action, performed_by, entity_type, entity_id,
                    old_values, new_values, ip_address, user_agent
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    action.value,
                    performed_by,
                    entity_type.value,
                    entity_id,
                    to_json(dict(old_values) if old_values is not None else None),
                    to_json(dict(new_values) if new_values is not None else None),
                    ip_address,
                    user_agent,
                ),
            )
