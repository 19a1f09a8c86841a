from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeavePolicy
from .repository import LeavePolicyRepository

_COLUMNS = """
    policy_id, leave_type, annual_limit, max_consecutive_days, carry_forward_allowed,
    carry_forward_limit, min_notice_days, requires_approval, is_active, description
"""


def _row_to_policy(r: dict) -> LeavePolicy:
    return LeavePolicy(
        policy_id=int(r["policy_id"]),
        leave_type=r["leave_type"],
        annual_limit=int(r["annual_limit"]),
        max_consecutive_days=int(r["max_consecutive_days"]) if r.get("max_consecutive_days") is not None else None,
        carry_forward_allowed=bool(r.get("carry_forward_allowed")),
        carry_forward_limit=int(r.get("carry_forward_limit") or 0),
        min_notice_days=int(r.get("min_notice_days") or 0),
        requires_approval=bool(r.get("requires_approval", True)),
        is_active=bool(r.get("is_active", True)),
        description=r.get("description"),
    )


class MySQLLeavePolicyRepository(LeavePolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_type(self, leave_type: str) -> Optional[LeavePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_policies
                WHERE leave_type=%s AND is_active=1
                ORDER BY policy_id DESC
                LIMIT 1
                """,
                (leave_type,),
            )
            r = fetchone(cur)
            return _row_to_policy(r) if r else None

    def list_active(self) -> Sequence[LeavePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_policies WHERE is_active=1 ORDER BY leave_type ASC")
            return [_row_to_policy(r) for r in fetchall(cur)]
