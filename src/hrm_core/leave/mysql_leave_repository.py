from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Sequence

from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest, LeaveTypeStats
from .repository import LeaveRequestRepository

_COLUMNS = """
    request_id, employee_id, leave_type, start_date, end_date, days_requested,
    reason, status, approved_by, approval_notes, created_at
"""


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type=r["leave_type"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        days_requested=int(r["days_requested"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approval_notes=r.get("approval_notes"),
        created_at=r.get("created_at"),
    )


def _filters(
    employee_id: Optional[int],
    department: Optional[str],
    start_from: Optional[date],
    end_to: Optional[date],
) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []
    if employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(int(employee_id))
    if department is not None:
        clauses.append("employee_id IN (SELECT employee_id FROM employees WHERE department=%s)")
        params.append(department)
    if start_from is not None:
        clauses.append("start_date >= %s")
        params.append(start_from)
    if end_to is not None:
        clauses.append("end_date <= %s")
        params.append(end_to)
    return " AND ".join(clauses), params


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        leave_type: str,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, leave_type, start_date, end_date, days_requested, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    leave_type,
                    start_date,
                    end_date,
                    int(days_requested),
                    reason,
                    LeaveStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def find_conflicting(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Collection[LeaveStatus],
        exclude_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        if not statuses:
            return []
        placeholders = ",".join(["%s"] * len(statuses))
        clauses = [
            "employee_id=%s",
            f"status IN ({placeholders})",
            "start_date <= %s",
            "end_date >= %s",
        ]
        params: list[object] = [int(employee_id), *[s.value for s in statuses], end_date, start_date]
        if exclude_id is not None:
            clauses.append("request_id <> %s")
            params.append(int(exclude_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE {where} ORDER BY start_date ASC",
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def sum_days(
        self,
        *,
        employee_id: int,
        leave_type: Optional[str],
        status: LeaveStatus,
        start_from: date,
        start_to: date,
    ) -> int:
        clauses = ["employee_id=%s", "status=%s", "start_date BETWEEN %s AND %s"]
        params: list[object] = [int(employee_id), status.value, start_from, start_to]
        if leave_type is not None:
            clauses.append("leave_type=%s")
            params.append(leave_type)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COALESCE(SUM(days_requested), 0) AS days FROM leave_requests WHERE {where}",
                tuple(params),
            )
            r = fetchone(cur)
            return int(r["days"]) if r else 0

    def sum_days_overlapping(
        self,
        *,
        employee_id: int,
        status: LeaveStatus,
        start_date: date,
        end_date: date,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(days_requested), 0) AS days
                FROM leave_requests
                WHERE employee_id=%s AND status=%s AND start_date <= %s AND end_date >= %s
                """,
                (int(employee_id), status.value, end_date, start_date),
            )
            r = fetchone(cur)
            return int(r["days"]) if r else 0

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[str] = None,
        department: Optional[str] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
        end_to: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        where, params = _filters(employee_id, department, start_from, end_to)
        if status is not None:
            where += " AND status=%s"
            params.append(status.value)
        if leave_type is not None:
            where += " AND leave_type=%s"
            params.append(leave_type)
        if start_to is not None:
            where += " AND start_date <= %s"
            params.append(start_to)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY start_date ASC, request_id ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def stats_by_type(
        self,
        *,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        start_from: Optional[date] = None,
        end_to: Optional[date] = None,
    ) -> Sequence[LeaveTypeStats]:
        where, params = _filters(employee_id, department, start_from, end_to)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    leave_type,
                    COUNT(*) AS total_requests,
                    SUM(status='PENDING') AS pending_requests,
                    SUM(status='APPROVED') AS approved_requests,
                    SUM(status='REJECTED') AS rejected_requests,
                    COALESCE(SUM(CASE WHEN status='APPROVED' THEN days_requested ELSE 0 END), 0) AS approved_days
                FROM leave_requests
                WHERE {where}
                GROUP BY leave_type
                ORDER BY total_requests DESC, leave_type ASC
                """,
                tuple(params),
            )
            return [
                LeaveTypeStats(
                    leave_type=r["leave_type"],
                    total_requests=int(r["total_requests"]),
                    pending_requests=int(r["pending_requests"] or 0),
                    approved_requests=int(r["approved_requests"] or 0),
                    rejected_requests=int(r["rejected_requests"] or 0),
                    approved_days=int(r["approved_days"] or 0),
                )
                for r in fetchall(cur)
            ]

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        decided_by: int,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, approval_notes=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    notes,
                    int(request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0
