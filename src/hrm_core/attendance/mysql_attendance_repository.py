from __future__ import annotations

from datetime import date, time
from typing import Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, check_in_time, check_out_time,
    work_hours, status, notes, leave_request_id
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in_time=normalize_mysql_time(r.get("check_in_time")),
        check_out_time=normalize_mysql_time(r.get("check_out_time")),
        work_hours=float(r.get("work_hours") or 0),
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
        leave_request_id=int(r["leave_request_id"]) if r.get("leave_request_id") is not None else None,
    )


def _filters(
    employee_id: Optional[int],
    department: Optional[str],
    start_date: Optional[date],
    end_date: Optional[date],
) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []
    if employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(int(employee_id))
    if department is not None:
        clauses.append("employee_id IN (SELECT employee_id FROM employees WHERE department=%s)")
        params.append(department)
    if start_date is not None:
        clauses.append("work_date >= %s")
        params.append(start_date)
    if end_date is not None:
        clauses.append("work_date <= %s")
        params.append(end_date)
    return " AND ".join(clauses), params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in_time: Optional[time],
        check_out_time: Optional[time],
        work_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
        leave_request_id: Optional[int] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        employee_id, work_date, check_in_time, check_out_time,
                        work_hours, status, notes, leave_request_id
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(employee_id),
                        work_date,
                        check_in_time,
                        check_out_time,
                        work_hours,
                        status.value,
                        notes,
                        leave_request_id,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            # uq_attendance_employee_day is the authoritative duplicate signal
            raise ConflictError("attendance_exists", employee_id=employee_id, work_date=work_date) from exc

    def update(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[time],
        check_out_time: Optional[time],
        work_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_out_time=%s, work_hours=%s, status=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (check_in_time, check_out_time, work_hours, status.value, notes, int(attendance_id)),
            )
            return cur.rowcount > 0

    def record_check_out(
        self,
        *,
        attendance_id: int,
        check_out_time: time,
        work_hours: float,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, work_hours=%s, status=%s, notes=%s
                WHERE attendance_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                """,
                (check_out_time, work_hours, status.value, notes, int(attendance_id)),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_records(
        self,
        *,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        where, params = _filters(employee_id, department, start_date, end_date)
        if status is not None:
            where += " AND status=%s"
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY work_date DESC, attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_by_status(
        self,
        employee_id: Optional[int],
        *,
        start_date: Optional[date],
        end_date: Optional[date],
        department: Optional[str] = None,
    ) -> Mapping[AttendanceStatus, int]:
        where, params = _filters(employee_id, department, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT status, COUNT(*) AS days
                FROM attendance_records
                WHERE {where}
                GROUP BY status
                """,
                tuple(params),
            )
            return {AttendanceStatus(r["status"]): int(r["days"]) for r in fetchall(cur)}

    def total_work_hours(
        self,
        employee_id: Optional[int],
        *,
        start_date: Optional[date],
        end_date: Optional[date],
        department: Optional[str] = None,
    ) -> float:
        where, params = _filters(employee_id, department, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COALESCE(SUM(work_hours), 0) AS hours FROM attendance_records WHERE {where}",
                tuple(params),
            )
            r = fetchone(cur)
            return float(r["hours"]) if r else 0.0

    def count_by_department(self, work_date: date) -> Mapping[tuple[Optional[str], AttendanceStatus], int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.department, a.status, COUNT(*) AS records
                FROM attendance_records a
                LEFT JOIN employees e ON e.employee_id = a.employee_id
                WHERE a.work_date=%s
                GROUP BY e.department, a.status
                """,
                (work_date,),
            )
            return {
                (r.get("department"), AttendanceStatus(r["status"])): int(r["records"])
                for r in fetchall(cur)
            }
