from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import PayrollStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import PayrollRecord, PayrollSummary
from .repository import PayrollRepository

_COLUMNS = """
    payroll_id, employee_id, month, year, basic_salary, allowances, gross_salary,
    deductions, net_salary, working_days, present_days, leave_days,
    overtime_hours, overtime_amount, status, created_at
"""


def _row_to_record(r: dict) -> PayrollRecord:
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        basic_salary=as_decimal(r["basic_salary"]),
        allowances=as_decimal(r["allowances"]),
        gross_salary=as_decimal(r["gross_salary"]),
        deductions=as_decimal(r["deductions"]),
        net_salary=as_decimal(r["net_salary"]),
        working_days=int(r["working_days"]),
        present_days=as_decimal(r["present_days"]),
        leave_days=int(r.get("leave_days") or 0),
        overtime_hours=as_decimal(r.get("overtime_hours")),
        overtime_amount=as_decimal(r.get("overtime_amount")),
        status=PayrollStatus(r.get("status") or PayrollStatus.PENDING.value),
        created_at=r.get("created_at"),
    )


def _filters(
    month: Optional[int],
    year: Optional[int],
    employee_id: Optional[int],
    status: Optional[PayrollStatus],
) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []
    if month is not None:
        clauses.append("month=%s")
        params.append(int(month))
    if year is not None:
        clauses.append("year=%s")
        params.append(int(year))
    if employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(int(employee_id))
    if status is not None:
        clauses.append("status=%s")
        params.append(status.value)
    return " AND ".join(clauses), params


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payroll_records WHERE payroll_id=%s", (int(payroll_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_by_period(self, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payroll_records WHERE employee_id=%s AND month=%s AND year=%s",
                (int(employee_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(
        self,
        *,
        employee_id: int,
        month: int,
        year: int,
        basic_salary: Decimal,
        allowances: Decimal,
        gross_salary: Decimal,
        deductions: Decimal,
        net_salary: Decimal,
        working_days: int,
        present_days: Decimal,
        leave_days: int,
        overtime_hours: Decimal = Decimal("0"),
        overtime_amount: Decimal = Decimal("0"),
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payroll_records(
                        employee_id, month, year, basic_salary, allowances, gross_salary,
                        deductions, net_salary, working_days, present_days, leave_days,
                        overtime_hours, overtime_amount, status
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(employee_id),
                        int(month),
                        int(year),
                        basic_salary,
                        allowances,
                        gross_salary,
                        deductions,
                        net_salary,
                        int(working_days),
                        present_days,
                        int(leave_days),
                        overtime_hours,
                        overtime_amount,
                        PayrollStatus.PENDING.value,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            raise ConflictError("payroll_exists", employee_id=employee_id, month=month, year=year) from exc

    def list_records(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[PayrollRecord]:
        where, params = _filters(month, year, employee_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll_records
                WHERE {where}
                ORDER BY year DESC, month DESC, employee_id ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def summarize(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
    ) -> PayrollSummary:
        where, params = _filters(month, year, employee_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS cnt,
                       COALESCE(SUM(gross_salary), 0) AS gross,
                       COALESCE(SUM(deductions), 0) AS deductions,
                       COALESCE(SUM(net_salary), 0) AS net
                FROM payroll_records
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}
            return PayrollSummary(
                count=int(r.get("cnt") or 0),
                total_gross=as_decimal(r.get("gross")),
                total_deductions=as_decimal(r.get("deductions")),
                total_net=as_decimal(r.get("net")),
            )
