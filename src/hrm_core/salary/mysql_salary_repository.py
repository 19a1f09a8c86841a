from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, from_json, to_json
from .model import Deduction, SalaryStructure, parse_allowances, parse_deductions
from .repository import SalaryStructureRepository

_COLUMNS = "structure_id, employee_id, basic_salary, allowances, deductions, effective_from, is_active"


def _row_to_structure(r: dict) -> SalaryStructure:
    # deductions are stored in their raw form ("10%" / "500.00") and parsed once here
    return SalaryStructure(
        structure_id=int(r["structure_id"]),
        employee_id=int(r["employee_id"]),
        basic_salary=as_decimal(r["basic_salary"]),
        effective_from=r["effective_from"],
        allowances=parse_allowances(from_json(r.get("allowances"))),
        deductions=parse_deductions(from_json(r.get("deductions"))),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLSalaryStructureRepository(SalaryStructureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_active_by_employee(self, employee_id: int) -> Optional[SalaryStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM salary_structures
                WHERE employee_id=%s AND is_active=1
                ORDER BY effective_from DESC, structure_id DESC
                LIMIT 1
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            return _row_to_structure(r) if r else None

    def list_active(self, employee_id: int) -> Sequence[SalaryStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM salary_structures
                WHERE employee_id=%s AND is_active=1
                ORDER BY effective_from DESC
                """,
                (int(employee_id),),
            )
            return [_row_to_structure(r) for r in fetchall(cur)]

    def supersede(
        self,
        *,
        employee_id: int,
        basic_salary: Decimal,
        allowances: Mapping[str, Decimal],
        deductions: Mapping[str, Deduction],
        effective_from: date,
    ) -> tuple[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE salary_structures
                SET is_active=0
                WHERE employee_id=%s AND is_active=1 AND effective_from <= %s
                """,
                (int(employee_id), effective_from),
            )
            deactivated = int(cur.rowcount)
            cur.execute(
                """
                INSERT INTO salary_structures(
                    employee_id, basic_salary, allowances, deductions, effective_from, is_active
                )
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (
                    int(employee_id),
                    basic_salary,
                    to_json({k: str(v) for k, v in allowances.items()}),
                    to_json({k: d.to_raw() for k, d in deductions.items()}),
                    effective_from,
                ),
            )
            return int(cur.lastrowid), deactivated
