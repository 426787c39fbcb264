from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeDirectory


def _row_to_employee(row: Dict[str, Any]) -> Employee:
    return Employee(
        employee_id=int(row["user_id"]),
        full_name=row["full_name"],
        role=Role(row["role"]),
        basic_salary=Decimal(str(row.get("basic_salary") or 0)),
        shift_id=row.get("shift_id"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, role, basic_salary, shift_id, is_active
                FROM users
                WHERE user_id=%s
                """,
                (employee_id,),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def list_active(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, role, basic_salary, shift_id, is_active
                FROM users
                WHERE is_active=1 AND role=%s
                ORDER BY user_id
                """,
                (Role.EMPLOYEE.value,),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
