from __future__ import annotations

from datetime import date
from typing import Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import LeaveApplication
from .repository import LeaveLedger


class MySQLLeaveLedger(LeaveLedger):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def approved_overlapping(self, employee_id: int, start: date, end: date) -> Sequence[LeaveApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_id, employee_id, leave_type, start_date, end_date, status, is_half_day, reason
                FROM leave_applications
                WHERE employee_id=%s AND status=%s AND start_date<=%s AND end_date>=%s
                ORDER BY start_date
                """,
                (employee_id, LeaveStatus.APPROVED.value, end, start),
            )
            return [
                LeaveApplication(
                    leave_id=int(r["leave_id"]),
                    employee_id=int(r["employee_id"]),
                    leave_type=LeaveType(r["leave_type"]),
                    start_date=r["start_date"],
                    end_date=r["end_date"],
                    status=LeaveStatus(r["status"]),
                    is_half_day=bool(r.get("is_half_day")),
                    reason=r.get("reason"),
                )
                for r in fetchall(cur)
            ]
