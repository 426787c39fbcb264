from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import parse_iso_datetime
from ..core.enums import AttendanceAction, AttendanceStatus, VerificationMethod
from ..core.exceptions import AlreadyCheckedIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json_column, to_json_column
from ..geo.policy import GeoPoint
from .model import ActivityLogEntry, AttendanceDay, Break, Punch, Verification
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, check_in, check_out, breaks,
    total_break_minutes, total_working_hours, overtime_hours, status,
    is_late, late_minutes, is_early_checkout, early_checkout_minutes,
    verification, activity_log, version
"""


def _dt(value: Optional[str]):
    return parse_iso_datetime(value) if value else None


def _punch(data: Optional[dict]) -> Optional[Punch]:
    if not data:
        return None
    return Punch(
        time=parse_iso_datetime(data["time"]),
        location=GeoPoint.from_mapping(data.get("location")),
        device_id=data.get("device_id"),
        ip_address=data.get("ip_address"),
    )


def _row_to_day(r: Dict[str, Any]) -> AttendanceDay:
    verification = from_json_column(r.get("verification"))
    return AttendanceDay(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=_punch(from_json_column(r["check_in"])),
        check_out=_punch(from_json_column(r.get("check_out"))),
        breaks=tuple(
            Break(
                start_time=parse_iso_datetime(b["start_time"]),
                end_time=_dt(b.get("end_time")),
                duration_minutes=int(b.get("duration_minutes") or 0),
                start_location=GeoPoint.from_mapping(b.get("start_location")),
                end_location=GeoPoint.from_mapping(b.get("end_location")),
            )
            for b in (from_json_column(r.get("breaks")) or [])
        ),
        total_break_minutes=int(r.get("total_break_minutes") or 0),
        total_working_hours=float(r.get("total_working_hours") or 0),
        overtime_hours=float(r.get("overtime_hours") or 0),
        status=AttendanceStatus(r["status"]),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        is_early_checkout=bool(r.get("is_early_checkout")),
        early_checkout_minutes=int(r.get("early_checkout_minutes") or 0),
        verification=(
            Verification(
                verified_by=int(verification["verified_by"]),
                method=VerificationMethod(verification["method"]),
                verified_at=parse_iso_datetime(verification["verified_at"]),
            )
            if verification
            else None
        ),
        activity_log=tuple(
            ActivityLogEntry(
                action=AttendanceAction(e["action"]),
                timestamp=parse_iso_datetime(e["timestamp"]),
                ip_address=e.get("ip_address"),
                location=GeoPoint.from_mapping(e.get("location")),
                device_id=e.get("device_id"),
            )
            for e in (from_json_column(r.get("activity_log")) or [])
        ),
        version=int(r.get("version") or 0),
    )


def _params(day: AttendanceDay) -> tuple:
    return (
        to_json_column(day.check_in.to_dict()),
        to_json_column(day.check_out.to_dict() if day.check_out else None),
        to_json_column([b.to_dict() for b in day.breaks]),
        day.total_break_minutes,
        day.total_working_hours,
        day.overtime_hours,
        day.status.value,
        int(day.is_late),
        day.late_minutes,
        int(day.is_early_checkout),
        day.early_checkout_minutes,
        to_json_column(day.verification.to_dict() if day.verification else None),
        to_json_column([e.to_dict() for e in day.activity_log]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_days WHERE attendance_id=%s", (attendance_id,))
            r = fetchone(cur)
            return _row_to_day(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_days WHERE employee_id=%s AND work_date=%s",
                (employee_id, work_date),
            )
            r = fetchone(cur)
            return _row_to_day(r) if r else None

    def create(self, day: AttendanceDay) -> AttendanceDay:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_days(
                        employee_id, work_date, check_in, check_out, breaks,
                        total_break_minutes, total_working_hours, overtime_hours, status,
                        is_late, late_minutes, is_early_checkout, early_checkout_minutes,
                        verification, activity_log, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (day.employee_id, day.work_date, *_params(day)),
                )
                return replace(day, attendance_id=int(cur.lastrowid), version=1)
        except mysql.connector.IntegrityError:
            # uq_attendance_employee_date
            raise AlreadyCheckedIn()

    def update(self, day: AttendanceDay, *, expected_version: int) -> Optional[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_days
                SET check_in=%s, check_out=%s, breaks=%s,
                    total_break_minutes=%s, total_working_hours=%s, overtime_hours=%s, status=%s,
                    is_late=%s, late_minutes=%s, is_early_checkout=%s, early_checkout_minutes=%s,
                    verification=%s, activity_log=%s, version=version+1
                WHERE attendance_id=%s AND version=%s
                """,
                (*_params(day), day.attendance_id, expected_version),
            )
            if cur.rowcount == 0:
                return None
            return replace(day, version=expected_version + 1)

    def list_for_employee_between(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_days
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date
                """,
                (employee_id, start, end),
            )
            return [_row_to_day(r) for r in fetchall(cur)]
