from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json_column, to_json_column
from .codec import audit_from_dict, figures_from_dict, payment_from_dict
from .model import PayrollRecord
from .repository import PayrollRepository

_COLUMNS = """
    payroll_id, employee_id, month, year, figures, gross_pay, net_payable,
    status, is_locked, employee_signature_id, admin_signature_id,
    calculated_by, calculated_at, approved_by, approved_at, locked_by, locked_at,
    payment, audit_trail, version
"""


def _row_to_record(r: Dict[str, Any]) -> PayrollRecord:
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        figures=figures_from_dict(from_json_column(r["figures"])),
        status=PayrollStatus(r["status"]),
        is_locked=bool(r.get("is_locked")),
        employee_signature_id=r.get("employee_signature_id"),
        admin_signature_id=r.get("admin_signature_id"),
        calculated_by=r.get("calculated_by"),
        calculated_at=r.get("calculated_at"),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        locked_by=r.get("locked_by"),
        locked_at=r.get("locked_at"),
        payment=payment_from_dict(from_json_column(r.get("payment"))),
        audit_trail=tuple(audit_from_dict(e) for e in (from_json_column(r.get("audit_trail")) or [])),
        version=int(r.get("version") or 0),
    )


def _params(p: PayrollRecord) -> tuple:
    return (
        to_json_column(p.figures.to_dict()),
        p.figures.gross_pay,
        p.figures.net_payable,
        p.status.value,
        int(p.is_locked),
        p.employee_signature_id,
        p.admin_signature_id,
        p.calculated_by,
        p.calculated_at,
        p.approved_by,
        p.approved_at,
        p.locked_by,
        p.locked_at,
        to_json_column(p.payment.to_dict()) if p.payment else None,
        to_json_column([e.to_dict() for e in p.audit_trail]),
    )


_SET_CLAUSE = """
    figures=%s, gross_pay=%s, net_payable=%s, status=%s, is_locked=%s,
    employee_signature_id=%s, admin_signature_id=%s,
    calculated_by=%s, calculated_at=%s, approved_by=%s, approved_at=%s,
    locked_by=%s, locked_at=%s, payment=%s, audit_trail=%s, version=version+1
"""


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payrolls WHERE payroll_id=%s", (payroll_id,))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_month(self, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE employee_id=%s AND month=%s AND year=%s",
                (employee_id, month, year),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def upsert_calculation(
        self,
        employee_id: int,
        month: int,
        year: int,
        build: Callable[[Optional[PayrollRecord]], PayrollRecord],
    ) -> PayrollRecord:
        try:
            return self._upsert_once(employee_id, month, year, build)
        except mysql.connector.IntegrityError:
            # Lost the insert race on uq_payroll_employee_month; the row now
            # exists, so the retry recalculates it.
            return self._upsert_once(employee_id, month, year, build)

    def _upsert_once(self, employee_id, month, year, build) -> PayrollRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE employee_id=%s AND month=%s AND year=%s FOR UPDATE",
                (employee_id, month, year),
            )
            r = fetchone(cur)
            existing = _row_to_record(r) if r else None
            record = build(existing)

            if existing is None:
                cur.execute(
                    """
                    INSERT INTO payrolls(
                        employee_id, month, year, figures, gross_pay, net_payable,
                        status, is_locked, employee_signature_id, admin_signature_id,
                        calculated_by, calculated_at, approved_by, approved_at, locked_by, locked_at,
                        payment, audit_trail, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (employee_id, month, year, *_params(record)),
                )
                return replace(record, payroll_id=int(cur.lastrowid), version=1)

            cur.execute(
                f"UPDATE payrolls SET {_SET_CLAUSE} WHERE payroll_id=%s",
                (*_params(record), existing.payroll_id),
            )
            return replace(record, version=existing.version + 1)

    def update(self, record: PayrollRecord, *, expected_version: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payrolls SET {_SET_CLAUSE} WHERE payroll_id=%s AND version=%s",
                (*_params(record), record.payroll_id, expected_version),
            )
            if cur.rowcount == 0:
                return None
            return replace(record, version=expected_version + 1)

    def list_for_month(self, month: int, year: int) -> Sequence[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE month=%s AND year=%s ORDER BY employee_id",
                (month, year),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_employee_year(self, employee_id: int, year: int) -> Sequence[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE employee_id=%s AND year=%s ORDER BY month",
                (employee_id, year),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
