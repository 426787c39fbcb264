from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import SignatureType, VerificationMethod
from ..core.exceptions import DuplicateSignature
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json_column, to_json_column
from ..geo.policy import GeoPoint
from .model import Signature
from .repository import SignatureRepository

_COLUMNS = """
    signature_id, user_id, payroll_id, signature_type, image, content_hash, signed_at,
    device_id, ip_address, location, is_verified, verified_by, verified_at, verification_method
"""


def _row_to_signature(r: Dict[str, Any]) -> Signature:
    location = from_json_column(r.get("location"))
    method = r.get("verification_method")
    return Signature(
        signature_id=int(r["signature_id"]),
        user_id=int(r["user_id"]),
        payroll_id=int(r["payroll_id"]),
        signature_type=SignatureType(r["signature_type"]),
        image=r["image"],
        content_hash=r["content_hash"],
        signed_at=r["signed_at"],
        device_id=r.get("device_id"),
        ip_address=r.get("ip_address"),
        location=GeoPoint.from_mapping(location),
        is_verified=bool(r.get("is_verified")),
        verified_by=r.get("verified_by"),
        verified_at=r.get("verified_at"),
        verification_method=VerificationMethod(method) if method else None,
    )


class MySQLSignatureRepository(SignatureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, signature_id: int) -> Optional[Signature]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM signatures WHERE signature_id=%s", (signature_id,))
            r = fetchone(cur)
            return _row_to_signature(r) if r else None

    def find(self, *, user_id: int, payroll_id: int, signature_type: SignatureType) -> Optional[Signature]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM signatures WHERE user_id=%s AND payroll_id=%s AND signature_type=%s",
                (user_id, payroll_id, signature_type.value),
            )
            r = fetchone(cur)
            return _row_to_signature(r) if r else None

    def create(self, signature: Signature) -> Signature:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO signatures(
                        user_id, payroll_id, signature_type, image, content_hash, signed_at,
                        device_id, ip_address, location
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        signature.user_id,
                        signature.payroll_id,
                        signature.signature_type.value,
                        signature.image,
                        signature.content_hash,
                        signature.signed_at,
                        signature.device_id,
                        signature.ip_address,
                        to_json_column(signature.location.to_dict() if signature.location else None),
                    ),
                )
                return replace(signature, signature_id=int(cur.lastrowid))
        except mysql.connector.IntegrityError:
            raise DuplicateSignature()

    def mark_verified(self, signature: Signature) -> Signature:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE signatures
                SET is_verified=1, verified_by=%s, verified_at=%s, verification_method=%s
                WHERE signature_id=%s AND is_verified=0
                """,
                (
                    signature.verified_by,
                    signature.verified_at,
                    signature.verification_method.value if signature.verification_method else None,
                    signature.signature_id,
                ),
            )
        return signature

    def discard(self, signature_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM signatures WHERE signature_id=%s", (signature_id,))

    def list_for_payroll(self, payroll_id: int) -> Sequence[Signature]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM signatures WHERE payroll_id=%s ORDER BY signed_at",
                (payroll_id,),
            )
            return [_row_to_signature(r) for r in fetchall(cur)]
