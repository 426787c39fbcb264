"""Payroll state transitions as pure functions.

draft -> calculated -> approved -> (signatures) -> locked -> paid

Each function takes a record and returns a new one with exactly one audit
entry appended, or raises without touching anything.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from ..core.enums import PaymentMethod, PayrollAction, PayrollStatus, SignatureType
from ..core.exceptions import (
    AlreadyLocked,
    DuplicateSignature,
    InvalidTransition,
    NotCalculated,
    PayrollImmutable,
    PayrollLocked,
    SignaturesIncomplete,
)
from .model import AuditEntry, PaymentDetails, PayrollFigures, PayrollRecord

RECALCULABLE = frozenset({PayrollStatus.DRAFT, PayrollStatus.CALCULATED})
SIGNABLE = frozenset({PayrollStatus.CALCULATED, PayrollStatus.APPROVED})
PAYABLE = frozenset({PayrollStatus.APPROVED, PayrollStatus.LOCKED})


def _audit(record: PayrollRecord, action: PayrollAction, actor_id: Optional[int], now: datetime, **details: Any):
    return record.audit_trail + (AuditEntry(action=action, actor_id=actor_id, timestamp=now, details=details),)


def ensure_recalculable(record: PayrollRecord) -> None:
    if record.is_locked or record.status not in RECALCULABLE:
        raise PayrollImmutable(f"Payroll is {record.status.value}; it can no longer be recalculated")
    if record.has_any_signature:
        raise PayrollImmutable("Payroll has been signed; it can no longer be recalculated")


def apply_calculation(
    existing: Optional[PayrollRecord],
    *,
    employee_id: int,
    month: int,
    year: int,
    figures: PayrollFigures,
    actor_id: Optional[int],
    now: datetime,
) -> PayrollRecord:
    """New calculated record, or the existing draft/calculated one overwritten in place."""

    details = {"net_payable": str(figures.net_payable), "gross_pay": str(figures.gross_pay)}
    if existing is None:
        record = PayrollRecord(
            payroll_id=None,
            employee_id=employee_id,
            month=month,
            year=year,
            figures=figures,
        )
        details["recalculated"] = False
    else:
        ensure_recalculable(existing)
        record = existing
        details["recalculated"] = True

    return replace(
        record,
        figures=figures,
        status=PayrollStatus.CALCULATED,
        calculated_by=actor_id,
        calculated_at=now,
        audit_trail=_audit(record, PayrollAction.CALCULATE, actor_id, now, **details),
    )


def approve(record: PayrollRecord, *, actor_id: int, now: datetime) -> PayrollRecord:
    if record.status != PayrollStatus.CALCULATED:
        raise NotCalculated(f"Payroll must be in calculated state to approve (is {record.status.value})")
    return replace(
        record,
        status=PayrollStatus.APPROVED,
        approved_by=actor_id,
        approved_at=now,
        audit_trail=_audit(record, PayrollAction.APPROVE, actor_id, now),
    )


def attach_signature(
    record: PayrollRecord,
    *,
    signature_type: SignatureType,
    signature_id: int,
    actor_id: int,
    now: datetime,
) -> PayrollRecord:
    check_signable(record, signature_type)
    field_name = "employee_signature_id" if signature_type == SignatureType.EMPLOYEE else "admin_signature_id"
    return replace(
        record,
        **{field_name: signature_id},
        audit_trail=_audit(
            record,
            PayrollAction.SIGN,
            actor_id,
            now,
            signature_type=signature_type.value,
            signature_id=signature_id,
        ),
    )


def check_signable(record: PayrollRecord, signature_type: SignatureType) -> None:
    if record.is_locked:
        raise PayrollLocked()
    if record.signature_id(signature_type) is not None:
        raise DuplicateSignature(f"{signature_type.value.capitalize()} signature already exists for this payroll")
    if record.status not in SIGNABLE:
        raise InvalidTransition(f"Payroll in {record.status.value} state cannot be signed")


def lock(record: PayrollRecord, *, actor_id: int, now: datetime) -> PayrollRecord:
    if record.is_locked:
        raise AlreadyLocked()
    missing = record.missing_signatures
    if missing:
        raise SignaturesIncomplete(missing)
    if record.status not in SIGNABLE and record.status != PayrollStatus.PAID:
        raise InvalidTransition(f"Payroll in {record.status.value} state cannot be locked")

    # a record paid before locking keeps its paid status
    status = PayrollStatus.PAID if record.status == PayrollStatus.PAID else PayrollStatus.LOCKED
    return replace(
        record,
        status=status,
        is_locked=True,
        locked_by=actor_id,
        locked_at=now,
        audit_trail=_audit(record, PayrollAction.LOCK, actor_id, now),
    )


def mark_paid(
    record: PayrollRecord,
    *,
    actor_id: int,
    now: datetime,
    method: PaymentMethod,
    reference: Optional[str] = None,
    transaction_id: Optional[str] = None,
) -> PayrollRecord:
    if record.status not in PAYABLE:
        raise InvalidTransition(f"Payroll must be approved or locked before payment (is {record.status.value})")
    payment = PaymentDetails(
        method=PaymentMethod(method),
        processed_by=actor_id,
        paid_at=now,
        reference=reference,
        transaction_id=transaction_id,
    )
    return replace(
        record,
        status=PayrollStatus.PAID,
        payment=payment,
        audit_trail=_audit(record, PayrollAction.PAY, actor_id, now, method=payment.method.value, reference=reference),
    )
