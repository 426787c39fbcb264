from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..core.enums import PaymentMethod, PayrollAction, PayrollStatus, SignatureType

ZERO = Decimal("0.00")


def _money(value: Decimal) -> str:
    return str(value)


@dataclass(frozen=True)
class LeaveBreakdown:
    """Leave days inside the month, by type. Half-day leaves count 0.5."""

    paid: Decimal = ZERO
    unpaid: Decimal = ZERO
    sick: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.paid + self.unpaid + self.sick

    def to_dict(self) -> dict:
        return {"paid": str(self.paid), "unpaid": str(self.unpaid), "sick": str(self.sick), "total": str(self.total)}


@dataclass(frozen=True)
class OvertimeSummary:
    hours: Decimal = ZERO
    rate: Decimal = ZERO
    amount: Decimal = ZERO

    def to_dict(self) -> dict:
        return {"hours": str(self.hours), "rate": str(self.rate), "amount": _money(self.amount)}


@dataclass(frozen=True)
class Deductions:
    late_penalty: Decimal = ZERO
    half_day_penalty: Decimal = ZERO
    tax: Decimal = ZERO
    provident_fund: Decimal = ZERO
    other: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.late_penalty + self.half_day_penalty + self.tax + self.provident_fund + self.other

    def to_dict(self) -> dict:
        return {
            "late_penalty": _money(self.late_penalty),
            "half_day_penalty": _money(self.half_day_penalty),
            "tax": _money(self.tax),
            "provident_fund": _money(self.provident_fund),
            "other": _money(self.other),
            "total": _money(self.total),
        }


@dataclass(frozen=True)
class Allowances:
    components: tuple[tuple[str, Decimal], ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((amount for _, amount in self.components), ZERO)

    def get(self, name: str) -> Decimal:
        for n, amount in self.components:
            if n == name:
                return amount
        return ZERO

    def to_dict(self) -> dict:
        data = {name: _money(amount) for name, amount in self.components}
        data["total"] = _money(self.total)
        return data


@dataclass(frozen=True)
class PayrollFigures:
    """Output of one payroll calculation. All money values are quantized to 0.01."""

    basic_salary: Decimal
    per_day_salary: Decimal
    working_days: int
    present_days: int
    absent_days: int
    half_days: int
    late_days: int
    worked_hours: Decimal
    leaves: LeaveBreakdown
    overtime: OvertimeSummary
    deductions: Deductions
    allowances: Allowances
    unpaid_leave_amount: Decimal
    gross_pay: Decimal
    net_payable: Decimal
    currency: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "basic_salary": _money(self.basic_salary),
            "per_day_salary": _money(self.per_day_salary),
            "working_days": self.working_days,
            "present_days": self.present_days,
            "absent_days": self.absent_days,
            "half_days": self.half_days,
            "late_days": self.late_days,
            "worked_hours": str(self.worked_hours),
            "leaves": self.leaves.to_dict(),
            "overtime": self.overtime.to_dict(),
            "deductions": self.deductions.to_dict(),
            "allowances": self.allowances.to_dict(),
            "unpaid_leave_amount": _money(self.unpaid_leave_amount),
            "gross_pay": _money(self.gross_pay),
            "net_payable": _money(self.net_payable),
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PaymentDetails:
    method: PaymentMethod
    processed_by: int
    paid_at: datetime
    reference: Optional[str] = None
    transaction_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "method": self.method.value,
            "processed_by": self.processed_by,
            "paid_at": self.paid_at.isoformat(),
            "reference": self.reference,
            "transaction_id": self.transaction_id,
        }


@dataclass(frozen=True)
class AuditEntry:
    action: PayrollAction
    actor_id: Optional[int]
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "actor_id": self.actor_id,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }


@dataclass(frozen=True)
class PayrollRecord:
    """One employee's salary computation for one month.

    Signatures are referenced by id only; the signature rows live in their
    own repository.
    """

    payroll_id: Optional[int]
    employee_id: int
    month: int
    year: int
    figures: PayrollFigures
    status: PayrollStatus = PayrollStatus.CALCULATED
    is_locked: bool = False
    employee_signature_id: Optional[int] = None
    admin_signature_id: Optional[int] = None
    calculated_by: Optional[int] = None
    calculated_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    locked_by: Optional[int] = None
    locked_at: Optional[datetime] = None
    payment: Optional[PaymentDetails] = None
    audit_trail: tuple[AuditEntry, ...] = ()
    version: int = 0

    def signature_id(self, signature_type: SignatureType) -> Optional[int]:
        if signature_type == SignatureType.EMPLOYEE:
            return self.employee_signature_id
        return self.admin_signature_id

    @property
    def has_any_signature(self) -> bool:
        return self.employee_signature_id is not None or self.admin_signature_id is not None

    @property
    def missing_signatures(self) -> list[str]:
        missing = []
        if self.employee_signature_id is None:
            missing.append(SignatureType.EMPLOYEE.value)
        if self.admin_signature_id is None:
            missing.append(SignatureType.ADMIN.value)
        return missing

    def to_dict(self) -> dict[str, Any]:
        return {
            "payroll_id": self.payroll_id,
            "employee_id": self.employee_id,
            "month": self.month,
            "year": self.year,
            **self.figures.to_dict(),
            "status": self.status.value,
            "is_locked": self.is_locked,
            "signatures": {
                "employee": self.employee_signature_id,
                "admin": self.admin_signature_id,
            },
            "calculated_by": self.calculated_by,
            "calculated_at": self.calculated_at.isoformat() if self.calculated_at else None,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "locked_by": self.locked_by,
            "locked_at": self.locked_at.isoformat() if self.locked_at else None,
            "payment": self.payment.to_dict() if self.payment else None,
            "audit_trail": [e.to_dict() for e in self.audit_trail],
            "version": self.version,
        }
