"""JSON-friendly dict <-> payroll value conversion used by storage."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from ..common.datetime_utils import parse_iso_datetime
from ..core.enums import PaymentMethod, PayrollAction
from .model import (
    Allowances,
    AuditEntry,
    Deductions,
    LeaveBreakdown,
    OvertimeSummary,
    PaymentDetails,
    PayrollFigures,
)


def _d(value: Any) -> Decimal:
    return Decimal(str(value if value is not None else "0"))


def figures_from_dict(data: Mapping[str, Any]) -> PayrollFigures:
    leaves = data.get("leaves") or {}
    overtime = data.get("overtime") or {}
    deductions = data.get("deductions") or {}
    allowances = {k: v for k, v in (data.get("allowances") or {}).items() if k != "total"}
    return PayrollFigures(
        basic_salary=_d(data["basic_salary"]),
        per_day_salary=_d(data["per_day_salary"]),
        working_days=int(data["working_days"]),
        present_days=int(data.get("present_days", 0)),
        absent_days=int(data.get("absent_days", 0)),
        half_days=int(data.get("half_days", 0)),
        late_days=int(data.get("late_days", 0)),
        worked_hours=_d(data.get("worked_hours")),
        leaves=LeaveBreakdown(paid=_d(leaves.get("paid")), unpaid=_d(leaves.get("unpaid")), sick=_d(leaves.get("sick"))),
        overtime=OvertimeSummary(
            hours=_d(overtime.get("hours")),
            rate=_d(overtime.get("rate")),
            amount=_d(overtime.get("amount")),
        ),
        deductions=Deductions(
            late_penalty=_d(deductions.get("late_penalty")),
            half_day_penalty=_d(deductions.get("half_day_penalty")),
            tax=_d(deductions.get("tax")),
            provident_fund=_d(deductions.get("provident_fund")),
            other=_d(deductions.get("other")),
        ),
        allowances=Allowances(tuple((name, _d(amount)) for name, amount in allowances.items())),
        unpaid_leave_amount=_d(data.get("unpaid_leave_amount")),
        gross_pay=_d(data["gross_pay"]),
        net_payable=_d(data["net_payable"]),
        currency=str(data.get("currency", "")),
    )


def audit_from_dict(data: Mapping[str, Any]) -> AuditEntry:
    return AuditEntry(
        action=PayrollAction(data["action"]),
        actor_id=data.get("actor_id"),
        timestamp=parse_iso_datetime(data["timestamp"]),
        details=dict(data.get("details") or {}),
    )


def payment_from_dict(data: Mapping[str, Any] | None) -> PaymentDetails | None:
    if not data:
        return None
    return PaymentDetails(
        method=PaymentMethod(data["method"]),
        processed_by=int(data["processed_by"]),
        paid_at=parse_iso_datetime(data["paid_at"]),
        reference=data.get("reference"),
        transaction_id=data.get("transaction_id"),
    )
