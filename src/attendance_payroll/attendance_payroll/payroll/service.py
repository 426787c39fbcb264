from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_range, now_local
from ..common.locks import KeyedLocks
from ..common.validators import require_month
from ..core import events
from ..core.enums import PaymentMethod, PayrollStatus, SignatureType
from ..core.events import DomainEvent, EventSink
from ..core.exceptions import ConcurrentModification, DomainError, PayrollNotFound
from ..employees.repository import EmployeeDirectory
from ..employees.service import get_employee, require_admin
from ..leave.repository import LeaveLedger
from ..settings.model import CompanyRules
from ..shifts.service import ShiftResolver
from . import lifecycle
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator, validate_calculation
from .model import PayrollRecord
from .repository import PayrollRepository

logger = logging.getLogger("attendance_payroll.payroll")


@dataclass(frozen=True)
class BulkCalculationResult:
    results: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"results": self.results, "errors": self.errors}


class PayrollService:
    """Monthly payroll calculation and the approve / sign / lock / pay lifecycle."""

    def __init__(
        self,
        payrolls: PayrollRepository,
        attendance: AttendanceRepository,
        employees: EmployeeDirectory,
        shifts: ShiftResolver,
        leaves: LeaveLedger,
        *,
        rules_provider: Callable[[], CompanyRules],
        calculator: Optional[PayrollCalculator] = None,
        locks: KeyedLocks | None = None,
        events_sink: EventSink | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._payrolls = payrolls
        self._attendance = attendance
        self._employees = employees
        self._shifts = shifts
        self._leaves = leaves
        self._rules_provider = rules_provider
        self._calculator = calculator or StandardPayrollCalculator()
        self._locks = locks or KeyedLocks()
        self._events = events_sink
        self._clock = clock

    def _publish(self, name: str, record: PayrollRecord, *, actor_id: Optional[int], at: datetime, **payload) -> None:
        if self._events is None:
            return
        payload.update({"payroll_id": record.payroll_id, "employee_id": record.employee_id})
        self._events.publish(DomainEvent(name=name, occurred_at=at, actor_id=actor_id, payload=payload))

    def get(self, payroll_id: int) -> PayrollRecord:
        record = self._payrolls.get_by_id(payroll_id)
        if not record:
            raise PayrollNotFound()
        return record

    def _transition(self, payroll_id: int, step: Callable[[PayrollRecord], PayrollRecord]) -> PayrollRecord:
        """Apply one lifecycle step and persist it with a version compare-and-set."""
        with self._locks.hold(("payroll", payroll_id)):
            current = self.get(payroll_id)
            updated = step(current)
            saved = self._payrolls.update(updated, expected_version=current.version)
            if saved is None:
                logger.warning("payroll %s changed concurrently", payroll_id, extra={"payroll_id": payroll_id})
                raise ConcurrentModification()
            return saved

    # Calculation

    def calculate_payroll(self, employee_id: int, month: int, year: int, *, actor_id: Optional[int] = None) -> PayrollRecord:
        month, year = require_month(month, year)
        now = self._clock()
        rules = self._rules_provider()

        employee = get_employee(self._employees, employee_id)
        existing = self._payrolls.get_for_employee_month(employee_id, month, year)
        if existing is not None:
            # checked again inside the upsert
            lifecycle.ensure_recalculable(existing)
        shift = self._shifts.resolve(employee.shift_id, grace_minutes=rules.attendance.grace_minutes)
        first, last = month_range(year, month)
        attendance = self._attendance.list_for_employee_between(employee_id, first, last)
        leaves = self._leaves.approved_overlapping(employee_id, first, last)

        figures = self._calculator.calculate(
            employee=employee,
            month=month,
            year=year,
            attendance=attendance,
            leaves=leaves,
            shift=shift,
            rules=rules,
        )

        def build(existing: Optional[PayrollRecord]) -> PayrollRecord:
            return lifecycle.apply_calculation(
                existing,
                employee_id=employee_id,
                month=month,
                year=year,
                figures=figures,
                actor_id=actor_id,
                now=now,
            )

        with self._locks.hold(("payroll-month", employee_id, month, year)):
            record = self._payrolls.upsert_calculation(employee_id, month, year, build)

        logger.info(
            "payroll calculated employee=%s %s/%s net=%s",
            employee_id,
            month,
            year,
            record.figures.net_payable,
            extra={"payroll_id": record.payroll_id, "employee_id": employee_id},
        )
        self._publish(
            events.PAYROLL_CALCULATED,
            record,
            actor_id=actor_id,
            at=now,
            net_payable=str(record.figures.net_payable),
        )
        return record

    def calculate_all(self, month: int, year: int, *, actor_id: int) -> BulkCalculationResult:
        """Calculate every active employee; one failure does not stop the run."""

        require_admin(self._employees, actor_id, action="run payroll")
        month, year = require_month(month, year)
        result = BulkCalculationResult()
        for employee in self._employees.list_active():
            try:
                record = self.calculate_payroll(employee.employee_id, month, year, actor_id=actor_id)
            except DomainError as e:
                logger.warning(
                    "payroll failed for employee=%s: %s",
                    employee.employee_id,
                    e.message,
                    extra={"employee_id": employee.employee_id, "code": e.code},
                )
                result.errors.append({"employee_id": employee.employee_id, "employee": employee.full_name, **e.to_dict()})
                continue
            result.results.append(
                {
                    "employee_id": employee.employee_id,
                    "employee": employee.full_name,
                    "payroll_id": record.payroll_id,
                    "net_payable": str(record.figures.net_payable),
                }
            )
        return result

    def validate(self, payroll_id: int) -> list[str]:
        return validate_calculation(self.get(payroll_id).figures)

    # Lifecycle

    def approve_payroll(self, payroll_id: int, *, actor_id: int) -> PayrollRecord:
        require_admin(self._employees, actor_id, action="approve payroll")
        now = self._clock()
        record = self._transition(payroll_id, lambda p: lifecycle.approve(p, actor_id=actor_id, now=now))
        logger.info("payroll %s approved by %s", payroll_id, actor_id, extra={"payroll_id": payroll_id})
        self._publish(events.PAYROLL_APPROVED, record, actor_id=actor_id, at=now)
        return record

    def attach_signature(
        self,
        payroll_id: int,
        *,
        signature_type: SignatureType,
        signature_id: int,
        actor_id: int,
    ) -> PayrollRecord:
        now = self._clock()
        record = self._transition(
            payroll_id,
            lambda p: lifecycle.attach_signature(
                p,
                signature_type=signature_type,
                signature_id=signature_id,
                actor_id=actor_id,
                now=now,
            ),
        )
        self._publish(
            events.PAYROLL_SIGNED,
            record,
            actor_id=actor_id,
            at=now,
            signature_type=signature_type.value,
            signature_id=signature_id,
        )
        return record

    def lock_payroll(self, payroll_id: int, *, actor_id: int) -> PayrollRecord:
        require_admin(self._employees, actor_id, action="lock payroll")
        now = self._clock()
        record = self._transition(payroll_id, lambda p: lifecycle.lock(p, actor_id=actor_id, now=now))
        logger.info("payroll %s locked by %s", payroll_id, actor_id, extra={"payroll_id": payroll_id})
        self._publish(events.PAYROLL_LOCKED, record, actor_id=actor_id, at=now)
        return record

    def mark_paid(
        self,
        payroll_id: int,
        *,
        actor_id: int,
        method: PaymentMethod | str = PaymentMethod.BANK,
        reference: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> PayrollRecord:
        require_admin(self._employees, actor_id, action="mark payroll as paid")
        now = self._clock()
        record = self._transition(
            payroll_id,
            lambda p: lifecycle.mark_paid(
                p,
                actor_id=actor_id,
                now=now,
                method=PaymentMethod(method),
                reference=reference,
                transaction_id=transaction_id,
            ),
        )
        logger.info("payroll %s paid via %s", payroll_id, record.payment.method.value, extra={"payroll_id": payroll_id})
        self._publish(events.PAYROLL_PAID, record, actor_id=actor_id, at=now, method=record.payment.method.value)
        return record

    # Reports

    def monthly_summary(self, month: int, year: int) -> dict:
        month, year = require_month(month, year)
        records = self._payrolls.list_for_month(month, year)
        by_status = {s.value: 0 for s in PayrollStatus}
        for r in records:
            by_status[r.status.value] += 1
        return {
            "month": month,
            "year": year,
            "count": len(records),
            "total_gross": str(sum((r.figures.gross_pay for r in records), Decimal("0.00"))),
            "total_deductions": str(sum((r.figures.deductions.total for r in records), Decimal("0.00"))),
            "total_net": str(sum((r.figures.net_payable for r in records), Decimal("0.00"))),
            "locked": sum(1 for r in records if r.is_locked),
            "paid": by_status[PayrollStatus.PAID.value],
            "by_status": by_status,
        }

    def yearly_summary(self, employee_id: int, year: int) -> dict:
        _, year = require_month(1, year)
        records: Sequence[PayrollRecord] = self._payrolls.list_for_employee_year(employee_id, year)
        return {
            "employee_id": employee_id,
            "year": year,
            "total_gross": str(sum((r.figures.gross_pay for r in records), Decimal("0.00"))),
            "total_deductions": str(sum((r.figures.deductions.total for r in records), Decimal("0.00"))),
            "total_net": str(sum((r.figures.net_payable for r in records), Decimal("0.00"))),
            "total_overtime_hours": str(sum((r.figures.overtime.hours for r in records), Decimal("0.00"))),
            "monthly": [
                {
                    "month": r.month,
                    "gross_pay": str(r.figures.gross_pay),
                    "deductions": str(r.figures.deductions.total),
                    "net_payable": str(r.figures.net_payable),
                    "status": r.status.value,
                }
                for r in records
            ],
        }
