from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from ...attendance.calculations import working_days_in_month
from ...attendance.model import AttendanceDay
from ...common.datetime_utils import month_range
from ...core.constants import MONEY_QUANT
from ...core.enums import AttendanceStatus, LeaveType
from ...core.exceptions import DivisionUndefined, NegativeNetPayable
from ...employees.model import Employee
from ...leave.model import LeaveApplication
from ...settings.model import CompanyRules, PayrollRules
from ...shifts.model import ShiftPolicy
from ..model import Allowances, Deductions, LeaveBreakdown, OvertimeSummary, PayrollFigures
from .base import PayrollCalculator

ZERO = Decimal("0")
HUNDRED = Decimal("100")
HOURS_QUANT = Decimal("0.01")


def money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def leave_breakdown(leaves: Sequence[LeaveApplication], first: date, last: date) -> LeaveBreakdown:
    """Sum leave days by type after clipping each application to [first, last]."""
    totals = {t: ZERO for t in LeaveType}
    for leave in leaves:
        totals[leave.leave_type] += _dec(leave.days_within(first, last))
    return LeaveBreakdown(
        paid=totals[LeaveType.PAID],
        unpaid=totals[LeaveType.UNPAID],
        sick=totals[LeaveType.SICK],
    )


def smart_late_half_days(late_count: int, lates_for_half_day: int) -> int:
    """Every N late arrivals convert into one extra half-day (floor division)."""
    return late_count // lates_for_half_day


def _overtime(attendance: Sequence[AttendanceDay], rules: PayrollRules) -> OvertimeSummary:
    hours = sum((_dec(d.overtime_hours) for d in attendance), ZERO).quantize(HOURS_QUANT, rounding=ROUND_HALF_UP)
    return OvertimeSummary(
        hours=hours,
        rate=rules.overtime_rate,
        amount=money(hours * rules.overtime_rate * rules.overtime_pay_basis),
    )


class StandardPayrollCalculator(PayrollCalculator):
    """Monthly salary from attendance, leave and company rules.

    gross = basic + allowances + overtime
    net   = gross - unpaid leave days * per-day salary - deductions
    """

    def calculate(
        self,
        *,
        employee: Employee,
        month: int,
        year: int,
        attendance: Sequence[AttendanceDay],
        leaves: Sequence[LeaveApplication],
        shift: ShiftPolicy,
        rules: CompanyRules,
    ) -> PayrollFigures:
        pr = rules.payroll
        first, last = month_range(year, month)

        working_days = working_days_in_month(year, month, rules)
        if working_days == 0:
            raise DivisionUndefined()

        basic = money(employee.basic_salary)
        per_day = money(basic / working_days)

        present_days = sum(1 for d in attendance if d.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE))
        absent_days = sum(1 for d in attendance if d.status == AttendanceStatus.ABSENT)
        half_days = sum(1 for d in attendance if d.status == AttendanceStatus.HALF_DAY)
        late_days = sum(1 for d in attendance if d.is_late)
        worked_hours = sum((_dec(d.total_working_hours) for d in attendance), ZERO).quantize(
            HOURS_QUANT, rounding=ROUND_HALF_UP
        )

        leave_days = leave_breakdown(leaves, first, last)
        overtime = _overtime(attendance, pr)
        unpaid_leave_amount = money(leave_days.unpaid * per_day)

        half_day_penalty = money(half_days * per_day * pr.half_day_penalty)
        if pr.smart_late_rule:
            extra = smart_late_half_days(late_days, pr.lates_for_half_day)
            half_day_penalty += money(extra * per_day / 2)

        # compensation for the hours actually worked, less unpaid leave
        taxable = max(ZERO, worked_hours * per_day / _dec(shift.standard_hours) - unpaid_leave_amount)
        deductions = Deductions(
            late_penalty=money(late_days * pr.late_penalty),
            half_day_penalty=half_day_penalty,
            tax=money(taxable * pr.tax_percentage / HUNDRED) if pr.tax_deduction else money(ZERO),
            provident_fund=money(taxable * pr.pf_percentage / HUNDRED) if pr.provident_fund else money(ZERO),
            other=money(ZERO),
        )

        allowances = Allowances(tuple((c.name, money(c.value_for(basic))) for c in rules.allowances))

        gross_pay = basic + allowances.total + overtime.amount
        net_payable = gross_pay - unpaid_leave_amount - deductions.total
        if net_payable < 0:
            raise NegativeNetPayable(net_payable)

        return PayrollFigures(
            basic_salary=basic,
            per_day_salary=per_day,
            working_days=working_days,
            present_days=present_days,
            absent_days=absent_days,
            half_days=half_days,
            late_days=late_days,
            worked_hours=worked_hours,
            leaves=leave_days,
            overtime=overtime,
            deductions=deductions,
            allowances=allowances,
            unpaid_leave_amount=unpaid_leave_amount,
            gross_pay=gross_pay,
            net_payable=net_payable,
            currency=pr.currency,
        )


def validate_calculation(figures: PayrollFigures) -> list[str]:
    """Sanity checks on a finished calculation. Empty list means consistent."""
    errors: list[str] = []
    if figures.net_payable < 0:
        errors.append("Net payable cannot be negative")
    if figures.deductions.total > figures.gross_pay:
        errors.append("Deductions cannot exceed gross pay")
    if figures.present_days > figures.working_days:
        errors.append("Present days cannot exceed working days")
    if figures.gross_pay != figures.basic_salary + figures.allowances.total + figures.overtime.amount:
        errors.append("Gross pay does not match its components")
    if figures.net_payable != figures.gross_pay - figures.unpaid_leave_amount - figures.deductions.total:
        errors.append("Net payable does not match its components")
    return errors
