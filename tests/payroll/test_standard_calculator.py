from datetime import date, datetime, time
from decimal import Decimal

import pytest

from src.attendance_payroll.attendance_payroll.attendance.model import AttendanceDay, Punch
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus, LeaveType, Role
from src.attendance_payroll.attendance_payroll.core.exceptions import DivisionUndefined, NegativeNetPayable
from src.attendance_payroll.attendance_payroll.employees.model import Employee
from src.attendance_payroll.attendance_payroll.leave.model import LeaveApplication
from src.attendance_payroll.attendance_payroll.payroll.calculator.standard_calculator import (
    StandardPayrollCalculator,
    leave_breakdown,
    smart_late_half_days,
    validate_calculation,
)
from src.attendance_payroll.attendance_payroll.settings.model import (
    AllowanceComponent,
    CompanyRules,
    PayrollRules,
)
from src.attendance_payroll.attendance_payroll.shifts.model import DEFAULT_SHIFT

EMPLOYEE = Employee(1, "Asha Patel", Role.EMPLOYEE, Decimal("30000"))
# every calendar day is a working day: June 2025 has exactly 30
SEVEN_DAY_RULES = CompanyRules(working_weekdays=frozenset(range(7)), allowances=())


def day(d, *, status=AttendanceStatus.PRESENT, is_late=False, hours=8.0, overtime=0.0):
    return AttendanceDay(
        attendance_id=None,
        employee_id=1,
        work_date=d,
        check_in=Punch(time=datetime.combine(d, time(9, 0))),
        status=status,
        is_late=is_late,
        total_working_hours=hours,
        overtime_hours=overtime,
    )


def calculate(attendance=(), leaves=(), rules=SEVEN_DAY_RULES, employee=EMPLOYEE):
    return StandardPayrollCalculator().calculate(
        employee=employee,
        month=6,
        year=2025,
        attendance=list(attendance),
        leaves=list(leaves),
        shift=DEFAULT_SHIFT,
        rules=rules,
    )


def test_unpaid_leave_reduces_net_by_per_day_salary():
    leaves = [
        LeaveApplication(1, 1, LeaveType.UNPAID, date(2025, 6, 10), date(2025, 6, 11)),
        LeaveApplication(2, 1, LeaveType.PAID, date(2025, 6, 20), date(2025, 6, 20)),
    ]

    figures = calculate(leaves=leaves)

    assert figures.working_days == 30
    assert figures.per_day_salary == Decimal("1000.00")
    assert figures.leaves.unpaid == Decimal("2")
    assert figures.leaves.paid == Decimal("1")
    assert figures.unpaid_leave_amount == Decimal("2000.00")
    assert figures.gross_pay == Decimal("30000.00")
    assert figures.net_payable == Decimal("28000.00")
    assert validate_calculation(figures) == []


def test_smart_late_rule_uses_floor_division():
    assert smart_late_half_days(9, 3) == 3
    assert smart_late_half_days(8, 3) == 2
    assert smart_late_half_days(2, 3) == 0


def test_nine_late_days_add_three_half_day_penalties():
    attendance = [day(date(2025, 6, d), status=AttendanceStatus.LATE, is_late=True) for d in range(2, 11)]

    figures = calculate(attendance)

    assert figures.late_days == 9
    assert figures.present_days == 9
    assert figures.deductions.late_penalty == Decimal("900.00")
    assert figures.deductions.half_day_penalty == Decimal("1500.00")
    assert figures.net_payable == Decimal("27600.00")


def test_smart_late_rule_can_be_switched_off():
    rules = CompanyRules(
        working_weekdays=frozenset(range(7)),
        allowances=(),
        payroll=PayrollRules(smart_late_rule=False),
    )
    attendance = [day(date(2025, 6, d), status=AttendanceStatus.LATE, is_late=True) for d in range(2, 11)]

    assert calculate(attendance, rules=rules).deductions.half_day_penalty == Decimal("0.00")


def test_half_days_overtime_and_allowances():
    rules = CompanyRules(
        working_weekdays=frozenset(range(7)),
        allowances=(
            AllowanceComponent("house_rent", percentage_of_basic=Decimal("40")),
            AllowanceComponent("medical", amount=Decimal("1250")),
        ),
    )
    attendance = [
        day(date(2025, 6, 2), overtime=0.75),
        day(date(2025, 6, 3), overtime=1.25),
        day(date(2025, 6, 4), status=AttendanceStatus.HALF_DAY, hours=4.5),
    ]

    figures = calculate(attendance, rules=rules)

    assert figures.half_days == 1
    assert figures.deductions.half_day_penalty == Decimal("500.00")
    assert figures.overtime.hours == Decimal("2.00")
    # 2h * 1.5 * 100
    assert figures.overtime.amount == Decimal("300.00")
    assert figures.allowances.get("house_rent") == Decimal("12000.00")
    assert figures.allowances.total == Decimal("13250.00")
    assert figures.gross_pay == Decimal("43550.00")
    assert figures.net_payable == figures.gross_pay - figures.deductions.total


def test_tax_and_provident_fund_use_worked_hours():
    rules = CompanyRules(
        working_weekdays=frozenset(range(7)),
        allowances=(),
        payroll=PayrollRules(tax_deduction=True, tax_percentage=Decimal("10"), provident_fund=True),
    )
    attendance = [day(date(2025, 6, d)) for d in range(2, 12)]

    figures = calculate(attendance, rules=rules)

    # 80h / 8h per day * 1000 per day
    assert figures.deductions.tax == Decimal("1000.00")
    assert figures.deductions.provident_fund == Decimal("1200.00")


def test_per_day_salary_rounds_half_up():
    figures = calculate(rules=CompanyRules(allowances=()))
    # 30000 / 21 weekdays
    assert figures.per_day_salary == Decimal("1428.57")


def test_month_without_working_days_is_undefined():
    rules = CompanyRules(working_weekdays=frozenset(), allowances=())
    with pytest.raises(DivisionUndefined):
        calculate(rules=rules)


def test_negative_net_is_rejected():
    poor = Employee(9, "Intern", Role.EMPLOYEE, Decimal("3000"))
    leaves = [LeaveApplication(1, 9, LeaveType.UNPAID, date(2025, 6, 1), date(2025, 6, 30))]
    attendance = [day(date(2025, 6, d), status=AttendanceStatus.LATE, is_late=True) for d in range(1, 31)]

    with pytest.raises(NegativeNetPayable):
        calculate(attendance, leaves, employee=poor)


def test_leave_breakdown_clips_to_month_and_counts_half_days():
    leaves = [
        LeaveApplication(1, 1, LeaveType.SICK, date(2025, 5, 30), date(2025, 6, 2)),
        LeaveApplication(2, 1, LeaveType.PAID, date(2025, 6, 5), date(2025, 6, 5), is_half_day=True),
    ]

    breakdown = leave_breakdown(leaves, date(2025, 6, 1), date(2025, 6, 30))

    assert breakdown.sick == Decimal("2")
    assert breakdown.paid == Decimal("0.5")
    assert breakdown.total == Decimal("2.5")
