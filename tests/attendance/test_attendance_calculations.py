from datetime import date, datetime, time

import pytest

from src.attendance_payroll.attendance_payroll.attendance import calculations
from src.attendance_payroll.attendance_payroll.attendance.model import AttendanceDay, Break, Punch
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus, HolidayKind
from src.attendance_payroll.attendance_payroll.settings.model import CompanyRules, Holiday

DAY = date(2025, 6, 2)


def at(hour, minute=0):
    return datetime.combine(DAY, time(hour, minute))


def test_open_breaks_do_not_count_toward_break_total():
    breaks = (
        Break(start_time=at(12), end_time=at(12, 30), duration_minutes=30),
        Break(start_time=at(15)),
    )
    assert calculations.total_break_minutes(breaks) == 30


def test_working_hours_never_negative():
    assert calculations.working_hours(at(9), at(10), 90) == 0.0
    assert calculations.working_hours(at(9), at(17), 60) == pytest.approx(7.0)


def test_holiday_then_leave_take_precedence_over_hours():
    kwargs = dict(standard_hours=8, half_day_threshold=4)
    assert calculations.determine_status(9, is_holiday=True, is_on_leave=True, **kwargs) == AttendanceStatus.HOLIDAY
    assert calculations.determine_status(9, is_on_leave=True, **kwargs) == AttendanceStatus.LEAVE
    assert calculations.determine_status(9, **kwargs) == AttendanceStatus.PRESENT
    assert calculations.determine_status(5, **kwargs) == AttendanceStatus.HALF_DAY
    assert calculations.determine_status(1, **kwargs) == AttendanceStatus.ABSENT


def test_working_days_skip_weekends_and_holidays():
    rules = CompanyRules(holidays=(Holiday(day=date(2024, 6, 4), name="Founders Day", kind=HolidayKind.COMPANY, recurring=True),))

    assert calculations.working_days_in_month(2025, 6, CompanyRules()) == 21
    assert calculations.working_days_in_month(2025, 6, rules) == 20
    assert calculations.working_days_in_month(2025, 6, CompanyRules(working_weekdays=frozenset(range(7)))) == 30


def test_validate_attendance_day_reports_inconsistencies():
    day = AttendanceDay(
        attendance_id=1,
        employee_id=1,
        work_date=DAY,
        check_in=Punch(time=at(9)),
        check_out=Punch(time=at(18)),
        breaks=(Break(start_time=at(8, 30), end_time=at(8, 45), duration_minutes=15),),
        total_break_minutes=0,
        total_working_hours=9.0,
    )

    errors = calculations.validate_attendance_day(day)

    assert "Break #1: Starts before check-in" in errors
    assert "Total break minutes do not match breaks" in errors
    assert "Total working hours do not match punches" in errors


def test_validate_attendance_day_checks_hours_against_recorded_breaks():
    # stored totals agree with each other but not with the break itself
    day = AttendanceDay(
        attendance_id=1,
        employee_id=1,
        work_date=DAY,
        check_in=Punch(time=at(9)),
        check_out=Punch(time=at(18)),
        breaks=(Break(start_time=at(13), end_time=at(14), duration_minutes=60),),
        total_break_minutes=0,
        total_working_hours=9.0,
    )

    errors = calculations.validate_attendance_day(day)

    assert errors == [
        "Total break minutes do not match breaks",
        "Total working hours do not match punches",
    ]


def test_validate_attendance_day_accepts_consistent_day():
    day = AttendanceDay(
        attendance_id=1,
        employee_id=1,
        work_date=DAY,
        check_in=Punch(time=at(9)),
        check_out=Punch(time=at(18)),
        breaks=(Break(start_time=at(13), end_time=at(14), duration_minutes=60),),
        total_break_minutes=60,
        total_working_hours=8.0,
    )
    assert calculations.validate_attendance_day(day) == []


def test_monthly_summary_groups_by_iso_week():
    days = [
        AttendanceDay(None, 1, date(2025, 6, 2), Punch(time=at(9)), status=AttendanceStatus.PRESENT, total_working_hours=8),
        AttendanceDay(None, 1, date(2025, 6, 3), Punch(time=at(9)), status=AttendanceStatus.LATE, is_late=True, total_working_hours=8),
        AttendanceDay(None, 1, date(2025, 6, 9), Punch(time=at(9)), status=AttendanceStatus.ABSENT, total_working_hours=2),
    ]

    summary = calculations.monthly_summary(1, 6, 2025, days, CompanyRules(), working_days=20)

    assert summary.present == 1
    assert summary.late == 1
    assert summary.absent == 1
    assert summary.total_hours == pytest.approx(18)
    assert summary.attendance_percentage == pytest.approx(10.0)
    assert summary.by_week[23].present == 2
    assert summary.by_week[23].late == 1
    assert summary.by_week[24].absent == 1
