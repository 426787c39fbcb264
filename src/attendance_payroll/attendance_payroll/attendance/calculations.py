"""Pure attendance arithmetic shared by the service and payroll."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import iso_week, iter_days, minutes_between, month_range
from ..core.enums import AttendanceStatus
from ..settings.model import CompanyRules
from .factory import AttendanceStrategyFactory
from .model import AttendanceDay, Break, MonthlyAttendanceSummary, WeekSummary

_factory = AttendanceStrategyFactory()


def total_break_minutes(breaks: Iterable[Break]) -> int:
    """Sum of closed break durations. Open breaks do not count."""
    return sum(b.duration_minutes for b in breaks if not b.is_open)


def working_hours(check_in: datetime, check_out: datetime, break_minutes: int) -> float:
    return max(0.0, (minutes_between(check_in, check_out) - break_minutes) / 60)


def determine_status(
    worked_hours: float,
    *,
    standard_hours: float,
    half_day_threshold: float,
    is_holiday: bool = False,
    is_on_leave: bool = False,
) -> AttendanceStatus:
    if is_holiday:
        return AttendanceStatus.HOLIDAY
    if is_on_leave:
        return AttendanceStatus.LEAVE
    strategy = _factory.for_checkout(
        worked_hours=worked_hours,
        standard_hours=standard_hours,
        half_day_threshold=half_day_threshold,
    )
    return strategy.decide(late_minutes=0, worked_hours=worked_hours).status


def validate_attendance_day(day: AttendanceDay) -> list[str]:
    """Structural checks for tamper review. Empty list means consistent."""

    errors: list[str] = []
    if day.check_out and day.check_out.time <= day.check_in.time:
        errors.append("Check-out time must be after check-in time")

    open_breaks = 0
    for i, b in enumerate(day.breaks, start=1):
        if b.end_time is None:
            open_breaks += 1
            continue
        if b.end_time <= b.start_time:
            errors.append(f"Break #{i}: End time must be after start time")
        if b.start_time < day.check_in.time:
            errors.append(f"Break #{i}: Starts before check-in")
        if day.check_out and b.end_time > day.check_out.time:
            errors.append(f"Break #{i}: Ends after check-out")
    if open_breaks > 1:
        errors.append("More than one open break")
    if day.check_out and open_breaks:
        errors.append("Open break on a closed day")

    actual_breaks = total_break_minutes(day.breaks)
    if day.total_break_minutes != actual_breaks:
        errors.append("Total break minutes do not match breaks")
    if day.check_out:
        expected = working_hours(day.check_in.time, day.check_out.time, actual_breaks)
        if abs(expected - day.total_working_hours) > 1e-6:
            errors.append("Total working hours do not match punches")
    return errors


def attendance_percentage(days: Sequence[AttendanceDay], working_days: int) -> float:
    if working_days <= 0:
        return 0.0
    present = sum(1 for d in days if d.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE))
    return present / working_days * 100


def working_days_in_month(year: int, month: int, rules: CompanyRules) -> int:
    first, last = month_range(year, month)
    return sum(1 for d in iter_days(first, last) if rules.is_working_day(d))


def monthly_summary(
    employee_id: int,
    month: int,
    year: int,
    days: Sequence[AttendanceDay],
    rules: CompanyRules,
    *,
    working_days: Optional[int] = None,
) -> MonthlyAttendanceSummary:
    counts = {status: 0 for status in AttendanceStatus}
    weeks: dict[int, dict] = {}
    total_hours = 0.0
    total_overtime = 0.0

    for d in days:
        counts[d.status] += 1
        total_hours += d.total_working_hours
        total_overtime += d.overtime_hours

        w = weeks.setdefault(iso_week(d.work_date), {"present": 0, "late": 0, "absent": 0, "hours": 0.0})
        if d.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
            w["present"] += 1
        elif d.status == AttendanceStatus.ABSENT:
            w["absent"] += 1
        if d.is_late:
            w["late"] += 1
        w["hours"] += d.total_working_hours

    if working_days is None:
        working_days = working_days_in_month(year, month, rules)

    return MonthlyAttendanceSummary(
        employee_id=employee_id,
        month=month,
        year=year,
        total=len(days),
        present=counts[AttendanceStatus.PRESENT],
        late=counts[AttendanceStatus.LATE],
        absent=counts[AttendanceStatus.ABSENT],
        half_day=counts[AttendanceStatus.HALF_DAY],
        holiday=counts[AttendanceStatus.HOLIDAY],
        leave=counts[AttendanceStatus.LEAVE],
        total_hours=total_hours,
        total_overtime=total_overtime,
        working_days=working_days,
        attendance_percentage=attendance_percentage(days, working_days),
        by_week={k: WeekSummary(**v) for k, v in weeks.items()},
    )
