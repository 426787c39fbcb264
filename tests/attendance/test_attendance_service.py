from __future__ import annotations

import threading
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from src.attendance_payroll.attendance_payroll.core import events
from src.attendance_payroll.attendance_payroll.core.enums import (
    AttendanceAction,
    AttendanceStatus,
    LeaveType,
    Role,
    VerificationMethod,
)
from src.attendance_payroll.attendance_payroll.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AlreadyOnBreak,
    AttendanceImmutable,
    AttendanceNotFound,
    AuthorizationError,
    ConcurrentModification,
    EmployeeNotFound,
    MaxBreaksExceeded,
    NoActiveBreak,
    NoActiveShift,
    NoCheckIn,
    OutsideGeoFence,
    ShiftNotFound,
    ValidationError,
)
from src.attendance_payroll.attendance_payroll.employees.model import Employee
from src.attendance_payroll.attendance_payroll.geo.policy import GeoPoint
from src.attendance_payroll.attendance_payroll.leave.model import LeaveApplication
from src.attendance_payroll.attendance_payroll.shifts.model import ShiftPolicy

EMPLOYEE = 1
ADMIN = 2
INACTIVE = 4
OFFICE = GeoPoint(23.032546, 72.5030202)
DAY = date(2025, 6, 2)


def at(hour, minute=0):
    return datetime.combine(DAY, time(hour, minute))


def test_late_check_in_then_full_day_check_out(container, clock, recorded_events):
    service = container.attendance_service

    clock.now = at(9, 20)
    day = service.check_in(EMPLOYEE, location=OFFICE, device_id="phone-1", ip_address="10.0.0.5")

    assert day.late_minutes == 20
    assert day.is_late is True
    assert day.status == AttendanceStatus.LATE
    assert day.check_in.time == at(9, 20)

    clock.now = at(18, 45)
    day = service.check_out(EMPLOYEE, location=OFFICE)

    assert day.total_working_hours == pytest.approx(9.417, abs=1e-3)
    assert day.overtime_hours == pytest.approx(0.75)
    assert day.status == AttendanceStatus.PRESENT
    assert day.is_late is True
    assert day.is_early_checkout is False
    assert [e.action for e in day.activity_log] == [AttendanceAction.CHECK_IN, AttendanceAction.CHECK_OUT]
    assert recorded_events.names() == [events.CHECKED_IN, events.LATE_CHECK_IN, events.CHECKED_OUT]


def test_check_in_within_grace_is_present_but_keeps_late_minutes(container, clock):
    clock.now = at(9, 10)
    day = container.attendance_service.check_in(EMPLOYEE, location=OFFICE)

    assert day.status == AttendanceStatus.PRESENT
    assert day.is_late is False
    assert day.late_minutes == 10


def test_second_check_in_same_day_is_rejected(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)
    service.check_in(EMPLOYEE)

    clock.now = at(9, 30)
    with pytest.raises(AlreadyCheckedIn):
        service.check_in(EMPLOYEE)


def test_check_in_outside_geo_fence_stores_nothing(container, clock):
    clock.now = at(9, 0)
    with pytest.raises(OutsideGeoFence) as exc:
        container.attendance_service.check_in(EMPLOYEE, location=GeoPoint(23.032546 + 0.0018, 72.5030202))

    assert exc.value.distance_m == pytest.approx(200, abs=1)
    assert container.attendance_service.get_today(EMPLOYEE) is None


def test_check_in_requires_known_active_employee(container, clock):
    clock.now = at(9, 0)
    with pytest.raises(EmployeeNotFound):
        container.attendance_service.check_in(999)
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(INACTIVE)


def test_breaks_are_tracked_and_limited(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)
    service.check_in(EMPLOYEE)

    clock.now = at(12, 0)
    day = service.start_break(EMPLOYEE)
    assert day.is_on_break

    with pytest.raises(AlreadyOnBreak):
        service.start_break(EMPLOYEE, now=at(12, 5))

    day = service.end_break(EMPLOYEE, now=at(12, 30))
    assert day.breaks[0].duration_minutes == 30
    assert day.total_break_minutes == 30
    assert not day.is_on_break

    service.start_break(EMPLOYEE, now=at(15, 0))
    day = service.end_break(EMPLOYEE, now=at(15, 10))
    assert day.total_break_minutes == 40

    with pytest.raises(MaxBreaksExceeded) as exc:
        service.start_break(EMPLOYEE, now=at(16, 0))
    assert exc.value.limit == 2

    day = service.check_out(EMPLOYEE, now=at(18, 0))
    assert day.total_working_hours == pytest.approx((540 - 40) / 60)
    assert day.overtime_hours == 0
    assert day.status == AttendanceStatus.PRESENT


def test_break_and_check_out_preconditions(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)

    with pytest.raises(NoActiveShift):
        service.start_break(EMPLOYEE)
    with pytest.raises(NoCheckIn):
        service.check_out(EMPLOYEE)

    service.check_in(EMPLOYEE)
    with pytest.raises(NoActiveBreak):
        service.end_break(EMPLOYEE, now=at(10, 0))

    service.check_out(EMPLOYEE, now=at(18, 0))
    with pytest.raises(AlreadyCheckedOut):
        service.check_out(EMPLOYEE, now=at(18, 5))
    with pytest.raises(NoActiveShift):
        service.start_break(EMPLOYEE, now=at(18, 10))


def test_break_end_must_follow_start(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)
    service.check_in(EMPLOYEE)
    service.start_break(EMPLOYEE, now=at(12, 0))

    with pytest.raises(ValidationError):
        service.end_break(EMPLOYEE, now=at(12, 0))


def test_check_out_closes_open_break_and_flags_early_leave(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)
    service.check_in(EMPLOYEE)
    service.start_break(EMPLOYEE, now=at(13, 0))

    day = service.check_out(EMPLOYEE, now=at(14, 0))

    assert not day.is_on_break
    assert day.breaks[0].end_time == at(14, 0)
    assert day.total_break_minutes == 60
    assert day.total_working_hours == pytest.approx(4.0)
    assert day.status == AttendanceStatus.HALF_DAY
    assert day.is_early_checkout is True
    assert day.early_checkout_minutes == 240


def test_short_day_is_absent(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)
    service.check_in(EMPLOYEE)

    day = service.check_out(EMPLOYEE, now=at(11, 0))
    assert day.status == AttendanceStatus.ABSENT


def test_approved_leave_overrides_worked_status(container, clock):
    container.leaves_repo.add(
        LeaveApplication(
            leave_id=1,
            employee_id=EMPLOYEE,
            leave_type=LeaveType.PAID,
            start_date=DAY,
            end_date=DAY,
        )
    )
    service = container.attendance_service
    clock.now = at(9, 0)
    service.check_in(EMPLOYEE)

    day = service.check_out(EMPLOYEE, now=at(12, 0))
    assert day.status == AttendanceStatus.LEAVE


def test_check_out_must_be_after_check_in(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)
    service.check_in(EMPLOYEE)

    with pytest.raises(ValidationError):
        service.check_out(EMPLOYEE, now=at(9, 0))


def test_verify_is_admin_only_idempotent_and_freezes_the_day(container, clock, recorded_events):
    service = container.attendance_service
    clock.now = at(9, 0)
    day = service.check_in(EMPLOYEE)

    with pytest.raises(AuthorizationError):
        service.verify(day.attendance_id, actor_id=EMPLOYEE)

    clock.now = at(10, 0)
    verified = service.verify(day.attendance_id, actor_id=ADMIN, method=VerificationMethod.GEO)
    assert verified.verification.verified_by == ADMIN
    assert verified.verification.method == VerificationMethod.GEO

    clock.now = at(11, 0)
    again = service.verify(day.attendance_id, actor_id=ADMIN)
    assert again.verification.verified_at == at(10, 0)
    assert recorded_events.names().count(events.ATTENDANCE_VERIFIED) == 1

    with pytest.raises(AttendanceImmutable):
        service.start_break(EMPLOYEE, now=at(12, 0))
    with pytest.raises(AttendanceImmutable):
        service.check_out(EMPLOYEE, now=at(18, 0))

    with pytest.raises(AttendanceNotFound):
        service.verify(999, actor_id=ADMIN)


def test_failed_compare_and_set_leaves_record_unchanged(container, clock, monkeypatch):
    service = container.attendance_service
    clock.now = at(9, 0)
    before = service.check_in(EMPLOYEE)

    monkeypatch.setattr(container.attendance_repo, "update", lambda day, *, expected_version: None)
    with pytest.raises(ConcurrentModification):
        service.start_break(EMPLOYEE, now=at(12, 0))

    assert service.get_today(EMPLOYEE) == before


def test_concurrent_check_ins_create_one_record(container, clock):
    service = container.attendance_service
    clock.now = at(9, 0)
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            service.check_in(EMPLOYEE)
            results.append("ok")
        except AlreadyCheckedIn:
            results.append("conflict")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("conflict") == 7


def test_assigned_shift_drives_lateness(container, clock):
    container.shifts_repo.add(
        ShiftPolicy(shift_id=7, shift_name="Early", start_time=time(7, 0), end_time=time(16, 0), grace_minutes=5)
    )
    container.employees_repo.add(Employee(20, "Early Bird", Role.EMPLOYEE, Decimal("20000"), shift_id=7))
    container.employees_repo.add(Employee(21, "Lost Shift", Role.EMPLOYEE, Decimal("20000"), shift_id=99))

    clock.now = at(7, 6)
    day = container.attendance_service.check_in(20)
    assert day.late_minutes == 6
    assert day.status == AttendanceStatus.LATE

    with pytest.raises(ShiftNotFound):
        container.attendance_service.check_in(21)


def test_monthly_summary_counts_working_days(container, clock):
    service = container.attendance_service
    clock.now = at(9, 20)
    service.check_in(EMPLOYEE)
    service.check_out(EMPLOYEE, now=at(18, 45))

    summary = service.monthly_summary(EMPLOYEE, 6, 2025)

    assert summary.total == 1
    assert summary.present == 1
    assert summary.working_days == 21
    assert summary.attendance_percentage == pytest.approx(100 / 21)
    assert summary.to_dict()["total_overtime"] == 0.75
