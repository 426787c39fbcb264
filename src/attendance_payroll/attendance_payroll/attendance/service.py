from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import minutes_between, month_range, now_local
from ..common.locks import KeyedLocks
from ..common.validators import require_month
from ..core import events
from ..core.enums import AttendanceAction, VerificationMethod
from ..core.events import DomainEvent, EventSink
from ..core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AlreadyOnBreak,
    AttendanceImmutable,
    AttendanceNotFound,
    ConcurrentModification,
    MaxBreaksExceeded,
    NoActiveBreak,
    NoActiveShift,
    NoCheckIn,
    ValidationError,
)
from ..employees.repository import EmployeeDirectory
from ..employees.service import get_employee, require_admin
from ..geo.policy import GeoPoint
from ..leave.repository import LeaveLedger
from ..settings.model import CompanyRules
from ..shifts.service import ShiftResolver
from . import calculations
from .factory import AttendanceStrategyFactory
from .model import ActivityLogEntry, AttendanceDay, Break, MonthlyAttendanceSummary, Punch, Verification
from .repository import AttendanceRepository

logger = logging.getLogger("attendance_payroll.attendance")


class AttendanceService:
    """Daily attendance state machine.

    Empty -> CheckedIn -> (OnBreak <-> CheckedIn) -> CheckedOut. Every
    mutation of one (employee, date) runs under a per-key lock and is
    persisted with a version compare-and-set; a failed operation leaves the
    stored record untouched.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeDirectory,
        shifts: ShiftResolver,
        *,
        rules_provider: Callable[[], CompanyRules],
        leaves: LeaveLedger | None = None,
        locks: KeyedLocks | None = None,
        events_sink: EventSink | None = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._employees = employees
        self._shifts = shifts
        self._rules_provider = rules_provider
        self._leaves = leaves
        self._locks = locks or KeyedLocks()
        self._events = events_sink
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    # Helpers

    def _publish(self, name: str, *, actor_id: Optional[int], at: datetime, **payload) -> None:
        if self._events is None:
            return
        self._events.publish(DomainEvent(name=name, occurred_at=at, actor_id=actor_id, payload=payload))

    def _save(self, day: AttendanceDay) -> AttendanceDay:
        saved = self._attendance.update(day, expected_version=day.version)
        if saved is None:
            logger.warning(
                "attendance %s changed concurrently",
                day.attendance_id,
                extra={"attendance_id": day.attendance_id, "employee_id": day.employee_id},
            )
            raise ConcurrentModification()
        return saved

    def _open_day(self, employee_id: int, today: date) -> AttendanceDay:
        day = self._attendance.get_for_employee_and_date(employee_id, today)
        if not day or day.is_checked_out:
            raise NoActiveShift()
        if day.is_verified:
            raise AttendanceImmutable()
        return day

    def _is_on_leave(self, employee_id: int, day: date) -> bool:
        if self._leaves is None:
            return False
        return any(not leave.is_half_day for leave in self._leaves.approved_overlapping(employee_id, day, day))

    @staticmethod
    def _log(action: AttendanceAction, at: datetime, location, device_id, ip_address) -> ActivityLogEntry:
        return ActivityLogEntry(action=action, timestamp=at, ip_address=ip_address, location=location, device_id=device_id)

    # Commands

    def check_in(
        self,
        employee_id: int,
        *,
        now: datetime | None = None,
        location: GeoPoint | None = None,
        device_id: str | None = None,
        ip_address: str | None = None,
    ) -> AttendanceDay:
        now = now or self._clock()
        today = now.date()
        rules = self._rules_provider()

        employee = get_employee(self._employees, employee_id)
        if not employee.is_active:
            raise ValidationError("Employee is inactive")

        with self._locks.hold((employee_id, today)):
            if self._attendance.get_for_employee_and_date(employee_id, today):
                raise AlreadyCheckedIn()
            distance = rules.geo_fence.check(location)

            shift = self._shifts.resolve(employee.shift_id, grace_minutes=rules.attendance.grace_minutes)
            late_minutes = shift.late_minutes(now)
            decision = self._factory.for_checkin(late_minutes=late_minutes, grace_minutes=shift.grace_minutes).decide(
                late_minutes=late_minutes, worked_hours=None
            )

            day = AttendanceDay(
                attendance_id=None,
                employee_id=employee_id,
                work_date=today,
                check_in=Punch(time=now, location=location, device_id=device_id, ip_address=ip_address),
                status=decision.status,
                is_late=late_minutes > shift.grace_minutes,
                late_minutes=late_minutes,
                activity_log=(self._log(AttendanceAction.CHECK_IN, now, location, device_id, ip_address),),
            )
            day = self._attendance.create(day)

        logger.info(
            "check-in employee=%s status=%s late_minutes=%s",
            employee_id,
            day.status.value,
            late_minutes,
            extra={"employee_id": employee_id, "distance_m": distance},
        )
        self._publish(events.CHECKED_IN, actor_id=employee_id, at=now, attendance_id=day.attendance_id)
        if day.is_late:
            self._publish(
                events.LATE_CHECK_IN,
                actor_id=employee_id,
                at=now,
                attendance_id=day.attendance_id,
                late_minutes=late_minutes,
            )
        return day

    def start_break(
        self,
        employee_id: int,
        *,
        now: datetime | None = None,
        location: GeoPoint | None = None,
        device_id: str | None = None,
        ip_address: str | None = None,
    ) -> AttendanceDay:
        now = now or self._clock()
        today = now.date()
        rules = self._rules_provider()

        with self._locks.hold((employee_id, today)):
            day = self._open_day(employee_id, today)
            if day.is_on_break:
                raise AlreadyOnBreak()
            limit = rules.attendance.max_breaks_per_day
            if len(day.breaks) >= limit:
                raise MaxBreaksExceeded(limit)
            if now < day.check_in.time:
                raise ValidationError("Break cannot start before check-in")

            day = self._save(
                replace(
                    day,
                    breaks=day.breaks + (Break(start_time=now, start_location=location),),
                    activity_log=day.activity_log
                    + (self._log(AttendanceAction.BREAK_START, now, location, device_id, ip_address),),
                )
            )

        logger.info("break started employee=%s", employee_id, extra={"employee_id": employee_id})
        self._publish(events.BREAK_STARTED, actor_id=employee_id, at=now, attendance_id=day.attendance_id)
        return day

    def end_break(
        self,
        employee_id: int,
        *,
        now: datetime | None = None,
        location: GeoPoint | None = None,
        device_id: str | None = None,
        ip_address: str | None = None,
    ) -> AttendanceDay:
        now = now or self._clock()
        today = now.date()

        with self._locks.hold((employee_id, today)):
            day = self._open_day(employee_id, today)
            current = day.open_break
            if current is None:
                raise NoActiveBreak()
            if now <= current.start_time:
                raise ValidationError("Break end must be after its start")

            closed = replace(
                current,
                end_time=now,
                end_location=location,
                duration_minutes=minutes_between(current.start_time, now),
            )
            breaks = tuple(closed if b is current else b for b in day.breaks)
            day = self._save(
                replace(
                    day,
                    breaks=breaks,
                    total_break_minutes=calculations.total_break_minutes(breaks),
                    activity_log=day.activity_log
                    + (self._log(AttendanceAction.BREAK_END, now, location, device_id, ip_address),),
                )
            )

        logger.info(
            "break ended employee=%s duration=%s",
            employee_id,
            closed.duration_minutes,
            extra={"employee_id": employee_id},
        )
        self._publish(
            events.BREAK_ENDED,
            actor_id=employee_id,
            at=now,
            attendance_id=day.attendance_id,
            duration_minutes=closed.duration_minutes,
        )
        return day

    def check_out(
        self,
        employee_id: int,
        *,
        now: datetime | None = None,
        location: GeoPoint | None = None,
        device_id: str | None = None,
        ip_address: str | None = None,
    ) -> AttendanceDay:
        now = now or self._clock()
        today = now.date()
        rules = self._rules_provider()
        employee = get_employee(self._employees, employee_id)

        with self._locks.hold((employee_id, today)):
            day = self._attendance.get_for_employee_and_date(employee_id, today)
            if not day:
                raise NoCheckIn()
            if day.is_checked_out:
                raise AlreadyCheckedOut()
            if day.is_verified:
                raise AttendanceImmutable()
            rules.geo_fence.check(location)
            if now <= day.check_in.time:
                raise ValidationError("Check-out time must be after check-in time")

            breaks = day.breaks
            current = day.open_break
            if current is not None:
                if now <= current.start_time:
                    raise ValidationError("Check-out time must be after the open break started")
                closed = replace(current, end_time=now, end_location=location, duration_minutes=minutes_between(current.start_time, now))
                breaks = tuple(closed if b is current else b for b in breaks)

            shift = self._shifts.resolve(employee.shift_id, grace_minutes=rules.attendance.grace_minutes)
            break_minutes = calculations.total_break_minutes(breaks)
            hours = calculations.working_hours(day.check_in.time, now, break_minutes)
            status = calculations.determine_status(
                hours,
                standard_hours=shift.standard_hours,
                half_day_threshold=rules.attendance.half_day_threshold_hours,
                is_holiday=rules.is_holiday(today),
                is_on_leave=self._is_on_leave(employee_id, today),
            )
            early_minutes = shift.early_checkout_minutes(now)

            day = self._save(
                replace(
                    day,
                    check_out=Punch(time=now, location=location, device_id=device_id, ip_address=ip_address),
                    breaks=breaks,
                    total_break_minutes=break_minutes,
                    total_working_hours=hours,
                    overtime_hours=shift.overtime_hours(now),
                    status=status,
                    is_early_checkout=early_minutes > shift.grace_minutes,
                    early_checkout_minutes=early_minutes,
                    activity_log=day.activity_log
                    + (self._log(AttendanceAction.CHECK_OUT, now, location, device_id, ip_address),),
                )
            )

        logger.info(
            "check-out employee=%s status=%s hours=%.2f overtime=%.2f",
            employee_id,
            day.status.value,
            day.total_working_hours,
            day.overtime_hours,
            extra={"employee_id": employee_id},
        )
        self._publish(
            events.CHECKED_OUT,
            actor_id=employee_id,
            at=now,
            attendance_id=day.attendance_id,
            status=day.status.value,
            total_working_hours=day.total_working_hours,
        )
        return day

    def verify(
        self,
        attendance_id: int,
        *,
        actor_id: int,
        method: VerificationMethod = VerificationMethod.MANUAL,
        now: datetime | None = None,
    ) -> AttendanceDay:
        """Mark a day as verified. Idempotent: the first verification wins."""

        require_admin(self._employees, actor_id, action="verify attendance")
        now = now or self._clock()

        day = self._attendance.get_by_id(attendance_id)
        if not day:
            raise AttendanceNotFound()

        with self._locks.hold((day.employee_id, day.work_date)):
            day = self._attendance.get_by_id(attendance_id)
            if day.is_verified:
                return day
            day = self._save(
                replace(
                    day,
                    verification=Verification(verified_by=actor_id, method=VerificationMethod(method), verified_at=now),
                    activity_log=day.activity_log + (self._log(AttendanceAction.VERIFY, now, None, None, None),),
                )
            )

        logger.info("attendance %s verified by %s", attendance_id, actor_id, extra={"attendance_id": attendance_id})
        self._publish(events.ATTENDANCE_VERIFIED, actor_id=actor_id, at=now, attendance_id=attendance_id)
        return day

    # Queries

    def get_today(self, employee_id: int, *, today: date | None = None) -> Optional[AttendanceDay]:
        today = today or self._clock().date()
        return self._attendance.get_for_employee_and_date(employee_id, today)

    def list_month(self, employee_id: int, month: int, year: int) -> Sequence[AttendanceDay]:
        month, year = require_month(month, year)
        first, last = month_range(year, month)
        return self._attendance.list_for_employee_between(employee_id, first, last)

    def monthly_summary(self, employee_id: int, month: int, year: int) -> MonthlyAttendanceSummary:
        month, year = require_month(month, year)
        days = self.list_month(employee_id, month, year)
        return calculations.monthly_summary(employee_id, month, year, days, self._rules_provider())
