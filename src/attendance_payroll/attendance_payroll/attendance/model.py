from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import AttendanceAction, AttendanceStatus, VerificationMethod
from ..geo.policy import GeoPoint


@dataclass(frozen=True)
class Punch:
    time: datetime
    location: Optional[GeoPoint] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "time": self.time.isoformat(),
            "location": self.location.to_dict() if self.location else None,
            "device_id": self.device_id,
            "ip_address": self.ip_address,
        }


@dataclass(frozen=True)
class Break:
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: int = 0
    start_location: Optional[GeoPoint] = None
    end_location: Optional[GeoPoint] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_minutes": self.duration_minutes,
            "start_location": self.start_location.to_dict() if self.start_location else None,
            "end_location": self.end_location.to_dict() if self.end_location else None,
        }


@dataclass(frozen=True)
class ActivityLogEntry:
    """One IP/location sample per action, kept for tamper review."""

    action: AttendanceAction
    timestamp: datetime
    ip_address: Optional[str] = None
    location: Optional[GeoPoint] = None
    device_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "ip_address": self.ip_address,
            "location": self.location.to_dict() if self.location else None,
            "device_id": self.device_id,
        }


@dataclass(frozen=True)
class Verification:
    verified_by: int
    method: VerificationMethod
    verified_at: datetime

    def to_dict(self) -> dict:
        return {
            "verified_by": self.verified_by,
            "method": self.method.value,
            "verified_at": self.verified_at.isoformat(),
        }


@dataclass(frozen=True)
class AttendanceDay:
    """Domain entity: one employee's attendance for one calendar day.

    Instances are never mutated; every transition builds a new value with
    ``version`` bumped by the repository on a successful write.
    """

    attendance_id: Optional[int]
    employee_id: int
    work_date: date
    check_in: Punch
    check_out: Optional[Punch] = None
    breaks: tuple[Break, ...] = ()
    total_break_minutes: int = 0
    total_working_hours: float = 0.0
    overtime_hours: float = 0.0
    status: AttendanceStatus = AttendanceStatus.PRESENT
    is_late: bool = False
    late_minutes: int = 0
    is_early_checkout: bool = False
    early_checkout_minutes: int = 0
    verification: Optional[Verification] = None
    activity_log: tuple[ActivityLogEntry, ...] = ()
    version: int = 0

    @property
    def is_checked_out(self) -> bool:
        return self.check_out is not None

    @property
    def is_verified(self) -> bool:
        return self.verification is not None

    @property
    def open_break(self) -> Optional[Break]:
        for b in self.breaks:
            if b.is_open:
                return b
        return None

    @property
    def is_on_break(self) -> bool:
        return self.open_break is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "check_in": self.check_in.to_dict(),
            "check_out": self.check_out.to_dict() if self.check_out else None,
            "breaks": [b.to_dict() for b in self.breaks],
            "total_break_minutes": self.total_break_minutes,
            "total_working_hours": round(self.total_working_hours, 3),
            "overtime_hours": round(self.overtime_hours, 3),
            "status": self.status.value,
            "is_late": self.is_late,
            "late_minutes": self.late_minutes,
            "is_early_checkout": self.is_early_checkout,
            "early_checkout_minutes": self.early_checkout_minutes,
            "verification": self.verification.to_dict() if self.verification else None,
            "activity_log": [e.to_dict() for e in self.activity_log],
            "version": self.version,
        }


@dataclass(frozen=True)
class WeekSummary:
    present: int = 0
    late: int = 0
    absent: int = 0
    hours: float = 0.0


@dataclass(frozen=True)
class MonthlyAttendanceSummary:
    """Read-model for an employee's month."""

    employee_id: int
    month: int
    year: int
    total: int
    present: int
    late: int
    absent: int
    half_day: int
    holiday: int
    leave: int
    total_hours: float
    total_overtime: float
    working_days: int
    attendance_percentage: float
    by_week: dict[int, WeekSummary]

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "month": self.month,
            "year": self.year,
            "total": self.total,
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "half_day": self.half_day,
            "holiday": self.holiday,
            "leave": self.leave,
            "total_hours": round(self.total_hours, 2),
            "total_overtime": round(self.total_overtime, 2),
            "working_days": self.working_days,
            "attendance_percentage": round(self.attendance_percentage, 2),
            "by_week": {
                str(week): {"present": w.present, "late": w.late, "absent": w.absent, "hours": round(w.hours, 2)}
                for week, w in sorted(self.by_week.items())
            },
        }
