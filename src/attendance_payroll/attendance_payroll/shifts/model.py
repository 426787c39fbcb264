from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import hours_between, minutes_between
from ..core import constants as c
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ShiftPolicy:
    """Shift definition used to judge lateness and overtime.

    Times are local wall-clock values combined with the date of the punch.
    Overnight shifts (end <= start) are not supported.
    """

    shift_id: Optional[int]
    shift_name: str
    start_time: time
    end_time: time
    grace_minutes: int = c.DEFAULT_LATE_GRACE_MINUTES
    standard_hours: float = c.DEFAULT_STANDARD_HOURS
    overtime_allowed: bool = True
    max_overtime_hours: float = c.DEFAULT_MAX_OVERTIME_HOURS

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise ValidationError("Shift end time must be after start time")
        if self.grace_minutes < 0:
            raise ValidationError("grace_minutes must be >= 0")
        if self.standard_hours <= 0:
            raise ValidationError("standard_hours must be > 0")
        if self.max_overtime_hours < 0:
            raise ValidationError("max_overtime_hours must be >= 0")

    def start_on(self, day: date) -> datetime:
        return datetime.combine(day, self.start_time)

    def end_on(self, day: date) -> datetime:
        return datetime.combine(day, self.end_time)

    def late_minutes(self, check_in: datetime) -> int:
        """Minutes after shift start, never negative. Grace is not subtracted."""
        return max(0, minutes_between(self.start_on(check_in.date()), check_in))

    def overtime_hours(self, check_out: datetime) -> float:
        if not self.overtime_allowed:
            return 0.0
        extra = hours_between(self.end_on(check_out.date()), check_out)
        return min(max(0.0, extra), self.max_overtime_hours)

    def early_checkout_minutes(self, check_out: datetime) -> int:
        return max(0, minutes_between(check_out, self.end_on(check_out.date())))


DEFAULT_SHIFT = ShiftPolicy(
    shift_id=None,
    shift_name=c.DEFAULT_SHIFT_NAME,
    start_time=c.DEFAULT_SHIFT_START,
    end_time=c.DEFAULT_SHIFT_END,
)
