from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveApplication:
    leave_id: int
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.APPROVED
    is_half_day: bool = False
    reason: Optional[str] = None

    def days_within(self, start: date, end: date) -> float:
        """Days of this leave falling inside [start, end], both inclusive.

        A half-day leave only counts as half when it covers a single date.
        """
        lo = max(self.start_date, start)
        hi = min(self.end_date, end)
        if hi < lo:
            return 0.0
        if self.is_half_day and self.start_date == self.end_date:
            return 0.5
        return float((hi - lo).days + 1)
