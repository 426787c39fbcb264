from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Check-in past the grace period."""

    def decide(self, *, late_minutes: int, worked_hours: Optional[float]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {late_minutes} minutes")
