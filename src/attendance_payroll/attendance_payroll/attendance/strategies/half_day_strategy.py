from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Worked at least the half-day threshold but less than a full day."""

    def decide(self, *, late_minutes: int, worked_hours: Optional[float]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALF_DAY, note=f"Worked {worked_hours or 0:.2f}h")
