from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """Checked in and out, but below the half-day threshold."""

    def decide(self, *, late_minutes: int, worked_hours: Optional[float]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT, note=f"Worked {worked_hours or 0:.2f}h")
