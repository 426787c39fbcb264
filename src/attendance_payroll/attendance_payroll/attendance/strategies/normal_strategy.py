from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, or a full day on check-out."""

    def decide(self, *, late_minutes: int, worked_hours: Optional[float]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
