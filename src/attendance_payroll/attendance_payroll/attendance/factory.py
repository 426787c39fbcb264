from __future__ import annotations

from dataclasses import dataclass

from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, late_minutes: int, grace_minutes: int) -> AttendanceStrategy:
        if late_minutes > grace_minutes:
            return LateStrategy()
        return NormalStrategy()

    def for_checkout(self, *, worked_hours: float, standard_hours: float, half_day_threshold: float) -> AttendanceStrategy:
        if worked_hours >= standard_hours:
            return NormalStrategy()
        if worked_hours >= half_day_threshold:
            return HalfDayStrategy()
        return AbsentStrategy()
