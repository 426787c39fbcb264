from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..core.exceptions import ShiftNotFound
from .model import DEFAULT_SHIFT, ShiftPolicy
from .repository import ShiftRepository

logger = logging.getLogger("attendance_payroll.shifts")


class ShiftResolver:
    """Resolve the shift that applies to an employee.

    No assignment means the company default shift. An assignment that points
    at a missing shift is an error, never a silent fallback.
    """

    def __init__(self, shifts: ShiftRepository, *, default: ShiftPolicy = DEFAULT_SHIFT):
        self._shifts = shifts
        self._default = default

    def resolve(self, shift_id: Optional[int], *, grace_minutes: Optional[int] = None) -> ShiftPolicy:
        """``grace_minutes`` overrides the default shift's grace (company rule)."""
        if shift_id is None:
            if grace_minutes is None:
                return self._default
            return replace(self._default, grace_minutes=int(grace_minutes))
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            logger.warning("shift %s not found", shift_id, extra={"shift_id": shift_id})
            raise ShiftNotFound(f"Shift {shift_id} not found")
        return shift
