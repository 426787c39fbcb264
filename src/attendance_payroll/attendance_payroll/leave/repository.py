from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import LeaveApplication


class LeaveLedger(Protocol):
    """Approved leave, read-only. Leave approval routing happens elsewhere."""

    def approved_overlapping(self, employee_id: int, start: date, end: date) -> Sequence[LeaveApplication]:
        raise NotImplementedError
