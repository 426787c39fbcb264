from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceDay


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceDay]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        raise NotImplementedError

    def create(self, day: AttendanceDay) -> AttendanceDay:
        """Insert the first record of the day.

        Must raise AlreadyCheckedIn when (employee_id, work_date) exists.
        Returns the stored record with its id and version set.
        """

        raise NotImplementedError

    def update(self, day: AttendanceDay, *, expected_version: int) -> Optional[AttendanceDay]:
        """Compare-and-set write. Returns None when the stored version moved on."""

        raise NotImplementedError

    def list_for_employee_between(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceDay]:
        raise NotImplementedError
