from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...attendance.model import AttendanceDay
from ...employees.model import Employee
from ...leave.model import LeaveApplication
from ...settings.model import CompanyRules
from ...shifts.model import ShiftPolicy
from ..model import PayrollFigures


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(
        self,
        *,
        employee: Employee,
        month: int,
        year: int,
        attendance: Sequence[AttendanceDay],
        leaves: Sequence[LeaveApplication],
        shift: ShiftPolicy,
        rules: CompanyRules,
    ) -> PayrollFigures:
        raise NotImplementedError
