from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Read-only view of an employee as the attendance and payroll core sees it."""

    employee_id: int
    full_name: str
    role: Role
    basic_salary: Decimal
    shift_id: Optional[int] = None
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
