from __future__ import annotations

from ..core.exceptions import AuthorizationError, EmployeeNotFound
from .model import Employee
from .repository import EmployeeDirectory


def get_employee(directory: EmployeeDirectory, employee_id: int) -> Employee:
    employee = directory.get_by_id(employee_id)
    if not employee:
        raise EmployeeNotFound()
    return employee


def require_admin(directory: EmployeeDirectory, actor_id: int, *, action: str = "perform this action") -> Employee:
    """Resolve the acting user and make sure they hold the admin role."""

    actor = directory.get_by_id(actor_id)
    if not actor or not actor.is_admin or not actor.is_active:
        raise AuthorizationError(f"Only admins can {action}")
    return actor
