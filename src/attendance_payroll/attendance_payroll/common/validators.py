from __future__ import annotations

import math
from typing import Any

from ..core.exceptions import ValidationError


def require_month(month: Any, year: Any) -> tuple[int, int]:
    try:
        m, y = int(month), int(year)
    except (TypeError, ValueError):
        raise ValidationError("Invalid month or year")
    if m < 1 or m > 12:
        raise ValidationError("Invalid month")
    if y < 1970 or y > 9999:
        raise ValidationError("Invalid year")
    return m, y


def require_coordinate(value: Any, field_name: str, *, limit: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if math.isnan(v) or math.isinf(v):
        raise ValidationError(f"{field_name} must be a finite number")
    if abs(v) > limit:
        raise ValidationError(f"{field_name} out of range")
    return v
