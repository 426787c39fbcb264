"""Build CompanyRules from the plain ``COMPANY_RULES`` dict of a settings module."""

from __future__ import annotations

import importlib
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..core.enums import HolidayKind
from ..core.exceptions import ValidationError
from ..geo.policy import GeoFence, GeoPoint
from .model import (
    DEFAULT_ALLOWANCES,
    AllowanceComponent,
    AttendanceRules,
    CompanyRules,
    Holiday,
    PayrollRules,
)

_WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


def _dec(value: Any, field_name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be numeric")


def _flag(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _TRUE:
            return True
        if key in _FALSE:
            return False
    raise ValidationError(f"{field_name} must be a boolean")


def _geo_fence(data: Mapping[str, Any]) -> GeoFence:
    defaults = CompanyRules().geo_fence
    center = data.get("company_location")
    radius = float(data.get("radius", defaults.radius_m))
    if radius < 0:
        raise ValidationError("geo_fence.radius must be >= 0")
    return GeoFence(
        center=GeoPoint.from_mapping(center) if center else defaults.center,
        radius_m=radius,
        enabled=_flag(data.get("enabled", defaults.enabled), "geo_fence.enabled"),
    )


def _attendance(data: Mapping[str, Any]) -> AttendanceRules:
    d = AttendanceRules()
    return AttendanceRules(
        grace_minutes=int(data.get("grace_minutes", d.grace_minutes)),
        half_day_threshold_hours=float(data.get("half_day_threshold_hours", d.half_day_threshold_hours)),
        max_breaks_per_day=int(data.get("max_breaks_per_day", d.max_breaks_per_day)),
    )


def _payroll(data: Mapping[str, Any]) -> PayrollRules:
    d = PayrollRules()
    lates_for_half_day = int(data.get("lates_for_half_day", d.lates_for_half_day))
    if lates_for_half_day < 1:
        raise ValidationError("payroll.lates_for_half_day must be >= 1")
    return PayrollRules(
        overtime_rate=_dec(data.get("overtime_rate", d.overtime_rate), "overtime_rate"),
        overtime_pay_basis=_dec(data.get("overtime_pay_basis", d.overtime_pay_basis), "overtime_pay_basis"),
        late_penalty=_dec(data.get("late_penalty", d.late_penalty), "late_penalty"),
        half_day_penalty=_dec(data.get("half_day_penalty", d.half_day_penalty), "half_day_penalty"),
        smart_late_rule=_flag(data.get("smart_late_rule", d.smart_late_rule), "payroll.smart_late_rule"),
        lates_for_half_day=lates_for_half_day,
        tax_deduction=_flag(data.get("tax_deduction", d.tax_deduction), "payroll.tax_deduction"),
        tax_percentage=_dec(data.get("tax_percentage", d.tax_percentage), "tax_percentage"),
        provident_fund=_flag(data.get("provident_fund", d.provident_fund), "payroll.provident_fund"),
        pf_percentage=_dec(data.get("pf_percentage", d.pf_percentage), "pf_percentage"),
        currency=str(data.get("currency", d.currency)),
    )


def _allowances(items: Any) -> tuple[AllowanceComponent, ...]:
    if items is None:
        return DEFAULT_ALLOWANCES
    out = []
    for item in items:
        name = str(item["name"]).strip()
        if not name or name == "total":
            raise ValidationError(f"Invalid allowance name: {name!r}")
        if "percentage_of_basic" in item:
            out.append(AllowanceComponent(name, percentage_of_basic=_dec(item["percentage_of_basic"], name)))
        else:
            out.append(AllowanceComponent(name, amount=_dec(item.get("amount", 0), name)))
    return tuple(out)


def _holidays(items: Any) -> tuple[Holiday, ...]:
    out = []
    for item in items or ():
        day = item["date"]
        if not isinstance(day, date):
            day = parse_iso_date(str(day))
        out.append(
            Holiday(
                day=day,
                name=str(item.get("name", "")),
                kind=HolidayKind(item.get("kind", HolidayKind.COMPANY.value)),
                recurring=_flag(item.get("recurring", False), "holidays.recurring"),
            )
        )
    return tuple(out)


def _weekdays(items: Any) -> frozenset[int]:
    if items is None:
        return CompanyRules().working_weekdays
    days = set()
    for item in items:
        if isinstance(item, str):
            key = item.strip().lower()
            if key not in _WEEKDAYS:
                raise ValidationError(f"Unknown weekday: {item}")
            days.add(_WEEKDAYS[key])
        else:
            days.add(int(item))
    return frozenset(days)


def rules_from_mapping(data: Optional[Mapping[str, Any]]) -> CompanyRules:
    data = data or {}
    return CompanyRules(
        geo_fence=_geo_fence(data.get("geo_fence") or {}),
        attendance=_attendance(data.get("attendance") or {}),
        payroll=_payroll(data.get("payroll") or {}),
        allowances=_allowances(data.get("allowances")),
        working_weekdays=_weekdays(data.get("working_weekdays")),
        holidays=_holidays(data.get("holidays")),
    )


def rules_from_settings(settings_module: str) -> CompanyRules:
    settings = importlib.import_module(settings_module)
    return rules_from_mapping(getattr(settings, "COMPANY_RULES", None))


def static_rules(rules: CompanyRules) -> Callable[[], CompanyRules]:
    """Rules provider returning the same snapshot on every call."""

    def provider() -> CompanyRules:
        return rules

    return provider
