from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core import constants as c
from ..core.enums import HolidayKind
from ..geo.policy import GeoFence, GeoPoint


@dataclass(frozen=True)
class Holiday:
    day: date
    name: str = ""
    kind: HolidayKind = HolidayKind.COMPANY
    recurring: bool = False

    def matches(self, d: date) -> bool:
        if self.recurring:
            return (self.day.month, self.day.day) == (d.month, d.day)
        return self.day == d


@dataclass(frozen=True)
class AttendanceRules:
    grace_minutes: int = c.DEFAULT_LATE_GRACE_MINUTES
    half_day_threshold_hours: float = c.DEFAULT_HALF_DAY_THRESHOLD_HOURS
    max_breaks_per_day: int = c.DEFAULT_MAX_BREAKS_PER_DAY


@dataclass(frozen=True)
class PayrollRules:
    overtime_rate: Decimal = c.DEFAULT_OVERTIME_RATE
    # amount paid per overtime hour before the rate multiplier
    overtime_pay_basis: Decimal = c.DEFAULT_OVERTIME_PAY_BASIS
    late_penalty: Decimal = c.DEFAULT_LATE_PENALTY
    # fraction of per-day salary deducted per half-day
    half_day_penalty: Decimal = c.DEFAULT_HALF_DAY_PENALTY
    smart_late_rule: bool = True
    lates_for_half_day: int = c.DEFAULT_LATES_FOR_HALF_DAY
    tax_deduction: bool = False
    tax_percentage: Decimal = Decimal("0")
    provident_fund: bool = False
    pf_percentage: Decimal = c.DEFAULT_PF_PERCENTAGE
    currency: str = c.DEFAULT_CURRENCY


@dataclass(frozen=True)
class AllowanceComponent:
    """A fixed amount, or a percentage of basic salary."""

    name: str
    amount: Decimal = Decimal("0")
    percentage_of_basic: Optional[Decimal] = None

    def value_for(self, basic_salary: Decimal) -> Decimal:
        if self.percentage_of_basic is not None:
            return basic_salary * self.percentage_of_basic / Decimal("100")
        return self.amount


DEFAULT_ALLOWANCES: tuple[AllowanceComponent, ...] = (
    AllowanceComponent("house_rent", percentage_of_basic=Decimal("40")),
    AllowanceComponent("conveyance", amount=Decimal("1600")),
    AllowanceComponent("medical", amount=Decimal("1250")),
    AllowanceComponent("special", amount=Decimal("0")),
)


def _default_fence() -> GeoFence:
    return GeoFence(
        center=GeoPoint(c.DEFAULT_COMPANY_LAT, c.DEFAULT_COMPANY_LNG),
        radius_m=c.DEFAULT_GEOFENCE_RADIUS_M,
        enabled=True,
    )


@dataclass(frozen=True)
class CompanyRules:
    """Immutable snapshot of the company rule set.

    Passed explicitly into every calculation; nothing in the core reads
    company settings from global state.
    """

    geo_fence: GeoFence = field(default_factory=_default_fence)
    attendance: AttendanceRules = field(default_factory=AttendanceRules)
    payroll: PayrollRules = field(default_factory=PayrollRules)
    allowances: tuple[AllowanceComponent, ...] = DEFAULT_ALLOWANCES
    working_weekdays: frozenset[int] = frozenset(c.DEFAULT_WORKING_WEEKDAYS)
    holidays: tuple[Holiday, ...] = ()

    def is_holiday(self, d: date) -> bool:
        return any(h.matches(d) for h in self.holidays)

    def is_working_day(self, d: date) -> bool:
        return d.weekday() in self.working_weekdays and not self.is_holiday(d)
