from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization checks."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Normalized daily attendance status stored in the database."""

    PRESENT = "present"
    LATE = "late"
    HALF_DAY = "half-day"
    ABSENT = "absent"
    HOLIDAY = "holiday"
    LEAVE = "leave"


class AttendanceAction(str, Enum):
    CHECK_IN = "CHECK_IN"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"
    CHECK_OUT = "CHECK_OUT"
    VERIFY = "VERIFY"


class VerificationMethod(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"
    GEO = "geo"
    DEVICE = "device"
    FACE = "face"


class LeaveType(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    SICK = "sick"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PayrollStatus(str, Enum):
    """Payroll lifecycle. Transitions only move forward."""

    DRAFT = "draft"
    CALCULATED = "calculated"
    APPROVED = "approved"
    LOCKED = "locked"
    PAID = "paid"


class PayrollAction(str, Enum):
    CALCULATE = "CALCULATE"
    APPROVE = "APPROVE"
    SIGN = "SIGN"
    LOCK = "LOCK"
    PAY = "PAY"


class SignatureType(str, Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"


class PaymentMethod(str, Enum):
    BANK = "bank"
    CASH = "cash"
    CHEQUE = "cheque"


class HolidayKind(str, Enum):
    NATIONAL = "national"
    COMPANY = "company"
    OPTIONAL = "optional"
