from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations.

    ``category`` groups errors the way controllers report them; ``code`` is a
    stable identifier for clients.
    """

    category = "validation"
    code = "DOMAIN_ERROR"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self)

    def to_dict(self) -> dict:
        return {"code": self.code, "category": self.category, "message": self.message}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class AuthenticationError(DomainError):
    """Raised when the caller is not authenticated."""

    category = "authentication"
    code = "AUTHENTICATION_ERROR"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    category = "authorization"
    code = "AUTHORIZATION_ERROR"


class NotFoundError(DomainError):
    """Requested record does not exist."""

    category = "not_found"
    code = "NOT_FOUND"


class EmployeeNotFound(NotFoundError):
    """Employee does not exist."""

    code = "EMPLOYEE_NOT_FOUND"


class ShiftNotFound(NotFoundError):
    """Assigned shift could not be resolved."""

    code = "SHIFT_NOT_FOUND"


class AttendanceNotFound(NotFoundError):
    """Attendance record does not exist."""

    code = "ATTENDANCE_NOT_FOUND"


class PayrollNotFound(NotFoundError):
    """Payroll record does not exist."""

    code = "PAYROLL_NOT_FOUND"


class SignatureNotFound(NotFoundError):
    """Signature does not exist."""

    code = "SIGNATURE_NOT_FOUND"


# State conflicts


class StateConflictError(DomainError):
    category = "state_conflict"
    code = "STATE_CONFLICT"


class AlreadyCheckedIn(StateConflictError):
    """Already checked in today."""

    code = "ALREADY_CHECKED_IN"


class AlreadyCheckedOut(StateConflictError):
    """Already checked out today."""

    code = "ALREADY_CHECKED_OUT"


class AlreadyOnBreak(StateConflictError):
    """A break is already in progress."""

    code = "ALREADY_ON_BREAK"


class AttendanceImmutable(StateConflictError):
    """Attendance record has been verified and can no longer change."""

    code = "ATTENDANCE_IMMUTABLE"


class PayrollImmutable(StateConflictError):
    """Payroll can no longer be recalculated."""

    code = "PAYROLL_IMMUTABLE"


class AlreadyLocked(StateConflictError):
    """Payroll is already locked."""

    code = "ALREADY_LOCKED"


class PayrollLocked(StateConflictError):
    """Payroll is locked, cannot add signature."""

    code = "PAYROLL_LOCKED"


class DuplicateSignature(StateConflictError):
    """Signature already exists for this payroll."""

    code = "DUPLICATE_SIGNATURE"


class InvalidTransition(StateConflictError):
    """Payroll status does not allow this transition."""

    code = "INVALID_TRANSITION"


class ConcurrentModification(StateConflictError):
    """Record was changed by another request; retry the operation."""

    code = "CONCURRENT_MODIFICATION"


# Policy violations


class PolicyViolationError(DomainError):
    category = "policy_violation"
    code = "POLICY_VIOLATION"


class OutsideGeoFence(PolicyViolationError):
    code = "OUTSIDE_GEO_FENCE"

    def __init__(self, distance_m: float, radius_m: float):
        self.distance_m = float(distance_m)
        self.radius_m = float(radius_m)
        super().__init__(
            f"You are outside the geo-fence. Distance: {round(self.distance_m)}m (allowed {round(self.radius_m)}m)"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"distance": round(self.distance_m), "radius": self.radius_m})
        return data


class MaxBreaksExceeded(PolicyViolationError):
    code = "MAX_BREAKS_EXCEEDED"

    def __init__(self, limit: int):
        self.limit = int(limit)
        super().__init__(f"Maximum {self.limit} breaks allowed per day")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["limit"] = self.limit
        return data


class SignaturesIncomplete(PolicyViolationError):
    code = "SIGNATURES_INCOMPLETE"

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Both signatures are required before locking (missing: {', '.join(self.missing)})")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["missing"] = self.missing
        return data


class WrongSigner(PolicyViolationError):
    """Signer is not allowed to sign this payroll."""

    code = "WRONG_SIGNER"


class NegativeNetPayable(PolicyViolationError):
    code = "NEGATIVE_NET_PAYABLE"

    def __init__(self, net_payable):
        self.net_payable = net_payable
        super().__init__(f"Net payable cannot be negative ({net_payable})")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["net_payable"] = str(self.net_payable)
        return data


# Missing preconditions


class PreconditionError(DomainError):
    category = "precondition_missing"
    code = "PRECONDITION_MISSING"


class NoCheckIn(PreconditionError):
    """No check-in found for today."""

    code = "NO_CHECK_IN"


class NoActiveShift(PreconditionError):
    """No active shift found."""

    code = "NO_ACTIVE_SHIFT"


class NoActiveBreak(PreconditionError):
    """No active break found."""

    code = "NO_ACTIVE_BREAK"


class DivisionUndefined(PreconditionError):
    """Month has no working days; per-day salary is undefined."""

    code = "DIVISION_UNDEFINED"


class NotCalculated(PreconditionError):
    """Payroll must be in calculated state to approve."""

    code = "NOT_CALCULATED"
