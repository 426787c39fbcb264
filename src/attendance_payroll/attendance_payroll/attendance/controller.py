from __future__ import annotations

from flask import Flask, request

from ..common.web import (
    admin_required,
    client_ip,
    current_user_id,
    error_response,
    is_admin,
    json_body,
    location_from,
    login_required,
    ok,
)
from ..core.enums import VerificationMethod
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _target_employee() -> int:
        """Admins may look at another employee via ?employee_id=."""
        requested = request.args.get("employee_id", type=int)
        if requested is None or requested == current_user_id():
            return current_user_id()
        if not is_admin():
            raise AuthorizationError("You can only view your own attendance")
        return requested

    def _punch_kwargs(data: dict) -> dict:
        return {
            "location": location_from(data),
            "device_id": data.get("device_id"),
            "ip_address": client_ip(),
        }

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_check_in")
    @login_required
    def check_in():
        try:
            day = service.check_in(current_user_id(), **_punch_kwargs(json_body()))
            message = "Checked in late" if day.is_late else "Checked in successfully"
            return ok(day.to_dict(), 201, message=message)
        except DomainError as e:
            return error_response(e)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="api_check_out")
    @login_required
    def check_out():
        try:
            day = service.check_out(current_user_id(), **_punch_kwargs(json_body()))
            return ok(day.to_dict(), message="Checked out successfully")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/attendance/break/start", methods=["POST"], endpoint="api_break_start")
    @login_required
    def break_start():
        try:
            day = service.start_break(current_user_id(), **_punch_kwargs(json_body()))
            return ok(day.to_dict(), message="Break started")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/attendance/break/end", methods=["POST"], endpoint="api_break_end")
    @login_required
    def break_end():
        try:
            day = service.end_break(current_user_id(), **_punch_kwargs(json_body()))
            return ok(day.to_dict(), message="Break ended")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/attendance/today", endpoint="api_attendance_today")
    @login_required
    def today():
        day = service.get_today(current_user_id())
        return ok(day.to_dict() if day else None)

    @app.route("/api/attendance/monthly/<int:year>/<int:month>", endpoint="api_attendance_monthly")
    @login_required
    def monthly(year: int, month: int):
        try:
            days = service.list_month(_target_employee(), month, year)
            return ok([d.to_dict() for d in days])
        except DomainError as e:
            return error_response(e)

    @app.route("/api/attendance/summary/<int:year>/<int:month>", endpoint="api_attendance_summary")
    @login_required
    def summary(year: int, month: int):
        try:
            return ok(service.monthly_summary(_target_employee(), month, year).to_dict())
        except DomainError as e:
            return error_response(e)

    @app.route("/api/attendance/<int:attendance_id>/verify", methods=["POST"], endpoint="api_attendance_verify")
    @admin_required
    def verify(attendance_id: int):
        try:
            raw_method = json_body().get("method", VerificationMethod.MANUAL.value)
            try:
                method = VerificationMethod(raw_method)
            except ValueError:
                raise ValidationError(f"Unknown verification method: {raw_method}")
            day = service.verify(attendance_id, actor_id=current_user_id(), method=method)
            return ok(day.to_dict(), message="Attendance verified")
        except DomainError as e:
            return error_response(e)
