from __future__ import annotations

from flask import Flask, request

from ..common.web import admin_required, current_user_id, error_response, is_admin, json_body, login_required, ok
from ..core.enums import PaymentMethod
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    def _visible(payroll_id: int):
        record = service.get(payroll_id)
        if not is_admin() and record.employee_id != current_user_id():
            raise AuthorizationError("You can only view your own payroll")
        return record

    @app.route("/api/payroll/calculate", methods=["POST"], endpoint="api_payroll_calculate")
    @admin_required
    def calculate():
        try:
            data = json_body()
            if "employee_id" not in data:
                raise ValidationError("employee_id is required")
            record = service.calculate_payroll(
                int(data["employee_id"]),
                data.get("month"),
                data.get("year"),
                actor_id=current_user_id(),
            )
            return ok(record.to_dict(), message="Payroll calculated")
        except (TypeError, ValueError):
            return error_response(ValidationError("employee_id must be a number"))
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/calculate-all", methods=["POST"], endpoint="api_payroll_calculate_all")
    @admin_required
    def calculate_all():
        try:
            data = json_body()
            result = service.calculate_all(data.get("month"), data.get("year"), actor_id=current_user_id())
            return ok(result.to_dict())
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>", endpoint="api_payroll_get")
    @login_required
    def get(payroll_id: int):
        try:
            return ok(_visible(payroll_id).to_dict())
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>/validate", endpoint="api_payroll_validate")
    @admin_required
    def validate(payroll_id: int):
        try:
            errors = service.validate(payroll_id)
            return ok({"is_valid": not errors, "errors": errors})
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>/approve", methods=["POST"], endpoint="api_payroll_approve")
    @admin_required
    def approve(payroll_id: int):
        try:
            return ok(service.approve_payroll(payroll_id, actor_id=current_user_id()).to_dict(), message="Payroll approved")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>/lock", methods=["POST"], endpoint="api_payroll_lock")
    @admin_required
    def lock(payroll_id: int):
        try:
            return ok(service.lock_payroll(payroll_id, actor_id=current_user_id()).to_dict(), message="Payroll locked")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>/pay", methods=["POST"], endpoint="api_payroll_pay")
    @admin_required
    def pay(payroll_id: int):
        try:
            data = json_body()
            raw_method = data.get("method", PaymentMethod.BANK.value)
            try:
                method = PaymentMethod(raw_method)
            except ValueError:
                raise ValidationError(f"Unknown payment method: {raw_method}")
            record = service.mark_paid(
                payroll_id,
                actor_id=current_user_id(),
                method=method,
                reference=data.get("reference"),
                transaction_id=data.get("transaction_id"),
            )
            return ok(record.to_dict(), message="Payroll marked as paid")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/summary/<int:year>/<int:month>", endpoint="api_payroll_summary")
    @admin_required
    def monthly_summary(year: int, month: int):
        try:
            return ok(service.monthly_summary(month, year))
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/yearly/<int:year>", endpoint="api_payroll_yearly")
    @login_required
    def yearly_summary(year: int):
        try:
            employee_id = request.args.get("employee_id", type=int) or current_user_id()
            if employee_id != current_user_id() and not is_admin():
                raise AuthorizationError("You can only view your own payroll")
            return ok(service.yearly_summary(employee_id, year))
        except DomainError as e:
            return error_response(e)
