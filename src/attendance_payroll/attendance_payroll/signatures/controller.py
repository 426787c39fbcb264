from __future__ import annotations

import io

from flask import Flask, send_file

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
from ..core.enums import SignatureType
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.signature_service
    payrolls = container.payroll_service

    @app.route("/api/payroll/<int:payroll_id>/signatures", methods=["POST"], endpoint="api_signature_add")
    @login_required
    def add_signature(payroll_id: int):
        try:
            data = json_body()
            raw_type = data.get("signature_type") or data.get("type")
            try:
                signature_type = SignatureType(raw_type)
            except ValueError:
                raise ValidationError("signature_type must be 'employee' or 'admin'")
            signature = service.add_signature(
                payroll_id,
                user_id=current_user_id(),
                signature_type=signature_type,
                image=data.get("image") or "",
                device_id=data.get("device_id"),
                ip_address=client_ip(),
                location=location_from(data),
            )
            return ok(signature.to_dict(), 201, message="Signature saved")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>/signatures", endpoint="api_signature_list")
    @login_required
    def list_signatures(payroll_id: int):
        try:
            record = payrolls.get(payroll_id)
            if not is_admin() and record.employee_id != current_user_id():
                raise AuthorizationError("You can only view your own payroll")
            return ok([s.to_dict() for s in service.list_for_payroll(payroll_id)])
        except DomainError as e:
            return error_response(e)

    @app.route("/api/signatures/<int:signature_id>/verify", endpoint="api_signature_verify")
    @login_required
    def verify(signature_id: int):
        try:
            return ok(service.verify_signature(signature_id))
        except DomainError as e:
            return error_response(e)

    @app.route("/api/signatures/<int:signature_id>/manual-verify", methods=["POST"], endpoint="api_signature_manual_verify")
    @admin_required
    def manual_verify(signature_id: int):
        try:
            signature = service.manual_verify(signature_id, actor_id=current_user_id())
            return ok(signature.to_dict(), message="Signature verified")
        except DomainError as e:
            return error_response(e)

    @app.route("/api/signatures/<int:signature_id>/qr", endpoint="api_signature_qr")
    @login_required
    def qr(signature_id: int):
        try:
            png = service.qr_code(signature_id)
        except DomainError as e:
            return error_response(e)
        return send_file(io.BytesIO(png), mimetype="image/png")
