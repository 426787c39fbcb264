from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..geo.policy import GeoPoint

logger = logging.getLogger("attendance_payroll.web")

STATUS_BY_CATEGORY = {
    "state_conflict": 409,
    "policy_violation": 422,
    "precondition_missing": 400,
    "validation": 400,
    "not_found": 404,
    "authentication": 401,
    "authorization": 403,
}


def ok(data: Any = None, status: int = 200, **extra):
    body = {"success": True, "data": data}
    body.update(extra)
    return jsonify(body), status


def error_response(e: DomainError):
    logger.warning(
        "%s %s rejected: %s",
        request.method,
        request.path,
        e.code,
        extra={"code": e.code, "category": e.category, "user_id": session.get("user_id")},
    )
    return (
        jsonify({"success": False, "message": e.message, "error": e.to_dict()}),
        STATUS_BY_CATEGORY.get(e.category, 400),
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please log in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please log in to continue"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"success": False, "message": "Admin access required"}), 403
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def is_admin() -> bool:
    return session.get("role") == Role.ADMIN.value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def location_from(data: dict) -> Optional[GeoPoint]:
    return GeoPoint.from_mapping(data.get("location"))


def client_ip() -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr
