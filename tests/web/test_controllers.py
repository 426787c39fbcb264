from datetime import datetime

import pytest

from src.attendance_payroll.attendance_payroll.main import create_app

EMPLOYEE = 1
ADMIN = 2


@pytest.fixture
def app(container):
    app = create_app(container, settings_module="config.testing")
    app.config["TESTING"] = True
    return app


def login(client, user_id, role):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


@pytest.fixture
def employee_client(app):
    client = app.test_client()
    login(client, EMPLOYEE, "employee")
    return client


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    login(client, ADMIN, "admin")
    return client


def test_requires_login(app):
    res = app.test_client().post("/api/attendance/check-in", json={})
    assert res.status_code == 401
    assert res.get_json()["success"] is False


def test_check_in_and_out_flow(employee_client, clock):
    clock.now = datetime(2025, 6, 2, 9, 20)
    res = employee_client.post(
        "/api/attendance/check-in",
        json={"location": {"lat": 23.032546, "lng": 72.5030202}, "device_id": "phone-1"},
    )
    body = res.get_json()
    assert res.status_code == 201
    assert body["data"]["status"] == "late"
    assert body["data"]["late_minutes"] == 20
    assert body["message"] == "Checked in late"

    res = employee_client.post("/api/attendance/check-in", json={})
    assert res.status_code == 409
    assert res.get_json()["error"]["code"] == "ALREADY_CHECKED_IN"

    clock.now = datetime(2025, 6, 2, 18, 45)
    res = employee_client.post("/api/attendance/check-out", json={})
    assert res.status_code == 200
    assert res.get_json()["data"]["status"] == "present"
    assert res.get_json()["data"]["overtime_hours"] == 0.75

    res = employee_client.get("/api/attendance/today")
    assert res.get_json()["data"]["check_out"] is not None


def test_outside_geo_fence_is_unprocessable(employee_client, clock):
    clock.now = datetime(2025, 6, 2, 9, 0)
    res = employee_client.post("/api/attendance/check-in", json={"location": {"lat": 23.034346, "lng": 72.5030202}})

    assert res.status_code == 422
    error = res.get_json()["error"]
    assert error["code"] == "OUTSIDE_GEO_FENCE"
    assert error["distance"] == 200


def test_bad_location_is_a_validation_error(employee_client):
    res = employee_client.post("/api/attendance/check-in", json={"location": {"lat": 500, "lng": 0}})
    assert res.status_code == 400


@pytest.mark.parametrize("body", [[1, 2], "check-in", 7])
def test_non_object_json_body_is_a_validation_error(employee_client, admin_client, body):
    res = employee_client.post("/api/attendance/check-in", json=body)
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "VALIDATION_ERROR"

    res = admin_client.post("/api/payroll/calculate", json=body)
    assert res.status_code == 400


def test_break_without_check_in_is_bad_request(employee_client, clock):
    clock.now = datetime(2025, 6, 2, 12, 0)
    res = employee_client.post("/api/attendance/break/start", json={})
    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "NO_ACTIVE_SHIFT"


def test_employee_cannot_read_others_attendance(employee_client):
    res = employee_client.get("/api/attendance/monthly/2025/6?employee_id=5")
    assert res.status_code == 403


def test_admin_only_routes(employee_client, admin_client, clock):
    clock.now = datetime(2025, 7, 1, 9, 0)
    res = employee_client.post("/api/payroll/calculate", json={"employee_id": EMPLOYEE, "month": 6, "year": 2025})
    assert res.status_code == 403

    res = admin_client.post("/api/payroll/calculate", json={"employee_id": EMPLOYEE, "month": 6, "year": 2025})
    assert res.status_code == 200
    payroll_id = res.get_json()["data"]["payroll_id"]
    assert res.get_json()["data"]["net_payable"] == "44850.00"

    res = employee_client.get(f"/api/payroll/{payroll_id}")
    assert res.status_code == 200

    res = admin_client.post(f"/api/payroll/{payroll_id}/lock")
    assert res.status_code == 422
    assert res.get_json()["error"]["missing"] == ["employee", "admin"]


def test_signature_and_lock_over_http(employee_client, admin_client, clock, signature_png):
    clock.now = datetime(2025, 7, 1, 9, 0)
    payroll_id = admin_client.post(
        "/api/payroll/calculate", json={"employee_id": EMPLOYEE, "month": 6, "year": 2025}
    ).get_json()["data"]["payroll_id"]

    res = employee_client.post(
        f"/api/payroll/{payroll_id}/signatures", json={"signature_type": "employee", "image": signature_png}
    )
    assert res.status_code == 201
    signature_id = res.get_json()["data"]["signature_id"]

    res = employee_client.post(
        f"/api/payroll/{payroll_id}/signatures", json={"signature_type": "employee", "image": signature_png}
    )
    assert res.status_code == 409

    res = admin_client.post(f"/api/payroll/{payroll_id}/signatures", json={"signature_type": "admin", "image": signature_png})
    assert res.status_code == 201

    res = admin_client.post(f"/api/payroll/{payroll_id}/lock")
    assert res.status_code == 200
    assert res.get_json()["data"]["is_locked"] is True

    res = employee_client.get(f"/api/signatures/{signature_id}/verify")
    assert res.get_json()["data"]["is_valid"] is True

    res = employee_client.get(f"/api/signatures/{signature_id}/qr")
    assert res.status_code == 200
    assert res.mimetype == "image/png"

    res = admin_client.post(f"/api/payroll/{payroll_id}/pay", json={"method": "cheque", "reference": "CHQ-1"})
    assert res.status_code == 200
    assert res.get_json()["data"]["status"] == "paid"

    res = admin_client.get("/api/payroll/summary/2025/6")
    assert res.get_json()["data"]["paid"] == 1


def test_unknown_signature_type_is_rejected(employee_client, admin_client, clock, signature_png):
    clock.now = datetime(2025, 7, 1, 9, 0)
    payroll_id = admin_client.post(
        "/api/payroll/calculate", json={"employee_id": EMPLOYEE, "month": 6, "year": 2025}
    ).get_json()["data"]["payroll_id"]

    res = employee_client.post(f"/api/payroll/{payroll_id}/signatures", json={"signature_type": "witness", "image": signature_png})
    assert res.status_code == 400


def test_health(app):
    assert app.test_client().get("/api/health").get_json()["status"] == "ok"
