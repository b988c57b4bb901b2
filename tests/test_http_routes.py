from __future__ import annotations

from datetime import date

import pytest

from src.attendance_manager.attendance_manager.container import wire
from src.attendance_manager.attendance_manager.core.enums import AttendanceStatus, Role
from src.attendance_manager.attendance_manager.main import create_app

from tests.fakes import make_principal


class FakeConnection:
    def __init__(self):
        self.pings = 0

    def ping(self):
        self.pings += 1
        return True


@pytest.fixture
def container(users_repo, attendance_repo, identity):
    return wire(users_repo=users_repo, attendance_repo=attendance_repo, identity=identity, conn=FakeConnection())


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


@pytest.fixture
def sign_in(client, users_repo, identity):
    def _sign_in(role: Role, external_id: str = "ext_1", email: str = "a@x.com"):
        identity.add(make_principal(external_id, email))
        user = users_repo.add(email=email, external_id=external_id, role=role, department="IT")
        with client.session_transaction() as sess:
            sess["external_id"] = external_id
        return user

    return _sign_in


def test_health(client, container):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json()["database"] == "connected"
    assert container.conn.pings == 1


def test_no_session_is_401(client):
    resp = client.get("/api/users/me")

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "User not authenticated"}


def test_provider_outage_is_401(client, sign_in, identity):
    sign_in(Role.ADMIN)
    identity.unavailable = True

    assert client.get("/api/users/me").status_code == 401


def test_me_returns_profile_and_permissions(client, sign_in):
    sign_in(Role.EMPLOYEE)

    body = client.get("/api/users/me").get_json()

    assert body["user"]["email"] == "a@x.com"
    assert body["permissions"]["canViewReports"] is True


def test_update_me_validation_error_is_400(client, sign_in):
    sign_in(Role.EMPLOYEE)

    resp = client.put("/api/users/me", json={"phone": "not a phone"})

    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_auth_redirect(client, sign_in):
    sign_in(Role.HR)

    assert client.get("/api/auth/redirect").get_json()["redirectUrl"] == "/admin"


def test_first_sign_in_provisions_employee(client, identity, users_repo):
    identity.add(make_principal("ext_fresh", "fresh@x.com"))
    with client.session_transaction() as sess:
        sess["external_id"] = "ext_fresh"

    body = client.get("/api/auth/redirect").get_json()

    assert body == {"redirectUrl": "/employee", "role": "employee"}
    assert users_repo.get_by_external_id("ext_fresh") is not None


def test_dashboard_denies_employee(client, sign_in):
    sign_in(Role.EMPLOYEE)

    resp = client.get("/api/admin/dashboard/stats")

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Access denied. Required roles: admin, hr. Your role: employee"


def test_dashboard_allows_hr(client, sign_in):
    sign_in(Role.HR)

    resp = client.get("/api/admin/dashboard/stats")

    assert resp.status_code == 200
    assert set(resp.get_json()) >= {"totalUsers", "attendanceStats", "attendanceRate", "departments"}


def test_trend_days_parameter(client, sign_in):
    sign_in(Role.ADMIN)

    assert len(client.get("/api/admin/dashboard/attendance-trend?days=3").get_json()["data"]) == 3
    assert len(client.get("/api/admin/dashboard/attendance-trend").get_json()["data"]) == 7
    assert client.get("/api/admin/dashboard/attendance-trend?days=abc").status_code == 400
    assert client.get("/api/admin/dashboard/attendance-trend?days=0").status_code == 400


def test_mark_attendance_flow(client, sign_in):
    sign_in(Role.EMPLOYEE)

    first = client.post("/api/attendance/mark", json={"action": "check-in"})
    again = client.post("/api/attendance/mark", json={"action": "check-in"})
    status = client.get("/api/attendance/mark").get_json()

    assert first.status_code == 200
    assert first.get_json()["attendance"]["checkInTime"] is not None
    assert again.status_code == 400
    assert again.get_json() == {"error": "Already checked in today"}
    assert status["canCheckOut"] is True


def test_attendance_listing_is_admin_only(client, sign_in):
    sign_in(Role.EMPLOYEE)

    assert client.get("/api/attendance").status_code == 403
    assert client.get("/api/attendance/me").status_code == 200


def test_admin_creates_user_then_conflicts(client, sign_in):
    sign_in(Role.ADMIN)
    payload = {"email": "new@x.com", "firstName": "New", "lastName": "Person", "role": "employee"}

    created = client.post("/api/admin/users", json=payload)
    duplicate = client.post("/api/admin/users", json=payload)

    assert created.status_code == 201
    assert created.get_json()["user"]["externalId"] is None
    assert duplicate.status_code == 409


def test_admin_user_not_found(client, sign_in):
    sign_in(Role.ADMIN)

    resp = client.get("/api/admin/users/nope")

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "User not found"}


def test_summary_only_for_self_unless_admin(client, sign_in, users_repo):
    me = sign_in(Role.EMPLOYEE)
    other = users_repo.add(email="other@x.com")

    assert client.get(f"/api/reports/summary/{me.user_id}").status_code == 200
    assert client.get(f"/api/reports/summary/{other.user_id}").status_code == 403


def test_unexpected_error_hides_details(client, sign_in, container, monkeypatch):
    sign_in(Role.ADMIN)

    def boom(**kwargs):
        raise RuntimeError("mongo password is hunter2")

    monkeypatch.setattr(container.reporting, "dashboard_snapshot", boom)
    resp = client.get("/api/admin/dashboard/stats")

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}


def test_admin_edits_and_deletes_attendance_record(client, sign_in, attendance_repo):
    admin = sign_in(Role.ADMIN)
    record = attendance_repo.add("u_other", date(2026, 1, 15), AttendanceStatus.ABSENT)
    path = f"/api/attendance/{record.attendance_id}"

    fetched = client.get(path)
    updated = client.put(
        path,
        json={
            "status": "present",
            "checkInTime": "2026-01-15T09:00:00Z",
            "checkOutTime": "2026-01-15T13:00:00",
            "isManualEntry": True,
        },
    )
    bad_time = client.put(path, json={"checkInTime": "yesterday"})
    deleted = client.delete(path)

    assert fetched.status_code == 200
    assert fetched.get_json()["attendance"]["status"] == "absent"
    assert updated.status_code == 200
    body = updated.get_json()["attendance"]
    assert (body["status"], body["totalHours"], body["createdBy"]) == ("present", 4.0, admin.user_id)
    assert bad_time.status_code == 400
    assert deleted.get_json()["deletedRecord"]["id"] == record.attendance_id
    assert client.get(path).status_code == 404


def test_attendance_record_routes_are_admin_only(client, sign_in, attendance_repo):
    sign_in(Role.HR)
    record = attendance_repo.add("u_other", date(2026, 1, 15), AttendanceStatus.PRESENT)

    assert client.get(f"/api/attendance/{record.attendance_id}").status_code == 403
    assert client.delete(f"/api/attendance/{record.attendance_id}").status_code == 403
    assert attendance_repo.get_by_id(record.attendance_id) is not None


def test_attendance_report_route(client, sign_in, attendance_repo):
    admin = sign_in(Role.ADMIN)
    attendance_repo.add(admin.user_id, date(2026, 1, 5), AttendanceStatus.LATE)

    resp = client.get("/api/reports/attendance?type=custom&startDate=2026-01-01&endDate=2026-01-10")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["summary"]["totalLate"] == 1
    assert body["departmentStats"][0]["department"] == "IT"
    assert client.get("/api/reports/attendance?type=yearly").status_code == 400
    assert client.get("/api/reports/attendance?type=custom").status_code == 400


def test_attendance_report_route_is_admin_only(client, sign_in):
    sign_in(Role.EMPLOYEE)

    assert client.get("/api/reports/attendance").status_code == 403


def test_department_report_limited_to_own_department(client, sign_in):
    sign_in(Role.EMPLOYEE)

    own = client.get("/api/reports/department/IT?startDate=2026-01-01&endDate=2026-01-31")
    other = client.get("/api/reports/department/Sales")

    assert own.status_code == 200
    assert own.get_json()["department"] == "IT"
    assert other.status_code == 403
    assert other.get_json() == {"error": "Forbidden: Can only view your own department"}
