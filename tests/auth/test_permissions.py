from __future__ import annotations

from src.attendance_manager.attendance_manager.auth.permissions import (
    can_access_department,
    landing_path_for,
    permissions_for,
)
from src.attendance_manager.attendance_manager.core.enums import Role
from src.attendance_manager.attendance_manager.users.model import ResolvedUser


def _user(role: Role, department: str = "IT") -> ResolvedUser:
    return ResolvedUser(
        user_id="u1",
        external_id="ext_1",
        email="a@x.com",
        first_name="A",
        last_name="B",
        role=role,
        department=department,
    )


def test_landing_path_by_role():
    assert landing_path_for(_user(Role.ADMIN)) == "/admin"
    assert landing_path_for(_user(Role.HR)) == "/admin"
    assert landing_path_for(_user(Role.MANAGER)) == "/employee"
    assert landing_path_for(_user(Role.STUDENT)) == "/employee"


def test_department_access():
    assert can_access_department(_user(Role.ADMIN, "IT"), "Sales")
    assert can_access_department(_user(Role.EMPLOYEE, "Sales"), "Sales")
    assert not can_access_department(_user(Role.HR, "IT"), "Sales")


def test_permission_flags():
    admin = permissions_for(_user(Role.ADMIN))
    employee = permissions_for(_user(Role.EMPLOYEE))

    assert all(admin.values())
    assert employee["canViewReports"]
    assert not employee["canEditAllUsers"]
    assert not permissions_for(_user(Role.STUDENT))["canViewReports"]
