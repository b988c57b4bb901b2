from __future__ import annotations

from ..core.enums import Role
from ..users.model import ResolvedUser

ADMIN_LANDING = "/admin"
EMPLOYEE_LANDING = "/employee"


def can_access_department(user: ResolvedUser, department: str) -> bool:
    """Admins see every department, everyone else only their own."""
    if user.role == Role.ADMIN:
        return True
    return user.department == department


def permissions_for(user: ResolvedUser) -> dict[str, bool]:
    is_admin = user.role == Role.ADMIN
    return {
        "canViewAllUsers": is_admin,
        "canEditAllUsers": is_admin,
        "canViewAllAttendance": is_admin,
        "canEditAllAttendance": is_admin,
        "canViewReports": is_admin or user.role == Role.EMPLOYEE,
        "canManageDepartments": is_admin,
        "canExportData": is_admin,
    }


def landing_path_for(user: ResolvedUser) -> str:
    if user.role in (Role.ADMIN, Role.HR):
        return ADMIN_LANDING
    return EMPLOYEE_LANDING
