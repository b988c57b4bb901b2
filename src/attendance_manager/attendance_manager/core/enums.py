from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization (membership checks, no hierarchy)."""

    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    STUDENT = "student"

    @classmethod
    def parse(cls, value, default: "Role | None" = None) -> "Role | None":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AttendanceStatus(str, Enum):
    """Day status stored on attendance records."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"


class MarkAction(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class ReportType(str, Enum):
    """Window presets for the attendance report."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"
