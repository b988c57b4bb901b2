from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_DEPARTMENT
from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: local user record.

    Note: plain data object, no database access. One record per email and per
    non-null external id.
    """

    user_id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    external_id: Optional[str] = None
    department: str = DEFAULT_DEPARTMENT
    employee_id: Optional[str] = None
    avatar: Optional[str] = None
    phone: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_sign_in: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "externalId": self.external_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
            "role": self.role.value,
            "department": self.department,
            "employeeId": self.employee_id,
            "avatar": self.avatar,
            "phone": self.phone,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class ResolvedUser:
    """Public shape returned by role resolution and passed to protected operations."""

    user_id: str
    external_id: Optional[str]
    email: str
    first_name: str
    last_name: str
    role: Role
    department: str
    employee_id: Optional[str] = None
    avatar: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "ResolvedUser":
        return cls(
            user_id=user.user_id,
            external_id=user.external_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            department=user.department or DEFAULT_DEPARTMENT,
            employee_id=user.employee_id,
            avatar=user.avatar,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "externalId": self.external_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
            "role": self.role.value,
            "department": self.department,
            "employeeId": self.employee_id,
            "avatar": self.avatar,
        }


@dataclass(frozen=True)
class UserPage:
    users: list[User]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0
