from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..auth.resolver import RoleResolver
from ..common.validators import require_email, require_length, require_non_empty, require_phone
from ..core.constants import DEFAULT_DEPARTMENT, DEFAULT_FIRST_NAME, DEFAULT_LAST_NAME, DEFAULT_SYNC_LIMIT
from ..core.enums import Role, UserStatus
from ..core.exceptions import ConflictError, DuplicateKeyError, NotFoundError, ValidationError
from ..identity.model import Principal
from ..identity.provider import IdentityProvider
from .model import ResolvedUser, User, UserPage
from .repository import UserRepository

logger = logging.getLogger(__name__)

# Roles an administrator may assign through the role-update endpoint.
ASSIGNABLE_ROLES = (Role.ADMIN, Role.EMPLOYEE, Role.STUDENT)


def _profile_fields(
    *,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
    department: Optional[str] = None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if first_name is not None:
        fields["first_name"] = require_length(first_name, "firstName", 1, 50)
    if last_name is not None:
        fields["last_name"] = require_length(last_name, "lastName", 1, 50)
    if phone is not None:
        fields["phone"] = require_phone(phone)
    if department is not None:
        fields["department"] = require_length(department, "department", 1, 100)
    return fields


class ProfileService:
    """Use case: self-service profile of the signed-in user."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get_profile(self, user: ResolvedUser) -> User:
        record = self._users.get_by_id(user.user_id)
        if not record:
            raise NotFoundError("User not found")
        return record

    def update_profile(
        self,
        user: ResolvedUser,
        *,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
        department: Optional[str] = None,
    ) -> User:
        fields = _profile_fields(first_name=first_name, last_name=last_name, phone=phone, department=department)
        if not fields:
            return self.get_profile(user)
        updated = self._users.update_fields(user.user_id, fields)
        if not updated:
            raise NotFoundError("User not found")
        return updated


class UserAdminService:
    """Use case: manage the user directory (admin)."""

    def __init__(self, users: UserRepository, identity: IdentityProvider):
        self._users = users
        self._identity = identity

    def list_users(
        self,
        *,
        role: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> UserPage:
        role_filter = Role.parse(role) if role else None
        if role and role_filter is None:
            raise ValidationError("Invalid role")
        status_filter = None
        if status:
            try:
                status_filter = UserStatus(status)
            except ValueError:
                raise ValidationError("Invalid status")
        return self._users.list_users(
            role=role_filter,
            department=department or None,
            status=status_filter,
            search=search or None,
            page=page,
            limit=limit,
        )

    def get_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_user(
        self,
        *,
        email: str,
        first_name: str,
        last_name: str,
        role: Optional[str] = None,
        department: Optional[str] = None,
        employee_id: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> User:
        email = require_email(email)
        parsed_role = Role.parse(role) if role else Role.EMPLOYEE
        if parsed_role is None:
            raise ValidationError("Invalid role")

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        fields = {
            "email": email,
            "first_name": require_length(first_name, "firstName", 1, 50),
            "last_name": require_length(last_name, "lastName", 1, 50),
            "role": parsed_role,
            "department": require_length(department, "department", 1, 100) if department else DEFAULT_DEPARTMENT,
            "employee_id": (employee_id or "").strip() or None,
            "phone": require_phone(phone) if phone else None,
            "status": UserStatus.ACTIVE,
        }
        # No external id until the person first signs in; the resolver links by email.
        try:
            user = self._users.create_user(fields)
        except DuplicateKeyError as exc:
            raise ConflictError("User with this email already exists") from exc
        logger.info("admin created user %s (%s)", user.user_id, email)
        return user

    def update_user(
        self,
        user_id: str,
        *,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
        department: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> User:
        current = self.get_user(user_id)
        fields = _profile_fields(first_name=first_name, last_name=last_name, phone=phone, department=department)

        if email is not None:
            email = require_email(email)
            if email != current.email:
                other = self._users.get_by_email(email)
                if other and other.user_id != current.user_id:
                    raise ConflictError("Email already exists")
                fields["email"] = email
        if role is not None:
            parsed = Role.parse(role)
            if parsed is None:
                raise ValidationError("Invalid role")
            fields["role"] = parsed
        if status is not None:
            try:
                fields["status"] = UserStatus(status)
            except ValueError:
                raise ValidationError("Invalid status")
        if employee_id is not None:
            fields["employee_id"] = employee_id.strip() or None

        if not fields:
            return current
        try:
            updated = self._users.update_fields(user_id, fields)
        except DuplicateKeyError as exc:
            raise ConflictError("Email already exists") from exc
        if not updated:
            raise NotFoundError("User not found")
        return updated

    def deactivate_user(self, acting: ResolvedUser, user_id: str) -> User:
        target = self.get_user(user_id)
        if target.user_id == acting.user_id:
            raise ValidationError("Cannot deactivate your own account")
        updated = self._users.update_fields(target.user_id, {"status": UserStatus.INACTIVE})
        logger.info("user %s deactivated by %s", target.user_id, acting.user_id)
        return updated or target

    def update_role(self, external_id: str, role: str, department: Optional[str] = None) -> dict:
        """Set role (and department) in both stores.

        Without an explicit department the local one is kept, falling back to
        the provider hint for a record not seen yet; the provider receives the
        same value so the two stores agree. The provider hint is written first
        and the local record second. Both writes are plain overwrites, so a
        failed call can simply be retried.
        """
        external_id = require_non_empty(external_id, "userId")
        parsed = Role.parse(role)
        if parsed not in ASSIGNABLE_ROLES:
            raise ValidationError("Invalid input")
        if department is not None:
            department = require_length(department, "department", 1, 100)

        principal = self._identity.get_principal(external_id)
        if principal is None:
            raise NotFoundError("User not found")

        email = principal.primary_email
        current = self._users.get_by_external_id(external_id) or (self._users.get_by_email(email) if email else None)
        effective_department = department or (current.department if current else None) or principal.hint("department")
        self._identity.update_metadata(external_id, role=parsed.value, department=effective_department)

        fields = {
            "email": email or None,
            "first_name": principal.first_name or DEFAULT_FIRST_NAME,
            "last_name": principal.last_name or DEFAULT_LAST_NAME,
            "role": parsed,
        }
        linked = {"external_id": external_id, "role": parsed}
        if effective_department:
            fields["department"] = linked["department"] = effective_department
        try:
            user = self._users.upsert_by_external_id(external_id, fields)
        except DuplicateKeyError as exc:
            if not email or exc.key not in (None, "email"):
                raise
            # Record created by an admin before first sign-in: link it instead.
            existing = self._users.get_by_email(email)
            if existing is None:
                raise
            user = self._users.update_fields(existing.user_id, linked) or existing

        logger.info("role of %s set to %s", external_id, parsed.value)
        return {"userId": external_id, "role": user.role.value, "department": user.department}


@dataclass
class SyncResult:
    total: int = 0
    synced: list[User] = field(default_factory=list)
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "totalProviderUsers": self.total,
            "syncedUsers": len(self.synced),
            "skipped": self.skipped,
            "failed": self.failed,
            "users": [
                {
                    "id": u.user_id,
                    "externalId": u.external_id,
                    "name": u.full_name,
                    "email": u.email,
                    "role": u.role.value,
                    "department": u.department,
                    "employeeId": u.employee_id,
                }
                for u in self.synced
            ],
        }


class DirectorySyncService:
    """Use case: pull provider accounts into the local directory.

    Provider-owned fields (names, phone, avatar, last sign-in) are refreshed.
    Role, department and employee id hints only fill empty fields.
    """

    def __init__(self, users: UserRepository, identity: IdentityProvider, resolver: RoleResolver):
        self._users = users
        self._identity = identity
        self._resolver = resolver

    def sync_from_provider(self, *, limit: int = DEFAULT_SYNC_LIMIT) -> SyncResult:
        principals = self._identity.list_principals(limit=limit)
        result = SyncResult(total=len(principals))
        logger.info("syncing %d provider users", result.total)

        for principal in principals:
            if not principal.primary_email:
                result.skipped += 1
                continue
            try:
                result.synced.append(self._sync_one(principal))
            except Exception:
                logger.exception("error syncing user %s", principal.external_id)
                result.failed += 1
        return result

    def _sync_one(self, principal: Principal) -> User:
        existing = self._users.get_by_external_id(principal.external_id)
        if existing is None:
            return self._resolver.provision(principal)

        refreshed = {
            name: value
            for name, value in (
                ("first_name", principal.first_name),
                ("last_name", principal.last_name),
                ("phone", principal.primary_phone),
                ("avatar", principal.image_url),
                ("last_sign_in", principal.last_sign_in),
            )
            if value is not None
        }
        if refreshed:
            self._users.update_fields(existing.user_id, refreshed)

        hints = RoleResolver.new_user_fields(principal)
        self._users.set_missing_fields(
            existing.user_id,
            {"role": hints["role"], "department": hints["department"], "employee_id": hints["employee_id"]},
        )
        return self._users.get_by_id(existing.user_id) or existing
