from __future__ import annotations

import logging
from typing import Any

from ..core.constants import DEFAULT_DEPARTMENT, DEFAULT_FIRST_NAME, DEFAULT_LAST_NAME
from ..core.enums import Role, UserStatus
from ..core.exceptions import DuplicateKeyError, ResolutionError
from ..identity.model import Principal
from ..users.model import ResolvedUser, User
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)

# Fields an email-matched record may inherit from the principal, only when unset.
BACKFILL_FIELDS = ("external_id", "department", "role", "first_name", "last_name")


class RoleResolver:
    """Use case: map a provider principal to the local user record.

    Provisions a record on first sight. When the email is already taken (first
    login racing a directory import, or re-registration under a known address)
    the existing record is adopted and only its empty fields are filled in, so
    admin-curated values such as role are never reset to provider hints.

    Known gap: two simultaneous first logins for the same new external id
    collide on the external-id index; that case is not recovered and surfaces
    as a ResolutionError.
    """

    def __init__(self, users: UserRepository):
        self._users = users

    def resolve(self, principal: Principal) -> ResolvedUser:
        try:
            user = self._users.get_by_external_id(principal.external_id)
            if user is None:
                user = self.provision(principal)
        except ResolutionError:
            raise
        except Exception as exc:
            logger.exception("role resolution failed for %s", principal.external_id)
            raise ResolutionError("Failed to resolve user role") from exc

        if not user.is_active:
            raise ResolutionError("User account is inactive")
        return ResolvedUser.from_user(user)

    @staticmethod
    def new_user_fields(principal: Principal) -> dict[str, Any]:
        return {
            "external_id": principal.external_id,
            "email": principal.primary_email or None,
            "first_name": principal.first_name or DEFAULT_FIRST_NAME,
            "last_name": principal.last_name or DEFAULT_LAST_NAME,
            "role": Role.parse(principal.hint("role"), Role.EMPLOYEE),
            "department": principal.hint("department") or DEFAULT_DEPARTMENT,
            "employee_id": principal.hint("employeeId") or principal.hint("employee_id"),
            "phone": principal.primary_phone,
            "avatar": principal.image_url,
            "last_sign_in": principal.last_sign_in,
            "status": UserStatus.ACTIVE,
        }

    def provision(self, principal: Principal) -> User:
        """Create the record for an unseen principal, adopting an email match."""
        fields = self.new_user_fields(principal)
        try:
            user = self._users.create_user(fields)
            logger.info("provisioned user %s for %s", user.user_id, principal.external_id)
            return user
        except DuplicateKeyError as create_error:
            # An email-less principal never matches an existing record.
            if not fields["email"] or create_error.key not in (None, "email"):
                raise

            existing = self._users.get_by_email(fields["email"])
            if existing is None:
                raise

            backfill = {name: fields[name] for name in BACKFILL_FIELDS}
            written = self._users.set_missing_fields(existing.user_id, backfill)
            if written:
                logger.info("linked user %s to %s, backfilled %s", existing.user_id, principal.external_id, ", ".join(written))
            return self._users.get_by_id(existing.user_id) or existing
