from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..identity.model import Principal
from ..users.model import ResolvedUser
from .resolver import RoleResolver

logger = logging.getLogger(__name__)


class AuthorizationGate:
    """Enforces role membership at the start of every protected operation.

    Every call re-resolves the principal; nothing is cached between calls.
    """

    def __init__(self, resolver: RoleResolver):
        self._resolver = resolver

    def require_user(self, principal: Optional[Principal]) -> ResolvedUser:
        if principal is None:
            raise AuthenticationError("User not authenticated")
        try:
            return self._resolver.resolve(principal)
        except Exception as exc:
            # Fail closed: no fallback identity when resolution breaks.
            logger.warning("denying %s: %s", principal.external_id, exc)
            raise AuthenticationError("User not authenticated") from exc

    def require_role(self, principal: Optional[Principal], allowed_roles: Iterable[Role | str]) -> ResolvedUser:
        allowed = [Role(r) for r in allowed_roles]
        user = self.require_user(principal)
        if user.role not in allowed:
            raise AuthorizationError(
                f"Access denied. Required roles: {', '.join(r.value for r in allowed)}. Your role: {user.role.value}"
            )
        return user
