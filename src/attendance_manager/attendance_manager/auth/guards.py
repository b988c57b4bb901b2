from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, Optional

from flask import session

from ..core.enums import Role
from ..core.exceptions import IdentityProviderError
from ..identity.model import Principal
from ..identity.provider import IdentityProvider
from .gate import AuthorizationGate

logger = logging.getLogger(__name__)

SESSION_KEY = "external_id"


def current_principal(identity: IdentityProvider) -> Optional[Principal]:
    """Principal of the signed-in session, fetched fresh from the provider."""
    external_id = session.get(SESSION_KEY)
    if not external_id:
        return None
    try:
        return identity.get_principal(str(external_id))
    except IdentityProviderError:
        logger.warning("identity provider unavailable for %s", external_id)
        return None


def make_guards(gate: AuthorizationGate, identity: IdentityProvider) -> tuple[Callable, Callable]:
    """Build ``login_required`` and ``role_required`` for one app.

    The decorated view receives the resolved user as its first argument.
    """

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = gate.require_user(current_principal(identity))
            return view(user, *args, **kwargs)

        return wrapper

    def role_required(*roles: Role):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = gate.require_role(current_principal(identity), roles)
                return view(user, *args, **kwargs)

            return wrapper

        return decorator

    return login_required, role_required
