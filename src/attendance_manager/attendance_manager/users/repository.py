from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import User, UserPage


class UserRepository(Protocol):
    """Repository interface for the user directory.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_external_id(self, external_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(self, fields: Mapping[str, Any]) -> User:
        """Insert a record; raises DuplicateKeyError on a unique index violation."""

        raise NotImplementedError

    def set_missing_fields(self, user_id: str, fields: Mapping[str, Any]) -> Sequence[str]:
        """Write each field only where the stored value is null, missing or empty.

        Returns the names of the fields that were actually written.
        """

        raise NotImplementedError

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> Optional[User]:
        raise NotImplementedError

    def upsert_by_external_id(self, external_id: str, fields: Mapping[str, Any]) -> User:
        raise NotImplementedError

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        status: Optional[UserStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> UserPage:
        raise NotImplementedError

    def list_ids(self, *, department: Optional[str] = None, status: Optional[UserStatus] = None) -> Sequence[str]:
        raise NotImplementedError

    def count_active(self, roles: Sequence[Role]) -> int:
        raise NotImplementedError

    def count_active_by_role(self) -> dict[str, int]:
        raise NotImplementedError

    def count_active_by_department(self, roles: Sequence[Role]) -> dict[Optional[str], int]:
        raise NotImplementedError
