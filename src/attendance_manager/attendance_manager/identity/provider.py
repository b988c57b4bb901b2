from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Principal


class IdentityProvider(Protocol):
    """Boundary to the external identity provider.

    Implementations raise ``IdentityProviderError`` when the provider is unavailable.
    """

    def get_principal(self, external_id: str) -> Optional[Principal]:
        raise NotImplementedError

    def list_principals(self, *, limit: int) -> Sequence[Principal]:
        raise NotImplementedError

    def update_metadata(
        self,
        external_id: str,
        *,
        role: Optional[str] = None,
        department: Optional[str] = None,
    ) -> None:
        raise NotImplementedError
