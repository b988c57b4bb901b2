from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence


@dataclass(frozen=True)
class Principal:
    """Authenticated identity supplied by the external provider.

    Owned by the provider; hints in ``metadata`` are only authoritative until a
    local user record exists.
    """

    external_id: str
    emails: Sequence[str] = ()
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phones: Sequence[str] = ()
    image_url: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    last_sign_in: Optional[datetime] = None

    @property
    def primary_email(self) -> str:
        return (self.emails[0] if self.emails else "").strip().lower()

    @property
    def primary_phone(self) -> Optional[str]:
        return self.phones[0] if self.phones else None

    def hint(self, key: str) -> Optional[str]:
        value = self.metadata.get(key)
        if value is None:
            return None
        value = str(value).strip()
        return value or None
