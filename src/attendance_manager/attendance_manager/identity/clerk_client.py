from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import requests

from ..core.exceptions import IdentityProviderError
from .model import Principal
from .provider import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class IdentityConfig:
    api_url: str
    secret_key: str
    timeout: float = 10.0


def principal_from_payload(payload: dict[str, Any]) -> Principal:
    """Map a Backend API user object to a Principal.

    Only verified addresses are kept; the primary address goes first.
    """
    primary_id = payload.get("primary_email_address_id")
    verified: list[tuple[bool, str]] = []
    for item in payload.get("email_addresses") or []:
        address = (item.get("email_address") or "").strip()
        status = ((item.get("verification") or {}).get("status") or "").lower()
        if address and status == "verified":
            verified.append((item.get("id") != primary_id, address))
    verified.sort(key=lambda pair: pair[0])

    phones = [p.get("phone_number") for p in payload.get("phone_numbers") or [] if p.get("phone_number")]

    last_sign_in = None
    if payload.get("last_sign_in_at"):
        ts = int(payload["last_sign_in_at"]) / 1000
        last_sign_in = datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)

    return Principal(
        external_id=str(payload["id"]),
        emails=tuple(address for _, address in verified),
        first_name=payload.get("first_name") or None,
        last_name=payload.get("last_name") or None,
        phones=tuple(phones),
        image_url=payload.get("image_url") or None,
        metadata=dict(payload.get("public_metadata") or {}),
        last_sign_in=last_sign_in,
    )


class ClerkIdentityProvider(IdentityProvider):
    """Identity provider backed by the Clerk Backend API."""

    def __init__(self, config: IdentityConfig, *, session: Optional[requests.Session] = None):
        self._config = config
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._config.api_url.rstrip("/") + path
        headers = {"Authorization": f"Bearer {self._config.secret_key}"}
        try:
            response = self._session.request(method, url, headers=headers, timeout=self._config.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("identity provider request failed: %s %s: %s", method, path, exc)
            raise IdentityProviderError("Identity provider unavailable") from exc
        return response

    def get_principal(self, external_id: str) -> Optional[Principal]:
        response = self._request("GET", f"/v1/users/{external_id}")
        if response.status_code == 404:
            return None
        if not response.ok:
            raise IdentityProviderError(f"Identity provider answered {response.status_code}")
        return principal_from_payload(response.json())

    def list_principals(self, *, limit: int) -> Sequence[Principal]:
        response = self._request("GET", "/v1/users", params={"limit": int(limit), "order_by": "created_at"})
        if not response.ok:
            raise IdentityProviderError(f"Identity provider answered {response.status_code}")
        payload = response.json()
        items = payload.get("data", []) if isinstance(payload, dict) else payload
        return [principal_from_payload(item) for item in items]

    def update_metadata(
        self,
        external_id: str,
        *,
        role: Optional[str] = None,
        department: Optional[str] = None,
    ) -> None:
        hints: dict[str, str] = {}
        if role:
            hints["role"] = role
        if department:
            hints["department"] = department
        if not hints:
            return
        # The metadata endpoint deep-merges, so other public hints survive.
        response = self._request("PATCH", f"/v1/users/{external_id}/metadata", json={"public_metadata": hints})
        if not response.ok:
            raise IdentityProviderError(f"Identity provider answered {response.status_code}")
