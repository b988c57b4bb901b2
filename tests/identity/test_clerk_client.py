from __future__ import annotations

from datetime import datetime

import pytest
import requests

from src.attendance_manager.attendance_manager.core.exceptions import IdentityProviderError, ResolutionError
from src.attendance_manager.attendance_manager.identity.clerk_client import (
    ClerkIdentityProvider,
    IdentityConfig,
    principal_from_payload,
)

PAYLOAD = {
    "id": "user_1",
    "first_name": "Linh",
    "last_name": "",
    "primary_email_address_id": "em_2",
    "email_addresses": [
        {"id": "em_1", "email_address": "old@x.com", "verification": {"status": "verified"}},
        {"id": "em_2", "email_address": "Main@X.com", "verification": {"status": "verified"}},
        {"id": "em_3", "email_address": "spam@x.com", "verification": {"status": "unverified"}},
    ],
    "phone_numbers": [{"phone_number": "+84 111"}],
    "image_url": "https://img/1.png",
    "public_metadata": {"role": "hr", "department": "People"},
    "last_sign_in_at": 1767225600000,
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response


def _provider(session):
    return ClerkIdentityProvider(IdentityConfig(api_url="https://api.test/", secret_key="sk", timeout=3), session=session)


def test_payload_mapping_keeps_verified_primary_first():
    principal = principal_from_payload(PAYLOAD)

    assert principal.emails == ("Main@X.com", "old@x.com")
    assert principal.primary_email == "main@x.com"
    assert principal.last_name is None
    assert principal.primary_phone == "+84 111"
    assert principal.hint("role") == "hr"
    assert principal.last_sign_in == datetime(2026, 1, 1, 0, 0)


def test_get_principal_sends_bearer_and_timeout():
    session = FakeSession(FakeResponse(200, PAYLOAD))

    principal = _provider(session).get_principal("user_1")

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "https://api.test/v1/users/user_1")
    assert kwargs["headers"] == {"Authorization": "Bearer sk"}
    assert kwargs["timeout"] == 3
    assert principal.external_id == "user_1"


def test_get_principal_not_found():
    assert _provider(FakeSession(FakeResponse(404))).get_principal("nope") is None


def test_transport_error_is_resolution_failure():
    session = FakeSession(error=requests.ConnectionError("refused"))

    with pytest.raises(ResolutionError):
        _provider(session).get_principal("user_1")


def test_server_error_raises():
    with pytest.raises(IdentityProviderError):
        _provider(FakeSession(FakeResponse(500))).list_principals(limit=5)


def test_list_principals_accepts_wrapped_payload():
    session = FakeSession(FakeResponse(200, {"data": [PAYLOAD], "total_count": 1}))

    principals = _provider(session).list_principals(limit=5)

    assert [p.external_id for p in principals] == ["user_1"]
    assert session.calls[0][2]["params"] == {"limit": 5, "order_by": "created_at"}


def test_update_metadata_patches_public_hints():
    session = FakeSession(FakeResponse(200, {}))

    _provider(session).update_metadata("user_1", role="admin", department=None)

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("PATCH", "https://api.test/v1/users/user_1/metadata")
    assert kwargs["json"] == {"public_metadata": {"role": "admin"}}
