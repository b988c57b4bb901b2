from __future__ import annotations

from datetime import datetime

import pytest

from tests.fakes import FakeAttendanceRepo, FakeIdentityProvider, FakeUserRepo


@pytest.fixture
def users_repo():
    return FakeUserRepo()


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def fixed_now():
    return datetime(2026, 1, 15, 9, 0)
