from __future__ import annotations

import pytest

from src.attendance_manager.attendance_manager.auth.resolver import RoleResolver
from src.attendance_manager.attendance_manager.core.enums import Role, UserStatus
from src.attendance_manager.attendance_manager.core.exceptions import (
    DuplicateKeyError,
    ResolutionError,
    StoreError,
)

from tests.fakes import FakeUserRepo, make_principal


def test_first_sight_provisions_with_defaults(users_repo):
    resolver = RoleResolver(users_repo)

    user = resolver.resolve(make_principal("ext_new", "New@X.com"))

    assert user.external_id == "ext_new"
    assert user.email == "new@x.com"
    assert (user.first_name, user.last_name) == ("Unknown", "User")
    assert user.role == Role.EMPLOYEE
    assert user.department == "General"
    assert len(users_repo.users) == 1


def test_provision_uses_metadata_hints(users_repo):
    principal = make_principal(
        "ext_hr",
        "hr@x.com",
        first_name="Lan",
        last_name="Pham",
        phones=("+84 123",),
        metadata={"role": "HR", "department": "People", "employeeId": "E-7"},
    )

    user = RoleResolver(users_repo).resolve(principal)

    assert user.role == Role.HR
    assert user.department == "People"
    assert user.employee_id == "E-7"
    assert users_repo.get_by_id(user.user_id).phone == "+84 123"


def test_unknown_role_hint_falls_back_to_employee(users_repo):
    user = RoleResolver(users_repo).resolve(make_principal(metadata={"role": "superuser"}))

    assert user.role == Role.EMPLOYEE


def test_known_external_id_returns_existing_record(users_repo):
    existing = users_repo.add(email="a@x.com", external_id="ext_1", role=Role.ADMIN, department="IT")

    user = RoleResolver(users_repo).resolve(make_principal(metadata={"role": "employee"}))

    assert user.user_id == existing.user_id
    assert user.role == Role.ADMIN
    assert users_repo.create_calls == 0


def test_email_match_keeps_curated_role_and_links_external_id(users_repo):
    existing = users_repo.add(email="a@x.com", external_id=None, role=Role.MANAGER)

    user = RoleResolver(users_repo).resolve(make_principal("ext_1", "a@x.com", metadata={"role": "employee"}))

    assert user.user_id == existing.user_id
    assert user.role == Role.MANAGER
    assert user.external_id == "ext_1"
    assert users_repo.get_by_id(existing.user_id).external_id == "ext_1"


def test_email_match_fills_only_empty_fields(users_repo):
    existing = users_repo.add(email="a@x.com", first_name="", last_name="Kept", role=Role.ADMIN, department="Ops")
    principal = make_principal(
        "ext_1", "a@x.com", first_name="Provider", last_name="Name", metadata={"department": "Sales"}
    )

    user = RoleResolver(users_repo).resolve(principal)

    assert user.first_name == "Provider"
    assert user.last_name == "Kept"
    assert user.department == "Ops"
    assert user.role == Role.ADMIN
    assert user.user_id == existing.user_id


def test_repeated_resolution_is_stable(users_repo):
    users_repo.add(email="a@x.com", role=Role.ADMIN, department="Finance")
    resolver = RoleResolver(users_repo)
    principal = make_principal(metadata={"role": "employee", "department": "General"})

    first = resolver.resolve(principal)
    second = resolver.resolve(principal)

    assert (second.role, second.department) == (first.role, first.department) == (Role.ADMIN, "Finance")
    assert len(users_repo.users) == 1


def test_same_email_under_two_external_ids_maps_to_one_record(users_repo):
    resolver = RoleResolver(users_repo)

    first = resolver.resolve(make_principal("ext_1", "a@x.com"))
    second = resolver.resolve(make_principal("ext_2", "a@x.com"))
    again = resolver.resolve(make_principal("ext_2", "a@x.com"))

    assert len(users_repo.users) == 1
    assert first.user_id == second.user_id == again.user_id
    assert again.external_id == "ext_1"


class VanishingEmailRepo(FakeUserRepo):
    """Create hits the email index but the winner is not visible yet."""

    def create_user(self, fields):
        raise DuplicateKeyError("E11000 duplicate key", key="email")

    def get_by_email(self, email):
        return None


def test_duplicate_email_without_visible_record_fails():
    with pytest.raises(ResolutionError) as exc_info:
        RoleResolver(VanishingEmailRepo()).resolve(make_principal())

    assert isinstance(exc_info.value.__cause__, DuplicateKeyError)


def test_external_id_collision_is_not_recovered():
    class RacingRepo(FakeUserRepo):
        def get_by_external_id(self, external_id):
            return None

    repo = RacingRepo()
    repo.add(email="winner@x.com", external_id="ext_1")

    with pytest.raises(ResolutionError) as exc_info:
        RoleResolver(repo).resolve(make_principal("ext_1", "other@x.com"))

    assert exc_info.value.__cause__.key == "external_id"


def test_store_failure_becomes_resolution_error(users_repo):
    users_repo.fail_lookups = StoreError("connection refused")

    with pytest.raises(ResolutionError):
        RoleResolver(users_repo).resolve(make_principal())


def test_inactive_record_does_not_resolve(users_repo):
    users_repo.add(email="a@x.com", external_id="ext_1", status=UserStatus.INACTIVE)

    with pytest.raises(ResolutionError):
        RoleResolver(users_repo).resolve(make_principal())


def test_principal_without_email_never_adopts_email_less_record(users_repo):
    admin = users_repo.add(email="", external_id="ext_admin", role=Role.ADMIN)

    resolved = RoleResolver(users_repo).resolve(make_principal("ext_stranger", None))

    assert resolved.user_id != admin.user_id
    assert resolved.external_id == "ext_stranger"
    assert resolved.role == Role.EMPLOYEE
    assert users_repo.get_by_id(admin.user_id).external_id == "ext_admin"


def test_two_principals_without_email_get_separate_records(users_repo):
    resolver = RoleResolver(users_repo)

    first = resolver.resolve(make_principal("ext_a", None))
    second = resolver.resolve(make_principal("ext_b", None))

    assert first.user_id != second.user_id
    assert len(users_repo.users) == 2


def test_duplicate_without_email_is_not_recovered():
    class EmptyEmailCollisionRepo(FakeUserRepo):
        def create_user(self, fields):
            raise DuplicateKeyError("E11000 duplicate key", key=None)

    repo = EmptyEmailCollisionRepo()
    repo.add(email="", external_id="ext_admin", role=Role.ADMIN)

    with pytest.raises(ResolutionError):
        RoleResolver(repo).resolve(make_principal("ext_stranger", None))
