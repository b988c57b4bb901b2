from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.model import WorkingHours
from .attendance.mongo_attendance_repository import MongoAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .auth.gate import AuthorizationGate
from .auth.resolver import RoleResolver
from .database.connection import DatabaseConnection, MongoConfig
from .identity.clerk_client import ClerkIdentityProvider, IdentityConfig
from .identity.provider import IdentityProvider
from .reports.service import ReportingAggregator
from .users.mongo_user_repository import MongoUserRepository
from .users.repository import UserRepository
from .users.service import DirectorySyncService, ProfileService, UserAdminService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    identity: IdentityProvider

    resolver: RoleResolver
    gate: AuthorizationGate

    profile_service: ProfileService
    user_admin_service: UserAdminService
    sync_service: DirectorySyncService
    attendance_service: AttendanceService
    reporting: ReportingAggregator


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    identity: IdentityProvider,
    conn: Optional[DatabaseConnection] = None,
    working_hours: Optional[WorkingHours] = None,
) -> Container:
    """Assemble services over the given repositories and provider."""
    resolver = RoleResolver(users_repo)
    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        identity=identity,
        resolver=resolver,
        gate=AuthorizationGate(resolver),
        profile_service=ProfileService(users_repo),
        user_admin_service=UserAdminService(users_repo, identity),
        sync_service=DirectorySyncService(users_repo, identity, resolver),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            strategy_factory=AttendanceStrategyFactory(),
            working_hours=working_hours or WorkingHours(),
        ),
        reporting=ReportingAggregator(attendance_repo, users_repo),
    )


def build_container(*, mongo_config: dict[str, Any], identity_config: dict[str, Any]) -> Container:
    config = MongoConfig(
        uri=str(mongo_config["uri"]),
        database=str(mongo_config["database"]),
        timeout_ms=int(mongo_config.get("timeout_ms", 5000)),
    )
    conn = DatabaseConnection.get_instance(config)

    identity = ClerkIdentityProvider(
        IdentityConfig(
            api_url=str(identity_config["api_url"]),
            secret_key=str(identity_config["secret_key"]),
            timeout=float(identity_config.get("timeout", 10.0)),
        )
    )

    return wire(
        users_repo=MongoUserRepository(conn),
        attendance_repo=MongoAttendanceRepository(conn),
        identity=identity,
        conn=conn,
    )
