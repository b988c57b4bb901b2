from __future__ import annotations

from pymongo import ASCENDING
from pymongo.database import Database

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_DEPARTMENT
from ..core.enums import Role, UserStatus

USERS = "users"
ATTENDANCE = "attendance"


def ensure_indexes(db: Database) -> None:
    """Create the indexes the directory invariants rely on (idempotent)."""
    users = db[USERS]
    # Principals without a verified email are stored without one.
    users.create_index(
        [("email", ASCENDING)],
        unique=True,
        name="email_1",
        partialFilterExpression={"email": {"$gt": ""}},
    )
    # Unlinked records (created by an admin before first sign-in) have no external id yet.
    users.create_index(
        [("external_id", ASCENDING)],
        unique=True,
        name="external_id_1",
        partialFilterExpression={"external_id": {"$type": "string"}},
    )
    users.create_index([("role", ASCENDING)], name="role_1")
    users.create_index([("department", ASCENDING), ("status", ASCENDING)], name="department_1_status_1")

    attendance = db[ATTENDANCE]
    attendance.create_index([("user_id", ASCENDING), ("date", ASCENDING)], name="user_id_1_date_1")
    attendance.create_index([("date", ASCENDING), ("status", ASCENDING)], name="date_1_status_1")


def seed_demo_users(db: Database) -> int:
    """Upsert a couple of unlinked demo accounts keyed by email.

    They get linked to identity-provider accounts on first sign-in with the same email.
    """
    now = now_local()
    demo = [
        ("admin@example.com", "Admin", "Demo", Role.ADMIN, "IT"),
        ("hr@example.com", "Hanh", "Tran", Role.HR, "HR"),
        ("employee@example.com", "Van A", "Nguyen", Role.EMPLOYEE, DEFAULT_DEPARTMENT),
    ]
    for email, first_name, last_name, role, department in demo:
        db[USERS].update_one(
            {"email": email},
            {
                "$setOnInsert": {
                    "email": email,
                    "first_name": first_name,
                    "last_name": last_name,
                    "role": role.value,
                    "department": department,
                    "status": UserStatus.ACTIVE.value,
                    "created_at": now,
                },
                "$set": {"updated_at": now},
            },
            upsert=True,
        )
    return len(demo)


def list_collections(db: Database) -> list[str]:
    return sorted(db.list_collection_names())
