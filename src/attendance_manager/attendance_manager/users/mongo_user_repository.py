from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Sequence

from pymongo import ReturnDocument
from pymongo.collection import Collection

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_DEPARTMENT, DEFAULT_FIRST_NAME, DEFAULT_LAST_NAME
from ..core.enums import Role, UserStatus
from ..database.bootstrap import USERS
from ..database.connection import DatabaseConnection
from ..database.mongo_base import store_errors, str_id, to_object_id
from .model import User, UserPage
from .repository import UserRepository


def _to_user(doc: Mapping[str, Any]) -> User:
    return User(
        user_id=str_id(doc),
        external_id=doc.get("external_id"),
        email=doc.get("email") or "",
        first_name=doc.get("first_name") or DEFAULT_FIRST_NAME,
        last_name=doc.get("last_name") or DEFAULT_LAST_NAME,
        role=Role.parse(doc.get("role"), Role.EMPLOYEE),
        department=doc.get("department") or DEFAULT_DEPARTMENT,
        employee_id=doc.get("employee_id"),
        avatar=doc.get("avatar"),
        phone=doc.get("phone"),
        status=UserStatus(doc.get("status") or UserStatus.ACTIVE.value),
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
        last_sign_in=doc.get("last_sign_in"),
    )


def _plain(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {k: (v.value if isinstance(v, (Role, UserStatus)) else v) for k, v in fields.items()}


def _unset(field: str) -> dict[str, Any]:
    return {"$or": [{field: {"$exists": False}}, {field: None}, {field: ""}]}


class MongoUserRepository(UserRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _users(self) -> Collection:
        return self._conn.database()[USERS]

    def get_by_id(self, user_id: str) -> Optional[User]:
        with store_errors():
            doc = self._users.find_one({"_id": to_object_id(user_id)})
        return _to_user(doc) if doc else None

    def get_by_external_id(self, external_id: str) -> Optional[User]:
        with store_errors():
            doc = self._users.find_one({"external_id": external_id})
        return _to_user(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[User]:
        email = (email or "").strip().lower()
        if not email:
            return None
        with store_errors():
            doc = self._users.find_one({"email": email})
        return _to_user(doc) if doc else None

    def create_user(self, fields: Mapping[str, Any]) -> User:
        now = now_local()
        doc = {k: v for k, v in _plain(fields).items() if v is not None}
        doc.setdefault("created_at", now)
        doc["updated_at"] = now
        with store_errors():
            result = self._users.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_user(doc)

    def set_missing_fields(self, user_id: str, fields: Mapping[str, Any]) -> Sequence[str]:
        oid = to_object_id(user_id)
        written: list[str] = []
        for field, value in _plain(fields).items():
            if value is None or value == "":
                continue
            # One conditional write per field: a populated value is never overwritten.
            with store_errors():
                result = self._users.update_one(
                    {"_id": oid, **_unset(field)},
                    {"$set": {field: value, "updated_at": now_local()}},
                )
            if result.modified_count:
                written.append(field)
        return written

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> Optional[User]:
        update = _plain(fields)
        update["updated_at"] = now_local()
        with store_errors():
            doc = self._users.find_one_and_update(
                {"_id": to_object_id(user_id)},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        return _to_user(doc) if doc else None

    def upsert_by_external_id(self, external_id: str, fields: Mapping[str, Any]) -> User:
        now = now_local()
        update = {k: v for k, v in _plain(fields).items() if v is not None}
        update["updated_at"] = now
        update.pop("status", None)
        with store_errors():
            doc = self._users.find_one_and_update(
                {"external_id": external_id},
                {
                    "$set": update,
                    "$setOnInsert": {"created_at": now, "status": UserStatus.ACTIVE.value},
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        return _to_user(doc)

    @staticmethod
    def _filter(
        *,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        status: Optional[UserStatus] = None,
        search: Optional[str] = None,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if role is not None:
            query["role"] = role.value
        if department:
            query["department"] = department
        if status is not None:
            query["status"] = status.value
        if search:
            pattern = re.compile(re.escape(search.strip()), re.IGNORECASE)
            query["$or"] = [{"email": pattern}, {"first_name": pattern}, {"last_name": pattern}, {"employee_id": pattern}]
        return query

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
        query = self._filter(role=role, department=department, status=status, search=search)
        with store_errors():
            total = self._users.count_documents(query)
            cursor = self._users.find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
            users = [_to_user(doc) for doc in cursor]
        return UserPage(users=users, total=total, page=page, limit=limit)

    def list_ids(self, *, department: Optional[str] = None, status: Optional[UserStatus] = None) -> Sequence[str]:
        query = self._filter(department=department, status=status)
        with store_errors():
            return [str(doc["_id"]) for doc in self._users.find(query, {"_id": 1})]

    def count_active(self, roles: Sequence[Role]) -> int:
        with store_errors():
            return self._users.count_documents(
                {"status": UserStatus.ACTIVE.value, "role": {"$in": [r.value for r in roles]}}
            )

    def count_active_by_role(self) -> dict[str, int]:
        pipeline = [
            {"$match": {"status": UserStatus.ACTIVE.value}},
            {"$group": {"_id": "$role", "count": {"$sum": 1}}},
        ]
        with store_errors():
            return {row["_id"]: int(row["count"]) for row in self._users.aggregate(pipeline)}

    def count_active_by_department(self, roles: Sequence[Role]) -> dict[Optional[str], int]:
        pipeline = [
            {"$match": {"status": UserStatus.ACTIVE.value, "role": {"$in": [r.value for r in roles]}}},
            {"$group": {"_id": "$department", "count": {"$sum": 1}}},
        ]
        with store_errors():
            return {row["_id"]: int(row["count"]) for row in self._users.aggregate(pipeline)}
