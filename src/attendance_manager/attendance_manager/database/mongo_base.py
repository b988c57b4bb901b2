from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import errors as mongo_errors

from ..core.exceptions import DuplicateKeyError, StoreError, ValidationError


def to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValidationError("Invalid ID format")


def duplicate_key_of(exc: mongo_errors.DuplicateKeyError) -> Optional[str]:
    """Name of the field that tripped a unique index, when the server reports it."""
    details = exc.details or {}
    pattern = details.get("keyPattern") or details.get("keyValue") or {}
    if pattern:
        return next(iter(pattern))
    message = str(exc)
    for field in ("email", "external_id"):
        if f"{field}_1" in message or f"{field}:" in message:
            return field
    return None


@contextmanager
def store_errors() -> Iterator[None]:
    """Translate driver errors into domain store errors."""
    try:
        yield
    except mongo_errors.DuplicateKeyError as e:
        raise DuplicateKeyError(str(e), key=duplicate_key_of(e)) from e
    except mongo_errors.PyMongoError as e:
        raise StoreError(str(e)) from e


def str_id(doc: Dict[str, Any], field: str = "_id") -> Optional[str]:
    value = doc.get(field)
    return str(value) if value is not None else None
