from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_PHONE_RE = re.compile(r"^\+?[\d\s\-\(\)]+$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_length(value: str, field_name: str, min_len: int, max_len: int) -> str:
    value = (value or "").strip()
    if len(value) < min_len or len(value) > max_len:
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return value


def require_email(value: Optional[str]) -> str:
    value = require_non_empty(value, "email").lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("email is invalid")
    return value


def require_phone(value: str) -> str:
    value = (value or "").strip()
    if not _PHONE_RE.match(value):
        raise ValidationError("phone is invalid")
    return value


def parse_positive_int(value: Optional[str], field_name: str, default: int, *, maximum: Optional[int] = None) -> int:
    """Parse a query-string integer; missing values fall back to ``default``."""
    if value is None or str(value).strip() == "":
        return default
    try:
        n = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be an integer")
    if n < 1:
        raise ValidationError(f"{field_name} must be positive")
    if maximum is not None and n > maximum:
        raise ValidationError(f"{field_name} must be at most {maximum}")
    return n


def parse_month_year(month: Optional[str], year: Optional[str]) -> Optional[tuple[int, int]]:
    """Both or neither: a lone month or year is ignored, as the listing endpoints do."""
    if not month or not year:
        return None
    m = parse_positive_int(month, "month", 1, maximum=12)
    y = parse_positive_int(year, "year", 1, maximum=9999)
    return m, y
