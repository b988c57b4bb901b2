from __future__ import annotations

from datetime import date, datetime

import pytest
from bson import ObjectId
from pymongo import errors as mongo_errors

from src.attendance_manager.attendance_manager.common.datetime_utils import (
    end_of_day,
    month_bounds,
    shift_month,
    trend_window,
)
from src.attendance_manager.attendance_manager.common.validators import (
    parse_month_year,
    parse_positive_int,
    require_email,
)
from src.attendance_manager.attendance_manager.core.exceptions import (
    DuplicateKeyError,
    StoreError,
    ValidationError,
)
from src.attendance_manager.attendance_manager.database.mongo_base import store_errors, to_object_id


def test_trend_window_spans_whole_days():
    start, end = trend_window(7, date(2026, 1, 15))

    assert start == datetime(2026, 1, 8, 0, 0, 0)
    assert end == datetime(2026, 1, 15, 23, 59, 59, 999000)


def test_month_helpers():
    assert month_bounds(2024, 2) == (datetime(2024, 2, 1), end_of_day(date(2024, 2, 29)))
    assert shift_month(date(2026, 1, 31), -1) == date(2025, 12, 1)
    assert shift_month(date(2025, 11, 3), 3) == date(2026, 2, 1)


def test_parse_positive_int():
    assert parse_positive_int(None, "days", 7) == 7
    assert parse_positive_int(" 30 ", "days", 7) == 30
    with pytest.raises(ValidationError):
        parse_positive_int("-1", "days", 7)
    with pytest.raises(ValidationError):
        parse_positive_int("x", "days", 7)
    with pytest.raises(ValidationError):
        parse_positive_int("600", "limit", 50, maximum=500)


def test_parse_month_year():
    assert parse_month_year("2", "2026") == (2, 2026)
    assert parse_month_year("2", None) is None
    with pytest.raises(ValidationError):
        parse_month_year("13", "2026")


def test_require_email():
    assert require_email(" A@X.com ") == "a@x.com"
    with pytest.raises(ValidationError):
        require_email("not-an-email")


def test_to_object_id():
    oid = ObjectId()
    assert to_object_id(str(oid)) == oid
    with pytest.raises(ValidationError):
        to_object_id("nope")


def test_store_errors_maps_duplicate_key_field():
    driver_error = mongo_errors.DuplicateKeyError(
        "E11000 duplicate key error collection: db.users index: email_1",
        11000,
        {"keyPattern": {"email": 1}, "keyValue": {"email": "a@x.com"}},
    )

    with pytest.raises(DuplicateKeyError) as exc_info:
        with store_errors():
            raise driver_error

    assert exc_info.value.key == "email"


def test_store_errors_wraps_other_driver_failures():
    with pytest.raises(StoreError):
        with store_errors():
            raise mongo_errors.ServerSelectionTimeoutError("no servers")
