from __future__ import annotations

from flask import Flask, jsonify, request

from ..auth.guards import make_guards
from ..common.datetime_utils import end_of_day, parse_iso_date, parse_iso_datetime, start_of_day
from ..common.http import json_body, query_arg
from ..common.validators import parse_month_year, parse_positive_int
from ..container import Container
from ..core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ValidationError
from .model import AttendanceQuery
from .service import UNSET


def _paging() -> tuple[int, int]:
    page = parse_positive_int(request.args.get("page"), "page", 1)
    limit = parse_positive_int(request.args.get("limit"), "limit", DEFAULT_PAGE_LIMIT, maximum=MAX_PAGE_LIMIT)
    return page, limit


def _date_arg(name: str):
    value = query_arg(name)
    if value is None:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD")


def _timestamp_field(data: dict, name: str):
    if name not in data:
        return UNSET
    value = data[name]
    if not value:
        return None
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 timestamp")


def register(app: Flask, container: Container) -> None:
    login_required, role_required = make_guards(container.gate, container.identity)

    @app.get("/api/attendance/mark", endpoint="attendance_today")
    @login_required
    def attendance_today(user):
        return jsonify(container.attendance_service.today_status(user))

    @app.post("/api/attendance/mark", endpoint="attendance_mark")
    @login_required
    def attendance_mark(user):
        data = json_body()
        result = container.attendance_service.mark(user, data.get("action") or "", location=data.get("location"))
        return jsonify(result.to_dict())

    @app.get("/api/attendance/me", endpoint="attendance_me")
    @login_required
    def attendance_me(user):
        page, limit = _paging()
        result = container.attendance_service.list_for_user(
            user.user_id,
            month_year=parse_month_year(query_arg("month"), query_arg("year")),
            page=page,
            limit=limit,
        )
        return jsonify(result.to_dict())

    @app.get("/api/attendance", endpoint="attendance_all")
    @role_required(Role.ADMIN)
    def attendance_all(user):
        page, limit = _paging()
        status = query_arg("status")
        try:
            status_filter = AttendanceStatus(status) if status else None
        except ValueError:
            raise ValidationError("Invalid status")
        start, end = _date_arg("startDate"), _date_arg("endDate")
        query = AttendanceQuery(
            user_id=query_arg("userId"),
            status=status_filter,
            start=start_of_day(start) if start else None,
            end=end_of_day(end) if end else None,
        )
        result = container.attendance_service.list_all(
            query, department=query_arg("department"), page=page, limit=limit
        )
        return jsonify(result.to_dict())

    @app.get("/api/attendance/user/<user_id>", endpoint="attendance_for_user")
    @role_required(Role.ADMIN)
    def attendance_for_user(user, user_id: str):
        page, limit = _paging()
        profile, result = container.attendance_service.list_for_target_user(
            user_id,
            month_year=parse_month_year(query_arg("month"), query_arg("year")),
            page=page,
            limit=limit,
        )
        return jsonify({"user": profile, **result.to_dict()})

    @app.get("/api/attendance/<attendance_id>", endpoint="attendance_record")
    @role_required(Role.ADMIN)
    def attendance_record(user, attendance_id: str):
        return jsonify(container.attendance_service.get_record(attendance_id))

    @app.put("/api/attendance/<attendance_id>", endpoint="attendance_record_update")
    @role_required(Role.ADMIN)
    def attendance_record_update(user, attendance_id: str):
        data = json_body()
        record = container.attendance_service.update_record(
            user,
            attendance_id,
            status=data["status"] if data.get("status") else UNSET,
            check_in_time=_timestamp_field(data, "checkInTime"),
            check_out_time=_timestamp_field(data, "checkOutTime"),
            remarks=data.get("remarks", UNSET),
            is_manual_entry=data.get("isManualEntry", UNSET),
        )
        return jsonify({"message": "Attendance record updated successfully", "attendance": record.to_dict()})

    @app.delete("/api/attendance/<attendance_id>", endpoint="attendance_record_delete")
    @role_required(Role.ADMIN)
    def attendance_record_delete(user, attendance_id: str):
        deleted = container.attendance_service.delete_record(user, attendance_id)
        return jsonify(
            {
                "message": "Attendance record deleted successfully",
                "deletedRecord": {
                    "id": deleted.attendance_id,
                    "userId": deleted.user_id,
                    "date": deleted.work_date.isoformat(),
                    "status": deleted.status.value,
                },
            }
        )
