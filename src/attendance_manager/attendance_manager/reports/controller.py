from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request

from ..auth.guards import make_guards
from ..auth.permissions import can_access_department
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.http import query_arg
from ..common.validators import parse_positive_int
from ..container import Container
from ..core.constants import DEFAULT_DEPARTMENT_STATS_DAYS, DEFAULT_TREND_DAYS
from ..core.enums import ReportType, Role
from ..core.exceptions import AuthorizationError, ValidationError

# Longest window accepted for trend and department statistics.
MAX_WINDOW_DAYS = 366


def _optional_date(name: str):
    value = query_arg(name)
    if value is None:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD")


def register(app: Flask, container: Container) -> None:
    login_required, role_required = make_guards(container.gate, container.identity)
    reports = container.reporting

    @app.get("/api/admin/dashboard/stats", endpoint="dashboard_stats")
    @role_required(Role.ADMIN, Role.HR)
    def dashboard_stats(user):
        return jsonify(reports.dashboard_snapshot().to_dict())

    @app.get("/api/admin/dashboard/attendance-trend", endpoint="dashboard_trend")
    @role_required(Role.ADMIN, Role.HR)
    def dashboard_trend(user):
        days = parse_positive_int(request.args.get("days"), "days", DEFAULT_TREND_DAYS, maximum=MAX_WINDOW_DAYS)
        points = reports.daily_trend(days)
        return jsonify({"data": [p.to_dict() for p in points], "days": days})

    @app.get("/api/admin/dashboard/department-stats", endpoint="dashboard_departments")
    @role_required(Role.ADMIN, Role.HR)
    def dashboard_departments(user):
        days = parse_positive_int(
            request.args.get("days"), "days", DEFAULT_DEPARTMENT_STATS_DAYS, maximum=MAX_WINDOW_DAYS
        )
        return jsonify(reports.department_comparison(days))

    @app.get("/api/reports/summary/<user_id>", endpoint="report_user_summary")
    @login_required
    def report_user_summary(user, user_id: str):
        if user.role != Role.ADMIN and user.user_id != user_id:
            raise AuthorizationError("Forbidden: Can only view your own summary")
        return jsonify(reports.user_summary(user_id).to_dict())

    @app.get("/api/reports/department/<department>", endpoint="report_department")
    @login_required
    def report_department(user, department: str):
        if not can_access_department(user, department):
            raise AuthorizationError("Forbidden: Can only view your own department")
        today = now_local().date()
        try:
            start = parse_iso_date(query_arg("startDate")) if query_arg("startDate") else today.replace(day=1)
            end = parse_iso_date(query_arg("endDate")) if query_arg("endDate") else today
        except ValueError:
            raise ValidationError("startDate and endDate must be YYYY-MM-DD")
        if end - start > timedelta(days=MAX_WINDOW_DAYS):
            raise ValidationError(f"Date range must not exceed {MAX_WINDOW_DAYS} days")
        return jsonify(reports.department_report(department, start=start, end=end))

    @app.get("/api/reports/attendance", endpoint="report_attendance")
    @role_required(Role.ADMIN)
    def report_attendance(user):
        try:
            report_type = ReportType(query_arg("type") or ReportType.DAILY.value)
        except ValueError:
            raise ValidationError("type must be one of daily, weekly, monthly, custom")
        start, end = _optional_date("startDate"), _optional_date("endDate")
        if start and end and end - start > timedelta(days=MAX_WINDOW_DAYS):
            raise ValidationError(f"Date range must not exceed {MAX_WINDOW_DAYS} days")
        return jsonify(
            reports.attendance_report(
                report_type,
                start=start,
                end=end,
                department=query_arg("department"),
                user_id=query_arg("userId"),
            )
        )
