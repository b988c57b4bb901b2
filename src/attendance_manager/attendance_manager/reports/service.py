from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..attendance.model import AttendanceQuery, PeriodTotals
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import (
    end_of_day,
    month_bounds,
    now_local,
    shift_month,
    start_of_day,
    trend_window,
    week_bounds,
)
from ..core.constants import (
    DEFAULT_DEPARTMENT_STATS_DAYS,
    DEFAULT_TREND_DAYS,
    MAX_PAGE_LIMIT,
    UNASSIGNED_DEPARTMENT,
    USER_SUMMARY_TREND_MONTHS,
)
from ..core.enums import AttendanceStatus, ReportType, Role, UserStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import DashboardSnapshot, DepartmentRate, MonthlyStats, PeriodSummary, TrendPoint, UserSummary, attendance_rate

logger = logging.getLogger(__name__)

# Users counted by the dashboard and department breakdowns.
TRACKED_ROLES = (Role.EMPLOYEE, Role.STUDENT)

_STATUS_FIELDS = {
    AttendanceStatus.PRESENT.value: "present",
    AttendanceStatus.ABSENT.value: "absent",
    AttendanceStatus.LATE.value: "late",
    AttendanceStatus.HALF_DAY.value: "half_day",
}


class ReportingAggregator:
    """Read-only statistics over attendance records and the user directory."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def _daily_points(self, first_day: date, days: int, query: AttendanceQuery) -> list[TrendPoint]:
        """Zero-filled points for ``days`` consecutive days from ``first_day``.

        Groups falling outside those days are ignored.
        """
        points = [TrendPoint(day=first_day + timedelta(days=i)) for i in range(days)]
        by_day = {p.day: p for p in points}
        for day, status, count in self._attendance.status_counts_by_day(query):
            point = by_day.get(day)
            field_name = _STATUS_FIELDS.get(status)
            if point is None or field_name is None:
                continue
            setattr(point, field_name, getattr(point, field_name) + count)
        return points

    def daily_trend(
        self,
        days: int = DEFAULT_TREND_DAYS,
        *,
        today: Optional[date] = None,
        user_ids: Optional[Sequence[str]] = None,
    ) -> list[TrendPoint]:
        if days <= 0:
            raise ValidationError("days must be a positive integer")
        today = today or now_local().date()
        start, end = trend_window(days, today)
        query = AttendanceQuery(
            user_ids=tuple(user_ids) if user_ids is not None else None,
            start=start,
            end=end,
        )
        return self._daily_points(start.date(), days, query)

    def period_statistics(
        self,
        *,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> PeriodTotals:
        return self._attendance.totals(AttendanceQuery(user_id=user_id, start=start, end=end))

    def monthly_statistics(self, today: date) -> MonthlyStats:
        """Rate over all records from the first of ``today``'s month through ``today``."""
        query = AttendanceQuery(start=start_of_day(today.replace(day=1)), end=end_of_day(today))
        totals = self._attendance.totals(query)
        working_days = {day for day, _, _ in self._attendance.status_counts_by_day(query)}
        return MonthlyStats(
            attendance_rate=attendance_rate(totals.attended, totals.total),
            working_days=len(working_days),
            total_records=totals.total,
        )

    def dashboard_snapshot(self, *, today: Optional[date] = None) -> DashboardSnapshot:
        now = now_local()
        today = today or now.date()

        # Independent reads; run one after another within the request.
        total_users = self._users.count_active(TRACKED_ROLES)
        today_point = self._daily_points(
            today, 1, AttendanceQuery(start=start_of_day(today), end=end_of_day(today))
        )[0]
        by_role = self._users.count_active_by_role()
        departments = [
            (name or UNASSIGNED_DEPARTMENT, count)
            for name, count in self._users.count_active_by_department(TRACKED_ROLES).items()
        ]
        departments.sort(key=lambda d: (-d[1], d[0]))
        monthly = self.monthly_statistics(today)

        return DashboardSnapshot(
            total_users=total_users,
            today=today_point,
            users_by_role=by_role,
            departments=departments,
            monthly=monthly,
            generated_at=now,
        )

    def department_comparison(
        self,
        days: int = DEFAULT_DEPARTMENT_STATS_DAYS,
        *,
        today: Optional[date] = None,
    ) -> dict:
        if days <= 0:
            raise ValidationError("days must be a positive integer")
        today = today or now_local().date()
        start, end = trend_window(days, today)

        rates: list[DepartmentRate] = []
        for name, employees in self._users.count_active_by_department(TRACKED_ROLES).items():
            if not name:
                # No filter can select a missing department.
                continue
            ids = tuple(self._users.list_ids(department=name, status=UserStatus.ACTIVE))
            totals = self._attendance.totals(AttendanceQuery(user_ids=ids, start=start, end=end))
            rates.append(DepartmentRate(department=name, employees=employees, totals=totals))
        rates.sort(key=lambda r: (-r.attendance_rate, r.department))

        attended = sum(r.totals.attended for r in rates)
        total = sum(r.totals.total for r in rates)
        return {
            "data": [r.to_dict() for r in rates],
            "summary": {
                "totalDepartments": len(rates),
                "totalEmployees": sum(r.employees for r in rates),
                "overallAttendanceRate": attendance_rate(attended, total),
            },
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat(), "days": days},
        }

    @staticmethod
    def report_window(
        report_type: ReportType,
        today: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> tuple[date, date]:
        """Explicit dates win over the preset; custom reports require them."""
        if start is not None and end is not None:
            if end < start:
                raise ValidationError("endDate must not be before startDate")
            return start, end
        if start is not None or end is not None:
            raise ValidationError("startDate and endDate must be given together")
        if report_type == ReportType.CUSTOM:
            raise ValidationError("Custom reports require startDate and endDate")
        if report_type == ReportType.WEEKLY:
            first, last = week_bounds(today)
        elif report_type == ReportType.MONTHLY:
            first, last = month_bounds(today.year, today.month)
        else:
            return today, today
        return first.date(), last.date()

    def attendance_report(
        self,
        report_type: ReportType = ReportType.DAILY,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        department: Optional[str] = None,
        user_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> dict:
        """Per-day and per-department counts over a preset or explicit window.

        ``department`` restricts to its members (active or not); together with
        ``user_id`` the two filters intersect.
        """
        today = today or now_local().date()
        first, last = self.report_window(report_type, today, start, end)

        user_ids = None
        if department:
            user_ids = tuple(self._users.list_ids(department=department))
            if user_id is not None:
                user_ids = tuple(i for i in user_ids if i == user_id)
        query = AttendanceQuery(
            user_id=user_id if user_ids is None else None,
            user_ids=user_ids,
            start=start_of_day(first),
            end=end_of_day(last),
        )

        totals = self._attendance.totals(query)
        daily = self._daily_points(first, (last - first).days + 1, query)

        departments: list[DepartmentRate] = []
        if not department:
            for name in sorted(n for n in self._users.count_active_by_department(tuple(Role)) if n):
                ids = tuple(self._users.list_ids(department=name))
                if user_id is not None:
                    ids = tuple(i for i in ids if i == user_id)
                dept_totals = self._attendance.totals(
                    AttendanceQuery(user_ids=ids, start=query.start, end=query.end)
                )
                if dept_totals.total:
                    departments.append(DepartmentRate(department=name, employees=len(ids), totals=dept_totals))

        return {
            "reportType": report_type.value,
            "dateRange": {"startDate": first.isoformat(), "endDate": last.isoformat()},
            "summary": {
                "totalDays": sum(1 for p in daily if p.total),
                "totalRecords": totals.total,
                "totalPresent": totals.present,
                "totalAbsent": totals.absent,
                "totalLate": totals.late,
                "totalHalfDay": totals.half_day,
                "attendanceRate": attendance_rate(totals.attended, totals.total),
            },
            "dailyData": [p.to_dict() for p in daily],
            "departmentStats": [d.to_dict() for d in departments],
            "filters": {"department": department, "userId": user_id},
        }

    def department_report(self, department: str, *, start: date, end: date) -> dict:
        if end < start:
            raise ValidationError("endDate must not be before startDate")

        members = self._users.list_users(
            department=department, status=UserStatus.ACTIVE, page=1, limit=MAX_PAGE_LIMIT
        ).users
        if not members:
            raise NotFoundError("No active users found in department")

        ids = tuple(u.user_id for u in members)
        window = AttendanceQuery(user_ids=ids, start=start_of_day(start), end=end_of_day(end))
        per_user = self._attendance.totals_by_user(window)
        summary = self._attendance.totals(window)
        daily = self._daily_points(start, (end - start).days + 1, window)

        employees = []
        for user in members:
            totals = per_user.get(user.user_id, PeriodTotals())
            employees.append(
                {
                    "id": user.user_id,
                    "name": user.full_name,
                    "email": user.email,
                    "employeeId": user.employee_id,
                    "role": user.role.value,
                    "statistics": totals.to_dict(),
                    "attendanceRate": attendance_rate(totals.attended, totals.total),
                }
            )
        employees.sort(key=lambda e: (-e["attendanceRate"], e["name"]))

        return {
            "department": department,
            "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "summary": {
                "totalEmployees": len(members),
                **summary.to_dict(),
                "attendanceRate": attendance_rate(summary.attended, summary.total),
            },
            "employees": employees,
            "dailyBreakdown": [p.to_dict() for p in daily],
        }

    def user_summary(self, user_id: str, *, today: Optional[date] = None) -> UserSummary:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Target user not found")
        today = today or now_local().date()

        month_start, month_end = month_bounds(today.year, today.month)
        current = PeriodSummary(
            "current_month", self.period_statistics(user_id=user_id, start=month_start, end=month_end)
        )
        prev = shift_month(today, -1)
        prev_start, prev_end = month_bounds(prev.year, prev.month)
        previous = PeriodSummary(
            "previous_month", self.period_statistics(user_id=user_id, start=prev_start, end=prev_end)
        )
        year_to_date = PeriodSummary(
            "year_to_date",
            self.period_statistics(user_id=user_id, start=start_of_day(date(today.year, 1, 1)), end=end_of_day(today)),
        )

        first = shift_month(today, -(USER_SUMMARY_TREND_MONTHS - 1))
        by_month = self._attendance.totals_by_month(
            AttendanceQuery(user_id=user_id, start=start_of_day(first), end=end_of_day(today))
        )
        trend = []
        for i in range(USER_SUMMARY_TREND_MONTHS):
            m = shift_month(first, i)
            key = (m.year, m.month)
            trend.append(PeriodSummary(m.strftime("%Y-%m"), by_month.get(key, PeriodTotals()), month=key))

        logger.debug("user summary built for %s", user_id)
        return UserSummary(
            user={
                "id": user.user_id,
                "name": user.full_name,
                "email": user.email,
                "employeeId": user.employee_id,
                "department": user.department,
                "role": user.role.value,
            },
            current_month=current,
            previous_month=previous,
            year_to_date=year_to_date,
            trend=trend,
        )
