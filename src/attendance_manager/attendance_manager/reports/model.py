from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..attendance.model import PeriodTotals


def attendance_rate(attended: int, total: int) -> float:
    """Share of records that are not plain absences, in percent (1 decimal)."""
    if total <= 0:
        return 0
    return round(attended / total * 100, 1)


@dataclass
class TrendPoint:
    """Per-day status counts; mutable while counts are folded in."""

    day: date
    present: int = 0
    absent: int = 0
    late: int = 0
    half_day: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.late + self.half_day

    @property
    def attendance_rate(self) -> float:
        return attendance_rate(self.present + self.late + self.half_day, self.total)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "halfDay": self.half_day,
            "total": self.total,
            "attendanceRate": self.attendance_rate,
        }


@dataclass(frozen=True)
class MonthlyStats:
    attendance_rate: float
    working_days: int
    total_records: int

    def to_dict(self) -> dict:
        return {
            "averageAttendance": self.attendance_rate,
            "workingDays": self.working_days,
            "totalRecords": self.total_records,
        }


@dataclass(frozen=True)
class DashboardSnapshot:
    total_users: int
    today: TrendPoint
    users_by_role: dict[str, int]
    departments: list[tuple[str, int]]
    monthly: MonthlyStats
    generated_at: datetime

    def to_dict(self) -> dict:
        return {
            "totalUsers": self.total_users,
            "attendanceStats": {
                "present": self.today.present,
                "absent": self.today.absent,
                "late": self.today.late,
                "halfDay": self.today.half_day,
            },
            "attendanceRate": self.today.attendance_rate,
            "usersByRole": dict(self.users_by_role),
            "departments": [{"name": name, "count": count} for name, count in self.departments],
            "monthlyStats": self.monthly.to_dict(),
            "lastUpdated": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class DepartmentRate:
    department: str
    employees: int
    totals: PeriodTotals

    @property
    def attendance_rate(self) -> float:
        return attendance_rate(self.totals.attended, self.totals.total)

    def to_dict(self) -> dict:
        return {
            "department": self.department,
            "totalEmployees": self.employees,
            "totalRecords": self.totals.total,
            "present": self.totals.present,
            "absent": self.totals.absent,
            "late": self.totals.late,
            "halfDay": self.totals.half_day,
            "attendanceRate": self.attendance_rate,
        }


@dataclass(frozen=True)
class PeriodSummary:
    """Statistics for one labelled period of a user summary."""

    label: str
    totals: PeriodTotals
    month: Optional[tuple[int, int]] = None

    @property
    def attendance_rate(self) -> float:
        return attendance_rate(self.totals.attended, self.totals.total)

    def to_dict(self) -> dict:
        out = {"period": self.label, **self.totals.to_dict(), "attendanceRate": self.attendance_rate}
        if self.month:
            out["year"], out["month"] = self.month
        return out


@dataclass(frozen=True)
class UserSummary:
    user: dict
    current_month: PeriodSummary
    previous_month: PeriodSummary
    year_to_date: PeriodSummary
    trend: list[PeriodSummary] = field(default_factory=list)

    @property
    def change(self) -> float:
        return round(self.current_month.attendance_rate - self.previous_month.attendance_rate, 1)

    def to_dict(self) -> dict:
        return {
            "user": self.user,
            "currentMonth": self.current_month.to_dict(),
            "previousMonth": self.previous_month.to_dict(),
            "yearToDate": self.year_to_date.to_dict(),
            "attendanceChange": self.change,
            "monthlyTrend": [p.to_dict() for p in self.trend],
        }
