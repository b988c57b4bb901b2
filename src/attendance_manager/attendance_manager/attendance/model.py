from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.constants import GRACE_PERIOD_MINUTES, HALF_DAY_HOURS, WORK_END, WORK_START
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per user and calendar day."""

    attendance_id: str
    user_id: str
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    total_hours: Optional[float] = None
    remarks: Optional[str] = None
    created_by: Optional[str] = None
    is_manual_entry: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "checkInTime": self.check_in_time.isoformat() if self.check_in_time else None,
            "checkOutTime": self.check_out_time.isoformat() if self.check_out_time else None,
            "totalHours": self.total_hours,
            "remarks": self.remarks,
            "createdBy": self.created_by,
            "isManualEntry": self.is_manual_entry,
        }


@dataclass(frozen=True)
class WorkingHours:
    start: time = WORK_START
    end: time = WORK_END
    grace_minutes: int = GRACE_PERIOD_MINUTES
    half_day_hours: float = HALF_DAY_HOURS

    def to_dict(self, day: date) -> dict:
        return {
            "start": datetime.combine(day, self.start).isoformat(),
            "end": datetime.combine(day, self.end).isoformat(),
            "gracePeriodMinutes": self.grace_minutes,
        }


@dataclass(frozen=True)
class AttendanceQuery:
    """Filters shared by listing, counting and statistics."""

    user_id: Optional[str] = None
    user_ids: Optional[tuple[str, ...]] = None
    status: Optional[AttendanceStatus] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass(frozen=True)
class PeriodTotals:
    """Raw per-status counts and hour aggregates for a set of records."""

    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    half_day: int = 0
    total_hours: float = 0.0
    avg_hours: Optional[float] = None

    @property
    def attended(self) -> int:
        return self.present + self.late + self.half_day

    def to_dict(self) -> dict:
        return {
            "totalDays": self.total,
            "presentDays": self.present,
            "lateDays": self.late,
            "absentDays": self.absent,
            "halfDays": self.half_day,
            "totalHours": round(self.total_hours, 2),
            "avgHours": round(self.avg_hours, 2) if self.avg_hours is not None else None,
        }


@dataclass(frozen=True)
class AttendancePage:
    records: list[AttendanceRecord]
    statistics: PeriodTotals
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0

    def to_dict(self) -> dict:
        return {
            "attendance": [r.to_dict() for r in self.records],
            "statistics": self.statistics.to_dict(),
            "pagination": {
                "total": self.total,
                "page": self.page,
                "limit": self.limit,
                "totalPages": self.total_pages,
            },
        }
