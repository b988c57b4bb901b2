from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import AttendanceQuery, AttendanceRecord, PeriodTotals


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_on_day(self, user_id: str, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, fields: Mapping[str, Any]) -> AttendanceRecord:
        raise NotImplementedError

    def update_fields(self, attendance_id: str, fields: Mapping[str, Any]) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def delete(self, attendance_id: str) -> Optional[AttendanceRecord]:
        """Remove a record and return it, or None when it does not exist."""

        raise NotImplementedError

    def find(self, query: AttendanceQuery, *, page: int = 1, limit: int = 50) -> Sequence[AttendanceRecord]:
        """Newest first."""

        raise NotImplementedError

    def count(self, query: AttendanceQuery) -> int:
        raise NotImplementedError

    def status_counts_by_day(self, query: AttendanceQuery) -> Sequence[tuple[date, str, int]]:
        """Records grouped by (calendar day, status)."""

        raise NotImplementedError

    def totals(self, query: AttendanceQuery) -> PeriodTotals:
        raise NotImplementedError

    def totals_by_user(self, query: AttendanceQuery) -> dict[str, PeriodTotals]:
        raise NotImplementedError

    def totals_by_month(self, query: AttendanceQuery) -> dict[tuple[int, int], PeriodTotals]:
        raise NotImplementedError
