from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import WorkingHours
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Check-out after fewer than ``half_day_hours`` worked."""

    def decide_checkin(self, *, now: datetime, hours: WorkingHours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(self, *, now: datetime, hours: WorkingHours, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALF_DAY, note="Half day")
