from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import WorkingHours
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, hours: WorkingHours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, note="Late")

    def decide_checkout(self, *, now: datetime, hours: WorkingHours, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
