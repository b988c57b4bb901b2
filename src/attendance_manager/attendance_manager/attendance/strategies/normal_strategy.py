from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import WorkingHours
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, normal check-out."""

    def decide_checkin(self, *, now: datetime, hours: WorkingHours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(self, *, now: datetime, hours: WorkingHours, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
