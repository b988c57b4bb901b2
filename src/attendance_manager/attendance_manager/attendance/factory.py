from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .model import WorkingHours
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, hours: WorkingHours) -> AttendanceStrategy:
        work_start = datetime.combine(now.date(), hours.start)
        if now <= work_start + timedelta(minutes=hours.grace_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(self, *, now: datetime, check_in_time: datetime, hours: WorkingHours) -> AttendanceStrategy:
        worked = (now - check_in_time).total_seconds() / 3600
        if worked < hours.half_day_hours:
            return HalfDayStrategy()
        return NormalStrategy()
