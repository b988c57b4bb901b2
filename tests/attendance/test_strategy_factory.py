from datetime import date, datetime, time

from src.attendance_manager.attendance_manager.attendance.factory import AttendanceStrategyFactory
from src.attendance_manager.attendance_manager.attendance.model import WorkingHours
from src.attendance_manager.attendance_manager.attendance.strategies.half_day_strategy import HalfDayStrategy
from src.attendance_manager.attendance_manager.attendance.strategies.late_strategy import LateStrategy
from src.attendance_manager.attendance_manager.attendance.strategies.normal_strategy import NormalStrategy
from src.attendance_manager.attendance_manager.core.enums import AttendanceStatus


def test_factory_checkin_on_time_within_grace():
    now = datetime(2026, 1, 15, 9, 45, 0)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, hours=WorkingHours())

    assert isinstance(strategy, NormalStrategy)
    assert strategy.decide_checkin(now=now, hours=WorkingHours()).status == AttendanceStatus.PRESENT


def test_factory_checkin_late_after_grace():
    now = datetime(2026, 1, 15, 9, 45, 1)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, hours=WorkingHours())

    assert isinstance(strategy, LateStrategy)
    assert strategy.decide_checkin(now=now, hours=WorkingHours()).status == AttendanceStatus.LATE


def test_factory_respects_custom_hours():
    hours = WorkingHours(start=time(8, 0), end=time(17, 0), grace_minutes=5)

    strategy = AttendanceStrategyFactory().for_checkin(now=datetime(2026, 1, 15, 8, 6), hours=hours)

    assert isinstance(strategy, LateStrategy)


def test_factory_checkout_short_day_is_half_day():
    check_in = datetime(2026, 1, 15, 9, 30)
    now = datetime(2026, 1, 15, 13, 29)

    strategy = AttendanceStrategyFactory().for_checkout(now=now, check_in_time=check_in, hours=WorkingHours())

    assert isinstance(strategy, HalfDayStrategy)
    decision = strategy.decide_checkout(now=now, hours=WorkingHours(), current=AttendanceStatus.LATE)
    assert decision.status == AttendanceStatus.HALF_DAY


def test_factory_checkout_full_day_keeps_status():
    check_in = datetime(2026, 1, 15, 10, 0)
    now = datetime(2026, 1, 15, 18, 0)

    strategy = AttendanceStrategyFactory().for_checkout(now=now, check_in_time=check_in, hours=WorkingHours())

    assert isinstance(strategy, NormalStrategy)
    decision = strategy.decide_checkout(now=now, hours=WorkingHours(), current=AttendanceStatus.LATE)
    assert decision.status == AttendanceStatus.LATE


def test_working_hours_payload():
    payload = WorkingHours().to_dict(date(2026, 1, 15))

    assert payload == {
        "start": "2026-01-15T09:30:00",
        "end": "2026-01-15T17:30:00",
        "gracePeriodMinutes": 15,
    }
