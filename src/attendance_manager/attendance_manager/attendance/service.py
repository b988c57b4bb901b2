from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import month_bounds, now_local
from ..core.enums import AttendanceStatus, MarkAction
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import ResolvedUser, User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendancePage, AttendanceQuery, AttendanceRecord, WorkingHours
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

# Marks a keyword the caller did not send, as opposed to an explicit None.
UNSET: Any = object()


def _profile(user: User) -> dict:
    return {
        "id": user.user_id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "employeeId": user.employee_id,
        "department": user.department,
    }


@dataclass(frozen=True)
class MarkResult:
    message: str
    record: AttendanceRecord
    is_late: bool = False
    is_early_exit: bool = False
    hours_worked: Optional[float] = None

    def to_dict(self) -> dict:
        out = {"message": self.message, "attendance": self.record.to_dict()}
        if self.hours_worked is None:
            out["isLate"] = self.is_late
        else:
            out["isEarlyExit"] = self.is_early_exit
            out["hoursWorked"] = self.hours_worked
        return out


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        working_hours: WorkingHours | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._hours = working_hours or WorkingHours()

    @property
    def working_hours(self) -> WorkingHours:
        return self._hours

    def mark(
        self,
        user: ResolvedUser,
        action: str,
        *,
        now: datetime | None = None,
        location: str | None = None,
    ) -> MarkResult:
        try:
            action = MarkAction(action)
        except ValueError:
            raise ValidationError('Invalid action. Must be "check-in" or "check-out"')

        now = now or now_local()
        if action == MarkAction.CHECK_IN:
            return self.check_in(user, now=now, location=location)
        return self.check_out(user, now=now, location=location)

    def check_in(self, user: ResolvedUser, *, now: datetime, location: str | None = None) -> MarkResult:
        existing = self._attendance.get_for_user_on_day(user.user_id, now.date())
        if existing and existing.check_in_time:
            raise ValidationError("Already checked in today")

        strategy = self._factory.for_checkin(now=now, hours=self._hours)
        decision = strategy.decide_checkin(now=now, hours=self._hours)
        remarks = f"Check-in location: {location}" if location else None

        if existing:
            # An admin-created record for today (e.g. marked absent) gets the check-in.
            record = self._attendance.update_fields(
                existing.attendance_id,
                {"check_in_time": now, "status": decision.status, "remarks": remarks or existing.remarks},
            )
        else:
            record = self._attendance.create(
                {
                    "user_id": user.user_id,
                    "work_date": now.date(),
                    "check_in_time": now,
                    "status": decision.status,
                    "is_manual_entry": False,
                    "created_by": user.user_id,
                    "remarks": remarks,
                }
            )

        is_late = decision.status == AttendanceStatus.LATE
        logger.info("check-in user=%s status=%s", user.user_id, decision.status.value)
        return MarkResult(
            message=f"Checked in successfully{' (Late)' if is_late else ''}",
            record=record,
            is_late=is_late,
        )

    def check_out(self, user: ResolvedUser, *, now: datetime, location: str | None = None) -> MarkResult:
        record = self._attendance.get_for_user_on_day(user.user_id, now.date())
        if not record or not record.check_in_time:
            raise ValidationError("Must check in first before checking out")
        if record.check_out_time is not None:
            raise ValidationError("Already checked out today")

        strategy = self._factory.for_checkout(now=now, check_in_time=record.check_in_time, hours=self._hours)
        decision = strategy.decide_checkout(now=now, hours=self._hours, current=record.status)

        hours_worked = round((now - record.check_in_time).total_seconds() / 3600, 2)
        is_early_exit = now < datetime.combine(now.date(), self._hours.end)

        remarks = record.remarks
        if location:
            remarks = (remarks + " | " if remarks else "") + f"Check-out location: {location}"

        updated = self._attendance.update_fields(
            record.attendance_id,
            {"check_out_time": now, "status": decision.status, "total_hours": hours_worked, "remarks": remarks},
        )
        logger.info("check-out user=%s status=%s hours=%.2f", user.user_id, decision.status.value, hours_worked)
        return MarkResult(
            message=f"Checked out successfully{' (Early exit)' if is_early_exit else ''}",
            record=updated or record,
            is_early_exit=is_early_exit,
            hours_worked=hours_worked,
        )

    def today_status(self, user: ResolvedUser, *, now: datetime | None = None) -> dict:
        now = now or now_local()
        record = self._attendance.get_for_user_on_day(user.user_id, now.date())
        return {
            "attendance": record.to_dict() if record else None,
            "workingHours": self._hours.to_dict(now.date()),
            "canCheckIn": not record or not record.check_in_time,
            "canCheckOut": bool(record and record.check_in_time and not record.check_out_time),
        }

    def list_for_user(
        self,
        user_id: str,
        *,
        month_year: tuple[int, int] | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> AttendancePage:
        start = end = None
        if month_year:
            month, year = month_year
            start, end = month_bounds(year, month)
        return self._page(AttendanceQuery(user_id=user_id, start=start, end=end), page=page, limit=limit)

    def list_for_target_user(
        self,
        user_id: str,
        *,
        month_year: tuple[int, int] | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[dict, AttendancePage]:
        target = self._users.get_by_id(user_id)
        if not target:
            raise NotFoundError("User not found")
        return _profile(target), self.list_for_user(user_id, month_year=month_year, page=page, limit=limit)

    def list_all(
        self,
        query: AttendanceQuery,
        *,
        department: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> AttendancePage:
        if department:
            ids = tuple(self._users.list_ids(department=department))
            if query.user_id is not None:
                ids = tuple(i for i in ids if i == query.user_id)
            query = AttendanceQuery(user_ids=ids, status=query.status, start=query.start, end=query.end)
        return self._page(query, page=page, limit=limit)

    def get_record(self, attendance_id: str) -> dict:
        """One record with its owner's and last editor's profiles (admin)."""
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        owner = self._users.get_by_id(record.user_id)
        editor = self._users.get_by_id(record.created_by) if record.created_by else None
        return {
            "attendance": record.to_dict(),
            "user": _profile(owner) if owner else None,
            "createdBy": _profile(editor) if editor else None,
        }

    def update_record(
        self,
        acting: ResolvedUser,
        attendance_id: str,
        *,
        status: Any = UNSET,
        check_in_time: Any = UNSET,
        check_out_time: Any = UNSET,
        remarks: Any = UNSET,
        is_manual_entry: Any = UNSET,
    ) -> AttendanceRecord:
        """Admin correction of a record.

        Times may be cleared with None. Total hours follow the resulting
        check-in and check-out pair. The acting admin becomes the creator
        reference.
        """
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")

        fields: dict[str, Any] = {"created_by": acting.user_id}
        if status is not UNSET and status is not None:
            try:
                fields["status"] = AttendanceStatus(status)
            except ValueError:
                raise ValidationError("Invalid status")
        if check_in_time is not UNSET:
            fields["check_in_time"] = check_in_time
        if check_out_time is not UNSET:
            fields["check_out_time"] = check_out_time
        if remarks is not UNSET:
            fields["remarks"] = remarks or None
        if is_manual_entry is not UNSET:
            fields["is_manual_entry"] = bool(is_manual_entry)

        check_in = fields.get("check_in_time", record.check_in_time)
        check_out = fields.get("check_out_time", record.check_out_time)
        if check_in and check_out:
            if check_out < check_in:
                raise ValidationError("checkOutTime must not be before checkInTime")
            fields["total_hours"] = round((check_out - check_in).total_seconds() / 3600, 2)
        elif "check_in_time" in fields or "check_out_time" in fields:
            fields["total_hours"] = None

        updated = self._attendance.update_fields(attendance_id, fields)
        if not updated:
            raise NotFoundError("Attendance record not found")
        logger.info("attendance %s updated by %s", attendance_id, acting.user_id)
        return updated

    def delete_record(self, acting: ResolvedUser, attendance_id: str) -> AttendanceRecord:
        deleted = self._attendance.delete(attendance_id)
        if not deleted:
            raise NotFoundError("Attendance record not found")
        logger.info("attendance %s deleted by %s", attendance_id, acting.user_id)
        return deleted

    def _page(self, query: AttendanceQuery, *, page: int, limit: int) -> AttendancePage:
        total = self._attendance.count(query)
        records = list(self._attendance.find(query, page=page, limit=limit))
        statistics = self._attendance.totals(query)
        return AttendancePage(records=records, statistics=statistics, total=total, page=page, limit=limit)
