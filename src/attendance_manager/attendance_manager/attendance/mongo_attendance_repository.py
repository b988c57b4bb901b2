from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from ..common.datetime_utils import end_of_day, now_local, start_of_day
from ..core.enums import AttendanceStatus
from ..database.bootstrap import ATTENDANCE
from ..database.connection import DatabaseConnection
from ..database.mongo_base import store_errors, str_id, to_object_id
from .model import AttendanceQuery, AttendanceRecord, PeriodTotals
from .repository import AttendanceRepository

_REF_FIELDS = ("user_id", "created_by")


def _to_record(doc: Mapping[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=str_id(doc),
        user_id=str_id(doc, "user_id"),
        work_date=doc["date"].date(),
        status=AttendanceStatus(doc["status"]),
        check_in_time=doc.get("check_in_time"),
        check_out_time=doc.get("check_out_time"),
        total_hours=doc.get("total_hours"),
        remarks=doc.get("remarks"),
        created_by=str_id(doc, "created_by"),
        is_manual_entry=bool(doc.get("is_manual_entry", False)),
    )


def _to_doc(fields: Mapping[str, Any]) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    for key, value in fields.items():
        if key in _REF_FIELDS and value is not None:
            value = to_object_id(value)
        elif key == "work_date":
            key, value = "date", start_of_day(value)
        elif isinstance(value, AttendanceStatus):
            value = value.value
        doc[key] = value
    return doc


def _match(query: AttendanceQuery) -> dict[str, Any]:
    match: dict[str, Any] = {}
    if query.user_id is not None:
        match["user_id"] = to_object_id(query.user_id)
    elif query.user_ids is not None:
        match["user_id"] = {"$in": [to_object_id(u) for u in query.user_ids]}
    if query.status is not None:
        match["status"] = query.status.value
    if query.start is not None or query.end is not None:
        window: dict[str, datetime] = {}
        if query.start is not None:
            window["$gte"] = query.start
        if query.end is not None:
            window["$lte"] = query.end
        match["date"] = window
    return match


def _status_sum(status: AttendanceStatus) -> dict[str, Any]:
    return {"$sum": {"$cond": [{"$eq": ["$status", status.value]}, 1, 0]}}


_TOTALS_GROUP = {
    "total": {"$sum": 1},
    "present": _status_sum(AttendanceStatus.PRESENT),
    "absent": _status_sum(AttendanceStatus.ABSENT),
    "late": _status_sum(AttendanceStatus.LATE),
    "half_day": _status_sum(AttendanceStatus.HALF_DAY),
    "total_hours": {"$sum": "$total_hours"},
    "avg_hours": {"$avg": "$total_hours"},
}


def _to_totals(row: Mapping[str, Any]) -> PeriodTotals:
    return PeriodTotals(
        total=int(row.get("total", 0)),
        present=int(row.get("present", 0)),
        absent=int(row.get("absent", 0)),
        late=int(row.get("late", 0)),
        half_day=int(row.get("half_day", 0)),
        total_hours=float(row.get("total_hours") or 0),
        avg_hours=row.get("avg_hours"),
    )


class MongoAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    @property
    def _records(self) -> Collection:
        return self._conn.database()[ATTENDANCE]

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        with store_errors():
            doc = self._records.find_one({"_id": to_object_id(attendance_id)})
        return _to_record(doc) if doc else None

    def get_for_user_on_day(self, user_id: str, day: date) -> Optional[AttendanceRecord]:
        with store_errors():
            doc = self._records.find_one(
                {"user_id": to_object_id(user_id), "date": {"$gte": start_of_day(day), "$lte": end_of_day(day)}}
            )
        return _to_record(doc) if doc else None

    def create(self, fields: Mapping[str, Any]) -> AttendanceRecord:
        now = now_local()
        doc = _to_doc(fields)
        doc["created_at"] = now
        doc["updated_at"] = now
        with store_errors():
            result = self._records.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_record(doc)

    def update_fields(self, attendance_id: str, fields: Mapping[str, Any]) -> Optional[AttendanceRecord]:
        update = _to_doc(fields)
        update["updated_at"] = now_local()
        with store_errors():
            doc = self._records.find_one_and_update(
                {"_id": to_object_id(attendance_id)},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        return _to_record(doc) if doc else None

    def delete(self, attendance_id: str) -> Optional[AttendanceRecord]:
        with store_errors():
            doc = self._records.find_one_and_delete({"_id": to_object_id(attendance_id)})
        return _to_record(doc) if doc else None

    def find(self, query: AttendanceQuery, *, page: int = 1, limit: int = 50) -> Sequence[AttendanceRecord]:
        with store_errors():
            cursor = (
                self._records.find(_match(query))
                .sort("date", DESCENDING)
                .skip((page - 1) * limit)
                .limit(limit)
            )
            return [_to_record(doc) for doc in cursor]

    def count(self, query: AttendanceQuery) -> int:
        with store_errors():
            return self._records.count_documents(_match(query))

    def status_counts_by_day(self, query: AttendanceQuery) -> Sequence[tuple[date, str, int]]:
        pipeline = [
            {"$match": _match(query)},
            {
                "$group": {
                    "_id": {
                        "date": {"$dateToString": {"format": "%Y-%m-%d", "date": "$date"}},
                        "status": "$status",
                    },
                    "count": {"$sum": 1},
                }
            },
            {"$sort": {"_id.date": 1}},
        ]
        with store_errors():
            rows = list(self._records.aggregate(pipeline))
        return [
            (datetime.strptime(r["_id"]["date"], "%Y-%m-%d").date(), r["_id"]["status"], int(r["count"]))
            for r in rows
        ]

    def totals(self, query: AttendanceQuery) -> PeriodTotals:
        pipeline = [{"$match": _match(query)}, {"$group": {"_id": None, **_TOTALS_GROUP}}]
        with store_errors():
            rows = list(self._records.aggregate(pipeline))
        return _to_totals(rows[0]) if rows else PeriodTotals()

    def totals_by_user(self, query: AttendanceQuery) -> dict[str, PeriodTotals]:
        pipeline = [{"$match": _match(query)}, {"$group": {"_id": "$user_id", **_TOTALS_GROUP}}]
        with store_errors():
            rows = list(self._records.aggregate(pipeline))
        return {str(r["_id"]): _to_totals(r) for r in rows if isinstance(r["_id"], ObjectId)}

    def totals_by_month(self, query: AttendanceQuery) -> dict[tuple[int, int], PeriodTotals]:
        pipeline = [
            {"$match": _match(query)},
            {"$group": {"_id": {"year": {"$year": "$date"}, "month": {"$month": "$date"}}, **_TOTALS_GROUP}},
        ]
        with store_errors():
            rows = list(self._records.aggregate(pipeline))
        return {(int(r["_id"]["year"]), int(r["_id"]["month"])): _to_totals(r) for r in rows}
