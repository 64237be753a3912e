from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..core.enums import ClassType, DayOfWeek
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_clock_time
from .model import SlotDraft, SlotFilter, TimetableSlot
from .repository import TimetableRepository

_COLUMNS = (
    "slot_id, course_id, faculty_id, day_of_week, start_time, end_time, room, "
    "department, semester, class_type, is_active"
)


def _to_slot(r: dict) -> TimetableSlot:
    return TimetableSlot(
        slot_id=int(r["slot_id"]),
        course_id=int(r["course_id"]),
        faculty_id=int(r["faculty_id"]),
        day_of_week=DayOfWeek(r["day_of_week"]),
        start_time=to_clock_time(r["start_time"]),
        end_time=to_clock_time(r["end_time"]),
        room=r["room"],
        department=r["department"],
        semester=int(r["semester"]),
        class_type=ClassType(r["class_type"]),
        is_active=bool(r.get("is_active", 1)),
    )


def _values(draft: SlotDraft) -> tuple:
    return (
        int(draft.course_id),
        int(draft.faculty_id),
        draft.day_of_week.value,
        draft.start_time,
        draft.end_time,
        draft.room,
        draft.department,
        int(draft.semester),
        draft.class_type.value,
        1 if draft.is_active else 0,
    )


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, slot_id: int) -> Optional[TimetableSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM timetable_slots WHERE slot_id=%s", (int(slot_id),))
            row = fetchone(cur)
            return _to_slot(row) if row else None

    def find_active_at(self, *, day_of_week: DayOfWeek, start_time: time, room: str) -> Optional[TimetableSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM timetable_slots
                WHERE day_of_week=%s AND start_time=%s AND room=%s AND is_active=1
                LIMIT 1
                """,
                (day_of_week.value, start_time, room),
            )
            row = fetchone(cur)
            return _to_slot(row) if row else None

    def create(self, draft: SlotDraft) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timetable_slots(
                    course_id, faculty_id, day_of_week, start_time, end_time, room,
                    department, semester, class_type, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _values(draft),
            )
            return int(cur.lastrowid)

    def update(self, slot_id: int, draft: SlotDraft) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timetable_slots
                SET course_id=%s, faculty_id=%s, day_of_week=%s, start_time=%s, end_time=%s, room=%s,
                    department=%s, semester=%s, class_type=%s, is_active=%s
                WHERE slot_id=%s
                """,
                (*_values(draft), int(slot_id)),
            )
            return cur.rowcount >= 0

    def delete(self, slot_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM timetable_slots WHERE slot_id=%s", (int(slot_id),))
            return cur.rowcount > 0

    def list_active(self, filters: SlotFilter) -> Sequence[TimetableSlot]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if filters.department:
            clauses.append("department=%s")
            params.append(filters.department)
        if filters.semester is not None:
            clauses.append("semester=%s")
            params.append(int(filters.semester))
        if filters.day_of_week is not None:
            clauses.append("day_of_week=%s")
            params.append(filters.day_of_week.value)
        with db_cursor(self._conn_factory) as (_, cur):
            # ENUM columns sort by declaration order, i.e. monday..saturday.
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM timetable_slots
                WHERE {" AND ".join(clauses)}
                ORDER BY day_of_week ASC, start_time ASC
                """,
                tuple(params),
            )
            return [_to_slot(r) for r in fetchall(cur)]
