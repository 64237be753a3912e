from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, student_id, course_id, attend_date, status, marked_by, remarks"


def _to_record(r: dict) -> AttendanceRecord:
    day = r["attend_date"]
    if isinstance(day, datetime):
        day = day.date()
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        attend_date=day,
        status=AttendanceStatus(r["status"]),
        marked_by=int(r["marked_by"]),
        remarks=r.get("remarks"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_for_key(self, *, student_id: int, course_id: int, attend_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student_id=%s AND course_id=%s AND attend_date=%s
                """,
                (int(student_id), int(course_id), attend_date),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def create(
        self,
        *,
        student_id: int,
        course_id: int,
        attend_date: date,
        status: AttendanceStatus,
        marked_by: int,
        remarks: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(student_id, course_id, attend_date, status, marked_by, remarks)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(student_id), int(course_id), attend_date, status.value, int(marked_by), remarks),
            )
            return int(cur.lastrowid)

    def update(self, attendance_id: int, *, status: AttendanceStatus, remarks: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET status=%s, remarks=%s WHERE attendance_id=%s",
                (status.value, remarks, int(attendance_id)),
            )
            return cur.rowcount >= 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_for_student(self, student_id: int, *, course_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE student_id=%s"
        params: list[object] = [int(student_id)]
        if course_id is not None:
            sql += " AND course_id=%s"
            params.append(int(course_id))
        sql += " ORDER BY attend_date DESC, attendance_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_course(
        self,
        course_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE course_id=%s"
        params: list[object] = [int(course_id)]
        if start is not None:
            sql += " AND attend_date >= %s"
            params.append(start)
        if end is not None:
            sql += " AND attend_date <= %s"
            params.append(end)
        sql += " ORDER BY attend_date DESC, student_id ASC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def count_distinct_dates(self, course_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(DISTINCT attend_date) AS n FROM attendance_records WHERE course_id=%s",
                (int(course_id),),
            )
            row = fetchone(cur) or {}
            return int(row.get("n") or 0)
