from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import NewStudentProfile, StudentProfile, StudentRow
from .repository import StudentRepository

_PROFILE_COLUMNS = (
    "student_id, identity_id, roll_number, department, semester, batch, "
    "parent_name, parent_phone, address, date_of_birth"
)
_ROW_SELECT = """
    SELECT s.student_id, s.identity_id, s.roll_number, s.department, s.semester, s.batch,
           i.first_name, i.last_name, i.email, i.is_active
    FROM students s
    JOIN identities i ON i.identity_id = s.identity_id
"""
_UPDATABLE = (
    "roll_number",
    "department",
    "semester",
    "batch",
    "parent_name",
    "parent_phone",
    "address",
    "date_of_birth",
)


def _to_row(r: dict) -> StudentRow:
    return StudentRow(
        student_id=int(r["student_id"]),
        identity_id=int(r["identity_id"]),
        roll_number=r["roll_number"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        email=r["email"],
        department=r["department"],
        semester=int(r["semester"]),
        batch=r["batch"],
        is_active=bool(r.get("is_active", 1)),
    )


def _row_filters(department, semester, batch, search) -> tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []
    if department:
        clauses.append("s.department=%s")
        params.append(department)
    if semester is not None:
        clauses.append("s.semester=%s")
        params.append(int(semester))
    if batch:
        clauses.append("s.batch=%s")
        params.append(batch)
    if search:
        like = f"%{search}%"
        clauses.append("(i.first_name LIKE %s OR i.last_name LIKE %s OR s.roll_number LIKE %s)")
        params.extend([like, like, like])
    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, where: str, value: int) -> Optional[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROFILE_COLUMNS} FROM students WHERE {where}=%s", (int(value),))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute("SELECT course_id FROM student_courses WHERE student_id=%s", (int(r["student_id"]),))
            enrolled = frozenset(int(c["course_id"]) for c in fetchall(cur))
            return StudentProfile(
                student_id=int(r["student_id"]),
                identity_id=int(r["identity_id"]),
                roll_number=r["roll_number"],
                department=r["department"],
                semester=int(r["semester"]),
                batch=r["batch"],
                enrolled_course_ids=enrolled,
                parent_name=r.get("parent_name"),
                parent_phone=r.get("parent_phone"),
                address=r.get("address"),
                date_of_birth=r.get("date_of_birth"),
            )

    def get_by_id(self, student_id: int) -> Optional[StudentProfile]:
        return self._load("student_id", student_id)

    def get_by_identity(self, identity_id: int) -> Optional[StudentProfile]:
        return self._load("identity_id", identity_id)

    def create(self, *, identity_id: int, profile: NewStudentProfile) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(identity_id, roll_number, department, semester, batch,
                                     parent_name, parent_phone, address, date_of_birth)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(identity_id),
                    profile.roll_number,
                    profile.department,
                    int(profile.semester),
                    profile.batch,
                    profile.parent_name,
                    profile.parent_phone,
                    profile.address,
                    profile.date_of_birth,
                ),
            )
            return int(cur.lastrowid)

    def update(self, student_id: int, *, columns: dict) -> bool:
        columns = {k: v for k, v in columns.items() if k in _UPDATABLE}
        if not columns:
            return True
        assignments = ", ".join(f"{k}=%s" for k in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE students SET {assignments} WHERE student_id=%s", (*columns.values(), int(student_id)))
            return cur.rowcount >= 0

    def delete_by_identity(self, identity_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE identity_id=%s", (int(identity_id),))
            return cur.rowcount > 0

    def enroll(self, student_id: int, course_ids: Iterable[int]) -> int:
        ids = sorted({int(c) for c in course_ids})
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT IGNORE INTO student_courses(student_id, course_id) VALUES(%s,%s)",
                [(int(student_id), cid) for cid in ids],
            )
            return max(int(cur.rowcount), 0)

    def unenroll_course(self, course_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM student_courses WHERE course_id=%s", (int(course_id),))
            return int(cur.rowcount)

    def list_rows(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        batch: Optional[str] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[StudentRow]:
        where, params = _row_filters(department, semester, batch, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_ROW_SELECT} {where} ORDER BY s.roll_number ASC LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_to_row(r) for r in fetchall(cur)]

    def count(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        batch: Optional[str] = None,
        search: Optional[str] = None,
    ) -> int:
        where, params = _row_filters(department, semester, batch, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS n FROM students s JOIN identities i ON i.identity_id = s.identity_id {where}",
                tuple(params),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def rows_for_courses(self, course_ids: Iterable[int]) -> Sequence[StudentRow]:
        ids = sorted({int(c) for c in course_ids})
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_ROW_SELECT}
                WHERE s.student_id IN (
                    SELECT DISTINCT student_id FROM student_courses WHERE course_id IN ({in_clause(ids)})
                )
                ORDER BY s.roll_number ASC
                """,
                tuple(ids),
            )
            return [_to_row(r) for r in fetchall(cur)]
