from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import FacultyProfile, FacultyRow, NewFacultyProfile
from .repository import FacultyRepository

_PROFILE_COLUMNS = "faculty_id, identity_id, employee_id, department, designation, specialization, qualification"
_UPDATABLE = ("employee_id", "department", "designation", "specialization", "qualification")


def _row_filters(department, designation, search) -> tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []
    if department:
        clauses.append("f.department=%s")
        params.append(department)
    if designation:
        clauses.append("f.designation=%s")
        params.append(designation)
    if search:
        like = f"%{search}%"
        clauses.append("(i.first_name LIKE %s OR i.last_name LIKE %s OR f.employee_id LIKE %s)")
        params.extend([like, like, like])
    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


class MySQLFacultyRepository(FacultyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, where: str, value: int) -> Optional[FacultyProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROFILE_COLUMNS} FROM faculty WHERE {where}=%s", (int(value),))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute("SELECT course_id FROM faculty_courses WHERE faculty_id=%s", (int(r["faculty_id"]),))
            assigned = frozenset(int(c["course_id"]) for c in fetchall(cur))
            return FacultyProfile(
                faculty_id=int(r["faculty_id"]),
                identity_id=int(r["identity_id"]),
                employee_id=r["employee_id"],
                department=r["department"],
                designation=r["designation"],
                assigned_course_ids=assigned,
                specialization=r.get("specialization"),
                qualification=r.get("qualification"),
            )

    def get_by_id(self, faculty_id: int) -> Optional[FacultyProfile]:
        return self._load("faculty_id", faculty_id)

    def get_by_identity(self, identity_id: int) -> Optional[FacultyProfile]:
        return self._load("identity_id", identity_id)

    def create(self, *, identity_id: int, profile: NewFacultyProfile) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO faculty(identity_id, employee_id, department, designation, specialization, qualification)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(identity_id),
                    profile.employee_id,
                    profile.department,
                    profile.designation,
                    profile.specialization,
                    profile.qualification,
                ),
            )
            return int(cur.lastrowid)

    def update(self, faculty_id: int, *, columns: dict) -> bool:
        columns = {k: v for k, v in columns.items() if k in _UPDATABLE}
        if not columns:
            return True
        assignments = ", ".join(f"{k}=%s" for k in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE faculty SET {assignments} WHERE faculty_id=%s", (*columns.values(), int(faculty_id)))
            return cur.rowcount >= 0

    def delete_by_identity(self, identity_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM faculty WHERE identity_id=%s", (int(identity_id),))
            return cur.rowcount > 0

    def add_course(self, faculty_id: int, course_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO faculty_courses(faculty_id, course_id) VALUES(%s,%s)",
                (int(faculty_id), int(course_id)),
            )

    def remove_course(self, faculty_id: int, course_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM faculty_courses WHERE faculty_id=%s AND course_id=%s",
                (int(faculty_id), int(course_id)),
            )

    def list_assignments(self) -> set[tuple[int, int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT faculty_id, course_id FROM faculty_courses")
            return {(int(r["faculty_id"]), int(r["course_id"])) for r in fetchall(cur)}

    def list_rows(
        self,
        *,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[FacultyRow]:
        where, params = _row_filters(department, designation, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT f.faculty_id, f.identity_id, f.employee_id, f.department, f.designation,
                       i.first_name, i.last_name, i.email, i.is_active
                FROM faculty f
                JOIN identities i ON i.identity_id = f.identity_id
                {where}
                ORDER BY f.employee_id ASC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return [
                FacultyRow(
                    faculty_id=int(r["faculty_id"]),
                    identity_id=int(r["identity_id"]),
                    employee_id=r["employee_id"],
                    first_name=r["first_name"],
                    last_name=r["last_name"],
                    email=r["email"],
                    department=r["department"],
                    designation=r["designation"],
                    is_active=bool(r.get("is_active", 1)),
                )
                for r in fetchall(cur)
            ]

    def count(
        self,
        *,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        search: Optional[str] = None,
    ) -> int:
        where, params = _row_filters(department, designation, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS n FROM faculty f JOIN identities i ON i.identity_id = f.identity_id {where}",
                tuple(params),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0
