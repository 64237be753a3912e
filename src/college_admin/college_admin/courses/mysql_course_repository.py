from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Course, CourseMaterial, NewCourse
from .repository import CourseRepository

_COLUMNS = (
    "course_id, course_code, course_name, department, semester, credits, "
    "faculty_id, total_classes_held, is_active"
)
_UPDATABLE = ("course_code", "course_name", "department", "semester", "credits", "is_active")


def _to_course(r: dict, materials: Sequence[CourseMaterial] = ()) -> Course:
    return Course(
        course_id=int(r["course_id"]),
        course_code=r["course_code"],
        course_name=r["course_name"],
        department=r["department"],
        semester=int(r["semester"]),
        credits=int(r["credits"]) if r.get("credits") is not None else None,
        faculty_id=int(r["faculty_id"]) if r.get("faculty_id") is not None else None,
        total_classes_held=int(r.get("total_classes_held") or 0),
        is_active=bool(r.get("is_active", 1)),
        materials=tuple(materials),
    )


def _filters(department, semester, search) -> tuple[str, list]:
    clauses = ["is_active=1"]
    params: list[object] = []
    if department:
        clauses.append("department=%s")
        params.append(department)
    if semester is not None:
        clauses.append("semester=%s")
        params.append(int(semester))
    if search:
        like = f"%{search}%"
        clauses.append("(course_code LIKE %s OR course_name LIKE %s)")
        params.extend([like, like])
    return "WHERE " + " AND ".join(clauses), params


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _materials_for(self, cur, course_ids: Sequence[int]) -> dict[int, list[CourseMaterial]]:
        out: dict[int, list[CourseMaterial]] = defaultdict(list)
        if not course_ids:
            return out
        cur.execute(
            f"""
            SELECT course_id, title, description, file_url, uploaded_at
            FROM course_materials
            WHERE course_id IN ({in_clause(course_ids)})
            ORDER BY material_id ASC
            """,
            tuple(course_ids),
        )
        for m in fetchall(cur):
            out[int(m["course_id"])].append(
                CourseMaterial(
                    title=m["title"],
                    description=m.get("description"),
                    file_url=m["file_url"],
                    uploaded_at=m["uploaded_at"],
                )
            )
        return out

    def _select(self, cur, where: str, params: Sequence[object]) -> list[Course]:
        cur.execute(f"SELECT {_COLUMNS} FROM courses {where}", tuple(params))
        rows = fetchall(cur)
        materials = self._materials_for(cur, [int(r["course_id"]) for r in rows])
        return [_to_course(r, materials.get(int(r["course_id"]), ())) for r in rows]

    def get_by_id(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._select(cur, "WHERE course_id=%s", (int(course_id),))
            return found[0] if found else None

    def get_many(self, course_ids: Iterable[int]) -> dict[int, Course]:
        ids = sorted({int(c) for c in course_ids})
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._select(cur, f"WHERE course_id IN ({in_clause(ids)})", ids)
            return {c.course_id: c for c in found}

    def create(self, course: NewCourse) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO courses(course_code, course_name, department, semester, credits, faculty_id)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    course.course_code,
                    course.course_name,
                    course.department,
                    int(course.semester),
                    int(course.credits),
                    course.faculty_id,
                ),
            )
            return int(cur.lastrowid)

    def update(self, course_id: int, *, columns: dict) -> bool:
        columns = {k: v for k, v in columns.items() if k in _UPDATABLE}
        if not columns:
            return True
        assignments = ", ".join(f"{k}=%s" for k in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE courses SET {assignments} WHERE course_id=%s", (*columns.values(), int(course_id)))
            return cur.rowcount >= 0

    def set_faculty(self, course_id: int, faculty_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE courses SET faculty_id=%s WHERE course_id=%s", (faculty_id, int(course_id)))
            return cur.rowcount >= 0

    def delete(self, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM courses WHERE course_id=%s", (int(course_id),))
            return cur.rowcount > 0

    def add_material(self, course_id: int, material: CourseMaterial) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO course_materials(course_id, title, description, file_url, uploaded_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(course_id), material.title, material.description, material.file_url, material.uploaded_at),
            )
            return cur.rowcount > 0

    def set_total_classes(self, course_id: int, total: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE courses SET total_classes_held=%s WHERE course_id=%s", (int(total), int(course_id)))
            return cur.rowcount >= 0

    def list(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Sequence[Course]:
        where, params = _filters(department, semester, search)
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select(
                cur,
                f"{where} ORDER BY semester ASC, course_code ASC LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )

    def count(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        search: Optional[str] = None,
    ) -> int:
        where, params = _filters(department, semester, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM courses {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_for_faculty(self, faculty_id: int) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select(cur, "WHERE faculty_id=%s ORDER BY semester ASC, course_code ASC", (int(faculty_id),))

    def faculty_links(self) -> set[tuple[int, int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT faculty_id, course_id FROM courses WHERE faculty_id IS NOT NULL")
            return {(int(r["faculty_id"]), int(r["course_id"])) for r in fetchall(cur)}

    def count_enrolled(self, course_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM student_courses WHERE course_id=%s", (int(course_id),))
            r = fetchone(cur)
            return int(r["n"]) if r else 0
