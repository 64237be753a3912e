from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ExamType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import GradeDraft, GradeRecord
from .repository import GradeRepository

_COLUMNS = (
    "grade_id, student_id, course_id, exam_type, marks, max_marks, grade, "
    "semester, academic_year, uploaded_by, remarks"
)


def _to_grade(r: dict) -> GradeRecord:
    return GradeRecord(
        grade_id=int(r["grade_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        exam_type=ExamType(r["exam_type"]),
        marks=float(r["marks"]),
        max_marks=float(r["max_marks"]),
        grade=r["grade"],
        semester=int(r["semester"]),
        academic_year=r["academic_year"],
        uploaded_by=int(r["uploaded_by"]),
        remarks=r.get("remarks"),
    )


def _where(base: dict, *, exam_type: Optional[ExamType], academic_year: Optional[str]) -> tuple[str, list]:
    clauses = [f"{column}=%s" for column in base]
    params: list[object] = list(base.values())
    if exam_type is not None:
        clauses.append("exam_type=%s")
        params.append(exam_type.value)
    if academic_year:
        clauses.append("academic_year=%s")
        params.append(academic_year)
    return "WHERE " + " AND ".join(clauses), params


class MySQLGradeRepository(GradeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, grade_id: int) -> Optional[GradeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM grade_records WHERE grade_id=%s", (int(grade_id),))
            row = fetchone(cur)
            return _to_grade(row) if row else None

    def get_for_key(
        self,
        *,
        student_id: int,
        course_id: int,
        exam_type: ExamType,
        academic_year: str,
    ) -> Optional[GradeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM grade_records
                WHERE student_id=%s AND course_id=%s AND exam_type=%s AND academic_year=%s
                """,
                (int(student_id), int(course_id), exam_type.value, academic_year),
            )
            row = fetchone(cur)
            return _to_grade(row) if row else None

    def create(self, draft: GradeDraft) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO grade_records(
                    student_id, course_id, exam_type, marks, max_marks, grade,
                    semester, academic_year, uploaded_by, remarks
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(draft.student_id),
                    int(draft.course_id),
                    draft.exam_type.value,
                    draft.marks,
                    draft.max_marks,
                    draft.grade,
                    int(draft.semester),
                    draft.academic_year,
                    int(draft.uploaded_by),
                    draft.remarks,
                ),
            )
            return int(cur.lastrowid)

    def update_marks(
        self,
        grade_id: int,
        *,
        marks: float,
        max_marks: float,
        grade: str,
        uploaded_by: int,
        remarks: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE grade_records
                SET marks=%s, max_marks=%s, grade=%s, uploaded_by=%s, remarks=%s
                WHERE grade_id=%s
                """,
                (marks, max_marks, grade, int(uploaded_by), remarks, int(grade_id)),
            )
            return cur.rowcount >= 0

    def delete(self, grade_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM grade_records WHERE grade_id=%s", (int(grade_id),))
            return cur.rowcount > 0

    def list_for_student(
        self,
        student_id: int,
        *,
        semester: Optional[int] = None,
        exam_type: Optional[ExamType] = None,
        academic_year: Optional[str] = None,
    ) -> Sequence[GradeRecord]:
        base: dict = {"student_id": int(student_id)}
        if semester is not None:
            base["semester"] = int(semester)
        where, params = _where(base, exam_type=exam_type, academic_year=academic_year)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM grade_records {where} ORDER BY semester ASC, course_id ASC, exam_type ASC",
                tuple(params),
            )
            return [_to_grade(r) for r in fetchall(cur)]

    def list_for_course(
        self,
        course_id: int,
        *,
        exam_type: Optional[ExamType] = None,
        academic_year: Optional[str] = None,
    ) -> Sequence[GradeRecord]:
        where, params = _where({"course_id": int(course_id)}, exam_type=exam_type, academic_year=academic_year)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM grade_records {where} ORDER BY student_id ASC, exam_type ASC",
                tuple(params),
            )
            return [_to_grade(r) for r in fetchall(cur)]
