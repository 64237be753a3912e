from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import ExamType
from .model import GradeDraft, GradeRecord


class GradeRepository(Protocol):
    def get_by_id(self, grade_id: int) -> Optional[GradeRecord]:
        raise NotImplementedError

    def get_for_key(
        self,
        *,
        student_id: int,
        course_id: int,
        exam_type: ExamType,
        academic_year: str,
    ) -> Optional[GradeRecord]:
        raise NotImplementedError

    def create(self, draft: GradeDraft) -> int:
        """Insert a record; raises ConflictError if the natural key already exists."""

        raise NotImplementedError

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
        raise NotImplementedError

    def delete(self, grade_id: int) -> bool:
        raise NotImplementedError

    def list_for_student(
        self,
        student_id: int,
        *,
        semester: Optional[int] = None,
        exam_type: Optional[ExamType] = None,
        academic_year: Optional[str] = None,
    ) -> Sequence[GradeRecord]:
        raise NotImplementedError

    def list_for_course(
        self,
        course_id: int,
        *,
        exam_type: Optional[ExamType] = None,
        academic_year: Optional[str] = None,
    ) -> Sequence[GradeRecord]:
        raise NotImplementedError
