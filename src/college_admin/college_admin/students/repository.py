from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import NewStudentProfile, StudentProfile, StudentRow


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def get_by_identity(self, identity_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def create(self, *, identity_id: int, profile: NewStudentProfile) -> int:
        """Raises ConflictError when the roll number or identity already has a profile."""

        raise NotImplementedError

    def update(self, student_id: int, *, columns: dict) -> bool:
        raise NotImplementedError

    def delete_by_identity(self, identity_id: int) -> bool:
        raise NotImplementedError

    def enroll(self, student_id: int, course_ids: Iterable[int]) -> int:
        """Add course ids to the enrolled set; returns how many were new."""

        raise NotImplementedError

    def unenroll_course(self, course_id: int) -> int:
        """Pull a course id from every student's enrolled set."""

        raise NotImplementedError

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
        """Ordered by roll number."""

        raise NotImplementedError

    def count(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        batch: Optional[str] = None,
        search: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def rows_for_courses(self, course_ids: Iterable[int]) -> Sequence[StudentRow]:
        """Distinct students enrolled in any of the courses, ordered by roll number."""

        raise NotImplementedError
