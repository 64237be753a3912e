from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import FacultyProfile, FacultyRow, NewFacultyProfile


class FacultyRepository(Protocol):
    def get_by_id(self, faculty_id: int) -> Optional[FacultyProfile]:
        raise NotImplementedError

    def get_by_identity(self, identity_id: int) -> Optional[FacultyProfile]:
        raise NotImplementedError

    def create(self, *, identity_id: int, profile: NewFacultyProfile) -> int:
        raise NotImplementedError

    def update(self, faculty_id: int, *, columns: dict) -> bool:
        raise NotImplementedError

    def delete_by_identity(self, identity_id: int) -> bool:
        raise NotImplementedError

    def add_course(self, faculty_id: int, course_id: int) -> None:
        """Idempotent: adding an already assigned course is a no-op."""

        raise NotImplementedError

    def remove_course(self, faculty_id: int, course_id: int) -> None:
        raise NotImplementedError

    def list_assignments(self) -> set[tuple[int, int]]:
        """All (faculty_id, course_id) pairs in the assigned-course mirror."""

        raise NotImplementedError

    def list_rows(
        self,
        *,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[FacultyRow]:
        raise NotImplementedError

    def count(
        self,
        *,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        search: Optional[str] = None,
    ) -> int:
        raise NotImplementedError
