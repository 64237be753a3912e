from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Course, CourseMaterial, NewCourse


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def get_many(self, course_ids: Iterable[int]) -> dict[int, Course]:
        raise NotImplementedError

    def create(self, course: NewCourse) -> int:
        """Raises ConflictError when the course code is taken."""

        raise NotImplementedError

    def update(self, course_id: int, *, columns: dict) -> bool:
        raise NotImplementedError

    def set_faculty(self, course_id: int, faculty_id: Optional[int]) -> bool:
        raise NotImplementedError

    def delete(self, course_id: int) -> bool:
        raise NotImplementedError

    def add_material(self, course_id: int, material: CourseMaterial) -> bool:
        raise NotImplementedError

    def set_total_classes(self, course_id: int, total: int) -> bool:
        raise NotImplementedError

    def list(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Sequence[Course]:
        """Active courses ordered by semester then course code."""

        raise NotImplementedError

    def count(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        search: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def list_for_faculty(self, faculty_id: int) -> Sequence[Course]:
        raise NotImplementedError

    def faculty_links(self) -> set[tuple[int, int]]:
        """(faculty_id, course_id) for every course with an assigned faculty."""

        raise NotImplementedError

    def count_enrolled(self, course_id: int) -> int:
        raise NotImplementedError
