from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..access.policy import Action, Principal, ResourceRef, require
from ..common.datetime_utils import now_local
from ..common.paging import Page, PageRequest
from ..core.exceptions import NotFoundError
from ..faculty.repository import FacultyRepository
from ..students.model import StudentRow
from ..students.repository import StudentRepository
from .model import Course, CourseChanges, CourseMaterial, NewCourse, NewMaterial
from .repository import CourseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepairReport:
    added: int
    removed: int

    def to_dict(self) -> dict:
        return {"added": self.added, "removed": self.removed}


class CourseService:
    """Catalog use cases.

    Course.faculty_id and FacultyProfile.assigned_course_ids are kept in step by
    sequential writes (course first, then the mirror). They are not atomic;
    `repair_faculty_assignments` rebuilds the mirror from the courses.
    """

    def __init__(self, courses: CourseRepository, faculty: FacultyRepository, students: StudentRepository):
        self._courses = courses
        self._faculty = faculty
        self._students = students

    def get_course(self, course_id: int) -> Course:
        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise NotFoundError("Course not found")
        return course

    def get_course_with_enrollment(self, course_id: int) -> tuple[Course, int]:
        course = self.get_course(course_id)
        return course, self._courses.count_enrolled(course.course_id)

    def list_courses(
        self,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        search: Optional[str] = None,
        paging: PageRequest = PageRequest(limit=20),
    ) -> Page:
        filters = dict(department=department, semester=semester, search=search)
        items = self._courses.list(**filters, offset=paging.offset, limit=paging.limit)
        return Page(items=items, total=self._courses.count(**filters), request=paging)

    def _require_faculty(self, faculty_id: int) -> None:
        if not self._faculty.get_by_id(int(faculty_id)):
            raise NotFoundError("Faculty not found")

    def create_course(self, principal: Principal, new_course: NewCourse) -> Course:
        require(principal, Action.MANAGE_COURSES)
        if new_course.faculty_id is not None:
            self._require_faculty(new_course.faculty_id)

        course_id = self._courses.create(new_course)
        if new_course.faculty_id is not None:
            self._faculty.add_course(new_course.faculty_id, course_id)
        logger.info("Created course %s (id=%s)", new_course.course_code, course_id)
        return self.get_course(course_id)

    def update_course(self, principal: Principal, course_id: int, changes: CourseChanges) -> Course:
        require(principal, Action.MANAGE_COURSES)
        course = self.get_course(course_id)

        if changes.faculty_given and changes.faculty_id is not None:
            self._require_faculty(changes.faculty_id)

        self._courses.update(course.course_id, columns=changes.columns)

        if changes.faculty_given and changes.faculty_id != course.faculty_id:
            self.reassign_faculty(course.course_id, old_faculty_id=course.faculty_id, new_faculty_id=changes.faculty_id)

        return self.get_course(course.course_id)

    def reassign_faculty(self, course_id: int, *, old_faculty_id: Optional[int], new_faculty_id: Optional[int]) -> None:
        self._courses.set_faculty(course_id, new_faculty_id)
        if old_faculty_id is not None:
            self._faculty.remove_course(old_faculty_id, course_id)
        if new_faculty_id is not None:
            self._faculty.add_course(new_faculty_id, course_id)
        logger.info("Course %s faculty %s -> %s", course_id, old_faculty_id, new_faculty_id)

    def delete_course(self, principal: Principal, course_id: int) -> None:
        require(principal, Action.MANAGE_COURSES)
        course = self.get_course(course_id)

        if course.faculty_id is not None:
            self._faculty.remove_course(course.faculty_id, course.course_id)
        pulled = self._students.unenroll_course(course.course_id)

        if not self._courses.delete(course.course_id):
            raise NotFoundError("Course not found")
        logger.info("Deleted course %s (unenrolled %s students)", course.course_code, pulled)

    def add_material(self, principal: Principal, course_id: int, material: NewMaterial) -> Course:
        course = self.get_course(course_id)
        require(principal, Action.ADD_COURSE_MATERIAL, ResourceRef.course(course))

        self._courses.add_material(
            course.course_id,
            CourseMaterial(
                title=material.title,
                description=material.description,
                file_url=material.file_url,
                uploaded_at=now_local(),
            ),
        )
        return self.get_course(course.course_id)

    def course_students(self, principal: Principal, course_id: int) -> Sequence[StudentRow]:
        require(principal, Action.VIEW_COURSE_RECORDS)
        course = self.get_course(course_id)
        return self._students.rows_for_courses([course.course_id])

    def repair_faculty_assignments(self) -> RepairReport:
        """Make the assigned-course mirror match Course.faculty_id. Safe to re-run."""
        desired = self._courses.faculty_links()
        current = self._faculty.list_assignments()

        for faculty_id, course_id in sorted(desired - current):
            self._faculty.add_course(faculty_id, course_id)
        for faculty_id, course_id in sorted(current - desired):
            self._faculty.remove_course(faculty_id, course_id)

        report = RepairReport(added=len(desired - current), removed=len(current - desired))
        logger.info("Faculty assignment repair: added=%s removed=%s", report.added, report.removed)
        return report
