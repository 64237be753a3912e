from __future__ import annotations

from typing import Optional, Sequence

from ..access.policy import Action, Principal, require
from ..common.paging import Page, PageRequest
from ..core.exceptions import NotFoundError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..students.model import StudentRow
from ..students.repository import StudentRepository
from .model import FacultyProfile, parse_faculty_changes
from .repository import FacultyRepository


class FacultyService:
    def __init__(self, faculty: FacultyRepository, courses: CourseRepository, students: StudentRepository):
        self._faculty = faculty
        self._courses = courses
        self._students = students

    def get_faculty(self, faculty_id: int) -> FacultyProfile:
        faculty = self._faculty.get_by_id(int(faculty_id))
        if not faculty:
            raise NotFoundError("Faculty not found")
        return faculty

    def get_by_identity(self, identity_id: int) -> FacultyProfile:
        faculty = self._faculty.get_by_identity(int(identity_id))
        if not faculty:
            raise NotFoundError("Faculty not found")
        return faculty

    def list_faculty(
        self,
        principal: Principal,
        *,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        search: Optional[str] = None,
        paging: PageRequest = PageRequest(),
    ) -> Page:
        require(principal, Action.MANAGE_IDENTITIES)
        filters = dict(department=department, designation=designation, search=search)
        items = self._faculty.list_rows(**filters, offset=paging.offset, limit=paging.limit)
        return Page(items=items, total=self._faculty.count(**filters), request=paging)

    def update_faculty(self, principal: Principal, faculty_id: int, payload: dict) -> FacultyProfile:
        require(principal, Action.UPDATE_FACULTY_PROFILE)
        faculty = self.get_faculty(faculty_id)
        self._faculty.update(faculty.faculty_id, columns=parse_faculty_changes(payload))
        return self.get_faculty(faculty.faculty_id)

    def courses_of(self, faculty_id: int) -> Sequence[Course]:
        faculty = self.get_faculty(faculty_id)
        return self._courses.list_for_faculty(faculty.faculty_id)

    def students_of(self, principal: Principal, faculty_id: int) -> Sequence[StudentRow]:
        require(principal, Action.VIEW_COURSE_RECORDS)
        faculty = self.get_faculty(faculty_id)
        return self._students.rows_for_courses(faculty.assigned_course_ids)
