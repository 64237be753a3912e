from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..access.policy import Action, Principal, ResourceRef, require
from ..common.paging import Page, PageRequest
from ..common.validators import require_int
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.repository import CourseRepository
from .model import ADMIN_EDITABLE_FIELDS, SELF_EDITABLE_FIELDS, StudentProfile, parse_student_changes
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    def __init__(self, students: StudentRepository, courses: CourseRepository):
        self._students = students
        self._courses = courses

    def get_student(self, student_id: int) -> StudentProfile:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        return student

    def view_student(self, principal: Principal, student_id: int) -> StudentProfile:
        require(principal, Action.VIEW_STUDENT_RECORDS, ResourceRef.student(student_id))
        return self.get_student(student_id)

    def get_by_identity(self, principal: Principal, identity_id: int) -> StudentProfile:
        student = self._students.get_by_identity(int(identity_id))
        if not student:
            raise NotFoundError("Student not found")
        require(principal, Action.VIEW_STUDENT_RECORDS, ResourceRef.student(student.student_id))
        return student

    def list_students(
        self,
        principal: Principal,
        *,
        department: Optional[str] = None,
        semester: Optional[int] = None,
        batch: Optional[str] = None,
        search: Optional[str] = None,
        paging: PageRequest = PageRequest(),
    ) -> Page:
        require(principal, Action.VIEW_COURSE_RECORDS)
        filters = dict(department=department, semester=semester, batch=batch, search=search)
        items = self._students.list_rows(**filters, offset=paging.offset, limit=paging.limit)
        return Page(items=items, total=self._students.count(**filters), request=paging)

    def update_student(self, principal: Principal, student_id: int, payload: dict) -> StudentProfile:
        student = self.get_student(student_id)
        require(principal, Action.UPDATE_STUDENT_PROFILE, ResourceRef.student(student.student_id))

        allowed = ADMIN_EDITABLE_FIELDS if principal.is_admin else SELF_EDITABLE_FIELDS
        columns = parse_student_changes(payload, allowed=allowed)
        self._students.update(student.student_id, columns=columns)
        return self.get_student(student.student_id)

    def enroll(self, principal: Principal, student_id: int, course_ids: Iterable) -> StudentProfile:
        require(principal, Action.ENROLL_STUDENTS)
        student = self.get_student(student_id)

        ids = [require_int(c, "courseIds[]") for c in course_ids]
        if not ids:
            raise ValidationError("courseIds must not be empty")
        known = self._courses.get_many(ids)
        missing = sorted(set(ids) - set(known))
        if missing:
            raise NotFoundError(f"Course not found: {', '.join(str(m) for m in missing)}")

        added = self._students.enroll(student.student_id, [c for c in ids if c not in student.enrolled_course_ids])
        logger.info("Enrolled student %s in %s new course(s)", student.student_id, added)
        return self.get_student(student.student_id)
