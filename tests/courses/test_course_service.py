from __future__ import annotations

import pytest

from src.college_admin.college_admin.access.policy import Principal
from src.college_admin.college_admin.common.paging import PageRequest
from src.college_admin.college_admin.core.enums import Role
from src.college_admin.college_admin.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from src.college_admin.college_admin.courses.model import CourseChanges, NewCourse, NewMaterial


def _new_course(code="CS301", faculty=None):
    payload = {"courseCode": code, "courseName": "Operating Systems", "department": "Computer Science", "semester": 3, "credits": 4}
    if faculty is not None:
        payload["faculty"] = faculty.profile_id
    return NewCourse.from_payload(payload)


def test_create_course_mirrors_faculty_assignment(college):
    admin = college.add_admin()
    faculty = college.add_faculty()

    course = college.container.course_service.create_course(admin, _new_course(faculty=faculty))

    assert course.faculty_id == faculty.profile_id
    assert course.course_id in college.faculty.get_by_id(faculty.profile_id).assigned_course_ids


def test_duplicate_course_code_conflicts(college):
    admin = college.add_admin()
    service = college.container.course_service
    service.create_course(admin, _new_course("cs301"))

    with pytest.raises(ConflictError):
        service.create_course(admin, _new_course("CS301"))


def test_reassigning_faculty_moves_the_mirror(college):
    admin = college.add_admin()
    old, new = college.add_faculty(), college.add_faculty()
    service = college.container.course_service
    course = service.create_course(admin, _new_course(faculty=old))

    updated = service.update_course(admin, course.course_id, CourseChanges.from_payload({"faculty": new.profile_id}))

    assert updated.faculty_id == new.profile_id
    assert course.course_id not in college.faculty.get_by_id(old.profile_id).assigned_course_ids
    assert course.course_id in college.faculty.get_by_id(new.profile_id).assigned_course_ids


def test_unassigning_faculty(college):
    admin = college.add_admin()
    faculty = college.add_faculty()
    service = college.container.course_service
    course = service.create_course(admin, _new_course(faculty=faculty))

    updated = service.update_course(admin, course.course_id, CourseChanges.from_payload({"faculty": None}))

    assert updated.faculty_id is None
    assert college.faculty.list_assignments() == set()


def test_assigning_unknown_faculty_is_not_found(college):
    admin = college.add_admin()
    with pytest.raises(NotFoundError):
        college.container.course_service.create_course(admin, _new_course(faculty=Principal(9, Role.FACULTY, 77)))


def test_delete_course_pulls_enrollments_and_assignments(college):
    admin = college.add_admin()
    faculty = college.add_faculty()
    student = college.add_student()
    service = college.container.course_service
    course = service.create_course(admin, _new_course(faculty=faculty))
    college.enroll(student, course.course_id)

    service.delete_course(admin, course.course_id)

    assert college.courses.get_by_id(course.course_id) is None
    assert college.students.get_by_id(student.profile_id).enrolled_course_ids == frozenset()
    assert college.faculty.list_assignments() == set()


def test_only_admin_manages_courses(college):
    with pytest.raises(AuthorizationError):
        college.container.course_service.create_course(college.add_faculty(), _new_course())


def test_assigned_faculty_adds_material(college):
    faculty = college.add_faculty()
    course_id = college.add_course("CS301", faculty=faculty)
    material = NewMaterial.from_payload({"title": "Week 1", "fileUrl": "https://files.example/w1.pdf"})

    course = college.container.course_service.add_material(faculty, course_id, material)
    assert [m.title for m in course.materials] == ["Week 1"]

    with pytest.raises(AuthorizationError):
        college.container.course_service.add_material(college.add_faculty(), course_id, material)


def test_repair_rebuilds_mirror_and_is_idempotent(college):
    faculty = college.add_faculty()
    other = college.add_faculty()
    course_id = college.add_course("CS301", faculty=faculty)
    # Simulate an interrupted reassignment: course points to `other`, mirror still says `faculty`.
    college.courses.set_faculty(course_id, other.profile_id)
    service = college.container.course_service

    report = service.repair_faculty_assignments()

    assert (report.added, report.removed) == (1, 1)
    assert college.faculty.list_assignments() == {(other.profile_id, course_id)}
    again = service.repair_faculty_assignments()
    assert (again.added, again.removed) == (0, 0)


def test_list_courses_pages(college):
    for i in range(5):
        college.add_course(f"CS30{i}")

    page = college.container.course_service.list_courses(paging=PageRequest(page=2, limit=2))

    assert [c.course_code for c in page.items] == ["CS302", "CS303"]
    assert page.meta() == {"count": 2, "total": 5, "totalPages": 3, "currentPage": 2}
