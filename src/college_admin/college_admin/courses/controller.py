from __future__ import annotations

from flask import Flask, request

from ..access.policy import Action, require
from ..common.web import int_arg, json_body, login_required, ok, page_arg
from ..container import Container
from ..core.constants import DEFAULT_COURSE_PAGE_SIZE
from .model import CourseChanges, NewCourse, NewMaterial


def register(app: Flask, container: Container) -> None:
    @app.route("/api/courses", methods=["GET"], endpoint="list_courses")
    @login_required
    def list_courses(principal):
        page = container.course_service.list_courses(
            department=request.args.get("department") or None,
            semester=int_arg("semester"),
            search=request.args.get("search") or None,
            paging=page_arg(default_limit=DEFAULT_COURSE_PAGE_SIZE),
        )
        return ok(page.meta(), courses=[c.to_dict() for c in page.items])

    @app.route("/api/courses/<int:course_id>", methods=["GET"], endpoint="get_course")
    @login_required
    def get_course(principal, course_id: int):
        course, enrolled = container.course_service.get_course_with_enrollment(course_id)
        return ok(course={**course.to_dict(), "enrolledCount": enrolled})

    @app.route("/api/courses", methods=["POST"], endpoint="create_course")
    @login_required
    def create_course(principal):
        course = container.course_service.create_course(principal, NewCourse.from_payload(json_body()))
        return ok(course=course.to_dict(), status=201, message="Course created")

    @app.route("/api/courses/<int:course_id>", methods=["PUT"], endpoint="update_course")
    @login_required
    def update_course(principal, course_id: int):
        course = container.course_service.update_course(principal, course_id, CourseChanges.from_payload(json_body()))
        return ok(course=course.to_dict(), message="Course updated")

    @app.route("/api/courses/<int:course_id>", methods=["DELETE"], endpoint="delete_course")
    @login_required
    def delete_course(principal, course_id: int):
        container.course_service.delete_course(principal, course_id)
        return ok(message="Course deleted")

    @app.route("/api/courses/<int:course_id>/materials", methods=["POST"], endpoint="add_course_material")
    @login_required
    def add_course_material(principal, course_id: int):
        course = container.course_service.add_material(principal, course_id, NewMaterial.from_payload(json_body()))
        return ok(course=course.to_dict(), status=201, message="Material added")

    @app.route("/api/courses/<int:course_id>/students", methods=["GET"], endpoint="course_students")
    @login_required
    def course_students(principal, course_id: int):
        students = container.course_service.course_students(principal, course_id)
        return ok(count=len(students), students=[s.to_dict() for s in students])

    @app.route("/api/courses/repair-assignments", methods=["POST"], endpoint="repair_course_assignments")
    @login_required
    def repair_course_assignments(principal):
        require(principal, Action.MANAGE_COURSES)
        report = container.course_service.repair_faculty_assignments()
        return ok(report.to_dict(), message="Faculty assignments reconciled")
