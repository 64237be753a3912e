from __future__ import annotations

from flask import Flask, request

from ..common.web import json_body, login_required, ok, page_arg
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/faculty", methods=["GET"], endpoint="list_faculty")
    @login_required
    def list_faculty(principal):
        page = container.faculty_service.list_faculty(
            principal,
            department=request.args.get("department") or None,
            designation=request.args.get("designation") or None,
            search=request.args.get("search") or None,
            paging=page_arg(),
        )
        return ok(page.meta(), faculty=[f.to_dict() for f in page.items])

    @app.route("/api/faculty/<int:faculty_id>", methods=["GET"], endpoint="get_faculty")
    @login_required
    def get_faculty(principal, faculty_id: int):
        return ok(faculty=container.faculty_service.get_faculty(faculty_id).to_dict())

    @app.route("/api/faculty/by-user/<int:identity_id>", methods=["GET"], endpoint="get_faculty_by_user")
    @login_required
    def get_faculty_by_user(principal, identity_id: int):
        return ok(faculty=container.faculty_service.get_by_identity(identity_id).to_dict())

    @app.route("/api/faculty/<int:faculty_id>", methods=["PUT"], endpoint="update_faculty")
    @login_required
    def update_faculty(principal, faculty_id: int):
        faculty = container.faculty_service.update_faculty(principal, faculty_id, json_body())
        return ok(faculty=faculty.to_dict(), message="Faculty updated")

    @app.route("/api/faculty/<int:faculty_id>/courses", methods=["GET"], endpoint="faculty_courses")
    @login_required
    def faculty_courses(principal, faculty_id: int):
        courses = container.faculty_service.courses_of(faculty_id)
        return ok(count=len(courses), courses=[c.to_dict() for c in courses])

    @app.route("/api/faculty/<int:faculty_id>/students", methods=["GET"], endpoint="faculty_students")
    @login_required
    def faculty_students(principal, faculty_id: int):
        students = container.faculty_service.students_of(principal, faculty_id)
        return ok(count=len(students), students=[s.to_dict() for s in students])
