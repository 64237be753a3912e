from __future__ import annotations

from flask import Flask, request

from ..common.web import int_arg, json_body, login_required, ok, page_arg
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students", methods=["GET"], endpoint="list_students")
    @login_required
    def list_students(principal):
        page = container.student_service.list_students(
            principal,
            department=request.args.get("department") or None,
            semester=int_arg("semester"),
            batch=request.args.get("batch") or None,
            search=request.args.get("search") or None,
            paging=page_arg(),
        )
        return ok(page.meta(), students=[s.to_dict() for s in page.items])

    @app.route("/api/students/<int:student_id>", methods=["GET"], endpoint="get_student")
    @login_required
    def get_student(principal, student_id: int):
        return ok(student=container.student_service.view_student(principal, student_id).to_dict())

    @app.route("/api/students/by-user/<int:identity_id>", methods=["GET"], endpoint="get_student_by_user")
    @login_required
    def get_student_by_user(principal, identity_id: int):
        return ok(student=container.student_service.get_by_identity(principal, identity_id).to_dict())

    @app.route("/api/students/<int:student_id>", methods=["PUT"], endpoint="update_student")
    @login_required
    def update_student(principal, student_id: int):
        student = container.student_service.update_student(principal, student_id, json_body())
        return ok(student=student.to_dict(), message="Student updated")

    @app.route("/api/students/<int:student_id>/enroll", methods=["POST"], endpoint="enroll_student")
    @login_required
    def enroll_student(principal, student_id: int):
        student = container.student_service.enroll(principal, student_id, json_body().get("courseIds") or [])
        return ok(student=student.to_dict(), message="Student enrolled")

    @app.route("/api/students/<int:student_id>/grades", methods=["GET"], endpoint="student_grades")
    @login_required
    def student_grades(principal, student_id: int):
        report = container.grade_service.student_grades(
            principal,
            student_id,
            semester=int_arg("semester"),
            academic_year=request.args.get("academicYear") or None,
        )
        return ok(report.to_dict())
