from __future__ import annotations

from flask import Flask, request

from ..common.validators import require_enum
from ..common.web import json_body, login_required, ok
from ..container import Container
from ..core.enums import ExamType
from .model import GradeChanges, UploadGradesRequest


def register(app: Flask, container: Container) -> None:
    service = container.grade_service

    @app.route("/api/grades/upload", methods=["POST"], endpoint="upload_grades")
    @login_required
    def upload_grades(principal):
        result = service.upload_grades(principal, UploadGradesRequest.from_payload(json_body()))
        return ok(result.to_dict())

    @app.route("/api/grades/course/<int:course_id>", methods=["GET"], endpoint="course_grades")
    @login_required
    def course_grades(principal, course_id: int):
        exam_type = request.args.get("examType")
        grades = service.course_grades(
            principal,
            course_id,
            exam_type=require_enum(exam_type, ExamType, "examType") if exam_type else None,
            academic_year=request.args.get("academicYear") or None,
        )
        return ok(count=len(grades), grades=[g.to_dict() for g in grades])

    @app.route("/api/grades/<int:grade_id>", methods=["PUT"], endpoint="update_grade")
    @login_required
    def update_grade(principal, grade_id: int):
        grade = service.update_grade(principal, grade_id, GradeChanges.from_payload(json_body()))
        return ok(grade=grade.to_dict(), message="Grade updated")

    @app.route("/api/grades/<int:grade_id>", methods=["DELETE"], endpoint="delete_grade")
    @login_required
    def delete_grade(principal, grade_id: int):
        service.delete_grade(principal, grade_id)
        return ok(message="Grade deleted")
