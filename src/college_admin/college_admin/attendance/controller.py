from __future__ import annotations

from flask import Flask

from ..common.validators import optional_str, require_enum
from ..common.web import date_arg, int_arg, json_body, login_required, ok
from ..container import Container
from ..core.enums import AttendanceStatus
from .model import MarkAttendanceRequest


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @login_required
    def mark_attendance(principal):
        result = service.record_attendance(principal, MarkAttendanceRequest.from_payload(json_body()))
        return ok(result.to_dict())

    @app.route("/api/attendance/student/<int:student_id>", methods=["GET"], endpoint="student_attendance")
    @login_required
    def student_attendance(principal, student_id: int):
        report = service.summarize_attendance(principal, student_id, course_id=int_arg("courseId"))
        return ok(report.to_dict())

    @app.route("/api/attendance/course/<int:course_id>", methods=["GET"], endpoint="course_attendance")
    @login_required
    def course_attendance(principal, course_id: int):
        view = service.course_attendance(
            principal,
            course_id,
            on=date_arg("date"),
            start=date_arg("startDate"),
            end=date_arg("endDate"),
        )
        return ok(view.to_dict())

    @app.route("/api/attendance/summary/<int:course_id>", methods=["GET"], endpoint="attendance_summary")
    @login_required
    def attendance_summary(principal, course_id: int):
        return ok(service.course_summary(principal, course_id).to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="update_attendance")
    @login_required
    def update_attendance(principal, attendance_id: int):
        data = json_body()
        record = service.update_record(
            principal,
            attendance_id,
            status=require_enum(data.get("status"), AttendanceStatus, "status"),
            remarks=optional_str(data.get("remarks")),
        )
        return ok(attendance=record.to_dict(), message="Attendance updated")

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    @login_required
    def delete_attendance(principal, attendance_id: int):
        service.delete_record(principal, attendance_id)
        return ok(message="Attendance record deleted")
