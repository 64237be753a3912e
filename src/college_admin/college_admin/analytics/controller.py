from __future__ import annotations

from flask import Flask

from ..common.web import login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.analytics_service

    @app.route("/api/analytics/overview", methods=["GET"], endpoint="analytics_overview")
    @login_required
    def analytics_overview(principal):
        return ok(service.overview(principal).to_dict())

    @app.route("/api/analytics/attendance", methods=["GET"], endpoint="analytics_attendance")
    @login_required
    def analytics_attendance(principal):
        return ok(service.attendance_analytics(principal).to_dict())

    @app.route("/api/analytics/grades", methods=["GET"], endpoint="analytics_grades")
    @login_required
    def analytics_grades(principal):
        return ok(service.grade_analytics(principal).to_dict())
