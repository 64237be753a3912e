from __future__ import annotations

from flask import Flask, request

from ..common.validators import require_enum
from ..common.web import int_arg, json_body, login_required, ok
from ..container import Container
from ..core.enums import DayOfWeek
from .model import SlotDraft, SlotFilter


def register(app: Flask, container: Container) -> None:
    service = container.timetable_service

    @app.route("/api/timetable", methods=["GET"], endpoint="list_timetable")
    @login_required
    def list_timetable(principal):
        day = request.args.get("dayOfWeek")
        slots = service.list_slots(
            SlotFilter(
                department=request.args.get("department") or None,
                semester=int_arg("semester"),
                day_of_week=require_enum(day.lower(), DayOfWeek, "dayOfWeek") if day else None,
            )
        )
        grouped = service.group_by_day(slots)
        return ok(
            count=len(slots),
            timetable=[s.to_dict() for s in slots],
            groupedByDay={d: [s.to_dict() for s in rows] for d, rows in grouped.items()},
        )

    @app.route("/api/timetable", methods=["POST"], endpoint="create_timetable_slot")
    @login_required
    def create_timetable_slot(principal):
        slot = service.create_slot(principal, SlotDraft.from_payload(json_body()))
        return ok(timetable=slot.to_dict(), status=201, message="Timetable slot created")

    @app.route("/api/timetable/<int:slot_id>", methods=["PUT"], endpoint="update_timetable_slot")
    @login_required
    def update_timetable_slot(principal, slot_id: int):
        slot = service.update_slot(principal, slot_id, json_body())
        return ok(timetable=slot.to_dict(), message="Timetable slot updated")

    @app.route("/api/timetable/<int:slot_id>", methods=["DELETE"], endpoint="delete_timetable_slot")
    @login_required
    def delete_timetable_slot(principal, slot_id: int):
        service.delete_slot(principal, slot_id)
        return ok(message="Timetable slot deleted")
