from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import time
from typing import Any, Optional

from ..common.datetime_utils import format_clock_time, parse_clock_time
from ..common.validators import require_enum, require_int, require_non_empty, require_range
from ..core.constants import SEMESTER_RANGE
from ..core.enums import ClassType, DayOfWeek
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class TimetableSlot:
    """Domain entity: one weekly recurring class.

    At most one active slot may hold a given (day_of_week, start_time, room).
    """

    slot_id: int
    course_id: int
    faculty_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    room: str
    department: str
    semester: int
    class_type: ClassType = ClassType.LECTURE
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.slot_id,
            "courseId": self.course_id,
            "facultyId": self.faculty_id,
            "dayOfWeek": self.day_of_week.value,
            "startTime": format_clock_time(self.start_time),
            "endTime": format_clock_time(self.end_time),
            "room": self.room,
            "department": self.department,
            "semester": self.semester,
            "classType": self.class_type.value,
            "isActive": self.is_active,
        }


def _first(payload: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _lowered_enum(value: Any, enum_cls, field_name: str):
    # Enum values are lowercase; accept "Monday" or "LAB" from clients.
    text = value.lower() if isinstance(value, str) else value
    return require_enum(text, enum_cls, field_name)


@dataclass(frozen=True)
class SlotDraft:
    course_id: int
    faculty_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    room: str
    department: str
    semester: int
    class_type: ClassType = ClassType.LECTURE
    is_active: bool = True

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise ValidationError("endTime must be after startTime")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SlotDraft":
        class_type = payload.get("classType") or ClassType.LECTURE.value
        return cls(
            course_id=require_int(_first(payload, "course", "courseId"), "course"),
            faculty_id=require_int(_first(payload, "faculty", "facultyId"), "faculty"),
            day_of_week=_lowered_enum(payload.get("dayOfWeek"), DayOfWeek, "dayOfWeek"),
            start_time=parse_clock_time(payload.get("startTime"), "startTime"),
            end_time=parse_clock_time(payload.get("endTime"), "endTime"),
            room=require_non_empty(payload.get("room"), "room"),
            department=require_non_empty(payload.get("department"), "department"),
            semester=require_range(payload.get("semester"), "semester", *SEMESTER_RANGE),
            class_type=_lowered_enum(class_type, ClassType, "classType"),
        )

    @classmethod
    def from_slot(cls, slot: TimetableSlot) -> "SlotDraft":
        return cls(
            course_id=slot.course_id,
            faculty_id=slot.faculty_id,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
            room=slot.room,
            department=slot.department,
            semester=slot.semester,
            class_type=slot.class_type,
            is_active=slot.is_active,
        )

    def merged(self, payload: dict[str, Any]) -> "SlotDraft":
        """Apply a partial update; keys absent from the payload keep their value."""
        changes: dict[str, Any] = {}
        course = _first(payload, "course", "courseId")
        if course is not None:
            changes["course_id"] = require_int(course, "course")
        faculty = _first(payload, "faculty", "facultyId")
        if faculty is not None:
            changes["faculty_id"] = require_int(faculty, "faculty")
        if payload.get("dayOfWeek") is not None:
            changes["day_of_week"] = _lowered_enum(payload["dayOfWeek"], DayOfWeek, "dayOfWeek")
        if payload.get("startTime") is not None:
            changes["start_time"] = parse_clock_time(payload["startTime"], "startTime")
        if payload.get("endTime") is not None:
            changes["end_time"] = parse_clock_time(payload["endTime"], "endTime")
        if payload.get("room") is not None:
            changes["room"] = require_non_empty(payload["room"], "room")
        if payload.get("department") is not None:
            changes["department"] = require_non_empty(payload["department"], "department")
        if payload.get("semester") is not None:
            changes["semester"] = require_range(payload["semester"], "semester", *SEMESTER_RANGE)
        if payload.get("classType") is not None:
            changes["class_type"] = _lowered_enum(payload["classType"], ClassType, "classType")
        if payload.get("isActive") is not None:
            changes["is_active"] = bool(payload["isActive"])
        return replace(self, **changes)


@dataclass(frozen=True)
class SlotFilter:
    department: Optional[str] = None
    semester: Optional[int] = None
    day_of_week: Optional[DayOfWeek] = None
