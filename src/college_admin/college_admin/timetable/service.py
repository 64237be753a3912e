from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Optional

from ..access.policy import Action, Principal, require
from ..core.enums import DayOfWeek
from ..core.exceptions import ConflictError, NotFoundError
from ..courses.repository import CourseRepository
from ..faculty.repository import FacultyRepository
from .model import SlotDraft, SlotFilter, TimetableSlot
from .repository import TimetableRepository

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Time slot conflict: room is already booked at this time"


class TimetableService:
    """Weekly schedule.

    The conflict guard compares (day, start time, room) for equality only.
    Slots in the same room whose intervals overlap but start at different
    times are accepted.
    """

    def __init__(self, slots: TimetableRepository, courses: CourseRepository, faculty: FacultyRepository):
        self._slots = slots
        self._courses = courses
        self._faculty = faculty

    def _get_slot(self, slot_id: int) -> TimetableSlot:
        slot = self._slots.get_by_id(int(slot_id))
        if not slot:
            raise NotFoundError("Timetable slot not found")
        return slot

    def _check_references(self, draft: SlotDraft) -> None:
        if not self._courses.get_by_id(draft.course_id):
            raise NotFoundError("Course not found")
        if not self._faculty.get_by_id(draft.faculty_id):
            raise NotFoundError("Faculty not found")

    def _check_conflict(self, draft: SlotDraft, *, exclude_id: Optional[int] = None) -> None:
        if not draft.is_active:
            return
        taken = self._slots.find_active_at(day_of_week=draft.day_of_week, start_time=draft.start_time, room=draft.room)
        if taken and taken.slot_id != exclude_id:
            raise ConflictError(CONFLICT_MESSAGE)

    def create_slot(self, principal: Principal, draft: SlotDraft) -> TimetableSlot:
        require(principal, Action.MANAGE_TIMETABLE)
        self._check_references(draft)
        self._check_conflict(draft)

        # The unique index still rejects a concurrent insert that passed the check above.
        slot_id = self._slots.create(draft)
        logger.info("Created timetable slot %s (%s %s, %s)", slot_id, draft.day_of_week.value, draft.start_time, draft.room)
        return self._get_slot(slot_id)

    def update_slot(self, principal: Principal, slot_id: int, payload: dict[str, Any]) -> TimetableSlot:
        require(principal, Action.MANAGE_TIMETABLE)
        slot = self._get_slot(slot_id)

        draft = SlotDraft.from_slot(slot).merged(payload)
        self._check_references(draft)
        self._check_conflict(draft, exclude_id=slot.slot_id)

        self._slots.update(slot.slot_id, draft)
        return self._get_slot(slot.slot_id)

    def delete_slot(self, principal: Principal, slot_id: int) -> None:
        require(principal, Action.MANAGE_TIMETABLE)
        slot = self._get_slot(slot_id)
        self._slots.delete(slot.slot_id)
        logger.info("Deleted timetable slot %s", slot.slot_id)

    def list_slots(self, filters: SlotFilter = SlotFilter()) -> list[TimetableSlot]:
        slots = self._slots.list_active(filters)
        return sorted(slots, key=lambda s: (s.day_of_week.order, s.start_time))

    @staticmethod
    def group_by_day(slots: list[TimetableSlot]) -> "OrderedDict[str, list[TimetableSlot]]":
        grouped: "OrderedDict[str, list[TimetableSlot]]" = OrderedDict((day.value, []) for day in DayOfWeek)
        for slot in slots:
            grouped[slot.day_of_week.value].append(slot)
        return grouped
