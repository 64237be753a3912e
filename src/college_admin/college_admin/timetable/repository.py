from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from ..core.enums import DayOfWeek
from .model import SlotDraft, SlotFilter, TimetableSlot


class TimetableRepository(Protocol):
    def get_by_id(self, slot_id: int) -> Optional[TimetableSlot]:
        raise NotImplementedError

    def find_active_at(self, *, day_of_week: DayOfWeek, start_time: time, room: str) -> Optional[TimetableSlot]:
        raise NotImplementedError

    def create(self, draft: SlotDraft) -> int:
        """Insert a slot; raises ConflictError if an active slot holds the same day/start/room."""

        raise NotImplementedError

    def update(self, slot_id: int, draft: SlotDraft) -> bool:
        raise NotImplementedError

    def delete(self, slot_id: int) -> bool:
        raise NotImplementedError

    def list_active(self, filters: SlotFilter) -> Sequence[TimetableSlot]:
        """Active slots ordered by day of week then start time."""

        raise NotImplementedError
