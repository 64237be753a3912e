from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_key(self, *, student_id: int, course_id: int, attend_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        student_id: int,
        course_id: int,
        attend_date: date,
        status: AttendanceStatus,
        marked_by: int,
        remarks: Optional[str] = None,
    ) -> int:
        """Insert a record; raises ConflictError if the natural key already exists."""

        raise NotImplementedError

    def update(self, attendance_id: int, *, status: AttendanceStatus, remarks: Optional[str] = None) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_for_student(self, student_id: int, *, course_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        """Newest first."""

        raise NotImplementedError

    def list_for_course(
        self,
        course_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest first; `start`/`end` are inclusive."""

        raise NotImplementedError

    def count_distinct_dates(self, course_id: int) -> int:
        raise NotImplementedError
