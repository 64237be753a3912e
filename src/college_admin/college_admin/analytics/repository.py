from __future__ import annotations

from typing import Protocol, Sequence

from .model import MonthlyAttendance


class AnalyticsRepository(Protocol):
    """Read-only aggregate queries across the ledgers."""

    def students_per_department(self) -> dict[str, int]:
        raise NotImplementedError

    def attendance_status_counts(self) -> dict[str, int]:
        raise NotImplementedError

    def attendance_by_month(self) -> Sequence[MonthlyAttendance]:
        """Oldest month first."""

        raise NotImplementedError

    def grade_counts(self) -> dict[str, int]:
        raise NotImplementedError

    def average_percentage_by_exam(self) -> dict[str, float]:
        raise NotImplementedError
