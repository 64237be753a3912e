"""Attendance derivation: percentages and detained status.

All functions are total: an empty ledger yields 0, never a division error.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..common.numbers import round2
from ..core.constants import DEFAULT_DETAIN_THRESHOLD
from ..core.enums import AttendanceStatus


def attendance_percentage(present: int, late: int, total: int) -> float:
    """(present + late) / total * 100, rounded to 2 decimals; 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round2((present + late) / total * 100)


@dataclass
class AttendanceTally:
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0

    def add(self, status: AttendanceStatus) -> None:
        self.total += 1
        if status == AttendanceStatus.PRESENT:
            self.present += 1
        elif status == AttendanceStatus.LATE:
            self.late += 1
        else:
            self.absent += 1

    @property
    def percentage(self) -> float:
        return attendance_percentage(self.present, self.late, self.total)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "percentage": self.percentage,
        }


def tally(statuses: Iterable[AttendanceStatus]) -> AttendanceTally:
    out = AttendanceTally()
    for status in statuses:
        out.add(status)
    return out


def tally_by(records: Iterable, key: str) -> dict[int, AttendanceTally]:
    """Group records by an id attribute (`course_id` or `student_id`), keeping first-seen order."""
    out: dict[int, AttendanceTally] = {}
    for record in records:
        out.setdefault(int(getattr(record, key)), AttendanceTally()).add(record.status)
    return out


@dataclass(frozen=True)
class AttendancePolicy:
    """Pass/detained rule; below the threshold a student is detained."""

    detain_threshold: float = DEFAULT_DETAIN_THRESHOLD

    def is_detained(self, percentage: float) -> bool:
        return percentage < self.detain_threshold

    def status_label(self, percentage: float) -> str:
        return "DETAINED" if self.is_detained(percentage) else "PASS"
