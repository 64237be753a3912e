from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_str, require_enum, require_int, require_list
from ..core.enums import AttendanceStatus, UpsertAction
from ..core.exceptions import ValidationError
from .metrics import AttendanceTally


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's status in one course on one day.

    Natural key: (student_id, course_id, attend_date).
    """

    attendance_id: int
    student_id: int
    course_id: int
    attend_date: date
    status: AttendanceStatus
    marked_by: int
    remarks: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "date": self.attend_date.isoformat(),
            "status": self.status.value,
            "markedBy": self.marked_by,
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: int
    status: AttendanceStatus
    remarks: Optional[str] = None


@dataclass(frozen=True)
class MarkAttendanceRequest:
    course_id: int
    attend_date: date
    entries: tuple

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MarkAttendanceRequest":
        rows = require_list(payload.get("attendanceData"), "attendanceData")
        entries = []
        for i, row in enumerate(rows):
            if not isinstance(row, dict):
                raise ValidationError(f"attendanceData[{i}] must be an object")
            entries.append(
                AttendanceEntry(
                    student_id=require_int(row.get("studentId"), f"attendanceData[{i}].studentId"),
                    status=require_enum(row.get("status"), AttendanceStatus, f"attendanceData[{i}].status"),
                    remarks=optional_str(row.get("remarks")),
                )
            )
        return cls(
            course_id=require_int(payload.get("courseId"), "courseId"),
            attend_date=parse_iso_date(payload.get("date"), "date"),
            entries=tuple(entries),
        )


@dataclass(frozen=True)
class EntryOutcome:
    student_id: int
    action: UpsertAction
    error: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"studentId": self.student_id, "action": self.action.value}
        if self.error:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class MarkAttendanceResult:
    course_id: int
    attend_date: date
    results: Sequence[EntryOutcome]
    total_classes_held: int

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": "Attendance marked successfully",
            "results": [r.to_dict() for r in self.results],
            "totalClasses": self.total_classes_held,
        }


@dataclass(frozen=True)
class CourseAttendanceSummary:
    """One student's attendance in one course."""

    course_id: int
    course: Optional[dict]
    tally: AttendanceTally
    detained: bool
    status: str = "PASS"

    def to_dict(self) -> dict:
        return {
            "course": self.course or {"id": self.course_id},
            **self.tally.to_dict(),
            "detained": self.detained,
            "status": self.status,
        }


@dataclass(frozen=True)
class StudentAttendanceReport:
    student_id: int
    records: Sequence[AttendanceRecord]
    course_summary: Sequence[CourseAttendanceSummary]

    def to_dict(self) -> dict:
        return {
            "success": True,
            "count": len(self.records),
            "attendance": [r.to_dict() for r in self.records],
            "courseSummary": [s.to_dict() for s in self.course_summary],
        }


@dataclass(frozen=True)
class StudentSummaryRow:
    student_id: int
    roll_number: str
    name: str
    tally: AttendanceTally
    detained: bool
    status: str = "PASS"

    def to_dict(self) -> dict:
        return {
            "student": {"id": self.student_id, "rollNumber": self.roll_number, "name": self.name},
            **self.tally.to_dict(),
            "detained": self.detained,
            "status": self.status,
        }


@dataclass(frozen=True)
class CourseSummaryReport:
    course_id: int
    rows: Sequence[StudentSummaryRow]
    dates: Sequence[date]
    detain_threshold: float

    @property
    def total_classes(self) -> int:
        return len(self.dates)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "totalClasses": self.total_classes,
            "totalStudents": len(self.rows),
            "detainThreshold": self.detain_threshold,
            "summary": [r.to_dict() for r in self.rows],
            "dates": [d.isoformat() for d in self.dates],
        }


@dataclass(frozen=True)
class CourseAttendanceView:
    records: Sequence[AttendanceRecord]
    grouped: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "count": len(self.records),
            "attendance": [r.to_dict() for r in self.records],
            "groupedByDate": {day: [r.to_dict() for r in rows] for day, rows in self.grouped.items()},
        }
