from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..common.numbers import round2
from ..common.validators import (
    optional_str,
    require_enum,
    require_int,
    require_list,
    require_non_empty,
    require_number,
)
from ..core.enums import ExamType, UpsertAction
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class GradeRecord:
    """Domain entity: marks for one exam of one course.

    Natural key: (student_id, course_id, exam_type, academic_year).
    `grade` is always derived from marks/max_marks by the grading scale.
    `uploaded_by` is the identity id of whoever wrote the marks last.
    """

    grade_id: int
    student_id: int
    course_id: int
    exam_type: ExamType
    marks: float
    max_marks: float
    grade: str
    semester: int
    academic_year: str
    uploaded_by: int
    remarks: Optional[str] = None

    @property
    def percentage(self) -> float:
        if self.max_marks <= 0:
            return 0.0
        return round2(self.marks * 100 / self.max_marks)

    def to_dict(self) -> dict:
        return {
            "id": self.grade_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "examType": self.exam_type.value,
            "marks": self.marks,
            "maxMarks": self.max_marks,
            "percentage": self.percentage,
            "grade": self.grade,
            "semester": self.semester,
            "academicYear": self.academic_year,
            "uploadedBy": self.uploaded_by,
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class GradeDraft:
    """Everything needed to insert a grade record."""

    student_id: int
    course_id: int
    exam_type: ExamType
    marks: float
    max_marks: float
    grade: str
    semester: int
    academic_year: str
    uploaded_by: int
    remarks: Optional[str] = None


def _marks(row: dict[str, Any], prefix: str) -> tuple[float, float]:
    marks = require_number(row.get("marks"), f"{prefix}marks", minimum=0)
    max_marks = require_number(row.get("maxMarks"), f"{prefix}maxMarks", minimum=1)
    return marks, max_marks


@dataclass(frozen=True)
class GradeEntry:
    student_id: int
    marks: float
    max_marks: float
    remarks: Optional[str] = None


@dataclass(frozen=True)
class UploadGradesRequest:
    course_id: int
    exam_type: ExamType
    academic_year: str
    entries: tuple

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "UploadGradesRequest":
        rows = require_list(payload.get("gradesData"), "gradesData")
        entries = []
        for i, row in enumerate(rows):
            if not isinstance(row, dict):
                raise ValidationError(f"gradesData[{i}] must be an object")
            marks, max_marks = _marks(row, f"gradesData[{i}].")
            entries.append(
                GradeEntry(
                    student_id=require_int(row.get("studentId"), f"gradesData[{i}].studentId"),
                    marks=marks,
                    max_marks=max_marks,
                    remarks=optional_str(row.get("remarks")),
                )
            )
        return cls(
            course_id=require_int(payload.get("courseId"), "courseId"),
            exam_type=require_enum(payload.get("examType"), ExamType, "examType"),
            academic_year=require_non_empty(payload.get("academicYear"), "academicYear"),
            entries=tuple(entries),
        )


@dataclass(frozen=True)
class GradeChanges:
    marks: float
    max_marks: float
    remarks: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GradeChanges":
        marks, max_marks = _marks(payload, "")
        return cls(marks=marks, max_marks=max_marks, remarks=optional_str(payload.get("remarks")))


@dataclass(frozen=True)
class GradeOutcome:
    student_id: int
    action: UpsertAction
    grade: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"studentId": self.student_id, "action": self.action.value}
        if self.grade:
            out["grade"] = self.grade
        if self.error:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class UploadGradesResult:
    course_id: int
    results: Sequence[GradeOutcome]
    skipped: Sequence[int] = ()

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": "Grades uploaded successfully",
            "results": [r.to_dict() for r in self.results],
            "skipped": list(self.skipped),
        }


@dataclass(frozen=True)
class StudentGradesReport:
    student_id: int
    grades: Sequence[GradeRecord]
    semester: Optional[int] = None
    gpa: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "success": True,
            "count": len(self.grades),
            "grades": [g.to_dict() for g in self.grades],
            "semester": self.semester,
            "gpa": self.gpa,
        }
