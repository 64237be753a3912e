from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.validators import optional_str, require_enum, require_int, require_non_empty, require_range
from ..core.constants import CREDIT_RANGE, SEMESTER_RANGE
from ..core.enums import Department


@dataclass(frozen=True)
class CourseMaterial:
    title: str
    file_url: str
    uploaded_at: datetime
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "fileUrl": self.file_url,
            "uploadedAt": self.uploaded_at.isoformat(),
        }


@dataclass(frozen=True)
class Course:
    """Domain entity: catalog course.

    `total_classes_held` is derived from the attendance ledger (distinct marked dates).
    """

    course_id: int
    course_code: str
    course_name: str
    department: str
    semester: int
    credits: Optional[int]
    faculty_id: Optional[int] = None
    total_classes_held: int = 0
    is_active: bool = True
    materials: tuple = ()

    def to_dict(self) -> dict:
        return {
            "id": self.course_id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "department": self.department,
            "semester": self.semester,
            "credits": self.credits,
            "facultyId": self.faculty_id,
            "totalClassesHeld": self.total_classes_held,
            "isActive": self.is_active,
            "materials": [m.to_dict() for m in self.materials],
        }

    def brief(self) -> dict:
        return {"id": self.course_id, "courseCode": self.course_code, "courseName": self.course_name}


@dataclass(frozen=True)
class NewCourse:
    course_code: str
    course_name: str
    department: str
    semester: int
    credits: int
    faculty_id: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NewCourse":
        faculty = payload.get("faculty", payload.get("facultyId"))
        return cls(
            course_code=require_non_empty(payload.get("courseCode"), "courseCode").upper(),
            course_name=require_non_empty(payload.get("courseName"), "courseName"),
            department=require_enum(payload.get("department"), Department, "department").value,
            semester=require_range(payload.get("semester"), "semester", *SEMESTER_RANGE),
            credits=require_range(payload.get("credits"), "credits", *CREDIT_RANGE),
            faculty_id=require_int(faculty, "faculty") if faculty not in (None, "") else None,
        )


@dataclass(frozen=True)
class CourseChanges:
    """Partial update. `faculty_id` is only applied when `faculty_given` is set."""

    columns: dict
    faculty_given: bool = False
    faculty_id: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CourseChanges":
        columns: dict[str, object] = {}
        if "courseCode" in payload:
            columns["course_code"] = require_non_empty(payload["courseCode"], "courseCode").upper()
        if "courseName" in payload:
            columns["course_name"] = require_non_empty(payload["courseName"], "courseName")
        if "department" in payload:
            columns["department"] = require_enum(payload["department"], Department, "department").value
        if "semester" in payload:
            columns["semester"] = require_range(payload["semester"], "semester", *SEMESTER_RANGE)
        if "credits" in payload:
            columns["credits"] = require_range(payload["credits"], "credits", *CREDIT_RANGE)
        if "isActive" in payload:
            columns["is_active"] = bool(payload["isActive"])

        key = "faculty" if "faculty" in payload else ("facultyId" if "facultyId" in payload else None)
        if key is None:
            return cls(columns=columns)
        raw = payload[key]
        return cls(
            columns=columns,
            faculty_given=True,
            faculty_id=require_int(raw, "faculty") if raw not in (None, "") else None,
        )


@dataclass(frozen=True)
class NewMaterial:
    title: str
    file_url: str
    description: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NewMaterial":
        return cls(
            title=require_non_empty(payload.get("title"), "title"),
            file_url=require_non_empty(payload.get("fileUrl"), "fileUrl"),
            description=optional_str(payload.get("description")),
        )
