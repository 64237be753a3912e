from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_str, require_enum, require_non_empty, require_range
from ..core.constants import SEMESTER_RANGE
from ..core.enums import Department


@dataclass(frozen=True)
class StudentProfile:
    """Domain entity: student profile, 1:1 with an identity."""

    student_id: int
    identity_id: int
    roll_number: str
    department: str
    semester: int
    batch: str
    enrolled_course_ids: frozenset = field(default_factory=frozenset)
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "identityId": self.identity_id,
            "rollNumber": self.roll_number,
            "department": self.department,
            "semester": self.semester,
            "batch": self.batch,
            "enrolledCourseIds": sorted(self.enrolled_course_ids),
            "parentName": self.parent_name,
            "parentPhone": self.parent_phone,
            "address": self.address,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
        }


@dataclass(frozen=True)
class StudentRow:
    """Read-model: student joined with identity names (lists, rosters, summaries)."""

    student_id: int
    identity_id: int
    roll_number: str
    first_name: str
    last_name: str
    email: str
    department: str
    semester: int
    batch: str
    is_active: bool = True

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "identityId": self.identity_id,
            "rollNumber": self.roll_number,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "semester": self.semester,
            "batch": self.batch,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class NewStudentProfile:
    roll_number: str
    department: str
    semester: int
    batch: str
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NewStudentProfile":
        dob = payload.get("dateOfBirth")
        return cls(
            roll_number=require_non_empty(payload.get("rollNumber"), "rollNumber").upper(),
            department=require_enum(payload.get("department"), Department, "department").value,
            semester=require_range(payload.get("semester") or 1, "semester", *SEMESTER_RANGE),
            batch=require_non_empty(payload.get("batch"), "batch"),
            parent_name=optional_str(payload.get("parentName")),
            parent_phone=optional_str(payload.get("parentPhone")),
            address=optional_str(payload.get("address")),
            date_of_birth=parse_iso_date(dob, "dateOfBirth") if dob else None,
        )


# Fields a student may edit on their own profile; admins may also edit the academic ones.
SELF_EDITABLE_FIELDS = {
    "parentName": "parent_name",
    "parentPhone": "parent_phone",
    "address": "address",
    "dateOfBirth": "date_of_birth",
}
ADMIN_EDITABLE_FIELDS = {
    **SELF_EDITABLE_FIELDS,
    "rollNumber": "roll_number",
    "department": "department",
    "semester": "semester",
    "batch": "batch",
}


def parse_student_changes(payload: dict[str, Any], *, allowed: dict[str, str]) -> dict:
    """Validate a partial update into column -> value, ignoring fields outside `allowed`."""
    columns: dict[str, object] = {}
    for key, column in allowed.items():
        if key not in payload:
            continue
        value = payload[key]
        if column == "semester":
            columns[column] = require_range(value, "semester", *SEMESTER_RANGE)
        elif column == "department":
            columns[column] = require_enum(value, Department, "department").value
        elif column == "date_of_birth":
            columns[column] = parse_iso_date(value, "dateOfBirth") if value else None
        elif column in ("roll_number", "batch"):
            columns[column] = require_non_empty(value, key)
        else:
            columns[column] = optional_str(value)
    return columns
