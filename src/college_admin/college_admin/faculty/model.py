from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..common.validators import optional_str, require_enum, require_non_empty
from ..core.enums import Department, Designation


@dataclass(frozen=True)
class FacultyProfile:
    """Domain entity: faculty profile, 1:1 with an identity.

    `assigned_course_ids` mirrors `Course.faculty_id`; CourseService keeps both sides in step.
    """

    faculty_id: int
    identity_id: int
    employee_id: str
    department: str
    designation: str
    assigned_course_ids: frozenset = field(default_factory=frozenset)
    specialization: Optional[str] = None
    qualification: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.faculty_id,
            "identityId": self.identity_id,
            "employeeId": self.employee_id,
            "department": self.department,
            "designation": self.designation,
            "assignedCourseIds": sorted(self.assigned_course_ids),
            "specialization": self.specialization,
            "qualification": self.qualification,
        }


@dataclass(frozen=True)
class FacultyRow:
    """Read-model: faculty joined with identity names."""

    faculty_id: int
    identity_id: int
    employee_id: str
    first_name: str
    last_name: str
    email: str
    department: str
    designation: str
    is_active: bool = True

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.faculty_id,
            "identityId": self.identity_id,
            "employeeId": self.employee_id,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "designation": self.designation,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class NewFacultyProfile:
    employee_id: str
    department: str
    designation: str = Designation.LECTURER.value
    specialization: Optional[str] = None
    qualification: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NewFacultyProfile":
        return cls(
            employee_id=require_non_empty(payload.get("employeeId"), "employeeId").upper(),
            department=require_enum(payload.get("department"), Department, "department").value,
            designation=require_enum(payload.get("designation") or Designation.LECTURER, Designation, "designation").value,
            specialization=optional_str(payload.get("specialization")),
            qualification=optional_str(payload.get("qualification")),
        )


def parse_faculty_changes(payload: dict[str, Any]) -> dict:
    columns: dict[str, object] = {}
    if "employeeId" in payload:
        columns["employee_id"] = require_non_empty(payload["employeeId"], "employeeId").upper()
    if "department" in payload:
        columns["department"] = require_enum(payload["department"], Department, "department").value
    if "designation" in payload:
        columns["designation"] = require_enum(payload["designation"], Designation, "designation").value
    for key, column in (("specialization", "specialization"), ("qualification", "qualification")):
        if key in payload:
            columns[column] = optional_str(payload[key])
    return columns
