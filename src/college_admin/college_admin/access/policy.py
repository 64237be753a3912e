"""Capability checks gating every mutation.

Services receive an explicit `Principal` and call `require(...)` before any
store write; nothing here reads Flask session state.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError


@dataclass(frozen=True)
class Principal:
    """Authenticated caller.

    `profile_id` is the student or faculty profile id for those roles, None for admins.
    """

    identity_id: int
    role: Role
    profile_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def faculty_id(self) -> Optional[int]:
        return self.profile_id if self.role == Role.FACULTY else None

    @property
    def student_id(self) -> Optional[int]:
        return self.profile_id if self.role == Role.STUDENT else None


class Action(str, Enum):
    MANAGE_IDENTITIES = "manage_identities"
    MANAGE_COURSES = "manage_courses"
    ENROLL_STUDENTS = "enroll_students"
    MANAGE_TIMETABLE = "manage_timetable"
    UPDATE_FACULTY_PROFILE = "update_faculty_profile"
    UPDATE_STUDENT_PROFILE = "update_student_profile"
    ADD_COURSE_MATERIAL = "add_course_material"
    MARK_ATTENDANCE = "mark_attendance"
    DELETE_ATTENDANCE = "delete_attendance"
    UPLOAD_GRADES = "upload_grades"
    DELETE_GRADE = "delete_grade"
    VIEW_COURSE_RECORDS = "view_course_records"
    VIEW_STUDENT_RECORDS = "view_student_records"
    VIEW_ANALYTICS = "view_analytics"


@dataclass(frozen=True)
class ResourceRef:
    """Ownership facts about the resource an action targets."""

    faculty_id: Optional[int] = None
    student_id: Optional[int] = None

    @classmethod
    def course(cls, course) -> "ResourceRef":
        return cls(faculty_id=course.faculty_id)

    @classmethod
    def student(cls, student_id: int) -> "ResourceRef":
        return cls(student_id=int(student_id))


_ADMIN_ONLY = frozenset(
    {
        Action.MANAGE_IDENTITIES,
        Action.MANAGE_COURSES,
        Action.ENROLL_STUDENTS,
        Action.MANAGE_TIMETABLE,
        Action.UPDATE_FACULTY_PROFILE,
        Action.DELETE_ATTENDANCE,
        Action.DELETE_GRADE,
        Action.VIEW_ANALYTICS,
    }
)


def _owns_course(principal: Principal, resource: Optional[ResourceRef]) -> bool:
    return (
        principal.role == Role.FACULTY
        and resource is not None
        and resource.faculty_id is not None
        and principal.profile_id is not None
        and int(resource.faculty_id) == int(principal.profile_id)
    )


def _is_student_self(principal: Principal, resource: Optional[ResourceRef]) -> bool:
    return (
        principal.role == Role.STUDENT
        and resource is not None
        and resource.student_id is not None
        and principal.profile_id is not None
        and int(resource.student_id) == int(principal.profile_id)
    )


def can_act(principal: Optional[Principal], action: Action, resource: Optional[ResourceRef] = None) -> bool:
    if principal is None:
        return False

    if action in _ADMIN_ONLY:
        return principal.is_admin

    if action == Action.MARK_ATTENDANCE:
        # Strict ownership: admins do not bypass this one.
        return _owns_course(principal, resource)

    if action in (Action.UPLOAD_GRADES, Action.ADD_COURSE_MATERIAL):
        return principal.is_admin or _owns_course(principal, resource)

    if action == Action.UPDATE_STUDENT_PROFILE:
        return principal.is_admin or _is_student_self(principal, resource)

    if action == Action.VIEW_COURSE_RECORDS:
        return principal.role in (Role.ADMIN, Role.FACULTY)

    if action == Action.VIEW_STUDENT_RECORDS:
        return principal.role in (Role.ADMIN, Role.FACULTY) or _is_student_self(principal, resource)

    return False


def require(principal: Optional[Principal], action: Action, resource: Optional[ResourceRef] = None) -> None:
    if not can_act(principal, action, resource):
        raise AuthorizationError(f"Not authorized to {action.value.replace('_', ' ')}")
