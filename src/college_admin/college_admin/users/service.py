from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..access.policy import Action, Principal, require
from ..common.paging import Page, PageRequest
from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..courses.repository import CourseRepository
from ..faculty.model import NewFacultyProfile
from ..faculty.repository import FacultyRepository
from ..students.model import NewStudentProfile
from ..students.repository import StudentRepository
from .model import Identity, IdentityChanges, NewAccount
from .repository import IdentityRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountView:
    identity: Identity
    profile: Optional[object] = None

    def to_dict(self) -> dict:
        return {
            "user": self.identity.to_dict(),
            "profile": self.profile.to_dict() if self.profile is not None else None,
        }


class AuthService:
    """Use case: authenticate an identity (login) into an explicit Principal."""

    def __init__(self, identities: IdentityRepository, students: StudentRepository, faculty: FacultyRepository):
        self._identities = identities
        self._students = students
        self._faculty = faculty

    def authenticate(self, email: str, password: str) -> Principal:
        email = require_non_empty(email, "email").lower()
        identity = self._identities.get_by_email(email)
        if not identity or not identity.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(identity.password_hash, password or "")
        except (TypeError, ValueError):
            # e.g. placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return self.principal_for(identity)

    def principal_for(self, identity: Identity) -> Principal:
        profile_id: Optional[int] = None
        if identity.role == Role.STUDENT:
            student = self._students.get_by_identity(identity.identity_id)
            profile_id = student.student_id if student else None
        elif identity.role == Role.FACULTY:
            faculty = self._faculty.get_by_identity(identity.identity_id)
            profile_id = faculty.faculty_id if faculty else None
        return Principal(identity_id=identity.identity_id, role=identity.role, profile_id=profile_id)


class UserService:
    """Use cases: registration and identity management (admin)."""

    def __init__(
        self,
        identities: IdentityRepository,
        students: StudentRepository,
        faculty: FacultyRepository,
        courses: CourseRepository,
    ):
        self._identities = identities
        self._students = students
        self._faculty = faculty
        self._courses = courses

    def _profile_for(self, identity: Identity):
        if identity.role == Role.STUDENT:
            return self._students.get_by_identity(identity.identity_id)
        if identity.role == Role.FACULTY:
            return self._faculty.get_by_identity(identity.identity_id)
        return None

    def _create_account(self, account: NewAccount) -> AccountView:
        # Validate the role profile before writing anything.
        student_profile = NewStudentProfile.from_payload(account.profile) if account.role == Role.STUDENT else None
        faculty_profile = NewFacultyProfile.from_payload(account.profile) if account.role == Role.FACULTY else None

        identity_id = self._identities.create(
            email=account.email,
            password_hash=generate_password_hash(account.password),
            first_name=account.first_name,
            last_name=account.last_name,
            role=account.role,
            phone=account.phone,
        )
        try:
            if student_profile is not None:
                self._students.create(identity_id=identity_id, profile=student_profile)
            elif faculty_profile is not None:
                self._faculty.create(identity_id=identity_id, profile=faculty_profile)
        except Exception:
            # Do not leave an identity without its role profile.
            self._identities.delete_by_id(identity_id)
            raise

        identity = self._identities.get_by_id(identity_id)
        logger.info("Created %s account %s (id=%s)", account.role.value, account.email, identity_id)
        return AccountView(identity=identity, profile=self._profile_for(identity))

    def register(self, account: NewAccount) -> AccountView:
        if account.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot self-register")
        return self._create_account(account)

    def create_user(self, principal: Principal, account: NewAccount) -> AccountView:
        require(principal, Action.MANAGE_IDENTITIES)
        return self._create_account(account)

    def get_identity(self, identity_id: int) -> Identity:
        identity = self._identities.get_by_id(int(identity_id))
        if not identity:
            raise NotFoundError("User not found")
        return identity

    def get_account(self, identity_id: int) -> AccountView:
        identity = self.get_identity(identity_id)
        return AccountView(identity=identity, profile=self._profile_for(identity))

    def get_user(self, principal: Principal, identity_id: int) -> AccountView:
        require(principal, Action.MANAGE_IDENTITIES)
        return self.get_account(identity_id)

    def list_users(
        self,
        principal: Principal,
        *,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        paging: PageRequest = PageRequest(),
    ) -> Page:
        require(principal, Action.MANAGE_IDENTITIES)
        items = self._identities.list(role=role, search=search, offset=paging.offset, limit=paging.limit)
        return Page(items=items, total=self._identities.count(role=role, search=search), request=paging)

    def update_user(self, principal: Principal, identity_id: int, changes: IdentityChanges) -> Identity:
        require(principal, Action.MANAGE_IDENTITIES)
        self.get_identity(identity_id)
        self._identities.update(int(identity_id), columns=changes.as_columns())
        return self.get_identity(identity_id)

    def toggle_status(self, principal: Principal, identity_id: int) -> Identity:
        require(principal, Action.MANAGE_IDENTITIES)
        identity = self.get_identity(identity_id)
        self._identities.set_active(identity.identity_id, is_active=not identity.is_active)
        logger.info("Identity %s active=%s", identity.identity_id, not identity.is_active)
        return self.get_identity(identity_id)

    def delete_user(self, principal: Principal, identity_id: int) -> None:
        require(principal, Action.MANAGE_IDENTITIES)
        identity = self.get_identity(identity_id)
        if identity.identity_id == principal.identity_id:
            raise ValidationError("You cannot delete your own account")

        if identity.role == Role.STUDENT:
            self._students.delete_by_identity(identity.identity_id)
        elif identity.role == Role.FACULTY:
            faculty = self._faculty.get_by_identity(identity.identity_id)
            if faculty:
                for course in self._courses.list_for_faculty(faculty.faculty_id):
                    self._courses.set_faculty(course.course_id, None)
            self._faculty.delete_by_identity(identity.identity_id)

        if not self._identities.delete_by_id(identity.identity_id):
            raise NotFoundError("User not found")
        logger.info("Deleted identity %s (%s)", identity.identity_id, identity.role.value)
