from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.validators import optional_str, require_email, require_enum, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    """Domain entity: an account.

    Note: Plain data object (no DB access code).
    """

    identity_id: int
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: Role
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.identity_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
            "phone": self.phone,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class NewAccount:
    """Validated registration / admin create-user request."""

    email: str
    password: str
    first_name: str
    last_name: str
    role: Role
    phone: Optional[str]
    profile: dict

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, default_role: Role = Role.STUDENT) -> "NewAccount":
        known = {"email", "password", "firstName", "lastName", "role", "phone"}
        return cls(
            email=require_email(payload.get("email")),
            password=require_min_length(payload.get("password"), "password", MIN_PASSWORD_LENGTH),
            first_name=require_non_empty(payload.get("firstName"), "firstName"),
            last_name=require_non_empty(payload.get("lastName"), "lastName"),
            role=require_enum(payload.get("role") or default_role, Role, "role"),
            phone=optional_str(payload.get("phone")),
            profile={k: v for k, v in payload.items() if k not in known},
        )


@dataclass(frozen=True)
class IdentityChanges:
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "IdentityChanges":
        return cls(
            email=require_email(payload["email"]) if "email" in payload else None,
            first_name=require_non_empty(payload["firstName"], "firstName") if "firstName" in payload else None,
            last_name=require_non_empty(payload["lastName"], "lastName") if "lastName" in payload else None,
            phone=optional_str(payload.get("phone")) if "phone" in payload else None,
        )

    def as_columns(self) -> dict:
        columns = {
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
        }
        return {k: v for k, v in columns.items() if v is not None}
