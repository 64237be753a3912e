from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Identity


class IdentityRepository(Protocol):
    """Repository interface for identities.

    Note: services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, identity_id: int) -> Optional[Identity]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Identity]:
        raise NotImplementedError

    def create(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: Role,
        phone: Optional[str] = None,
    ) -> int:
        """Insert an identity; raises ConflictError when the email is taken."""

        raise NotImplementedError

    def update(self, identity_id: int, *, columns: dict) -> bool:
        raise NotImplementedError

    def set_active(self, identity_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete_by_id(self, identity_id: int) -> bool:
        raise NotImplementedError

    def list(
        self,
        *,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[Identity]:
        """Newest first."""

        raise NotImplementedError

    def count(self, *, role: Optional[Role] = None, search: Optional[str] = None) -> int:
        raise NotImplementedError
