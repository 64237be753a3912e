from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Identity
from .repository import IdentityRepository

_COLUMNS = "identity_id, email, password_hash, first_name, last_name, role, phone, is_active, created_at"
_UPDATABLE = ("email", "first_name", "last_name", "phone")


def _to_identity(r: dict) -> Identity:
    return Identity(
        identity_id=int(r["identity_id"]),
        email=r["email"],
        password_hash=r["password_hash"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        role=Role(r["role"]),
        phone=r.get("phone"),
        is_active=bool(r.get("is_active", 1)),
        created_at=r.get("created_at"),
    )


def _filters(role: Optional[Role], search: Optional[str]) -> tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []
    if role is not None:
        clauses.append("role=%s")
        params.append(role.value)
    if search:
        like = f"%{search}%"
        clauses.append("(first_name LIKE %s OR last_name LIKE %s OR email LIKE %s)")
        params.extend([like, like, like])
    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


class MySQLIdentityRepository(IdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, identity_id: int) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM identities WHERE identity_id=%s", (int(identity_id),))
            r = fetchone(cur)
            return _to_identity(r) if r else None

    def get_by_email(self, email: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM identities WHERE email=%s", (email.lower(),))
            r = fetchone(cur)
            return _to_identity(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO identities(email, password_hash, first_name, last_name, role, phone, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (email.lower(), password_hash, first_name, last_name, role.value, phone),
            )
            return int(cur.lastrowid)

    def update(self, identity_id: int, *, columns: dict) -> bool:
        columns = {k: v for k, v in columns.items() if k in _UPDATABLE}
        if not columns:
            return True
        assignments = ", ".join(f"{k}=%s" for k in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE identities SET {assignments} WHERE identity_id=%s",
                (*columns.values(), int(identity_id)),
            )
            return cur.rowcount >= 0

    def set_active(self, identity_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE identities SET is_active=%s WHERE identity_id=%s", (1 if is_active else 0, int(identity_id)))
            return cur.rowcount > 0

    def delete_by_id(self, identity_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM identities WHERE identity_id=%s", (int(identity_id),))
            return cur.rowcount > 0

    def list(
        self,
        *,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[Identity]:
        where, params = _filters(role, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM identities
                {where}
                ORDER BY created_at DESC, identity_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return [_to_identity(r) for r in fetchall(cur)]

    def count(self, *, role: Optional[Role] = None, search: Optional[str] = None) -> int:
        where, params = _filters(role, search)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM identities {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0
