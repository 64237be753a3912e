from __future__ import annotations

from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional

from mysql.connector import Error as MySQLError
from mysql.connector import errorcode

from ..core.exceptions import ConflictError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Borrow a connection, yield (conn, cursor), commit on success.

    Duplicate-key violations surface as ConflictError so services can turn a
    lost insert race into an update.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except MySQLError as exc:
        conn.rollback()
        if exc.errno == errorcode.ER_DUP_ENTRY:
            raise ConflictError(exc.msg) from exc
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values) -> str:
    """Placeholder list for `IN (...)`; callers must pass a non-empty sequence."""
    return ", ".join(["%s"] * len(values))


def to_clock_time(value: Any) -> Optional[time]:
    """Coerce a TIME column to `datetime.time`.

    The C extension hands back `timedelta`, the pure-Python connector may hand
    back `time` or an `HH:MM[:SS]` string depending on version.
    """
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        minutes, seconds = divmod(int(value.total_seconds()) % 86400, 60)
        return time(minutes // 60, minutes % 60, seconds)
    if isinstance(value, str):
        try:
            parts = [int(p) for p in value.strip().split(":")]
        except ValueError:
            raise ValueError(f"Invalid TIME value: {value!r}") from None
        if not 2 <= len(parts) <= 3:
            raise ValueError(f"Invalid TIME value: {value!r}")
        return time(*parts)
    raise TypeError(f"Unsupported TIME value type: {type(value).__name__}")
