from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import MonthlyAttendance
from .repository import AnalyticsRepository


class MySQLAnalyticsRepository(AnalyticsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _pairs(self, sql: str) -> list[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql)
            return fetchall(cur)

    def students_per_department(self) -> dict[str, int]:
        rows = self._pairs(
            "SELECT department AS k, COUNT(*) AS n FROM students GROUP BY department ORDER BY n DESC, department ASC"
        )
        return {r["k"]: int(r["n"]) for r in rows}

    def attendance_status_counts(self) -> dict[str, int]:
        rows = self._pairs("SELECT status AS k, COUNT(*) AS n FROM attendance_records GROUP BY status")
        return {r["k"]: int(r["n"]) for r in rows}

    def attendance_by_month(self) -> Sequence[MonthlyAttendance]:
        rows = self._pairs(
            """
            SELECT DATE_FORMAT(attend_date, '%Y-%m') AS month,
                   COUNT(*) AS total,
                   SUM(status = 'present') AS present
            FROM attendance_records
            GROUP BY month
            ORDER BY month ASC
            """
        )
        return [MonthlyAttendance(month=r["month"], total=int(r["total"]), present=int(r["present"] or 0)) for r in rows]

    def grade_counts(self) -> dict[str, int]:
        rows = self._pairs("SELECT grade AS k, COUNT(*) AS n FROM grade_records GROUP BY grade")
        return {r["k"]: int(r["n"]) for r in rows}

    def average_percentage_by_exam(self) -> dict[str, float]:
        rows = self._pairs(
            """
            SELECT exam_type AS k, AVG(marks * 100 / max_marks) AS avg_pct
            FROM grade_records
            WHERE max_marks > 0
            GROUP BY exam_type
            """
        )
        return {r["k"]: float(r["avg_pct"] or 0) for r in rows}
