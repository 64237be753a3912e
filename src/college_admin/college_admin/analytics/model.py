from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..users.model import Identity


@dataclass(frozen=True)
class MonthlyAttendance:
    month: str  # YYYY-MM
    total: int
    present: int

    def to_dict(self) -> dict:
        return {"month": self.month, "total": self.total, "present": self.present}


@dataclass(frozen=True)
class Overview:
    total_students: int
    total_faculty: int
    total_courses: int
    total_users: int
    students_per_department: dict = field(default_factory=dict)
    recent_users: Sequence[Identity] = ()

    def to_dict(self) -> dict:
        return {
            "success": True,
            "stats": {
                "totalStudents": self.total_students,
                "totalFaculty": self.total_faculty,
                "totalCourses": self.total_courses,
                "totalUsers": self.total_users,
            },
            "departmentStats": [
                {"department": dept, "count": n} for dept, n in self.students_per_department.items()
            ],
            "recentUsers": [u.to_dict() for u in self.recent_users],
        }


@dataclass(frozen=True)
class AttendanceAnalytics:
    status_counts: dict
    monthly: Sequence[MonthlyAttendance]

    def to_dict(self) -> dict:
        return {
            "success": True,
            "statusStats": [{"status": s, "count": n} for s, n in self.status_counts.items()],
            "monthlyTrend": [m.to_dict() for m in self.monthly],
        }


@dataclass(frozen=True)
class GradeAnalytics:
    grade_distribution: dict
    average_by_exam: dict

    def to_dict(self) -> dict:
        return {
            "success": True,
            "gradeDistribution": [{"grade": g, "count": n} for g, n in self.grade_distribution.items()],
            "averageByExam": [
                {"examType": exam, "averagePercentage": pct} for exam, pct in self.average_by_exam.items()
            ],
        }
