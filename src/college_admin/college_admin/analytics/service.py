from __future__ import annotations

from typing import Optional

from ..access.policy import Action, Principal, require
from ..common.numbers import round2
from ..core.constants import RECENT_IDENTITIES_LIMIT
from ..core.enums import AttendanceStatus, ExamType
from ..courses.repository import CourseRepository
from ..faculty.repository import FacultyRepository
from ..grades.scale.base import GradingScale
from ..grades.scale.standard_scale import StandardGradingScale
from ..students.repository import StudentRepository
from ..users.repository import IdentityRepository
from .model import AttendanceAnalytics, GradeAnalytics, Overview
from .repository import AnalyticsRepository


class AnalyticsService:
    """Admin dashboards. Read-only."""

    def __init__(
        self,
        analytics: AnalyticsRepository,
        identities: IdentityRepository,
        students: StudentRepository,
        faculty: FacultyRepository,
        courses: CourseRepository,
        *,
        scale: Optional[GradingScale] = None,
    ):
        self._analytics = analytics
        self._identities = identities
        self._students = students
        self._faculty = faculty
        self._courses = courses
        self._scale = scale or StandardGradingScale()

    def overview(self, principal: Principal) -> Overview:
        require(principal, Action.VIEW_ANALYTICS)
        return Overview(
            total_students=self._students.count(),
            total_faculty=self._faculty.count(),
            total_courses=self._courses.count(),
            total_users=self._identities.count(),
            students_per_department=self._analytics.students_per_department(),
            recent_users=self._identities.list(offset=0, limit=RECENT_IDENTITIES_LIMIT),
        )

    def attendance_analytics(self, principal: Principal) -> AttendanceAnalytics:
        require(principal, Action.VIEW_ANALYTICS)
        counts = self._analytics.attendance_status_counts()
        # Every status is reported, including those with no records.
        status_counts = {s.value: int(counts.get(s.value, 0)) for s in AttendanceStatus}
        return AttendanceAnalytics(status_counts=status_counts, monthly=self._analytics.attendance_by_month())

    def grade_analytics(self, principal: Principal) -> GradeAnalytics:
        require(principal, Action.VIEW_ANALYTICS)
        counts = self._analytics.grade_counts()
        distribution = {letter: int(counts.get(letter, 0)) for letter in self._scale.letters}
        averages = self._analytics.average_percentage_by_exam()
        average_by_exam = {e.value: round2(averages[e.value]) for e in ExamType if e.value in averages}
        return GradeAnalytics(grade_distribution=distribution, average_by_exam=average_by_exam)
