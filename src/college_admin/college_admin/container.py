from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .analytics.mysql_analytics_repository import MySQLAnalyticsRepository
from .analytics.repository import AnalyticsRepository
from .analytics.service import AnalyticsService
from .attendance.metrics import AttendancePolicy
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_COURSE_CREDITS, DEFAULT_DETAIN_THRESHOLD
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CourseService
from .database.connection import DBConfig, DatabaseConnection
from .faculty.mysql_faculty_repository import MySQLFacultyRepository
from .faculty.repository import FacultyRepository
from .faculty.service import FacultyService
from .grades.mysql_grade_repository import MySQLGradeRepository
from .grades.repository import GradeRepository
from .grades.scale.standard_scale import StandardGradingScale
from .grades.service import GradeService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .timetable.mysql_timetable_repository import MySQLTimetableRepository
from .timetable.repository import TimetableRepository
from .timetable.service import TimetableService
from .users.mysql_identity_repository import MySQLIdentityRepository
from .users.repository import IdentityRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    identities_repo: IdentityRepository
    students_repo: StudentRepository
    faculty_repo: FacultyRepository
    courses_repo: CourseRepository
    attendance_repo: AttendanceRepository
    grades_repo: GradeRepository
    timetable_repo: TimetableRepository
    analytics_repo: AnalyticsRepository

    auth_service: AuthService
    user_service: UserService
    student_service: StudentService
    faculty_service: FacultyService
    course_service: CourseService
    attendance_service: AttendanceService
    grade_service: GradeService
    timetable_service: TimetableService
    analytics_service: AnalyticsService

    conn: Optional[DatabaseConnection] = None


def wire_container(
    *,
    identities_repo: IdentityRepository,
    students_repo: StudentRepository,
    faculty_repo: FacultyRepository,
    courses_repo: CourseRepository,
    attendance_repo: AttendanceRepository,
    grades_repo: GradeRepository,
    timetable_repo: TimetableRepository,
    analytics_repo: AnalyticsRepository,
    detain_threshold: float = DEFAULT_DETAIN_THRESHOLD,
    default_credits: int = DEFAULT_COURSE_CREDITS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    scale = StandardGradingScale()

    return Container(
        identities_repo=identities_repo,
        students_repo=students_repo,
        faculty_repo=faculty_repo,
        courses_repo=courses_repo,
        attendance_repo=attendance_repo,
        grades_repo=grades_repo,
        timetable_repo=timetable_repo,
        analytics_repo=analytics_repo,
        auth_service=AuthService(identities_repo, students_repo, faculty_repo),
        user_service=UserService(identities_repo, students_repo, faculty_repo, courses_repo),
        student_service=StudentService(students_repo, courses_repo),
        faculty_service=FacultyService(faculty_repo, courses_repo, students_repo),
        course_service=CourseService(courses_repo, faculty_repo, students_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            courses_repo,
            students_repo,
            policy=AttendancePolicy(detain_threshold=float(detain_threshold)),
        ),
        grade_service=GradeService(
            grades_repo,
            courses_repo,
            students_repo,
            scale=scale,
            default_credits=int(default_credits),
        ),
        timetable_service=TimetableService(timetable_repo, courses_repo, faculty_repo),
        analytics_service=AnalyticsService(
            analytics_repo,
            identities_repo,
            students_repo,
            faculty_repo,
            courses_repo,
            scale=scale,
        ),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    detain_threshold: float = DEFAULT_DETAIN_THRESHOLD,
    default_credits: int = DEFAULT_COURSE_CREDITS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        identities_repo=MySQLIdentityRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        faculty_repo=MySQLFacultyRepository(conn),
        courses_repo=MySQLCourseRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        grades_repo=MySQLGradeRepository(conn),
        timetable_repo=MySQLTimetableRepository(conn),
        analytics_repo=MySQLAnalyticsRepository(conn),
        detain_threshold=detain_threshold,
        default_credits=default_credits,
        conn=conn,
    )
