from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, Optional

import pytest
from werkzeug.security import generate_password_hash

from src.college_admin.college_admin.access.policy import Principal
from src.college_admin.college_admin.analytics.model import MonthlyAttendance
from src.college_admin.college_admin.attendance.model import AttendanceRecord
from src.college_admin.college_admin.container import wire_container
from src.college_admin.college_admin.core.enums import AttendanceStatus, Role
from src.college_admin.college_admin.core.exceptions import ConflictError
from src.college_admin.college_admin.courses.model import Course, NewCourse
from src.college_admin.college_admin.faculty.model import FacultyProfile, FacultyRow, NewFacultyProfile
from src.college_admin.college_admin.grades.model import GradeDraft, GradeRecord
from src.college_admin.college_admin.students.model import NewStudentProfile, StudentProfile, StudentRow
from src.college_admin.college_admin.timetable.model import SlotDraft, TimetableSlot
from src.college_admin.college_admin.users.model import Identity


def _matches(search: Optional[str], *values: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(needle in (v or "").lower() for v in values)


class InMemoryIdentities:
    def __init__(self):
        self.rows: dict[int, Identity] = {}
        self._id = 0

    def get_by_id(self, identity_id: int) -> Optional[Identity]:
        return self.rows.get(int(identity_id))

    def get_by_email(self, email: str) -> Optional[Identity]:
        return next((i for i in self.rows.values() if i.email == email.lower()), None)

    def create(self, *, email, password_hash, first_name, last_name, role, phone=None) -> int:
        if self.get_by_email(email):
            raise ConflictError(f"Duplicate entry '{email}' for key 'uq_identities_email'")
        self._id += 1
        self.rows[self._id] = Identity(
            identity_id=self._id,
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
        )
        return self._id

    def update(self, identity_id: int, *, columns: dict) -> bool:
        if "email" in columns:
            other = self.get_by_email(columns["email"])
            if other and other.identity_id != identity_id:
                raise ConflictError("Duplicate email")
        self.rows[identity_id] = replace(self.rows[identity_id], **columns)
        return True

    def set_active(self, identity_id: int, *, is_active: bool) -> bool:
        self.rows[identity_id] = replace(self.rows[identity_id], is_active=is_active)
        return True

    def delete_by_id(self, identity_id: int) -> bool:
        return self.rows.pop(int(identity_id), None) is not None

    def _filtered(self, role, search):
        return [
            i
            for i in self.rows.values()
            if (role is None or i.role == role) and _matches(search, i.first_name, i.last_name, i.email)
        ]

    def list(self, *, role=None, search=None, offset=0, limit=10):
        items = sorted(self._filtered(role, search), key=lambda i: i.identity_id, reverse=True)
        return items[offset : offset + limit]

    def count(self, *, role=None, search=None) -> int:
        return len(self._filtered(role, search))


class InMemoryStudents:
    def __init__(self, identities: InMemoryIdentities):
        self._identities = identities
        self.rows: dict[int, StudentProfile] = {}
        self._id = 0

    def get_by_id(self, student_id: int) -> Optional[StudentProfile]:
        return self.rows.get(int(student_id))

    def get_by_identity(self, identity_id: int) -> Optional[StudentProfile]:
        return next((s for s in self.rows.values() if s.identity_id == int(identity_id)), None)

    def create(self, *, identity_id: int, profile: NewStudentProfile) -> int:
        if self.get_by_identity(identity_id) or any(s.roll_number == profile.roll_number for s in self.rows.values()):
            raise ConflictError(f"Duplicate entry '{profile.roll_number}' for key 'uq_students_roll'")
        self._id += 1
        self.rows[self._id] = StudentProfile(
            student_id=self._id,
            identity_id=identity_id,
            roll_number=profile.roll_number,
            department=profile.department,
            semester=profile.semester,
            batch=profile.batch,
            parent_name=profile.parent_name,
            parent_phone=profile.parent_phone,
            address=profile.address,
            date_of_birth=profile.date_of_birth,
        )
        return self._id

    def update(self, student_id: int, *, columns: dict) -> bool:
        self.rows[student_id] = replace(self.rows[student_id], **columns)
        return True

    def delete_by_identity(self, identity_id: int) -> bool:
        student = self.get_by_identity(identity_id)
        if not student:
            return False
        del self.rows[student.student_id]
        return True

    def enroll(self, student_id: int, course_ids: Iterable[int]) -> int:
        student = self.rows[student_id]
        new = {int(c) for c in course_ids} - student.enrolled_course_ids
        self.rows[student_id] = replace(student, enrolled_course_ids=student.enrolled_course_ids | new)
        return len(new)

    def unenroll_course(self, course_id: int) -> int:
        pulled = 0
        for sid, student in list(self.rows.items()):
            if course_id in student.enrolled_course_ids:
                self.rows[sid] = replace(student, enrolled_course_ids=student.enrolled_course_ids - {course_id})
                pulled += 1
        return pulled

    def _row(self, s: StudentProfile) -> StudentRow:
        identity = self._identities.get_by_id(s.identity_id)
        return StudentRow(
            student_id=s.student_id,
            identity_id=s.identity_id,
            roll_number=s.roll_number,
            first_name=identity.first_name if identity else "",
            last_name=identity.last_name if identity else "",
            email=identity.email if identity else "",
            department=s.department,
            semester=s.semester,
            batch=s.batch,
            is_active=identity.is_active if identity else False,
        )

    def _filtered(self, department, semester, batch, search):
        rows = [self._row(s) for s in self.rows.values()]
        return sorted(
            (
                r
                for r in rows
                if (not department or r.department == department)
                and (semester is None or r.semester == semester)
                and (not batch or r.batch == batch)
                and _matches(search, r.roll_number, r.first_name, r.last_name, r.email)
            ),
            key=lambda r: r.roll_number,
        )

    def list_rows(self, *, department=None, semester=None, batch=None, search=None, offset=0, limit=10):
        return self._filtered(department, semester, batch, search)[offset : offset + limit]

    def count(self, *, department=None, semester=None, batch=None, search=None) -> int:
        return len(self._filtered(department, semester, batch, search))

    def rows_for_courses(self, course_ids: Iterable[int]):
        wanted = {int(c) for c in course_ids}
        hits = [self._row(s) for s in self.rows.values() if s.enrolled_course_ids & wanted]
        return sorted(hits, key=lambda r: r.roll_number)


class InMemoryFaculty:
    def __init__(self, identities: InMemoryIdentities):
        self._identities = identities
        self.rows: dict[int, FacultyProfile] = {}
        self._id = 0

    def get_by_id(self, faculty_id: int) -> Optional[FacultyProfile]:
        return self.rows.get(int(faculty_id))

    def get_by_identity(self, identity_id: int) -> Optional[FacultyProfile]:
        return next((f for f in self.rows.values() if f.identity_id == int(identity_id)), None)

    def create(self, *, identity_id: int, profile: NewFacultyProfile) -> int:
        if self.get_by_identity(identity_id) or any(f.employee_id == profile.employee_id for f in self.rows.values()):
            raise ConflictError(f"Duplicate entry '{profile.employee_id}' for key 'uq_faculty_employee'")
        self._id += 1
        self.rows[self._id] = FacultyProfile(
            faculty_id=self._id,
            identity_id=identity_id,
            employee_id=profile.employee_id,
            department=profile.department,
            designation=profile.designation,
            specialization=profile.specialization,
            qualification=profile.qualification,
        )
        return self._id

    def update(self, faculty_id: int, *, columns: dict) -> bool:
        self.rows[faculty_id] = replace(self.rows[faculty_id], **columns)
        return True

    def delete_by_identity(self, identity_id: int) -> bool:
        faculty = self.get_by_identity(identity_id)
        if not faculty:
            return False
        del self.rows[faculty.faculty_id]
        return True

    def add_course(self, faculty_id: int, course_id: int) -> None:
        f = self.rows[faculty_id]
        self.rows[faculty_id] = replace(f, assigned_course_ids=f.assigned_course_ids | {int(course_id)})

    def remove_course(self, faculty_id: int, course_id: int) -> None:
        f = self.rows.get(faculty_id)
        if f:
            self.rows[faculty_id] = replace(f, assigned_course_ids=f.assigned_course_ids - {int(course_id)})

    def list_assignments(self) -> set[tuple[int, int]]:
        return {(f.faculty_id, c) for f in self.rows.values() for c in f.assigned_course_ids}

    def _filtered(self, department, designation, search):
        rows = []
        for f in self.rows.values():
            identity = self._identities.get_by_id(f.identity_id)
            rows.append(
                FacultyRow(
                    faculty_id=f.faculty_id,
                    identity_id=f.identity_id,
                    employee_id=f.employee_id,
                    first_name=identity.first_name,
                    last_name=identity.last_name,
                    email=identity.email,
                    department=f.department,
                    designation=f.designation,
                    is_active=identity.is_active,
                )
            )
        return sorted(
            (
                r
                for r in rows
                if (not department or r.department == department)
                and (not designation or r.designation == designation)
                and _matches(search, r.employee_id, r.first_name, r.last_name, r.email)
            ),
            key=lambda r: r.employee_id,
        )

    def list_rows(self, *, department=None, designation=None, search=None, offset=0, limit=10):
        return self._filtered(department, designation, search)[offset : offset + limit]

    def count(self, *, department=None, designation=None, search=None) -> int:
        return len(self._filtered(department, designation, search))


class InMemoryCourses:
    def __init__(self, students: InMemoryStudents):
        self._students = students
        self.rows: dict[int, Course] = {}
        self._id = 0

    def get_by_id(self, course_id: int) -> Optional[Course]:
        return self.rows.get(int(course_id))

    def get_many(self, course_ids: Iterable[int]) -> dict[int, Course]:
        return {int(c): self.rows[int(c)] for c in course_ids if int(c) in self.rows}

    def create(self, course: NewCourse) -> int:
        if any(c.course_code == course.course_code for c in self.rows.values()):
            raise ConflictError(f"Duplicate entry '{course.course_code}' for key 'uq_courses_code'")
        self._id += 1
        self.rows[self._id] = Course(
            course_id=self._id,
            course_code=course.course_code,
            course_name=course.course_name,
            department=course.department,
            semester=course.semester,
            credits=course.credits,
            faculty_id=course.faculty_id,
        )
        return self._id

    def update(self, course_id: int, *, columns: dict) -> bool:
        self.rows[course_id] = replace(self.rows[course_id], **columns)
        return True

    def set_faculty(self, course_id: int, faculty_id: Optional[int]) -> bool:
        self.rows[course_id] = replace(self.rows[course_id], faculty_id=faculty_id)
        return True

    def delete(self, course_id: int) -> bool:
        return self.rows.pop(int(course_id), None) is not None

    def add_material(self, course_id: int, material) -> bool:
        course = self.rows[course_id]
        self.rows[course_id] = replace(course, materials=course.materials + (material,))
        return True

    def set_total_classes(self, course_id: int, total: int) -> bool:
        self.rows[course_id] = replace(self.rows[course_id], total_classes_held=int(total))
        return True

    def _filtered(self, department, semester, search):
        return sorted(
            (
                c
                for c in self.rows.values()
                if c.is_active
                and (not department or c.department == department)
                and (semester is None or c.semester == semester)
                and _matches(search, c.course_code, c.course_name)
            ),
            key=lambda c: (c.semester, c.course_code),
        )

    def list(self, *, department=None, semester=None, search=None, offset=0, limit=20):
        return self._filtered(department, semester, search)[offset : offset + limit]

    def count(self, *, department=None, semester=None, search=None) -> int:
        return len(self._filtered(department, semester, search))

    def list_for_faculty(self, faculty_id: int):
        return sorted((c for c in self.rows.values() if c.faculty_id == faculty_id), key=lambda c: c.course_code)

    def faculty_links(self) -> set[tuple[int, int]]:
        return {(c.faculty_id, c.course_id) for c in self.rows.values() if c.faculty_id is not None}

    def count_enrolled(self, course_id: int) -> int:
        return len(self._students.rows_for_courses([course_id]))


class InMemoryAttendance:
    """Enforces the (student, course, date) natural key like the UNIQUE index does."""

    def __init__(self):
        self.rows: dict[int, AttendanceRecord] = {}
        self._id = 0

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.rows.get(int(attendance_id))

    def get_for_key(self, *, student_id: int, course_id: int, attend_date: date) -> Optional[AttendanceRecord]:
        return next(
            (
                r
                for r in self.rows.values()
                if (r.student_id, r.course_id, r.attend_date) == (student_id, course_id, attend_date)
            ),
            None,
        )

    def create(self, *, student_id, course_id, attend_date, status, marked_by, remarks=None) -> int:
        if self.get_for_key(student_id=student_id, course_id=course_id, attend_date=attend_date):
            raise ConflictError("Duplicate entry for key 'uq_attendance_natural'")
        self._id += 1
        self.rows[self._id] = AttendanceRecord(
            attendance_id=self._id,
            student_id=student_id,
            course_id=course_id,
            attend_date=attend_date,
            status=status,
            marked_by=marked_by,
            remarks=remarks,
        )
        return self._id

    def update(self, attendance_id: int, *, status, remarks=None) -> bool:
        self.rows[attendance_id] = replace(self.rows[attendance_id], status=status, remarks=remarks)
        return True

    def delete(self, attendance_id: int) -> bool:
        return self.rows.pop(int(attendance_id), None) is not None

    def list_for_student(self, student_id: int, *, course_id=None):
        hits = [
            r
            for r in self.rows.values()
            if r.student_id == student_id and (course_id is None or r.course_id == course_id)
        ]
        return sorted(hits, key=lambda r: (r.attend_date, r.attendance_id), reverse=True)

    def list_for_course(self, course_id: int, *, start=None, end=None):
        hits = [
            r
            for r in self.rows.values()
            if r.course_id == course_id
            and (start is None or r.attend_date >= start)
            and (end is None or r.attend_date <= end)
        ]
        return sorted(hits, key=lambda r: (-r.attend_date.toordinal(), r.student_id))

    def count_distinct_dates(self, course_id: int) -> int:
        return len({r.attend_date for r in self.rows.values() if r.course_id == course_id})


class InMemoryGrades:
    """Enforces the (student, course, exam type, academic year) natural key."""

    def __init__(self):
        self.rows: dict[int, GradeRecord] = {}
        self._id = 0

    def get_by_id(self, grade_id: int) -> Optional[GradeRecord]:
        return self.rows.get(int(grade_id))

    def get_for_key(self, *, student_id, course_id, exam_type, academic_year) -> Optional[GradeRecord]:
        key = (student_id, course_id, exam_type, academic_year)
        return next(
            (g for g in self.rows.values() if (g.student_id, g.course_id, g.exam_type, g.academic_year) == key),
            None,
        )

    def create(self, draft: GradeDraft) -> int:
        if self.get_for_key(
            student_id=draft.student_id,
            course_id=draft.course_id,
            exam_type=draft.exam_type,
            academic_year=draft.academic_year,
        ):
            raise ConflictError("Duplicate entry for key 'uq_grades_natural'")
        self._id += 1
        self.rows[self._id] = GradeRecord(grade_id=self._id, **draft.__dict__)
        return self._id

    def update_marks(self, grade_id: int, *, marks, max_marks, grade, uploaded_by, remarks=None) -> bool:
        self.rows[grade_id] = replace(
            self.rows[grade_id], marks=marks, max_marks=max_marks, grade=grade, uploaded_by=uploaded_by, remarks=remarks
        )
        return True

    def delete(self, grade_id: int) -> bool:
        return self.rows.pop(int(grade_id), None) is not None

    def list_for_student(self, student_id: int, *, semester=None, exam_type=None, academic_year=None):
        return [
            g
            for g in self.rows.values()
            if g.student_id == student_id
            and (semester is None or g.semester == semester)
            and (exam_type is None or g.exam_type == exam_type)
            and (not academic_year or g.academic_year == academic_year)
        ]

    def list_for_course(self, course_id: int, *, exam_type=None, academic_year=None):
        return [
            g
            for g in self.rows.values()
            if g.course_id == course_id
            and (exam_type is None or g.exam_type == exam_type)
            and (not academic_year or g.academic_year == academic_year)
        ]


class InMemoryTimetable:
    """Enforces one active slot per (day, start time, room)."""

    def __init__(self):
        self.rows: dict[int, TimetableSlot] = {}
        self._id = 0

    def get_by_id(self, slot_id: int) -> Optional[TimetableSlot]:
        return self.rows.get(int(slot_id))

    def find_active_at(self, *, day_of_week, start_time, room) -> Optional[TimetableSlot]:
        return next(
            (
                s
                for s in self.rows.values()
                if s.is_active and (s.day_of_week, s.start_time, s.room) == (day_of_week, start_time, room)
            ),
            None,
        )

    def _guard(self, draft: SlotDraft, slot_id: Optional[int] = None) -> None:
        if not draft.is_active:
            return
        taken = self.find_active_at(day_of_week=draft.day_of_week, start_time=draft.start_time, room=draft.room)
        if taken and taken.slot_id != slot_id:
            raise ConflictError("Duplicate entry for key 'uq_timetable_room_time'")

    def create(self, draft: SlotDraft) -> int:
        self._guard(draft)
        self._id += 1
        self.rows[self._id] = TimetableSlot(slot_id=self._id, **draft.__dict__)
        return self._id

    def update(self, slot_id: int, draft: SlotDraft) -> bool:
        self._guard(draft, slot_id)
        self.rows[slot_id] = TimetableSlot(slot_id=slot_id, **draft.__dict__)
        return True

    def delete(self, slot_id: int) -> bool:
        return self.rows.pop(int(slot_id), None) is not None

    def list_active(self, filters):
        return [
            s
            for s in self.rows.values()
            if s.is_active
            and (not filters.department or s.department == filters.department)
            and (filters.semester is None or s.semester == filters.semester)
            and (filters.day_of_week is None or s.day_of_week == filters.day_of_week)
        ]


class InMemoryAnalytics:
    def __init__(self, students: InMemoryStudents, attendance: InMemoryAttendance, grades: InMemoryGrades):
        self._students = students
        self._attendance = attendance
        self._grades = grades

    def students_per_department(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for s in self._students.rows.values():
            out[s.department] = out.get(s.department, 0) + 1
        return dict(sorted(out.items(), key=lambda kv: (-kv[1], kv[0])))

    def attendance_status_counts(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for r in self._attendance.rows.values():
            out[r.status.value] = out.get(r.status.value, 0) + 1
        return out

    def attendance_by_month(self):
        months: dict[str, list[int]] = {}
        for r in self._attendance.rows.values():
            bucket = months.setdefault(r.attend_date.strftime("%Y-%m"), [0, 0])
            bucket[0] += 1
            bucket[1] += 1 if r.status == AttendanceStatus.PRESENT else 0
        return [MonthlyAttendance(month=m, total=t, present=p) for m, (t, p) in sorted(months.items())]

    def grade_counts(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for g in self._grades.rows.values():
            out[g.grade] = out.get(g.grade, 0) + 1
        return out

    def average_percentage_by_exam(self) -> dict[str, float]:
        sums: dict[str, list[float]] = {}
        for g in self._grades.rows.values():
            sums.setdefault(g.exam_type.value, []).append(g.marks * 100 / g.max_marks)
        return {k: sum(v) / len(v) for k, v in sums.items()}


class College:
    """In-memory college: fake repositories, a wired container and seeding helpers."""

    def __init__(self):
        self.identities = InMemoryIdentities()
        self.students = InMemoryStudents(self.identities)
        self.faculty = InMemoryFaculty(self.identities)
        self.courses = InMemoryCourses(self.students)
        self.attendance = InMemoryAttendance()
        self.grades = InMemoryGrades()
        self.timetable = InMemoryTimetable()
        self.analytics = InMemoryAnalytics(self.students, self.attendance, self.grades)
        self.container = wire_container(
            identities_repo=self.identities,
            students_repo=self.students,
            faculty_repo=self.faculty,
            courses_repo=self.courses,
            attendance_repo=self.attendance,
            grades_repo=self.grades,
            timetable_repo=self.timetable,
            analytics_repo=self.analytics,
        )
        self._seq = 0

    def _identity(self, role: Role, first_name: str, password: str = "secret1") -> int:
        self._seq += 1
        return self.identities.create(
            email=f"{role.value}{self._seq}@college.test",
            password_hash=generate_password_hash(password),
            first_name=first_name,
            last_name=f"User{self._seq}",
            role=role,
        )

    def add_admin(self) -> Principal:
        identity_id = self._identity(Role.ADMIN, "Admin")
        return Principal(identity_id=identity_id, role=Role.ADMIN)

    def add_faculty(self, employee_id: Optional[str] = None) -> Principal:
        identity_id = self._identity(Role.FACULTY, "Faculty")
        faculty_id = self.faculty.create(
            identity_id=identity_id,
            profile=NewFacultyProfile(employee_id=employee_id or f"EMP{self._seq:03d}", department="Computer Science"),
        )
        return Principal(identity_id=identity_id, role=Role.FACULTY, profile_id=faculty_id)

    def add_student(self, roll_number: Optional[str] = None, *, semester: int = 3) -> Principal:
        identity_id = self._identity(Role.STUDENT, "Student")
        student_id = self.students.create(
            identity_id=identity_id,
            profile=NewStudentProfile(
                roll_number=roll_number or f"CS{self._seq:03d}",
                department="Computer Science",
                semester=semester,
                batch="2024",
            ),
        )
        return Principal(identity_id=identity_id, role=Role.STUDENT, profile_id=student_id)

    def add_course(
        self,
        code: str,
        *,
        faculty: Optional[Principal] = None,
        credits: Optional[int] = 3,
        semester: int = 3,
    ) -> int:
        faculty_id = faculty.profile_id if faculty else None
        course_id = self.courses.create(
            NewCourse(
                course_code=code,
                course_name=f"Course {code}",
                department="Computer Science",
                semester=semester,
                credits=credits or 3,
                faculty_id=faculty_id,
            )
        )
        if credits is None:
            # Legacy rows may carry no credit metadata.
            self.courses.rows[course_id] = replace(self.courses.rows[course_id], credits=None)
        if faculty_id is not None:
            self.faculty.add_course(faculty_id, course_id)
        return course_id

    def enroll(self, student: Principal, *course_ids: int) -> None:
        self.students.enroll(student.profile_id, course_ids)


@pytest.fixture
def college() -> College:
    return College()
