from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account roles used for authorization."""

    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class ExamType(str, Enum):
    INTERNAL1 = "internal1"
    INTERNAL2 = "internal2"
    MIDTERM = "midterm"
    FINAL = "final"
    ASSIGNMENT = "assignment"
    PRACTICAL = "practical"


class DayOfWeek(str, Enum):
    """Teaching days, in timetable order."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @property
    def order(self) -> int:
        return list(DayOfWeek).index(self)


class ClassType(str, Enum):
    LECTURE = "lecture"
    LAB = "lab"
    TUTORIAL = "tutorial"


class Department(str, Enum):
    COMPUTER_SCIENCE = "Computer Science"
    ELECTRONICS = "Electronics"
    MECHANICAL = "Mechanical"
    CIVIL = "Civil"
    ELECTRICAL = "Electrical"
    INFORMATION_TECHNOLOGY = "Information Technology"


class Designation(str, Enum):
    PROFESSOR = "Professor"
    ASSOCIATE_PROFESSOR = "Associate Professor"
    ASSISTANT_PROFESSOR = "Assistant Professor"
    LECTURER = "Lecturer"
    LAB_ASSISTANT = "Lab Assistant"


class UpsertAction(str, Enum):
    """Per-entry outcome reported by batch upserts."""

    CREATED = "created"
    UPDATED = "updated"
    ERROR = "error"
