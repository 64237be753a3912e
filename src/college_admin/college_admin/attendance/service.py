from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from typing import Optional

from ..access.policy import Action, Principal, ResourceRef, require
from ..core.enums import AttendanceStatus, UpsertAction
from ..core.exceptions import ConflictError, DomainError, NotFoundError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..students.repository import StudentRepository
from .metrics import AttendancePolicy, AttendanceTally, tally_by
from .model import (
    AttendanceEntry,
    AttendanceRecord,
    CourseAttendanceSummary,
    CourseAttendanceView,
    CourseSummaryReport,
    EntryOutcome,
    MarkAttendanceRequest,
    MarkAttendanceResult,
    StudentAttendanceReport,
    StudentSummaryRow,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        courses: CourseRepository,
        students: StudentRepository,
        *,
        policy: Optional[AttendancePolicy] = None,
    ):
        self._attendance = attendance
        self._courses = courses
        self._students = students
        self._policy = policy or AttendancePolicy()

    @property
    def policy(self) -> AttendancePolicy:
        return self._policy

    def _get_course(self, course_id: int) -> Course:
        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise NotFoundError("Course not found")
        return course

    def record_attendance(self, principal: Principal, request: MarkAttendanceRequest) -> MarkAttendanceResult:
        """Upsert one day's attendance for a course.

        A missing course or an unauthorized caller aborts before any write.
        After that, each entry succeeds or fails on its own.
        """
        course = self._get_course(request.course_id)
        require(principal, Action.MARK_ATTENDANCE, ResourceRef.course(course))

        results = [
            self._record_entry(course.course_id, request.attend_date, entry, marked_by=int(principal.faculty_id))
            for entry in request.entries
        ]
        total = self._refresh_total_classes(course.course_id)

        failed = sum(1 for r in results if r.action == UpsertAction.ERROR)
        logger.info(
            "Attendance for course %s on %s: %s entries, %s failed",
            course.course_code,
            request.attend_date.isoformat(),
            len(results),
            failed,
        )
        return MarkAttendanceResult(
            course_id=course.course_id,
            attend_date=request.attend_date,
            results=results,
            total_classes_held=total,
        )

    def _record_entry(self, course_id: int, attend_date: date, entry: AttendanceEntry, *, marked_by: int) -> EntryOutcome:
        try:
            if not self._students.get_by_id(entry.student_id):
                raise NotFoundError("Student not found")
            action = self._upsert(course_id, attend_date, entry, marked_by=marked_by)
            return EntryOutcome(student_id=entry.student_id, action=action)
        except DomainError as exc:
            logger.warning("Attendance entry for student %s failed: %s", entry.student_id, exc)
            return EntryOutcome(student_id=entry.student_id, action=UpsertAction.ERROR, error=str(exc))

    def _upsert(self, course_id: int, attend_date: date, entry: AttendanceEntry, *, marked_by: int) -> UpsertAction:
        key = dict(student_id=entry.student_id, course_id=course_id, attend_date=attend_date)

        existing = self._attendance.get_for_key(**key)
        if existing:
            self._attendance.update(existing.attendance_id, status=entry.status, remarks=entry.remarks)
            return UpsertAction.UPDATED

        try:
            self._attendance.create(**key, status=entry.status, marked_by=marked_by, remarks=entry.remarks)
            return UpsertAction.CREATED
        except ConflictError:
            # Another writer inserted the same key between our read and insert.
            existing = self._attendance.get_for_key(**key)
            if not existing:
                raise
            self._attendance.update(existing.attendance_id, status=entry.status, remarks=entry.remarks)
            return UpsertAction.UPDATED

    def _refresh_total_classes(self, course_id: int) -> int:
        total = self._attendance.count_distinct_dates(course_id)
        self._courses.set_total_classes(course_id, total)
        return total

    def summarize_attendance(
        self,
        principal: Principal,
        student_id: int,
        *,
        course_id: Optional[int] = None,
    ) -> StudentAttendanceReport:
        require(principal, Action.VIEW_STUDENT_RECORDS, ResourceRef.student(student_id))
        if not self._students.get_by_id(int(student_id)):
            raise NotFoundError("Student not found")

        records = self._attendance.list_for_student(int(student_id), course_id=course_id)
        tallies = tally_by(records, "course_id")
        if course_id is not None and int(course_id) not in tallies:
            # A filtered query with no records still yields a zero row for that course.
            tallies[self._get_course(course_id).course_id] = AttendanceTally()

        courses = self._courses.get_many(tallies.keys())
        summary = [
            CourseAttendanceSummary(
                course_id=cid,
                course=courses[cid].brief() if cid in courses else None,
                tally=t,
                detained=self._policy.is_detained(t.percentage),
                status=self._policy.status_label(t.percentage),
            )
            for cid, t in tallies.items()
        ]
        return StudentAttendanceReport(student_id=int(student_id), records=records, course_summary=summary)

    def course_summary(self, principal: Principal, course_id: int) -> CourseSummaryReport:
        require(principal, Action.VIEW_COURSE_RECORDS)
        course = self._get_course(course_id)

        records = self._attendance.list_for_course(course.course_id)
        tallies = tally_by(records, "student_id")
        rows = []
        for student in self._students.rows_for_courses([course.course_id]):
            t = tallies.get(student.student_id, AttendanceTally())
            rows.append(
                StudentSummaryRow(
                    student_id=student.student_id,
                    roll_number=student.roll_number,
                    name=student.name,
                    tally=t,
                    detained=self._policy.is_detained(t.percentage),
                    status=self._policy.status_label(t.percentage),
                )
            )
        dates = sorted({r.attend_date for r in records})
        return CourseSummaryReport(
            course_id=course.course_id,
            rows=rows,
            dates=dates,
            detain_threshold=self._policy.detain_threshold,
        )

    def course_attendance(
        self,
        principal: Principal,
        course_id: int,
        *,
        on: Optional[date] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> CourseAttendanceView:
        require(principal, Action.VIEW_COURSE_RECORDS)
        course = self._get_course(course_id)
        if on is not None:
            start = end = on

        records = self._attendance.list_for_course(course.course_id, start=start, end=end)
        grouped: "OrderedDict[str, list[AttendanceRecord]]" = OrderedDict()
        for record in records:
            grouped.setdefault(record.attend_date.isoformat(), []).append(record)
        return CourseAttendanceView(records=records, grouped=grouped)

    def _get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def update_record(
        self,
        principal: Principal,
        attendance_id: int,
        *,
        status: AttendanceStatus,
        remarks: Optional[str] = None,
    ) -> AttendanceRecord:
        record = self._get_record(attendance_id)
        course = self._get_course(record.course_id)
        require(principal, Action.MARK_ATTENDANCE, ResourceRef.course(course))

        self._attendance.update(record.attendance_id, status=status, remarks=remarks)
        return self._get_record(record.attendance_id)

    def delete_record(self, principal: Principal, attendance_id: int) -> None:
        require(principal, Action.DELETE_ATTENDANCE)
        record = self._get_record(attendance_id)

        self._attendance.delete(record.attendance_id)
        self._refresh_total_classes(record.course_id)
        logger.info("Deleted attendance record %s", record.attendance_id)
