from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..access.policy import Action, Principal, ResourceRef, require
from ..core.constants import DEFAULT_COURSE_CREDITS
from ..core.enums import ExamType, UpsertAction
from ..core.exceptions import ConflictError, DomainError, NotFoundError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..students.model import StudentProfile
from ..students.repository import StudentRepository
from .metrics import weighted_gpa
from .model import (
    GradeChanges,
    GradeDraft,
    GradeEntry,
    GradeOutcome,
    GradeRecord,
    StudentGradesReport,
    UploadGradesRequest,
    UploadGradesResult,
)
from .repository import GradeRepository
from .scale.base import GradingScale
from .scale.standard_scale import StandardGradingScale

logger = logging.getLogger(__name__)


class GradeService:
    def __init__(
        self,
        grades: GradeRepository,
        courses: CourseRepository,
        students: StudentRepository,
        *,
        scale: Optional[GradingScale] = None,
        default_credits: int = DEFAULT_COURSE_CREDITS,
    ):
        self._grades = grades
        self._courses = courses
        self._students = students
        self._scale = scale or StandardGradingScale()
        self._default_credits = default_credits

    def _get_course(self, course_id: int) -> Course:
        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise NotFoundError("Course not found")
        return course

    def upload_grades(self, principal: Principal, request: UploadGradesRequest) -> UploadGradesResult:
        """Upsert marks for one exam of a course.

        Unknown students are skipped and reported in `skipped`; they do not fail the batch.
        """
        course = self._get_course(request.course_id)
        require(principal, Action.UPLOAD_GRADES, ResourceRef.course(course))

        results: list[GradeOutcome] = []
        skipped: list[int] = []
        for entry in request.entries:
            student = self._students.get_by_id(entry.student_id)
            if not student:
                logger.warning("Grade upload for course %s: student %s not found, skipped", course.course_code, entry.student_id)
                skipped.append(entry.student_id)
                continue
            results.append(self._record_entry(principal, course, request, student, entry))

        logger.info(
            "Grades for course %s (%s %s): %s written, %s skipped",
            course.course_code,
            request.exam_type.value,
            request.academic_year,
            len(results),
            len(skipped),
        )
        return UploadGradesResult(course_id=course.course_id, results=results, skipped=skipped)

    def _record_entry(
        self,
        principal: Principal,
        course: Course,
        request: UploadGradesRequest,
        student: StudentProfile,
        entry: GradeEntry,
    ) -> GradeOutcome:
        letter = self._scale.letter_for_marks(entry.marks, entry.max_marks)
        try:
            action = self._upsert(
                GradeDraft(
                    student_id=student.student_id,
                    course_id=course.course_id,
                    exam_type=request.exam_type,
                    marks=entry.marks,
                    max_marks=entry.max_marks,
                    grade=letter,
                    semester=student.semester,
                    academic_year=request.academic_year,
                    uploaded_by=principal.identity_id,
                    remarks=entry.remarks,
                )
            )
            return GradeOutcome(student_id=student.student_id, action=action, grade=letter)
        except DomainError as exc:
            logger.warning("Grade entry for student %s failed: %s", student.student_id, exc)
            return GradeOutcome(student_id=student.student_id, action=UpsertAction.ERROR, error=str(exc))

    def _upsert(self, draft: GradeDraft) -> UpsertAction:
        key = dict(
            student_id=draft.student_id,
            course_id=draft.course_id,
            exam_type=draft.exam_type,
            academic_year=draft.academic_year,
        )
        existing = self._grades.get_for_key(**key)
        if not existing:
            try:
                self._grades.create(draft)
                return UpsertAction.CREATED
            except ConflictError:
                # Another writer inserted the same key between our read and insert.
                existing = self._grades.get_for_key(**key)
                if not existing:
                    raise

        self._grades.update_marks(
            existing.grade_id,
            marks=draft.marks,
            max_marks=draft.max_marks,
            grade=draft.grade,
            uploaded_by=draft.uploaded_by,
            remarks=draft.remarks,
        )
        return UpsertAction.UPDATED

    def calculate_gpa(self, student_id: int, semester: int) -> float:
        """Credit-weighted GPA over final-exam records of one semester; 0 when there are none."""
        finals = self._grades.list_for_student(int(student_id), semester=int(semester), exam_type=ExamType.FINAL)
        courses = self._courses.get_many({g.course_id for g in finals})
        graded = [
            (g.grade, courses[g.course_id].credits if g.course_id in courses else None)
            for g in finals
        ]
        return weighted_gpa(graded, self._scale, default_credits=self._default_credits)

    def student_grades(
        self,
        principal: Principal,
        student_id: int,
        *,
        semester: Optional[int] = None,
        academic_year: Optional[str] = None,
    ) -> StudentGradesReport:
        require(principal, Action.VIEW_STUDENT_RECORDS, ResourceRef.student(student_id))
        if not self._students.get_by_id(int(student_id)):
            raise NotFoundError("Student not found")

        grades = self._grades.list_for_student(int(student_id), semester=semester, academic_year=academic_year)
        gpa = self.calculate_gpa(student_id, semester) if semester is not None else None
        return StudentGradesReport(student_id=int(student_id), grades=grades, semester=semester, gpa=gpa)

    def course_grades(
        self,
        principal: Principal,
        course_id: int,
        *,
        exam_type: Optional[ExamType] = None,
        academic_year: Optional[str] = None,
    ) -> Sequence[GradeRecord]:
        require(principal, Action.VIEW_COURSE_RECORDS)
        course = self._get_course(course_id)
        return self._grades.list_for_course(course.course_id, exam_type=exam_type, academic_year=academic_year)

    def _get_grade(self, grade_id: int) -> GradeRecord:
        grade = self._grades.get_by_id(int(grade_id))
        if not grade:
            raise NotFoundError("Grade not found")
        return grade

    def update_grade(self, principal: Principal, grade_id: int, changes: GradeChanges) -> GradeRecord:
        grade = self._get_grade(grade_id)
        course = self._get_course(grade.course_id)
        require(principal, Action.UPLOAD_GRADES, ResourceRef.course(course))

        self._grades.update_marks(
            grade.grade_id,
            marks=changes.marks,
            max_marks=changes.max_marks,
            grade=self._scale.letter_for_marks(changes.marks, changes.max_marks),
            uploaded_by=principal.identity_id,
            remarks=changes.remarks,
        )
        return self._get_grade(grade.grade_id)

    def delete_grade(self, principal: Principal, grade_id: int) -> None:
        require(principal, Action.DELETE_GRADE)
        grade = self._get_grade(grade_id)
        self._grades.delete(grade.grade_id)
        logger.info("Deleted grade record %s", grade.grade_id)
