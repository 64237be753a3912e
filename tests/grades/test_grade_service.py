from __future__ import annotations

import pytest

from src.college_admin.college_admin.core.enums import ExamType, UpsertAction
from src.college_admin.college_admin.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.college_admin.college_admin.grades.model import GradeChanges, UploadGradesRequest


def _upload(course_id, rows, exam_type="final", year="2025-2026"):
    return UploadGradesRequest.from_payload(
        {"courseId": course_id, "examType": exam_type, "academicYear": year, "gradesData": rows}
    )


def test_assigned_faculty_uploads_and_letters_are_derived(college):
    faculty = college.add_faculty()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=faculty)

    result = college.container.grade_service.upload_grades(
        faculty, _upload(course_id, [{"studentId": student.profile_id, "marks": 72, "maxMarks": 80}])
    )

    assert [r.action for r in result.results] == [UpsertAction.CREATED]
    (grade,) = college.grades.rows.values()
    assert grade.grade == "A+"
    assert grade.semester == 3
    assert grade.uploaded_by == faculty.identity_id


def test_second_upload_updates_same_record(college):
    faculty = college.add_faculty()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=faculty)
    service = college.container.grade_service

    service.upload_grades(faculty, _upload(course_id, [{"studentId": student.profile_id, "marks": 90, "maxMarks": 100}]))
    result = service.upload_grades(
        faculty, _upload(course_id, [{"studentId": student.profile_id, "marks": 35, "maxMarks": 100}])
    )

    assert result.results[0].action == UpsertAction.UPDATED
    assert len(college.grades.rows) == 1
    (grade,) = college.grades.rows.values()
    assert (grade.marks, grade.grade) == (35, "D")


def test_unassigned_faculty_is_rejected_and_nothing_is_written(college):
    owner = college.add_faculty()
    other = college.add_faculty()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=owner)

    with pytest.raises(AuthorizationError):
        college.container.grade_service.upload_grades(
            other, _upload(course_id, [{"studentId": student.profile_id, "marks": 50, "maxMarks": 100}])
        )
    assert college.grades.rows == {}


def test_admin_may_upload_for_any_course(college):
    admin = college.add_admin()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=college.add_faculty())

    result = college.container.grade_service.upload_grades(
        admin, _upload(course_id, [{"studentId": student.profile_id, "marks": 50, "maxMarks": 100}])
    )
    assert result.results[0].action == UpsertAction.CREATED


def test_unknown_students_are_skipped(college):
    faculty = college.add_faculty()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=faculty)

    result = college.container.grade_service.upload_grades(
        faculty,
        _upload(
            course_id,
            [
                {"studentId": 999, "marks": 50, "maxMarks": 100},
                {"studentId": student.profile_id, "marks": 50, "maxMarks": 100},
            ],
        ),
    )

    assert result.skipped == [999]
    assert [r.student_id for r in result.results] == [student.profile_id]
    assert result.to_dict()["results"] == [{"studentId": student.profile_id, "action": "created", "grade": "C+"}]


def test_upload_for_missing_course_raises_not_found(college):
    with pytest.raises(NotFoundError):
        college.container.grade_service.upload_grades(college.add_admin(), _upload(42, []))


def test_invalid_marks_are_rejected_before_any_write():
    with pytest.raises(ValidationError):
        _upload(1, [{"studentId": 1, "marks": -1, "maxMarks": 100}])
    with pytest.raises(ValidationError):
        _upload(1, [{"studentId": 1, "marks": 10, "maxMarks": 0}])
    with pytest.raises(ValidationError):
        _upload(1, [], exam_type="quiz")


def test_gpa_uses_final_exams_of_the_semester_weighted_by_credits(college):
    admin = college.add_admin()
    student = college.add_student(semester=3)
    course_a = college.add_course("CS301", credits=4)
    course_b = college.add_course("CS302", credits=2)
    service = college.container.grade_service
    sid = student.profile_id

    service.upload_grades(admin, _upload(course_a, [{"studentId": sid, "marks": 95, "maxMarks": 100}]))
    service.upload_grades(admin, _upload(course_b, [{"studentId": sid, "marks": 65, "maxMarks": 100}]))
    # Non-final exams never count.
    service.upload_grades(admin, _upload(course_b, [{"studentId": sid, "marks": 0, "maxMarks": 100}], exam_type="midterm"))

    assert service.calculate_gpa(sid, 3) == 9.0
    assert service.calculate_gpa(sid, 4) == 0.0


def test_gpa_with_course_missing_credits_uses_three(college):
    admin = college.add_admin()
    student = college.add_student()
    course_a = college.add_course("CS301", credits=None)
    course_b = college.add_course("CS302", credits=3)
    service = college.container.grade_service
    sid = student.profile_id

    service.upload_grades(admin, _upload(course_a, [{"studentId": sid, "marks": 95, "maxMarks": 100}]))
    service.upload_grades(admin, _upload(course_b, [{"studentId": sid, "marks": 10, "maxMarks": 100}]))

    assert service.calculate_gpa(sid, 3) == 5.0


def test_student_sees_own_grades_with_gpa_but_not_others(college):
    admin = college.add_admin()
    me = college.add_student()
    other = college.add_student()
    course_id = college.add_course("CS301", credits=4)
    service = college.container.grade_service
    service.upload_grades(admin, _upload(course_id, [{"studentId": me.profile_id, "marks": 80, "maxMarks": 100}]))

    report = service.student_grades(me, me.profile_id, semester=3)
    assert report.gpa == 9.0
    assert len(report.grades) == 1
    assert service.student_grades(me, me.profile_id).gpa is None

    with pytest.raises(AuthorizationError):
        service.student_grades(me, other.profile_id)


def test_update_grade_recomputes_letter(college):
    faculty = college.add_faculty()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=faculty)
    service = college.container.grade_service
    service.upload_grades(faculty, _upload(course_id, [{"studentId": student.profile_id, "marks": 90, "maxMarks": 100}]))
    (grade_id,) = college.grades.rows

    updated = service.update_grade(faculty, grade_id, GradeChanges.from_payload({"marks": 20, "maxMarks": 50}))

    assert (updated.grade, updated.percentage) == ("C", 40.0)


def test_only_admin_deletes_grades(college):
    admin = college.add_admin()
    faculty = college.add_faculty()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=faculty)
    service = college.container.grade_service
    service.upload_grades(faculty, _upload(course_id, [{"studentId": student.profile_id, "marks": 90, "maxMarks": 100}]))
    (grade_id,) = college.grades.rows

    with pytest.raises(AuthorizationError):
        service.delete_grade(faculty, grade_id)
    service.delete_grade(admin, grade_id)
    assert college.grades.rows == {}


def test_course_grades_filter_by_exam_type(college):
    admin = college.add_admin()
    student = college.add_student()
    course_id = college.add_course("CS301")
    service = college.container.grade_service
    sid = student.profile_id
    service.upload_grades(admin, _upload(course_id, [{"studentId": sid, "marks": 90, "maxMarks": 100}]))
    service.upload_grades(admin, _upload(course_id, [{"studentId": sid, "marks": 9, "maxMarks": 10}], exam_type="internal1"))

    finals = service.course_grades(admin, course_id, exam_type=ExamType.FINAL)
    assert [g.exam_type for g in finals] == [ExamType.FINAL]
    assert len(service.course_grades(admin, course_id)) == 2


def test_non_finite_marks_are_rejected():
    for bad in (float("nan"), float("inf")):
        with pytest.raises(ValidationError):
            _upload(1, [{"studentId": 1, "marks": bad, "maxMarks": 100}])
        with pytest.raises(ValidationError):
            _upload(1, [{"studentId": 1, "marks": 10, "maxMarks": bad}])


def test_fractional_student_id_is_rejected():
    with pytest.raises(ValidationError):
        _upload(1, [{"studentId": 3.7, "marks": 10, "maxMarks": 100}])


def test_insert_that_loses_a_race_is_applied_as_an_update(college, monkeypatch):
    faculty = college.add_faculty()
    student = college.add_student()
    course_id = college.add_course("CS301", faculty=faculty)
    service = college.container.grade_service
    service.upload_grades(faculty, _upload(course_id, [{"studentId": student.profile_id, "marks": 90, "maxMarks": 100}]))

    # First look-up misses the row another writer just inserted.
    real_get_for_key = college.grades.get_for_key
    stale_reads = [None]

    def get_for_key(**key):
        if stale_reads:
            return stale_reads.pop()
        return real_get_for_key(**key)

    monkeypatch.setattr(college.grades, "get_for_key", get_for_key)
    result = service.upload_grades(
        faculty, _upload(course_id, [{"studentId": student.profile_id, "marks": 55, "maxMarks": 100}])
    )

    assert [r.action for r in result.results] == [UpsertAction.UPDATED]
    (grade,) = college.grades.rows.values()
    assert (grade.marks, grade.grade) == (55, "C+")
