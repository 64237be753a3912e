from __future__ import annotations

from datetime import date

import pytest

from src.college_admin.college_admin.attendance.metrics import AttendancePolicy
from src.college_admin.college_admin.attendance.model import MarkAttendanceRequest
from src.college_admin.college_admin.attendance.service import AttendanceService
from src.college_admin.college_admin.core.enums import AttendanceStatus, UpsertAction
from src.college_admin.college_admin.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _batch(course_id, day, rows):
    return MarkAttendanceRequest.from_payload({"courseId": course_id, "date": day, "attendanceData": rows})


@pytest.fixture
def section(college):
    faculty = college.add_faculty()
    students = [college.add_student() for _ in range(3)]
    course_id = college.add_course("CS301", faculty=faculty)
    for s in students:
        college.enroll(s, course_id)
    return faculty, students, course_id


def test_marking_twice_is_idempotent(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    batch = _batch(
        course_id,
        "2025-09-01",
        [
            {"studentId": students[0].profile_id, "status": "present"},
            {"studentId": students[1].profile_id, "status": "late", "remarks": "bus"},
            {"studentId": students[2].profile_id, "status": "absent"},
        ],
    )

    first = service.record_attendance(faculty, batch)
    snapshot = dict(college.attendance.rows)
    second = service.record_attendance(faculty, batch)

    assert {r.action for r in first.results} == {UpsertAction.CREATED}
    assert {r.action for r in second.results} == {UpsertAction.UPDATED}
    assert college.attendance.rows == snapshot
    assert len(college.attendance.rows) == 3


def test_same_key_in_one_batch_updates_instead_of_duplicating(college, section):
    faculty, students, course_id = section
    sid = students[0].profile_id

    result = college.container.attendance_service.record_attendance(
        faculty,
        _batch(
            course_id,
            "2025-09-01",
            [{"studentId": sid, "status": "absent"}, {"studentId": sid, "status": "present"}],
        ),
    )

    assert [r.action for r in result.results] == [UpsertAction.CREATED, UpsertAction.UPDATED]
    (record,) = college.attendance.rows.values()
    assert record.status == AttendanceStatus.PRESENT


def test_total_classes_counts_distinct_dates(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    row = [{"studentId": students[0].profile_id, "status": "present"}]

    service.record_attendance(faculty, _batch(course_id, "2025-09-01", row))
    service.record_attendance(faculty, _batch(course_id, "2025-09-01", row))
    result = service.record_attendance(faculty, _batch(course_id, "2025-09-02", row))

    assert result.total_classes_held == 2
    assert college.courses.get_by_id(course_id).total_classes_held == 2


def test_unknown_student_fails_only_that_entry(college, section):
    faculty, students, course_id = section

    result = college.container.attendance_service.record_attendance(
        faculty,
        _batch(
            course_id,
            "2025-09-01",
            [{"studentId": 999, "status": "present"}, {"studentId": students[0].profile_id, "status": "present"}],
        ),
    )

    assert result.results[0].action == UpsertAction.ERROR
    assert result.results[0].error == "Student not found"
    assert result.results[1].action == UpsertAction.CREATED
    assert result.to_dict()["results"][0] == {"studentId": 999, "action": "error", "error": "Student not found"}


def test_only_the_assigned_faculty_may_mark(college, section):
    _, students, course_id = section
    batch = _batch(course_id, "2025-09-01", [{"studentId": students[0].profile_id, "status": "present"}])
    service = college.container.attendance_service

    with pytest.raises(AuthorizationError):
        service.record_attendance(college.add_faculty(), batch)
    # No admin bypass for marking.
    with pytest.raises(AuthorizationError):
        service.record_attendance(college.add_admin(), batch)
    assert college.attendance.rows == {}


def test_missing_course_aborts_the_batch(college, section):
    faculty, students, _ = section
    with pytest.raises(NotFoundError):
        college.container.attendance_service.record_attendance(
            faculty, _batch(404, "2025-09-01", [{"studentId": students[0].profile_id, "status": "present"}])
        )


def test_invalid_status_is_rejected_up_front():
    with pytest.raises(ValidationError):
        _batch(1, "2025-09-01", [{"studentId": 1, "status": "excused"}])
    with pytest.raises(ValidationError):
        _batch(1, "not-a-date", [])


def test_student_summary_groups_by_course(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    me = students[0]
    statuses = ["present"] * 7 + ["late"] + ["absent"] * 2
    for day, status in enumerate(statuses, start=1):
        service.record_attendance(
            faculty, _batch(course_id, date(2025, 9, day).isoformat(), [{"studentId": me.profile_id, "status": status}])
        )

    report = service.summarize_attendance(me, me.profile_id)

    assert len(report.records) == 10
    assert report.records[0].attend_date == date(2025, 9, 10)
    (summary,) = report.course_summary
    assert summary.tally.percentage == 80.0
    assert summary.detained is False
    assert summary.to_dict()["course"]["courseCode"] == "CS301"


def test_filtered_summary_with_no_records_is_zero(college, section):
    _, students, course_id = section
    me = students[0]

    report = college.container.attendance_service.summarize_attendance(me, me.profile_id, course_id=course_id)

    (summary,) = report.course_summary
    assert summary.tally.total == 0
    assert summary.tally.percentage == 0.0
    assert summary.detained is True


def test_student_cannot_read_another_students_attendance(college, section):
    _, students, _ = section
    with pytest.raises(AuthorizationError):
        college.container.attendance_service.summarize_attendance(students[0], students[1].profile_id)


def test_course_summary_covers_every_enrolled_student(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    service.record_attendance(
        faculty,
        _batch(
            course_id,
            "2025-09-02",
            [{"studentId": students[0].profile_id, "status": "present"}, {"studentId": students[1].profile_id, "status": "absent"}],
        ),
    )
    service.record_attendance(
        faculty, _batch(course_id, "2025-09-01", [{"studentId": students[0].profile_id, "status": "absent"}])
    )

    report = service.course_summary(faculty, course_id)

    assert report.total_classes == 2
    assert report.dates == [date(2025, 9, 1), date(2025, 9, 2)]
    by_student = {row.student_id: row for row in report.rows}
    assert len(by_student) == 3
    assert by_student[students[0].profile_id].tally.percentage == 50.0
    assert by_student[students[2].profile_id].tally.total == 0
    assert all(row.detained for row in report.rows)


def test_custom_detain_threshold_is_honoured(college, section):
    faculty, students, course_id = section
    service = AttendanceService(
        college.attendance, college.courses, college.students, policy=AttendancePolicy(detain_threshold=50)
    )
    service.record_attendance(
        faculty, _batch(course_id, "2025-09-01", [{"studentId": students[0].profile_id, "status": "late"}])
    )
    service.record_attendance(
        faculty, _batch(course_id, "2025-09-02", [{"studentId": students[0].profile_id, "status": "absent"}])
    )

    rows = {r.student_id: r for r in service.course_summary(faculty, course_id).rows}
    assert rows[students[0].profile_id].detained is False


def test_course_attendance_groups_by_date(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    rows = [{"studentId": s.profile_id, "status": "present"} for s in students]
    service.record_attendance(faculty, _batch(course_id, "2025-09-01", rows))
    service.record_attendance(faculty, _batch(course_id, "2025-09-03", rows))

    view = service.course_attendance(faculty, course_id)
    assert list(view.grouped) == ["2025-09-03", "2025-09-01"]
    assert len(view.grouped["2025-09-01"]) == 3

    one_day = service.course_attendance(faculty, course_id, on=date(2025, 9, 3))
    assert list(one_day.grouped) == ["2025-09-03"]


def test_delete_record_is_admin_only_and_recomputes_total(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    service.record_attendance(
        faculty, _batch(course_id, "2025-09-01", [{"studentId": students[0].profile_id, "status": "present"}])
    )
    (attendance_id,) = college.attendance.rows

    with pytest.raises(AuthorizationError):
        service.delete_record(faculty, attendance_id)

    service.delete_record(college.add_admin(), attendance_id)
    assert college.courses.get_by_id(course_id).total_classes_held == 0


def test_update_record_by_assigned_faculty(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    service.record_attendance(
        faculty, _batch(course_id, "2025-09-01", [{"studentId": students[0].profile_id, "status": "absent"}])
    )
    (attendance_id,) = college.attendance.rows

    record = service.update_record(faculty, attendance_id, status=AttendanceStatus.LATE, remarks="medical")
    assert (record.status, record.remarks) == (AttendanceStatus.LATE, "medical")


def test_insert_that_loses_a_race_is_applied_as_an_update(college, section, monkeypatch):
    faculty, students, course_id = section
    sid = students[0].profile_id
    service = college.container.attendance_service
    service.record_attendance(faculty, _batch(course_id, "2025-09-01", [{"studentId": sid, "status": "absent"}]))

    # First look-up misses the row another writer just inserted.
    real_get_for_key = college.attendance.get_for_key
    stale_reads = [None]

    def get_for_key(**key):
        if stale_reads:
            return stale_reads.pop()
        return real_get_for_key(**key)

    monkeypatch.setattr(college.attendance, "get_for_key", get_for_key)
    result = service.record_attendance(faculty, _batch(course_id, "2025-09-01", [{"studentId": sid, "status": "present"}]))

    assert [r.action for r in result.results] == [UpsertAction.UPDATED]
    (record,) = college.attendance.rows.values()
    assert record.status == AttendanceStatus.PRESENT


def test_summaries_carry_the_detained_label(college, section):
    faculty, students, course_id = section
    service = college.container.attendance_service
    service.record_attendance(
        faculty,
        _batch(
            course_id,
            "2025-09-01",
            [
                {"studentId": students[0].profile_id, "status": "present"},
                {"studentId": students[1].profile_id, "status": "absent"},
                {"studentId": students[2].profile_id, "status": "late"},
            ],
        ),
    )

    rows = {row["student"]["id"]: row for row in service.course_summary(faculty, course_id).to_dict()["summary"]}
    assert rows[students[0].profile_id]["status"] == "PASS"
    assert rows[students[1].profile_id]["status"] == "DETAINED"
    assert rows[students[2].profile_id]["status"] == "PASS"

    me = students[1]
    (summary,) = service.summarize_attendance(me, me.profile_id).to_dict()["courseSummary"]
    assert (summary["detained"], summary["status"]) == (True, "DETAINED")


def test_fractional_ids_and_numeric_dates_are_rejected_up_front():
    with pytest.raises(ValidationError):
        _batch(1, "2025-09-01", [{"studentId": 3.7, "status": "present"}])
    with pytest.raises(ValidationError):
        _batch(1, 20250901, [{"studentId": 3, "status": "present"}])
    assert _batch(1.0, "2025-09-01", [{"studentId": 3.0, "status": "present"}]).entries[0].student_id == 3
