from datetime import date, datetime, timedelta, timezone
from uuid import UUID

import pytest

from academy.core.exceptions import DuplicateStudent, StudentNotFound, ValidationError
from academy.services.attendance_service import AttendanceService
from academy.models.attendance import AttendanceStatus
from academy.services.course_service import CourseService
from academy.services.enrollment_service import EnrollmentService
from academy.services.student_service import StudentService, generate_student_id, is_within_change_period


def test_generate_student_id_trims_name():
    assert generate_student_id("  김철수 ", "1234") == "김철수_1234"


async def test_create_student_rejects_duplicates(db, make_student):
    await make_student("이영희", "5678")
    with pytest.raises(DuplicateStudent):
        await make_student("이영희", "5678")


async def test_batch_create_skips_or_overwrites(db, make_student):
    await make_student("이영희", "5678", class_name="A반")
    service = StudentService(db)
    rows = [
        {"name": "이영희", "phone": "5678", "class_name": "B반"},
        {"name": "최민수", "phone": "9999"},
    ]

    preview = await service.check_batch_duplicates(rows)
    assert [row["is_duplicate"] for row in preview] == [True, False]
    assert preview[0]["existing_class_name"] == "A반"

    skipped = await service.batch_create_students(rows, "admin")
    assert skipped[0]["skipped"] and skipped[1]["created"]
    assert (await service.get_or_404("이영희_5678")).class_name == "A반"

    overwritten = await service.batch_create_students(rows[:1], "admin", {"이영희_5678": "overwrite"})
    assert overwritten[0]["overwritten"]
    assert (await service.get_or_404("이영희_5678")).class_name == "B반"


async def test_list_students_search_and_filters(db, make_student):
    await make_student("김하나", "1111", class_name="수학반")
    await make_student("김두리", "2222")
    await make_student("박세나", "3333", class_name="수학반")
    service = StudentService(db)

    assert {s.name for s in await service.list_students(search="김")} == {"김하나", "김두리"}
    assert {s.name for s in await service.list_students(class_name="수학반")} == {"김하나", "박세나"}
    # LIKE wildcards in the search term are matched literally
    assert await service.list_students(search="%") == []


async def test_change_period_window_is_inclusive(db, make_student):
    student = await make_student()
    start = datetime(2026, 3, 1, tzinfo=timezone.utc)
    end = datetime(2026, 3, 7, tzinfo=timezone.utc)
    student = await StudentService(db).set_change_period(student.id, start, end)

    assert is_within_change_period(student, start)
    assert is_within_change_period(student, end)
    assert not is_within_change_period(student, end + timedelta(seconds=1))


async def test_student_without_change_period_is_outside(make_student):
    student = await make_student()
    assert not is_within_change_period(student)


async def test_change_period_start_after_end_is_rejected(db, make_student):
    student = await make_student()
    now = datetime.now(timezone.utc)
    with pytest.raises(ValidationError):
        await StudentService(db).set_change_period(student.id, now, now - timedelta(days=1))


async def test_batch_enrollment_status(db, make_student):
    a = await make_student("가", "0001")
    b = await make_student("나", "0002")
    service = StudentService(db)

    assert await service.batch_set_enrollment_status([a.id, b.id], False) == 2
    assert not (await service.get_or_404(a.id)).enrollment_open


async def test_delete_student_cascades_and_releases_seats(db, make_student, make_course):
    course = await make_course(capacity=3)
    student = await make_student()
    [outcome] = await EnrollmentService(db).submit_enrollments(student.id, [course.id])
    await EnrollmentService(db).reject_enrollment(
        UUID(outcome["enrollment_id"]), "admin", "확인"
    )
    await EnrollmentService(db).submit_enrollments(student.id, [course.id])
    await AttendanceService(db).check_attendance(
        course.id, student.id, date(2026, 3, 2), AttendanceStatus.PRESENT
    )

    removed = await StudentService(db).delete_student(student.id)

    assert removed == {"enrollments": 2, "notifications": 1, "attendance": 1}
    assert (await CourseService(db).get_or_404(course.id)).enrolled == 0
    assert await EnrollmentService(db).get_student_enrollments(student.id, active_only=False) == []
    with pytest.raises(StudentNotFound):
        await StudentService(db).get_or_404(student.id)


async def test_delete_unknown_student(db):
    with pytest.raises(StudentNotFound):
        await StudentService(db).delete_student("없음_0000")
