from datetime import date

import pytest

from academy.core.exceptions import ResourceInUse, ValidationError
from academy.services.course_service import CourseService, catalog_entry
from academy.services.enrollment_service import EnrollmentService
from academy.services.season_service import SeasonService


async def test_legacy_schedule_is_stored_as_slots(db):
    course = await CourseService(db).create_course(
        {"title": "국어", "instructor": "이선생", "day": "월/수", "start_period": 3, "end_period": 4}
    )

    assert course.schedules == [
        {"day": "월", "start_period": 3, "end_period": 4},
        {"day": "수", "start_period": 3, "end_period": 4},
    ]
    entry = catalog_entry(course)
    assert entry["day"] == "월/수"
    assert entry["is_full"] is False


async def test_capacity_cannot_drop_below_enrolled(db, make_student, make_course):
    course = await make_course(capacity=3)
    first = await make_student("가", "0001")
    second = await make_student("나", "0002")
    for student in (first, second):
        await EnrollmentService(db).submit_enrollments(student.id, [course.id])

    with pytest.raises(ValidationError):
        await CourseService(db).update_course(course.id, {"capacity": 1})

    updated = await CourseService(db).update_course(course.id, {"capacity": 2, "enrolled": 0})
    assert (updated.capacity, updated.enrolled) == (2, 2)


async def test_course_with_active_enrollments_cannot_be_deleted(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    await EnrollmentService(db).submit_enrollments(student.id, [course.id])

    with pytest.raises(ResourceInUse):
        await CourseService(db).delete_course(course.id)


async def test_batch_create_reports_bad_rows(db):
    results = await CourseService(db).batch_create_courses([
        {"title": "영어", "instructor": "김선생", "schedules": [{"day": "화", "start_period": 1, "end_period": 1}]},
        {"title": "", "instructor": "김선생"},
        {"title": "과학", "instructor": "최선생"},
    ], "admin")

    assert [r["success"] for r in results] == [True, False, False]
    assert results[1]["error"] == "필수 항목 누락 (강좌명, 강사)"
    assert results[2]["error"] == "시간표 정보가 없습니다."


async def test_season_dates_and_delete_guard(db, make_course):
    service = SeasonService(db)

    with pytest.raises(ValidationError):
        await service.create_season({"name": "봄학기", "start_date": date(2026, 6, 1), "end_date": date(2026, 3, 1)})

    season = await service.create_season({"name": "봄학기", "start_date": date(2026, 3, 1)})
    await make_course(season_id=season.id)

    with pytest.raises(ResourceInUse):
        await service.delete_season(season.id)
