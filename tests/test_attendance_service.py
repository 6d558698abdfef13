from datetime import date
import uuid

import pytest

from academy.core.exceptions import CourseNotFound
from academy.models.attendance import AttendanceStatus
from academy.services.attendance_service import AttendanceService, attendance_stats


class Record:
    def __init__(self, status):
        self.status = status


def test_rate_counts_present_late_and_excused():
    records = [Record(s) for s in ("present", "late", "excused", "absent", "absent", "present")]
    stats = attendance_stats(records)
    assert stats == {"present": 2, "absent": 2, "late": 1, "excused": 1, "total": 6, "rate": 67}


def test_rate_is_zero_without_records():
    assert attendance_stats([])["rate"] == 0


def test_rate_rounds_half_up():
    records = [Record("present")] + [Record("absent")] * 7
    assert attendance_stats(records)["rate"] == 13  # 12.5


async def test_check_is_an_upsert(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = AttendanceService(db)
    day = date(2026, 3, 2)

    first = await service.check_attendance(course.id, student.id, day, AttendanceStatus.ABSENT, admin_id="a1")
    second = await service.check_attendance(course.id, student.id, day, AttendanceStatus.LATE, "버스", "a2")

    assert first["created"] and second["updated"]
    assert first["id"] == second["id"]
    [record] = await service.get_attendance_by_date(course.id, day)
    assert (record.status, record.note, record.checked_by) == ("late", "버스", "a2")


async def test_bulk_check_and_course_queries(db, make_student, make_course):
    course = await make_course()
    a = await make_student("가", "0001")
    b = await make_student("나", "0002")
    service = AttendanceService(db)

    await service.bulk_check_attendance(course.id, date(2026, 3, 9), [
        {"student_id": a.id, "status": "present"},
        {"student_id": b.id, "status": "absent", "note": "병결"},
    ], "admin")
    await service.bulk_check_attendance(course.id, date(2026, 3, 2), [
        {"student_id": a.id, "status": "late"},
    ], "admin")

    assert await service.get_attendance_dates(course.id) == [date(2026, 3, 2), date(2026, 3, 9)]
    assert [r.date for r in await service.get_course_records(course.id)] == [
        date(2026, 3, 2), date(2026, 3, 9), date(2026, 3, 9)
    ]
    assert [r.date for r in await service.get_student_attendance(a.id)] == [date(2026, 3, 9), date(2026, 3, 2)]
    assert (await service.get_course_stats(course.id))["rate"] == 67
    assert (await service.get_student_stats(a.id, course.id))["rate"] == 100


async def test_bulk_check_is_all_or_nothing(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = AttendanceService(db)

    with pytest.raises(ValueError):
        await service.bulk_check_attendance(course.id, date(2026, 3, 2), [
            {"student_id": student.id, "status": "present"},
            {"student_id": student.id, "status": "unknown"},
        ])
    assert await service.get_attendance_by_date(course.id, date(2026, 3, 2)) == []


async def test_unknown_course(db, make_student):
    student = await make_student()
    with pytest.raises(CourseNotFound):
        await AttendanceService(db).check_attendance(uuid.uuid4(), student.id, date(2026, 3, 2), AttendanceStatus.PRESENT)
