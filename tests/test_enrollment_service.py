import asyncio
from datetime import timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy import update

from academy.core.exceptions import (
    ChangePeriodClosed, EnrollmentClosed, EnrollmentNotFound, InvalidTransition, SeasonNotFound, ValidationError
)
from academy.models.course import Course
from academy.models.enrollment import EnrollmentStatus
from academy.models.notification import NotificationType
from academy.services.change_feed import ENROLLMENTS_TOPIC, change_feed
from academy.services.course_service import CourseService
from academy.services import enrollment_service
from academy.services.enrollment_service import EnrollmentService
from academy.services.season_service import SeasonService
from academy.services.notification_service import NotificationService
from academy.services.student_service import StudentService
from academy.utils.dates import utcnow


async def enrolled_count(db, course_id):
    return (await CourseService(db).get_or_404(course_id)).enrolled


async def test_capacity_two_course_end_to_end(db, make_student, make_course):
    course = await make_course(capacity=2)
    s1 = await make_student("학생일", "1111")
    s2 = await make_student("학생이", "2222")
    s3 = await make_student("학생삼", "3333")
    service = EnrollmentService(db)

    [first] = await service.submit_enrollments(s1.id, [course.id])
    assert first["success"]
    assert await enrolled_count(db, course.id) == 1

    [second] = await service.submit_enrollments(s2.id, [course.id])
    assert second["success"]
    assert await enrolled_count(db, course.id) == 2

    [third] = await service.submit_enrollments(s3.id, [course.id])
    assert not third["success"]
    assert third["error"] == "CapacityExceeded"
    assert await enrolled_count(db, course.id) == 2

    pending = await service.get_student_enrollments(s1.id)
    assert [e.status for e in pending] == [EnrollmentStatus.PENDING.value]

    rejected = await service.reject_enrollment(UUID(first["enrollment_id"]), "admin", "시간 조정")
    assert rejected.status == EnrollmentStatus.REJECTED.value
    assert rejected.rejection_reason == "시간 조정"
    assert await enrolled_count(db, course.id) == 1

    notifications = await NotificationService(db).get_student_notifications(s1.id)
    assert len(notifications) == 1
    assert notifications[0].type == NotificationType.REJECTION.value
    assert "시간 조정" in notifications[0].message


async def test_concurrent_submissions_for_last_seat(db, session_factory, make_student, make_course):
    course = await make_course(capacity=1)
    a = await make_student("동시일", "1000")
    b = await make_student("동시이", "2000")

    async def submit(student_id):
        async with session_factory() as session:
            return await EnrollmentService(session).submit_enrollments(student_id, [course.id])

    results = await asyncio.gather(submit(a.id), submit(b.id))
    outcomes = [r[0] for r in results]

    assert sorted(o["success"] for o in outcomes) == [False, True]
    failed = next(o for o in outcomes if not o["success"])
    assert failed["error"] == "CapacityExceeded"
    assert await enrolled_count(db, course.id) == 1


async def test_duplicate_pending_request_is_refused(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)

    await service.submit_enrollments(student.id, [course.id])
    [again] = await service.submit_enrollments(student.id, [course.id])

    assert again["error"] == "AlreadyEnrolled"
    assert await enrolled_count(db, course.id) == 1


async def test_batch_submission_reports_each_course(db, make_student, make_course):
    open_course = await make_course("국어", capacity=5)
    full_course = await make_course("영어", capacity=0)
    student = await make_student()

    results = await EnrollmentService(db).submit_enrollments(student.id, [open_course.id, full_course.id])

    assert [r["success"] for r in results] == [True, False]
    assert results[1]["error"] == "CapacityExceeded"
    assert await enrolled_count(db, open_course.id) == 1


async def test_resubmit_after_rejection_is_allowed(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)

    [first] = await service.submit_enrollments(student.id, [course.id])
    await service.reject_enrollment(UUID(first["enrollment_id"]), "admin", "정원 조정")
    [second] = await service.submit_enrollments(student.id, [course.id])

    assert second["success"]
    assert await enrolled_count(db, course.id) == 1


async def test_closed_student_cannot_submit(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    await StudentService(db).set_enrollment_status(student.id, False)

    with pytest.raises(EnrollmentClosed):
        await EnrollmentService(db).submit_enrollments(student.id, [course.id])


async def test_reject_twice_is_invalid(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])

    await service.reject_enrollment(UUID(outcome["enrollment_id"]), "admin", "중복")
    with pytest.raises(InvalidTransition):
        await service.reject_enrollment(UUID(outcome["enrollment_id"]), "admin", "중복")
    assert await enrolled_count(db, course.id) == 0


async def test_reject_requires_reason(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])

    with pytest.raises(ValidationError):
        await service.reject_enrollment(UUID(outcome["enrollment_id"]), "admin", "   ")


async def test_seat_release_never_goes_below_zero(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])

    # Simulate a drifted counter
    await db.execute(update(Course).where(Course.id == course.id).values(enrolled=0))
    await db.commit()

    await service.reject_enrollment(UUID(outcome["enrollment_id"]), "admin", "정리")
    assert await enrolled_count(db, course.id) == 0


async def test_student_cancel_respects_change_period(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])
    await service.approve_enrollment(UUID(outcome["enrollment_id"]), "admin")

    with pytest.raises(ChangePeriodClosed):
        await service.cancel_enrollment(UUID(outcome["enrollment_id"]), student.id)

    now = utcnow()
    await StudentService(db).set_change_period(student.id, now - timedelta(days=1), now + timedelta(days=1))
    cancelled = await service.cancel_enrollment(UUID(outcome["enrollment_id"]), student.id)

    assert cancelled.status == EnrollmentStatus.CANCELLED.value
    assert cancelled.cancelled_by == student.id
    assert await enrolled_count(db, course.id) == 0


async def test_admin_cancel_ignores_change_period(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])
    await service.approve_enrollment(UUID(outcome["enrollment_id"]), "admin")

    cancelled = await service.admin_cancel_enrollment(UUID(outcome["enrollment_id"]), "admin-1")

    assert cancelled.status == EnrollmentStatus.CANCELLED.value
    assert await enrolled_count(db, course.id) == 0


async def test_student_cannot_cancel_someone_elses_enrollment(db, make_student, make_course):
    course = await make_course()
    owner = await make_student("주인", "0001")
    other = await make_student("타인", "0002")
    now = utcnow()
    await StudentService(db).set_change_period(other.id, now - timedelta(hours=1), now + timedelta(hours=1))
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(owner.id, [course.id])

    with pytest.raises(EnrollmentNotFound):
        await service.cancel_enrollment(UUID(outcome["enrollment_id"]), other.id)


async def test_approve_keeps_seat_and_notifies(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])

    approved = await service.approve_enrollment(UUID(outcome["enrollment_id"]), "admin-1")

    assert approved.status == EnrollmentStatus.APPROVED.value
    assert approved.approved_by == "admin-1"
    assert await enrolled_count(db, course.id) == 1
    [notification] = await NotificationService(db).get_student_notifications(student.id)
    assert notification.title == "수강 신청 승인"


async def test_notification_failure_does_not_fail_approval(db, make_student, make_course, monkeypatch):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])

    async def broken(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(NotificationService, "create_approval_notification", broken)
    approved = await service.approve_enrollment(UUID(outcome["enrollment_id"]), "admin")

    assert approved.status == EnrollmentStatus.APPROVED.value
    assert await NotificationService(db).get_student_notifications(student.id) == []


async def test_batch_approve_reports_per_enrollment(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])
    await service.approve_enrollment(UUID(outcome["enrollment_id"]), "admin")

    results = await service.batch_approve([UUID(outcome["enrollment_id"])], "admin")

    assert results[0]["success"] is False
    assert results[0]["error"] == "InvalidTransition"


async def test_recalculate_repairs_drifted_counter(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    await service.submit_enrollments(student.id, [course.id])
    await db.execute(update(Course).where(Course.id == course.id).values(enrolled=7))
    await db.commit()

    changes = await service.recalculate_enrolled_counts()

    assert changes == {str(course.id): {"before": 7, "after": 1}}
    assert await enrolled_count(db, course.id) == 1


async def test_conflict_report_against_seats_and_cart(db, make_student, make_course):
    monday = await make_course("월요일 수학", schedules=[{"day": "월", "start_period": 1, "end_period": 2}])
    overlap = await make_course("월요일 국어", schedules=[{"day": "월", "start_period": 2, "end_period": 3}])
    tuesday = await make_course("화요일 영어", schedules=[{"day": "화", "start_period": 1, "end_period": 2}])
    student = await make_student()
    service = EnrollmentService(db)
    await service.submit_enrollments(student.id, [monday.id])

    report = await service.check_conflicts_for_student(student.id, overlap.id, [tuesday.id])

    assert report["has_conflict"]
    assert not report["already_enrolled"]
    assert [c["course_id"] for c in report["enrolled_conflicts"]] == [str(monday.id)]
    assert report["cart_conflicts"] == []


async def test_submission_publishes_change_event(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    events = []
    change_feed.subscribe(ENROLLMENTS_TOPIC, events.append, lambda e: e["student_id"] == student.id)

    await EnrollmentService(db).submit_enrollments(student.id, [course.id])

    assert [e["action"] for e in events] == ["submitted"]
    assert events[0]["course_id"] == str(course.id)


async def test_unique_index_reports_duplicate_as_already_enrolled(db, make_student, make_course, monkeypatch):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    await service.submit_enrollments(student.id, [course.id])

    # Hide pending rows from the pre-check so only the index can refuse the second request
    monkeypatch.setattr(enrollment_service, "ACTIVE_STATUSES", (EnrollmentStatus.APPROVED.value,))
    [again] = await service.submit_enrollments(student.id, [course.id])

    assert again["success"] is False
    assert again["error"] == "AlreadyEnrolled"
    assert await enrolled_count(db, course.id) == 1


async def test_unknown_season_aborts_submission(db, make_student, make_course):
    course = await make_course()
    student = await make_student()

    with pytest.raises(SeasonNotFound):
        await EnrollmentService(db).submit_enrollments(student.id, [course.id], uuid4())
    assert await enrolled_count(db, course.id) == 0
    assert await EnrollmentService(db).get_student_enrollments(student.id, active_only=False) == []


async def test_submission_records_requested_season(db, make_student, make_course):
    season = await SeasonService(db).create_season({"name": "여름학기"})
    course = await make_course()
    student = await make_student()

    [outcome] = await EnrollmentService(db).submit_enrollments(student.id, [course.id], season.id)

    [enrollment] = await EnrollmentService(db).get_student_enrollments(student.id)
    assert str(enrollment.id) == outcome["enrollment_id"]
    assert enrollment.season_id == season.id


async def test_terminal_enrollments_cannot_be_cancelled(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    now = utcnow()
    await StudentService(db).set_change_period(student.id, now - timedelta(days=1), now + timedelta(days=1))
    service = EnrollmentService(db)

    [rejected] = await service.submit_enrollments(student.id, [course.id])
    await service.reject_enrollment(UUID(rejected["enrollment_id"]), "admin", "정원 조정")
    [cancelled] = await service.submit_enrollments(student.id, [course.id])
    await service.admin_cancel_enrollment(UUID(cancelled["enrollment_id"]), "admin")
    assert await enrolled_count(db, course.id) == 0

    for outcome in (rejected, cancelled):
        enrollment_id = UUID(outcome["enrollment_id"])
        with pytest.raises(InvalidTransition):
            await service.cancel_enrollment(enrollment_id, student.id)
        with pytest.raises(InvalidTransition):
            await service.admin_cancel_enrollment(enrollment_id, "admin")
    assert await enrolled_count(db, course.id) == 0


async def test_student_cancels_pending_enrollment_inside_change_period(db, make_student, make_course):
    course = await make_course()
    student = await make_student()
    service = EnrollmentService(db)
    [outcome] = await service.submit_enrollments(student.id, [course.id])
    enrollment_id = UUID(outcome["enrollment_id"])

    with pytest.raises(ChangePeriodClosed):
        await service.cancel_enrollment(enrollment_id, student.id)
    assert await enrolled_count(db, course.id) == 1

    now = utcnow()
    await StudentService(db).set_change_period(student.id, now - timedelta(hours=1), now + timedelta(hours=1))
    cancelled = await service.cancel_enrollment(enrollment_id, student.id)

    assert cancelled.status == EnrollmentStatus.CANCELLED.value
    assert await enrolled_count(db, course.id) == 0
