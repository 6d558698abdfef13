# academy/services/enrollment_service.py
"""Enrollment admission, approval, rejection and cancellation.

Every operation that touches a course's ``enrolled`` counter runs inside one
``run_in_transaction`` unit together with the enrollment status write, so the
counter and the set of pending/approved enrollments never drift apart. The
counter is only ever changed with conditional UPDATE statements evaluated by
the database, never from a value read earlier in Python.
"""
from datetime import datetime
from functools import partial
from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .change_feed import change_feed, ENROLLMENTS_TOPIC
from .conflict_detector import check_conflicts, conflicting_slot_pairs
from .notification_service import NotificationService
from .student_service import is_within_change_period
from ..core.database import run_in_transaction
from ..core.exceptions import (
    AcademyException, AlreadyEnrolled, CapacityExceeded, ChangePeriodClosed, CourseNotFound,
    EnrollmentClosed, EnrollmentNotFound, InvalidTransition, SeasonNotFound, StudentNotFound, ValidationError
)
from ..models.course import Course, seat_release_expression
from ..models.enrollment import Enrollment, EnrollmentStatus, ACTIVE_STATUSES, ACTIVE_ENROLLMENT_INDEX
from ..models.season import Season
from ..models.student import Student
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

# Failures reported per course during batch submission instead of aborting the batch
PER_COURSE_FAILURES = (CapacityExceeded, AlreadyEnrolled, CourseNotFound)

# SQLite reports the indexed columns, PostgreSQL the index name
DUPLICATE_ACTIVE_MARKERS = (ACTIVE_ENROLLMENT_INDEX, "enrollments.student_id, enrollments.course_id")


def is_duplicate_active_enrollment(error: IntegrityError) -> bool:
    message = str(error.orig)
    return any(marker in message for marker in DUPLICATE_ACTIVE_MARKERS)


def enrollment_event(enrollment: Enrollment, action: str) -> dict:
    return {
        "action": action,
        "enrollment_id": str(enrollment.id),
        "student_id": enrollment.student_id,
        "course_id": str(enrollment.course_id),
        "status": enrollment.status,
    }


class EnrollmentService(BaseService[Enrollment]):
    def __init__(self, db: AsyncSession):
        super().__init__(Enrollment, db)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_enrollments(
        self,
        student_id: str,
        course_ids: Sequence[UUID],
        season_id: Optional[UUID] = None
    ) -> List[Dict[str, Any]]:
        """Request a seat in each course; one atomic unit per course.

        Returns one outcome per course id, in request order. A failure for one
        course never rolls back or blocks the others.
        """
        student = await self._get_student(student_id)
        if not student.enrollment_open:
            raise EnrollmentClosed()
        if season_id is not None and not await BaseService(Season, self.db).get(season_id):
            raise SeasonNotFound(season_id)

        results = []
        for course_id in course_ids:
            try:
                enrollment = await run_in_transaction(
                    self.db.bind, partial(self._admit, student_id, course_id, season_id)
                )
            except PER_COURSE_FAILURES as e:
                logger.info(f"Enrollment of {student_id} in {course_id} refused: {e.code}")
                results.append(self._failure(course_id, e))
                continue
            except AcademyException as e:
                # InfrastructureError for this course only
                logger.error(f"Enrollment of {student_id} in {course_id} failed: {e.message}")
                results.append(self._failure(course_id, e))
                continue

            logger.info(f"Enrollment {enrollment.id} created for {student_id} in {course_id}")
            results.append({
                "course_id": str(course_id),
                "success": True,
                "enrollment_id": str(enrollment.id),
            })
            await change_feed.publish(ENROLLMENTS_TOPIC, enrollment_event(enrollment, "submitted"))

        return results

    @staticmethod
    def _failure(course_id: UUID, error: AcademyException) -> Dict[str, Any]:
        return {
            "course_id": str(course_id),
            "success": False,
            "error": error.code,
            "message": error.message,
        }

    async def _admit(
        self,
        student_id: str,
        course_id: UUID,
        season_id: Optional[UUID],
        session: AsyncSession
    ) -> Enrollment:
        course = (await session.execute(
            select(Course).where(Course.id == course_id)
        )).scalar_one_or_none()
        if course is None:
            raise CourseNotFound(course_id)
        # The row expires if the insert below fails
        title = course.title
        course_season_id = course.season_id

        if course.enrolled >= course.capacity:
            raise CapacityExceeded(course_id, title)

        existing = await session.execute(
            select(Enrollment.id).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
                Enrollment.status.in_(ACTIVE_STATUSES)
            ).limit(1)
        )
        if existing.first() is not None:
            raise AlreadyEnrolled(course_id, title)

        # The seat claim itself: only succeeds while a seat is still free
        claimed = await session.execute(
            update(Course)
            .where(Course.id == course_id, Course.enrolled < Course.capacity)
            .values(enrolled=Course.enrolled + 1)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            raise CapacityExceeded(course_id, title)

        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            season_id=season_id or course_season_id,
            status=EnrollmentStatus.PENDING.value,
            enrolled_at=utcnow(),
        )
        session.add(enrollment)
        try:
            await session.flush()
        except IntegrityError as e:
            if not is_duplicate_active_enrollment(e):
                raise
            # A concurrent request for the same pair won the unique index
            raise AlreadyEnrolled(course_id, title) from e
        return enrollment

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    async def _transition(
        self,
        session: AsyncSession,
        enrollment_id: UUID,
        target: EnrollmentStatus,
        allowed_from: Iterable[str],
        values: Dict[str, Any],
        release_seat: bool,
        student_id: Optional[str] = None
    ) -> Enrollment:
        enrollment = (await session.execute(
            select(Enrollment).where(Enrollment.id == enrollment_id).with_for_update()
        )).scalar_one_or_none()
        if enrollment is None or (student_id is not None and enrollment.student_id != student_id):
            raise EnrollmentNotFound(enrollment_id)

        allowed_from = tuple(allowed_from)
        if enrollment.status not in allowed_from:
            raise InvalidTransition(enrollment.status, target.value)

        changed = await session.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment_id, Enrollment.status == enrollment.status)
            .values(status=target.value, **values)
            .execution_options(synchronize_session=False)
        )
        if changed.rowcount == 0:
            # Another transaction moved it first
            await session.refresh(enrollment)
            raise InvalidTransition(enrollment.status, target.value)

        if release_seat:
            await session.execute(
                update(Course)
                .where(Course.id == enrollment.course_id)
                .values(enrolled=seat_release_expression())
                .execution_options(synchronize_session=False)
            )

        await session.refresh(enrollment)
        return enrollment

    async def approve_enrollment(self, enrollment_id: UUID, admin_id: str) -> Enrollment:
        """pending -> approved. The seat was already counted at submission."""
        enrollment = await run_in_transaction(
            self.db.bind,
            lambda session: self._transition(
                session,
                enrollment_id,
                EnrollmentStatus.APPROVED,
                allowed_from=(EnrollmentStatus.PENDING.value,),
                values={"approved_at": utcnow(), "approved_by": admin_id},
                release_seat=False,
            )
        )
        logger.info(f"Enrollment {enrollment_id} approved by {admin_id}")
        await change_feed.publish(ENROLLMENTS_TOPIC, enrollment_event(enrollment, "approved"))
        await self._notify(enrollment, reason=None)
        return enrollment

    async def reject_enrollment(self, enrollment_id: UUID, admin_id: str, reason: str) -> Enrollment:
        """pending -> rejected, releasing the seat in the same transaction."""
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required", field="reason")
        reason = reason.strip()

        enrollment = await run_in_transaction(
            self.db.bind,
            lambda session: self._transition(
                session,
                enrollment_id,
                EnrollmentStatus.REJECTED,
                allowed_from=(EnrollmentStatus.PENDING.value,),
                values={"rejected_at": utcnow(), "rejected_by": admin_id, "rejection_reason": reason},
                release_seat=True,
            )
        )
        logger.info(f"Enrollment {enrollment_id} rejected by {admin_id}")
        await change_feed.publish(ENROLLMENTS_TOPIC, enrollment_event(enrollment, "rejected"))
        await self._notify(enrollment, reason=reason)
        return enrollment

    async def cancel_enrollment(
        self,
        enrollment_id: UUID,
        student_id: str,
        now: Optional[datetime] = None
    ) -> Enrollment:
        """Student self-service cancellation, allowed only inside the change period."""
        student = await self._get_student(student_id)
        if not is_within_change_period(student, now or utcnow()):
            raise ChangePeriodClosed()

        enrollment = await run_in_transaction(
            self.db.bind,
            lambda session: self._transition(
                session,
                enrollment_id,
                EnrollmentStatus.CANCELLED,
                allowed_from=ACTIVE_STATUSES,
                values={"cancelled_at": utcnow(), "cancelled_by": student_id},
                release_seat=True,
                student_id=student_id,
            )
        )
        logger.info(f"Enrollment {enrollment_id} cancelled by student {student_id}")
        await change_feed.publish(ENROLLMENTS_TOPIC, enrollment_event(enrollment, "cancelled"))
        return enrollment

    async def admin_cancel_enrollment(self, enrollment_id: UUID, admin_id: str) -> Enrollment:
        """Admin cancellation; not gated by the student's change period."""
        enrollment = await run_in_transaction(
            self.db.bind,
            lambda session: self._transition(
                session,
                enrollment_id,
                EnrollmentStatus.CANCELLED,
                allowed_from=ACTIVE_STATUSES,
                values={"cancelled_at": utcnow(), "cancelled_by": admin_id},
                release_seat=True,
            )
        )
        logger.info(f"Enrollment {enrollment_id} cancelled by admin {admin_id}")
        await change_feed.publish(ENROLLMENTS_TOPIC, enrollment_event(enrollment, "cancelled"))
        return enrollment

    async def batch_approve(self, enrollment_ids: Sequence[UUID], admin_id: str) -> List[Dict[str, Any]]:
        return await self._batch(enrollment_ids, lambda eid: self.approve_enrollment(eid, admin_id))

    async def admin_batch_cancel(self, enrollment_ids: Sequence[UUID], admin_id: str) -> List[Dict[str, Any]]:
        return await self._batch(enrollment_ids, lambda eid: self.admin_cancel_enrollment(eid, admin_id))

    async def _batch(self, enrollment_ids, operation) -> List[Dict[str, Any]]:
        results = []
        for enrollment_id in enrollment_ids:
            try:
                enrollment = await operation(enrollment_id)
                results.append({"enrollment_id": str(enrollment_id), "success": True, "status": enrollment.status})
            except AcademyException as e:
                results.append({
                    "enrollment_id": str(enrollment_id),
                    "success": False,
                    "error": e.code,
                    "message": e.message,
                })
        return results

    async def _notify(self, enrollment: Enrollment, reason: Optional[str]):
        """Best-effort student notification; never fails the transition."""
        try:
            course = await self.db.get(Course, enrollment.course_id)
            course_name = course.title if course else str(enrollment.course_id)
            notifications = NotificationService(self.db)
            if reason is None:
                await notifications.create_approval_notification(
                    enrollment.student_id, course_name, enrollment.course_id
                )
            else:
                await notifications.create_rejection_notification(
                    enrollment.student_id, course_name, enrollment.course_id, reason
                )
        except Exception:
            logger.exception(f"Notification for enrollment {enrollment.id} could not be created")
            await self.db.rollback()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _get_student(self, student_id: str) -> Student:
        student = (await self.db.execute(
            select(Student).where(Student.id == student_id).execution_options(populate_existing=True)
        )).scalar_one_or_none()
        if student is None:
            raise StudentNotFound(student_id)
        return student

    async def _fetch(self, stmt) -> List[Enrollment]:
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_student_enrollments(self, student_id: str, active_only: bool = True) -> List[Enrollment]:
        """Pending/approved enrollments, or the full history when ``active_only`` is false."""
        stmt = select(self.model).where(self.model.student_id == student_id)
        if active_only:
            stmt = stmt.where(self.model.status.in_(ACTIVE_STATUSES))
        return await self._fetch(stmt.order_by(self.model.enrolled_at.desc()))

    async def get_pending_enrollments(self, limit: int = 500) -> List[Enrollment]:
        """Oldest request first"""
        stmt = (
            select(self.model)
            .where(self.model.status == EnrollmentStatus.PENDING.value)
            .order_by(self.model.enrolled_at.asc())
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def get_enrollments_by_course(self, course_id: UUID) -> List[Enrollment]:
        stmt = (
            select(self.model)
            .where(self.model.course_id == course_id, self.model.status.in_(ACTIVE_STATUSES))
            .order_by(self.model.enrolled_at.asc())
        )
        return await self._fetch(stmt)

    async def get_enrollments_paginated(
        self,
        page: int = 1,
        size: int = 20,
        season_id: Optional[UUID] = None,
        status: Optional[str] = None,
        course_id: Optional[UUID] = None,
        student_id: Optional[str] = None
    ) -> dict:
        filters = {
            "season_id": season_id,
            "status": status,
            "course_id": course_id,
            "student_id": student_id,
        }
        return await self.get_paginated(
            page=page,
            size=size,
            order_by="enrolled_at",
            sort="desc",
            **{key: value for key, value in filters.items() if value is not None}
        )

    async def get_busy_courses(self, student_id: str) -> List[Course]:
        """Courses the student holds a pending or approved seat in."""
        stmt = (
            select(Course)
            .join(Enrollment, Enrollment.course_id == Course.id)
            .where(Enrollment.student_id == student_id, Enrollment.status.in_(ACTIVE_STATUSES))
        )
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().unique().all())

    async def check_conflicts_for_student(
        self,
        student_id: str,
        candidate_id: UUID,
        cart_ids: Sequence[UUID] = ()
    ) -> Dict[str, Any]:
        """Collisions of a candidate with the student's seats and the staged cart."""
        candidate = await self.db.get(Course, candidate_id)
        if candidate is None:
            raise CourseNotFound(candidate_id)

        busy = await self.get_busy_courses(student_id)
        enrolled = [course for course in busy if course.id != candidate_id]

        cart = []
        for cart_id in cart_ids:
            if cart_id == candidate_id:
                continue
            course = await self.db.get(Course, cart_id)
            if course is None:
                raise CourseNotFound(cart_id)
            cart.append(course)

        def describe(courses):
            return [
                {
                    "course_id": str(course.id),
                    "title": course.title,
                    "slots": [
                        {"candidate": a.as_dict(), "conflicting": b.as_dict()}
                        for a, b in conflicting_slot_pairs(candidate, course)
                    ],
                }
                for course in courses
            ]

        enrolled_conflicts = describe(check_conflicts(candidate, enrolled))
        cart_conflicts = describe(check_conflicts(candidate, cart))
        return {
            "course_id": str(candidate_id),
            "has_conflict": bool(enrolled_conflicts or cart_conflicts),
            "already_enrolled": len(enrolled) != len(busy),
            "enrolled_conflicts": enrolled_conflicts,
            "cart_conflicts": cart_conflicts,
        }

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def recalculate_enrolled_counts(self) -> Dict[str, Dict[str, int]]:
        """Rebuild every course counter from its pending/approved rows.

        Returns the courses whose counter changed, ``{course_id: {"before", "after"}}``.
        """
        async def work(session: AsyncSession):
            courses = (await session.execute(select(Course).with_for_update())).scalars().all()
            counts = dict((await session.execute(
                select(Enrollment.course_id, func.count())
                .where(Enrollment.status.in_(ACTIVE_STATUSES))
                .group_by(Enrollment.course_id)
            )).all())

            changes = {}
            for course in courses:
                actual = counts.get(course.id, 0)
                if course.enrolled != actual:
                    changes[str(course.id)] = {"before": course.enrolled, "after": actual}
                    course.enrolled = actual
            return changes

        changes = await run_in_transaction(self.db.bind, work)
        if changes:
            logger.warning(f"Recalculated enrolled counters for {len(changes)} course(s): {changes}")
        return changes
