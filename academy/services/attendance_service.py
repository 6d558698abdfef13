# academy/services/attendance_service.py
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.database import run_in_transaction
from ..core.exceptions import CourseNotFound
from ..models.attendance import Attendance, AttendanceStatus
from ..models.course import Course
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

# Statuses that count towards the attendance rate
ATTENDED_STATUSES = (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value, AttendanceStatus.EXCUSED.value)


def attendance_stats(records: Sequence[Attendance]) -> Dict[str, int]:
    stats = {status.value: 0 for status in AttendanceStatus}
    for record in records:
        if record.status in stats:
            stats[record.status] += 1
    stats["total"] = len(records)
    stats["rate"] = 0
    if records:
        attended = sum(stats[status] for status in ATTENDED_STATUSES)
        # Half rounds up, matching the rate shown to students
        stats["rate"] = int(attended * 100 / len(records) + 0.5)
    return stats


class AttendanceService(BaseService[Attendance]):
    def __init__(self, db: AsyncSession):
        super().__init__(Attendance, db)

    async def _ensure_course(self, course_id: UUID):
        if not await BaseService(Course, self.db).get(course_id):
            raise CourseNotFound(course_id)

    @staticmethod
    async def _upsert(
        session: AsyncSession,
        course_id: UUID,
        student_id: str,
        day: date,
        status: AttendanceStatus,
        note: str,
        admin_id: Optional[str]
    ) -> Dict[str, Any]:
        record = (await session.execute(
            select(Attendance).where(
                Attendance.course_id == course_id,
                Attendance.student_id == student_id,
                Attendance.date == day
            )
        )).scalar_one_or_none()

        values = {"status": status.value, "note": note or "", "checked_by": admin_id, "checked_at": utcnow()}
        if record:
            for key, value in values.items():
                setattr(record, key, value)
            created = False
        else:
            record = Attendance(course_id=course_id, student_id=student_id, date=day, **values)
            session.add(record)
            created = True
        await session.flush()
        return {"student_id": student_id, "id": str(record.id), "created": created, "updated": not created}

    async def check_attendance(
        self,
        course_id: UUID,
        student_id: str,
        day: date,
        status: AttendanceStatus,
        note: str = "",
        admin_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Record one student's attendance, overwriting an earlier check for the same day."""
        await self._ensure_course(course_id)

        async def work(session: AsyncSession):
            return await self._upsert(session, course_id, student_id, day, status, note, admin_id)

        return await run_in_transaction(self.db.bind, work)

    async def bulk_check_attendance(
        self,
        course_id: UUID,
        day: date,
        entries: Sequence[Dict[str, Any]],
        admin_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """All entries are written in one transaction or none are."""
        await self._ensure_course(course_id)

        async def work(session: AsyncSession):
            return [
                await self._upsert(
                    session, course_id, entry["student_id"], day,
                    AttendanceStatus(entry["status"]), entry.get("note", ""), admin_id
                )
                for entry in entries
            ]

        results = await run_in_transaction(self.db.bind, work)
        logger.info(f"Attendance for course {course_id} on {day}: {len(results)} record(s) by {admin_id}")
        return results

    async def _records(self, *criteria, order=None) -> List[Attendance]:
        stmt = select(Attendance).where(*criteria)
        if order is not None:
            stmt = stmt.order_by(order)
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_attendance_by_date(self, course_id: UUID, day: date) -> List[Attendance]:
        return await self._records(Attendance.course_id == course_id, Attendance.date == day)

    async def get_student_attendance(self, student_id: str, course_id: Optional[UUID] = None) -> List[Attendance]:
        criteria = [Attendance.student_id == student_id]
        if course_id is not None:
            criteria.append(Attendance.course_id == course_id)
        return await self._records(*criteria, order=Attendance.date.desc())

    async def get_course_stats(self, course_id: UUID) -> Dict[str, int]:
        return attendance_stats(await self._records(Attendance.course_id == course_id))

    async def get_student_stats(self, student_id: str, course_id: UUID) -> Dict[str, int]:
        return attendance_stats(await self._records(
            Attendance.student_id == student_id,
            Attendance.course_id == course_id
        ))

    async def get_course_records(self, course_id: UUID) -> List[Attendance]:
        return await self._records(Attendance.course_id == course_id, order=Attendance.date.asc())

    async def get_attendance_dates(self, course_id: UUID) -> List[date]:
        result = await self.db.execute(
            select(Attendance.date).where(Attendance.course_id == course_id).distinct().order_by(Attendance.date.asc())
        )
        return list(result.scalars().all())
