# academy/services/course_service.py
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .conflict_detector import format_schedule, normalize_schedules, to_legacy_format
from ..constants import DEFAULT_CATEGORY, DEFAULT_COURSE_CAPACITY, DEFAULT_LEVEL
from ..core.exceptions import CourseNotFound, ResourceInUse, ValidationError
from ..models.course import Course
from ..models.enrollment import Enrollment, ACTIVE_STATUSES

logger = logging.getLogger(__name__)


def canonical_schedules(course_data: Dict[str, Any]) -> List[dict]:
    """Schedules as stored: always the multi-slot list, whatever form came in."""
    return [slot.as_dict() for slot in normalize_schedules(course_data)]


def catalog_entry(course: Course) -> Dict[str, Any]:
    """Student-facing view of a course with readable schedule lines."""
    legacy = to_legacy_format(course.schedules)
    return {
        "id": str(course.id),
        "season_id": str(course.season_id) if course.season_id else None,
        "title": course.title,
        "instructor": course.instructor,
        "category": course.category,
        "level": course.level,
        "room": course.room,
        "description": course.description,
        "capacity": course.capacity,
        "enrolled": course.enrolled,
        "is_full": course.enrolled >= course.capacity,
        "schedules": list(course.schedules),
        "day": legacy["day"],
        "schedule_text": [
            format_schedule(slot.day, slot.start_period, slot.end_period)
            for slot in normalize_schedules(course)
        ],
    }


class CourseService(BaseService[Course]):
    def __init__(self, db: AsyncSession):
        super().__init__(Course, db)

    async def get_or_404(self, course_id: UUID) -> Course:
        course = await self.get(course_id)
        if not course:
            raise CourseNotFound(course_id)
        return course

    async def create_course(self, course_data: Dict[str, Any], admin_id: Optional[str] = None) -> Course:
        course = await self.create({
            "title": course_data["title"],
            "instructor": course_data["instructor"],
            "category": course_data.get("category") or DEFAULT_CATEGORY,
            "level": course_data.get("level") or DEFAULT_LEVEL,
            "schedules": canonical_schedules(course_data),
            "room": course_data.get("room") or "",
            "description": course_data.get("description") or "",
            "capacity": course_data.get("capacity", DEFAULT_COURSE_CAPACITY),
            "enrolled": 0,
            "season_id": course_data.get("season_id"),
            "is_active": True,
            "created_by": admin_id,
        })
        logger.info(f"Course {course.id} ({course.title}) created by {admin_id}")
        return course

    async def batch_create_courses(
        self,
        courses_data: Sequence[Dict[str, Any]],
        admin_id: Optional[str] = None,
        season_id: Optional[UUID] = None
    ) -> List[Dict[str, Any]]:
        """Create courses one by one, reporting each row's outcome"""
        results = []
        for row in courses_data:
            title = row.get("title")
            if not title or not row.get("instructor"):
                results.append({"title": title, "success": False, "error": "필수 항목 누락 (강좌명, 강사)"})
                continue
            if not canonical_schedules(row):
                results.append({"title": title, "success": False, "error": "시간표 정보가 없습니다."})
                continue

            course = await self.create_course({**row, "season_id": season_id or row.get("season_id")}, admin_id)
            results.append({"title": title, "success": True, "course_id": str(course.id)})
        return results

    async def list_courses(
        self,
        season_id: Optional[UUID] = None,
        active_only: bool = False,
        category: Optional[str] = None
    ) -> List[Course]:
        filters = {"season_id": season_id, "category": category}
        if active_only:
            filters["is_active"] = True
        return await self.get_multi(order_by="created_at", sort="desc", **filters)

    async def update_course(self, course_id: UUID, updates: Dict[str, Any]) -> Course:
        course = await self.get_or_404(course_id)

        if "schedules" in updates or "day" in updates:
            updates = dict(updates)
            updates["schedules"] = canonical_schedules(updates)
            updates.pop("day", None)
            updates.pop("start_period", None)
            updates.pop("end_period", None)

        # Capacity may not shrink below seats already spoken for
        capacity = updates.get("capacity")
        if capacity is not None and capacity < course.enrolled:
            raise ValidationError(
                f"Capacity {capacity} is below the {course.enrolled} seats already taken",
                field="capacity"
            )
        # The counter belongs to the enrollment workflow
        updates.pop("enrolled", None)

        return await self.update(course_id, updates)

    async def toggle_active(self, course_id: UUID, is_active: bool) -> Course:
        return await self.update_course(course_id, {"is_active": is_active})

    async def active_enrollment_count(self, course_id: UUID) -> int:
        stmt = select(func.count()).select_from(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.status.in_(ACTIVE_STATUSES)
        )
        return (await self.db.execute(stmt)).scalar()

    async def delete_course(self, course_id: UUID) -> bool:
        await self.get_or_404(course_id)
        if await self.active_enrollment_count(course_id):
            raise ResourceInUse("Course still has pending or approved enrollments")
        return await self.hard_delete(course_id)
