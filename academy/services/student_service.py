# academy/services/student_service.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from sqlalchemy import select, update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.database import run_in_transaction
from ..core.security import sanitize_search_term
from ..core.exceptions import DuplicateStudent, StudentNotFound, ValidationError
from ..models.attendance import Attendance
from ..models.course import Course, seat_release_expression
from ..models.enrollment import Enrollment, ACTIVE_STATUSES
from ..models.notification import Notification
from ..models.student import Student
from ..utils.dates import as_utc, utcnow

logger = logging.getLogger(__name__)

DUPLICATE_SKIP = "skip"
DUPLICATE_OVERWRITE = "overwrite"


def generate_student_id(name: str, phone: str) -> str:
    """Deterministic student key from name and the last four phone digits."""
    return f"{name.strip()}_{phone.strip()}"


def is_within_change_period(student: Student, now: Optional[datetime] = None) -> bool:
    """Both bounds inclusive; a student without a window is never inside one."""
    start = as_utc(student.change_start_date)
    end = as_utc(student.change_end_date)
    if start is None or end is None:
        return False
    now = as_utc(now) if now else utcnow()
    return start <= now <= end


def _validate_change_period(start: Optional[datetime], end: Optional[datetime]):
    if (start is None) != (end is None):
        raise ValidationError("Change period needs both a start and an end", field="change_start_date")
    if start is not None and as_utc(start) > as_utc(end):
        raise ValidationError("Change period start must not be after its end", field="change_start_date")


class StudentService(BaseService[Student]):
    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def get_or_404(self, student_id: str) -> Student:
        student = await self.get(student_id)
        if not student:
            raise StudentNotFound(student_id)
        return student

    async def find_by_credentials(self, name: str, phone: str) -> Optional[Student]:
        return await self.get(generate_student_id(name, phone))

    async def create_student(self, student_data: Dict[str, Any], admin_id: Optional[str] = None) -> Student:
        student_id = generate_student_id(student_data["name"], student_data["phone"])
        if await self.get(student_id):
            raise DuplicateStudent(student_id)

        student = await self.create({
            "id": student_id,
            "name": student_data["name"].strip(),
            "phone": student_data["phone"].strip(),
            "birth_date": student_data.get("birth_date") or "",
            "class_name": student_data.get("class_name") or None,
            "enrollment_open": True,
            "created_by": admin_id,
        })
        logger.info(f"Student {student_id} created by {admin_id}")
        return student

    async def check_batch_duplicates(self, students_data: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Preview which rows of a batch import already exist"""
        results = []
        for row in students_data:
            student_id = generate_student_id(row["name"], row["phone"])
            existing = await self.get(student_id)
            results.append({
                **row,
                "student_id": student_id,
                "is_duplicate": existing is not None,
                "existing_class_name": existing.class_name if existing else None,
            })
        return results

    async def batch_create_students(
        self,
        students_data: Sequence[Dict[str, Any]],
        admin_id: Optional[str] = None,
        duplicate_action: Union[str, Dict[str, str]] = DUPLICATE_SKIP
    ) -> List[Dict[str, Any]]:
        """Create students row by row; ``duplicate_action`` is one action or a per-key map."""
        results = []
        for row in students_data:
            student_id = generate_student_id(row["name"], row["phone"])
            existing = await self.get(student_id)

            if existing:
                action = duplicate_action
                if isinstance(duplicate_action, dict):
                    action = duplicate_action.get(student_id, DUPLICATE_SKIP)

                if action == DUPLICATE_OVERWRITE:
                    await self.update(student_id, {
                        "name": row["name"].strip(),
                        "phone": row["phone"].strip(),
                        "birth_date": row.get("birth_date") or "",
                        "class_name": row.get("class_name") or None,
                    })
                    results.append({**row, "student_id": student_id, "success": True, "overwritten": True})
                else:
                    results.append({
                        **row,
                        "student_id": student_id,
                        "success": False,
                        "skipped": True,
                        "error": "이미 존재하는 학생 (건너뜀)",
                    })
                continue

            await self.create_student(row, admin_id)
            results.append({**row, "student_id": student_id, "success": True, "created": True})

        return results

    async def list_students(
        self,
        search: Optional[str] = None,
        class_name: Optional[str] = None,
        enrollment_open: Optional[bool] = None
    ) -> List[Student]:
        stmt = select(self.model)
        if search:
            pattern = f"%{sanitize_search_term(search)}%"
            stmt = stmt.where(or_(
                self.model.name.like(pattern, escape="\\"),
                self.model.phone.like(pattern, escape="\\")
            ))
        if class_name is not None:
            stmt = stmt.where(self.model.class_name == class_name)
        if enrollment_open is not None:
            stmt = stmt.where(self.model.enrollment_open == enrollment_open)
        stmt = stmt.order_by(self.model.created_at.desc(), self.model.name.asc())

        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def update_student(self, student_id: str, updates: Dict[str, Any]) -> Student:
        if "change_start_date" in updates or "change_end_date" in updates:
            current = await self.get_or_404(student_id)
            _validate_change_period(
                updates.get("change_start_date", current.change_start_date),
                updates.get("change_end_date", current.change_end_date),
            )
        student = await self.update(student_id, updates)
        if not student:
            raise StudentNotFound(student_id)
        return student

    async def set_enrollment_status(self, student_id: str, is_open: bool) -> Student:
        return await self.update_student(student_id, {"enrollment_open": is_open})

    async def set_change_period(self, student_id: str, start: Optional[datetime], end: Optional[datetime]) -> Student:
        _validate_change_period(start, end)
        return await self.update_student(student_id, {"change_start_date": start, "change_end_date": end})

    async def batch_set_enrollment_status(self, student_ids: Sequence[str], is_open: bool) -> int:
        result = await self.db.execute(
            update(self.model).where(self.model.id.in_(student_ids)).values(enrollment_open=is_open)
        )
        await self.db.commit()
        return result.rowcount

    async def batch_set_change_period(
        self, student_ids: Sequence[str], start: Optional[datetime], end: Optional[datetime]
    ) -> int:
        _validate_change_period(start, end)
        result = await self.db.execute(
            update(self.model)
            .where(self.model.id.in_(student_ids))
            .values(change_start_date=start, change_end_date=end)
        )
        await self.db.commit()
        return result.rowcount

    async def delete_student(self, student_id: str) -> Dict[str, int]:
        """Delete a student together with everything that references it."""
        async def work(session: AsyncSession):
            exists = (await session.execute(
                select(Student.id).where(Student.id == student_id)
            )).first()
            if exists is None:
                raise StudentNotFound(student_id)

            # Release the seats held by this student before the rows disappear
            held = (await session.execute(
                select(Enrollment.course_id).where(
                    Enrollment.student_id == student_id,
                    Enrollment.status.in_(ACTIVE_STATUSES)
                )
            )).scalars().all()
            for course_id in held:
                await session.execute(
                    update(Course).where(Course.id == course_id).values(enrolled=seat_release_expression())
                )

            removed = {}
            for label, model in (
                ("enrollments", Enrollment),
                ("notifications", Notification),
                ("attendance", Attendance),
            ):
                result = await session.execute(delete(model).where(model.student_id == student_id))
                removed[label] = result.rowcount
            await session.execute(delete(Student).where(Student.id == student_id))
            return removed

        removed = await run_in_transaction(self.db.bind, work)
        logger.info(f"Student {student_id} deleted with {removed}")
        return removed
