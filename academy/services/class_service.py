# academy/services/class_service.py
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..constants import DEFAULT_CLASS_CAPACITY
from ..core.database import run_in_transaction
from ..core.exceptions import ClassNotFound, DuplicateError, ValidationError
from ..models.class_model import AcademyClass
from ..models.course import Course
from ..models.enrollment import Enrollment, ACTIVE_STATUSES
from ..models.student import Student

logger = logging.getLogger(__name__)

ASSIGN_ALPHABETICAL = "alphabetical"
ASSIGN_BALANCE = "balance"
ASSIGN_CATEGORY = "category"
ASSIGN_METHODS = (ASSIGN_ALPHABETICAL, ASSIGN_BALANCE, ASSIGN_CATEGORY)

# Category used when a student has no active enrollments
FALLBACK_CATEGORY = "기타"


def _least_filled(class_names: Sequence[str], counts: Dict[str, int]) -> str:
    # First class wins ties
    return min(class_names, key=lambda name: counts.get(name, 0))


def _primary_category(categories: Sequence[str]) -> str:
    if not categories:
        return FALLBACK_CATEGORY
    # most_common keeps first-seen order between equal counts
    return Counter(categories).most_common(1)[0][0]


def _matching_class(class_names: Sequence[str], category: str) -> Optional[str]:
    for name in class_names:
        stem = name[:-1] if name.endswith("반") else name
        if category in name or stem in category:
            return name
    return None


def plan_assignment(
    method: str,
    students: Sequence[Student],
    class_names: Sequence[str],
    categories_by_student: Optional[Dict[str, List[str]]] = None
) -> List[Dict[str, Any]]:
    """Propose a class for every student without touching the database."""
    if not class_names:
        raise ValidationError("배정할 반이 없습니다.", field="class_names")
    if method not in ASSIGN_METHODS:
        raise ValidationError("알 수 없는 배정 방식입니다.", field="method")

    plan = []
    if method == ASSIGN_ALPHABETICAL:
        ordered = sorted(students, key=lambda s: s.name)
        per_class = -(-len(ordered) // len(class_names))
        for index, student in enumerate(ordered):
            class_name = class_names[min(index // per_class, len(class_names) - 1)]
            plan.append({"student_id": student.id, "student_name": student.name, "class_name": class_name})

    elif method == ASSIGN_BALANCE:
        counts = {name: 0 for name in class_names}
        for student in students:
            class_name = _least_filled(class_names, counts)
            counts[class_name] += 1
            plan.append({"student_id": student.id, "student_name": student.name, "class_name": class_name})

    else:
        categories_by_student = categories_by_student or {}
        counts: Dict[str, int] = {}
        for student in students:
            primary = _primary_category(categories_by_student.get(student.id, []))
            class_name = _matching_class(class_names, primary) or _least_filled(class_names, counts)
            counts[class_name] = counts.get(class_name, 0) + 1
            plan.append({
                "student_id": student.id,
                "student_name": student.name,
                "class_name": class_name,
                "primary_category": primary,
            })

    return plan


class ClassService(BaseService[AcademyClass]):
    def __init__(self, db: AsyncSession):
        super().__init__(AcademyClass, db)

    async def get_or_404(self, class_id: UUID) -> AcademyClass:
        academy_class = await self.get(class_id)
        if not academy_class:
            raise ClassNotFound(class_id)
        return academy_class

    async def get_by_name(self, name: str) -> Optional[AcademyClass]:
        result = await self.db.execute(
            select(AcademyClass).where(AcademyClass.name == name).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_class(self, class_data: Dict[str, Any], admin_id: Optional[str] = None) -> AcademyClass:
        name = class_data["name"].strip()
        if await self.get_by_name(name):
            raise DuplicateError(f"Class '{name}' already exists", field="name", value=name)

        academy_class = await self.create({
            "name": name,
            "description": class_data.get("description") or "",
            "capacity": class_data.get("capacity") or DEFAULT_CLASS_CAPACITY,
            "student_count": 0,
            "season_id": class_data.get("season_id"),
            "is_active": True,
            "created_by": admin_id,
        })
        logger.info(f"Class {academy_class.name} created by {admin_id}")
        return academy_class

    async def list_classes(self, active_only: bool = False, season_id: Optional[UUID] = None) -> List[AcademyClass]:
        filters = {"season_id": season_id}
        if active_only or season_id is not None:
            filters["is_active"] = True
        return await self.get_multi(order_by="created_at", sort="desc", **filters)

    async def update_class(self, class_id: UUID, updates: Dict[str, Any]) -> AcademyClass:
        """Update a class; a new name is carried over to its students in the same transaction."""
        updates = {k: v for k, v in updates.items() if k != "student_count"}
        new_name = updates.get("name")
        if new_name is not None:
            updates["name"] = new_name = new_name.strip()

        async def work(session: AsyncSession):
            academy_class = (await session.execute(
                select(AcademyClass).where(AcademyClass.id == class_id).with_for_update()
            )).scalar_one_or_none()
            if academy_class is None:
                raise ClassNotFound(class_id)

            old_name = academy_class.name
            if new_name is not None and new_name != old_name:
                taken = (await session.execute(
                    select(AcademyClass.id).where(AcademyClass.name == new_name)
                )).first()
                if taken:
                    raise DuplicateError(f"Class '{new_name}' already exists", field="name", value=new_name)
                moved = await session.execute(
                    update(Student).where(Student.class_name == old_name).values(class_name=new_name)
                )
                logger.info(f"Class {old_name} renamed to {new_name}, {moved.rowcount} student(s) moved")

            await session.execute(update(AcademyClass).where(AcademyClass.id == class_id).values(**updates))

        await run_in_transaction(self.db.bind, work)
        return await self.get_or_404(class_id)

    async def toggle_active(self, class_id: UUID, is_active: bool) -> AcademyClass:
        return await self.update_class(class_id, {"is_active": is_active})

    async def delete_class(self, class_id: UUID) -> bool:
        # Students keep their class name; it simply no longer matches a class
        await self.get_or_404(class_id)
        return await self.hard_delete(class_id)

    async def get_students_in_class(self, class_name: str) -> List[Student]:
        result = await self.db.execute(
            select(Student)
            .where(Student.class_name == class_name)
            .order_by(Student.name.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _set_class_name(self, student_ids: Sequence[str], class_name: Optional[str]) -> int:
        result = await self.db.execute(
            update(Student).where(Student.id.in_(student_ids)).values(class_name=class_name)
        )
        await self.db.commit()
        await self.recalculate_student_counts()
        return result.rowcount

    async def assign_students(self, student_ids: Sequence[str], class_name: str) -> int:
        if not await self.get_by_name(class_name):
            raise ClassNotFound(class_name)
        return await self._set_class_name(student_ids, class_name)

    async def remove_students(self, student_ids: Sequence[str]) -> int:
        return await self._set_class_name(student_ids, None)

    async def _categories_by_student(self, student_ids: Sequence[str]) -> Dict[str, List[str]]:
        result = await self.db.execute(
            select(Enrollment.student_id, Course.category)
            .join(Course, Course.id == Enrollment.course_id)
            .where(Enrollment.student_id.in_(student_ids), Enrollment.status.in_(ACTIVE_STATUSES))
            .order_by(Enrollment.enrolled_at.asc())
        )
        categories: Dict[str, List[str]] = {}
        for student_id, category in result.all():
            categories.setdefault(student_id, []).append(category or FALLBACK_CATEGORY)
        return categories

    async def preview_auto_assignment(
        self,
        method: str,
        student_ids: Optional[Sequence[str]] = None,
        class_names: Optional[Sequence[str]] = None
    ) -> List[Dict[str, Any]]:
        """Default to every student and every active class."""
        stmt = select(Student).order_by(Student.created_at.asc(), Student.id.asc())
        if student_ids is not None:
            stmt = stmt.where(Student.id.in_(student_ids))
        students = list((await self.db.execute(stmt)).scalars().all())

        if class_names is None:
            class_names = [c.name for c in reversed(await self.list_classes(active_only=True))]

        categories = None
        if method == ASSIGN_CATEGORY:
            categories = await self._categories_by_student([s.id for s in students])
        return plan_assignment(method, students, list(class_names), categories)

    async def execute_assignment(self, assignments: Sequence[Dict[str, Any]]) -> int:
        async def work(session: AsyncSession):
            for item in assignments:
                await session.execute(
                    update(Student).where(Student.id == item["student_id"]).values(class_name=item["class_name"])
                )

        await run_in_transaction(self.db.bind, work)
        await self.recalculate_student_counts()
        logger.info(f"Applied class assignment for {len(assignments)} student(s)")
        return len(assignments)

    async def recalculate_student_counts(self) -> Dict[str, int]:
        """Recount students per class name and store the result on every class."""
        result = await self.db.execute(
            select(Student.class_name, func.count())
            .where(Student.class_name.isnot(None), Student.class_name != "")
            .group_by(Student.class_name)
        )
        counts = {name: total for name, total in result.all()}

        classes = (await self.db.execute(select(AcademyClass))).scalars().all()
        for academy_class in classes:
            academy_class.student_count = counts.get(academy_class.name, 0)
        await self.db.commit()
        return counts
