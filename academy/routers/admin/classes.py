from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db
from ...core.security import get_current_admin
from ...models.admin import AdminUser
from ...schemas.class_schemas import (
    AssignStudentsRequest, AutoAssignRequest, ClassCreate, ClassResponse, ClassUpdate,
    ExecuteAssignmentRequest, RemoveStudentsRequest
)
from ...schemas.course_schemas import ActiveToggle
from ...schemas.student_schemas import StudentResponse
from ...services.class_service import ClassService

router = APIRouter(prefix="/api/v1/admin/classes", tags=["Admin - Classes"])


@router.get("", response_model=List[ClassResponse])
async def list_classes(
    active_only: bool = Query(False),
    season_id: Optional[UUID] = Query(None),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ClassService(db).list_classes(active_only, season_id)


@router.post("", response_model=ClassResponse, status_code=201)
async def create_class(
    academy_class: ClassCreate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ClassService(db).create_class(academy_class.model_dump(), str(current_admin.id))


@router.post("/assign")
async def assign_students(
    request: AssignStudentsRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    count = await ClassService(db).assign_students(request.student_ids, request.class_name)
    return {"assigned": count, "class_name": request.class_name}


@router.post("/remove")
async def remove_students(
    request: RemoveStudentsRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return {"removed": await ClassService(db).remove_students(request.student_ids)}


@router.post("/auto-assign/preview")
async def preview_auto_assignment(
    request: AutoAssignRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Proposed assignment only; nothing is written"""
    assignments = await ClassService(db).preview_auto_assignment(
        request.method, request.student_ids, request.class_names
    )
    return {"method": request.method, "assignments": assignments}


@router.post("/auto-assign/execute")
async def execute_auto_assignment(
    request: ExecuteAssignmentRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    count = await ClassService(db).execute_assignment([a.model_dump() for a in request.assignments])
    return {"assigned": count}


@router.post("/recalculate")
async def recalculate_student_counts(
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return {"counts": await ClassService(db).recalculate_student_counts()}


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(
    class_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ClassService(db).get_or_404(class_id)


@router.get("/{class_id}/students", response_model=List[StudentResponse])
async def get_class_students(
    class_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    service = ClassService(db)
    academy_class = await service.get_or_404(class_id)
    return await service.get_students_in_class(academy_class.name)


@router.patch("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: UUID,
    updates: ClassUpdate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Renaming moves the class's students to the new name"""
    return await ClassService(db).update_class(class_id, updates.model_dump(exclude_unset=True))


@router.put("/{class_id}/active", response_model=ClassResponse)
async def toggle_class_active(
    class_id: UUID,
    request: ActiveToggle,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ClassService(db).toggle_active(class_id, request.is_active)


@router.delete("/{class_id}")
async def delete_class(
    class_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await ClassService(db).delete_class(class_id)
    return {"message": "Class deleted", "class_id": str(class_id)}
