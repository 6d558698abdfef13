from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db
from ...core.security import get_current_admin
from ...models.admin import AdminUser
from ...schemas.student_schemas import (
    BatchChangePeriodRequest, BatchEnrollmentOpenRequest, ChangePeriodRequest, EnrollmentOpenRequest,
    StudentBatchCreate, StudentCreate, StudentResponse, StudentUpdate
)
from ...services.student_service import StudentService

router = APIRouter(prefix="/api/v1/admin/students", tags=["Admin - Students"])


@router.get("", response_model=List[StudentResponse])
async def list_students(
    search: Optional[str] = Query(None, description="Matches name or phone digits"),
    class_name: Optional[str] = Query(None),
    enrollment_open: Optional[bool] = Query(None),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).list_students(search, class_name, enrollment_open)


@router.post("", response_model=StudentResponse, status_code=201)
async def create_student(
    student: StudentCreate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).create_student(student.model_dump(), str(current_admin.id))


@router.post("/batch/preview")
async def preview_batch_students(
    request: StudentBatchCreate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Flag rows that already exist before importing"""
    rows = [student.model_dump() for student in request.students]
    results = await StudentService(db).check_batch_duplicates(rows)
    return {"results": results, "duplicates": sum(1 for row in results if row["is_duplicate"])}


@router.post("/batch")
async def batch_create_students(
    request: StudentBatchCreate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    rows = [student.model_dump() for student in request.students]
    results = await StudentService(db).batch_create_students(rows, str(current_admin.id), request.duplicate_action)
    return {
        "results": results,
        "created": sum(1 for row in results if row.get("created")),
        "overwritten": sum(1 for row in results if row.get("overwritten")),
        "skipped": sum(1 for row in results if row.get("skipped")),
    }


@router.post("/batch/enrollment-status")
async def batch_set_enrollment_status(
    request: BatchEnrollmentOpenRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    count = await StudentService(db).batch_set_enrollment_status(request.student_ids, request.enrollment_open)
    return {"updated": count}


@router.post("/batch/change-period")
async def batch_set_change_period(
    request: BatchChangePeriodRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    count = await StudentService(db).batch_set_change_period(
        request.student_ids, request.change_start_date, request.change_end_date
    )
    return {"updated": count}


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: str,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).get_or_404(student_id)


@router.patch("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    updates: StudentUpdate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).update_student(student_id, updates.model_dump(exclude_unset=True))


@router.put("/{student_id}/enrollment-status", response_model=StudentResponse)
async def set_enrollment_status(
    student_id: str,
    request: EnrollmentOpenRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).set_enrollment_status(student_id, request.enrollment_open)


@router.put("/{student_id}/change-period", response_model=StudentResponse)
async def set_change_period(
    student_id: str,
    request: ChangePeriodRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).set_change_period(student_id, request.change_start_date, request.change_end_date)


@router.delete("/{student_id}")
async def delete_student(
    student_id: str,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Removes the student's enrollments, notifications and attendance as well"""
    removed = await StudentService(db).delete_student(student_id)
    return {"message": "Student deleted", "student_id": student_id, "removed": removed}
