from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.cache_decorators import invalidate_cache_pattern
from ...core.database import get_db
from ...core.security import get_current_student
from ...models.student import Student
from ...schemas.enrollment_schemas import (
    ConflictCheckRequest, ConflictReport, EnrollmentResponse, EnrollmentSubmit, SubmitResponse
)
from ...services.enrollment_service import EnrollmentService

router = APIRouter(prefix="/api/v1/enrollments", tags=["Student Portal - Enrollments"])


@router.post("/conflicts", response_model=ConflictReport)
async def check_conflicts(
    request: ConflictCheckRequest,
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Timetable collisions of a course with current seats and the cart"""
    return await EnrollmentService(db).check_conflicts_for_student(
        current_student.id, request.course_id, request.cart_course_ids
    )


@router.post("", response_model=SubmitResponse)
@invalidate_cache_pattern("courses:*")
async def submit_enrollments(
    request: EnrollmentSubmit,
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Submit the cart; every course succeeds or fails on its own"""
    results = await EnrollmentService(db).submit_enrollments(
        current_student.id, request.course_ids, request.season_id
    )
    succeeded = sum(1 for outcome in results if outcome["success"])
    return {"results": results, "succeeded": succeeded, "failed": len(results) - succeeded}


@router.get("/mine", response_model=List[EnrollmentResponse])
async def get_my_enrollments(
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Pending and approved enrollments"""
    return await EnrollmentService(db).get_student_enrollments(current_student.id, active_only=True)


@router.get("/mine/history", response_model=List[EnrollmentResponse])
async def get_my_enrollment_history(
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await EnrollmentService(db).get_student_enrollments(current_student.id, active_only=False)


@router.post("/{enrollment_id}/cancel", response_model=EnrollmentResponse)
@invalidate_cache_pattern("courses:*")
async def cancel_my_enrollment(
    enrollment_id: UUID,
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await EnrollmentService(db).cancel_enrollment(enrollment_id, current_student.id)
