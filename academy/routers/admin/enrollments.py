from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.cache_decorators import invalidate_cache_pattern
from ...core.database import get_db
from ...core.security import get_current_admin
from ...models.admin import AdminUser
from ...models.enrollment import EnrollmentStatus
from ...schemas.enrollment_schemas import BatchIdsRequest, BatchOutcome, EnrollmentResponse, RejectRequest
from ...services.enrollment_service import EnrollmentService
from ...utils.pagination import Paginator, PaginationParams

router = APIRouter(prefix="/api/v1/admin/enrollments", tags=["Admin - Enrollments"])


def _serialize(enrollment) -> dict:
    return EnrollmentResponse.model_validate(enrollment).model_dump(mode="json")


@router.get("")
async def list_enrollments(
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    season_id: Optional[UUID] = Query(None),
    status: Optional[EnrollmentStatus] = Query(None),
    course_id: Optional[UUID] = Query(None),
    student_id: Optional[str] = Query(None),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    page = await EnrollmentService(db).get_enrollments_paginated(
        page=pagination.page,
        size=pagination.size,
        season_id=season_id,
        status=status.value if status else None,
        course_id=course_id,
        student_id=student_id,
    )
    return Paginator.serialize_page(page, _serialize)


@router.get("/pending", response_model=List[EnrollmentResponse])
async def list_pending_enrollments(
    limit: int = Query(500, ge=1, le=1000),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Oldest request first"""
    return await EnrollmentService(db).get_pending_enrollments(limit)


@router.post("/batch/approve", response_model=List[BatchOutcome])
async def batch_approve(
    request: BatchIdsRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await EnrollmentService(db).batch_approve(request.enrollment_ids, str(current_admin.id))


@router.post("/batch/cancel", response_model=List[BatchOutcome])
@invalidate_cache_pattern("courses:*")
async def batch_cancel(
    request: BatchIdsRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await EnrollmentService(db).admin_batch_cancel(request.enrollment_ids, str(current_admin.id))


@router.post("/recalculate")
@invalidate_cache_pattern("courses:*")
async def recalculate_enrolled_counts(
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Reset every course counter to its pending + approved enrollment count"""
    changes = await EnrollmentService(db).recalculate_enrolled_counts()
    # Only corrected courses are reported
    return {"courses": changes, "corrected": len(changes)}


@router.post("/{enrollment_id}/approve", response_model=EnrollmentResponse)
async def approve_enrollment(
    enrollment_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await EnrollmentService(db).approve_enrollment(enrollment_id, str(current_admin.id))


@router.post("/{enrollment_id}/reject", response_model=EnrollmentResponse)
@invalidate_cache_pattern("courses:*")
async def reject_enrollment(
    enrollment_id: UUID,
    request: RejectRequest,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await EnrollmentService(db).reject_enrollment(enrollment_id, str(current_admin.id), request.reason)


@router.post("/{enrollment_id}/cancel", response_model=EnrollmentResponse)
@invalidate_cache_pattern("courses:*")
async def cancel_enrollment(
    enrollment_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Not limited to the student's change period"""
    return await EnrollmentService(db).admin_cancel_enrollment(enrollment_id, str(current_admin.id))
