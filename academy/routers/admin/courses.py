from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.cache_decorators import invalidate_cache_pattern
from ...core.database import get_db
from ...core.security import get_current_admin
from ...models.admin import AdminUser
from ...schemas.course_schemas import ActiveToggle, CourseBatchCreate, CourseCreate, CourseResponse, CourseUpdate
from ...schemas.enrollment_schemas import EnrollmentResponse
from ...services.course_service import CourseService
from ...services.enrollment_service import EnrollmentService

router = APIRouter(prefix="/api/v1/admin/courses", tags=["Admin - Courses"])


@router.get("", response_model=List[CourseResponse])
async def list_courses(
    season_id: Optional[UUID] = Query(None),
    active_only: bool = Query(False),
    category: Optional[str] = Query(None),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Read from the database, never from the catalog cache"""
    return await CourseService(db).list_courses(season_id, active_only, category)


@router.post("", response_model=CourseResponse, status_code=201)
@invalidate_cache_pattern("courses:*")
async def create_course(
    course: CourseCreate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await CourseService(db).create_course(course.to_service(), str(current_admin.id))


@router.post("/batch")
@invalidate_cache_pattern("courses:*")
async def batch_create_courses(
    request: CourseBatchCreate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    results = await CourseService(db).batch_create_courses(request.courses, str(current_admin.id), request.season_id)
    succeeded = sum(1 for row in results if row["success"])
    return {"results": results, "succeeded": succeeded, "failed": len(results) - succeeded}


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(
    course_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await CourseService(db).get_or_404(course_id)


@router.get("/{course_id}/enrollments", response_model=List[EnrollmentResponse])
async def get_course_enrollments(
    course_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await EnrollmentService(db).get_enrollments_by_course(course_id)


@router.patch("/{course_id}", response_model=CourseResponse)
@invalidate_cache_pattern("courses:*")
async def update_course(
    course_id: UUID,
    updates: CourseUpdate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await CourseService(db).update_course(course_id, updates.to_service())


@router.put("/{course_id}/active", response_model=CourseResponse)
@invalidate_cache_pattern("courses:*")
async def toggle_course_active(
    course_id: UUID,
    request: ActiveToggle,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await CourseService(db).toggle_active(course_id, request.is_active)


@router.delete("/{course_id}")
@invalidate_cache_pattern("courses:*")
async def delete_course(
    course_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await CourseService(db).delete_course(course_id)
    return {"message": "Course deleted", "course_id": str(course_id)}
