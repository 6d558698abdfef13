from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.cache_decorators import cache_response
from ...core.config import settings
from ...core.database import get_db
from ...core.security import get_current_student
from ...models.student import Student
from ...schemas.season_schemas import SeasonResponse
from ...schemas.student_schemas import StudentResponse
from ...services.course_service import CourseService, catalog_entry
from ...services.season_service import SeasonService
from ...services.student_service import is_within_change_period

router = APIRouter(prefix="/api/v1/student", tags=["Student Portal - Profile"])


@router.get("/me")
async def get_my_profile(current_student: Student = Depends(get_current_student)):
    profile = StudentResponse.model_validate(current_student).model_dump(mode="json")
    profile["in_change_period"] = is_within_change_period(current_student)
    return profile


@router.get("/courses")
@cache_response("courses:active", ttl=settings.cache_ttl_seconds)
async def get_open_courses(
    season_id: Optional[UUID] = Query(None),
    category: Optional[str] = Query(None),
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Active course catalog; seat counts may lag by the cache TTL"""
    courses = await CourseService(db).list_courses(season_id=season_id, active_only=True, category=category)
    return [catalog_entry(course) for course in courses]


@router.get("/seasons")
@cache_response("seasons:active", ttl=settings.cache_ttl_seconds)
async def get_active_seasons(
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    seasons = await SeasonService(db).list_seasons(active_only=True)
    return [SeasonResponse.model_validate(season).model_dump(mode="json") for season in seasons]
