from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.cache_decorators import invalidate_cache_pattern
from ...core.database import get_db
from ...core.security import get_current_admin
from ...models.admin import AdminUser
from ...schemas.course_schemas import ActiveToggle
from ...schemas.season_schemas import SeasonCreate, SeasonResponse, SeasonUpdate
from ...services.season_service import SeasonService

router = APIRouter(prefix="/api/v1/admin/seasons", tags=["Admin - Seasons"])


@router.get("", response_model=List[SeasonResponse])
async def list_seasons(
    active_only: bool = Query(False),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Newest first"""
    return await SeasonService(db).list_seasons(active_only)


@router.post("", response_model=SeasonResponse, status_code=201)
@invalidate_cache_pattern("seasons:*")
async def create_season(
    season: SeasonCreate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await SeasonService(db).create_season(season.model_dump(), str(current_admin.id))


@router.get("/{season_id}", response_model=SeasonResponse)
async def get_season(
    season_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await SeasonService(db).get_or_404(season_id)


@router.patch("/{season_id}", response_model=SeasonResponse)
@invalidate_cache_pattern("seasons:*")
async def update_season(
    season_id: UUID,
    updates: SeasonUpdate,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await SeasonService(db).update_season(season_id, updates.model_dump(exclude_unset=True))


@router.put("/{season_id}/active", response_model=SeasonResponse)
@invalidate_cache_pattern("seasons:*")
async def toggle_season_active(
    season_id: UUID,
    request: ActiveToggle,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await SeasonService(db).toggle_active(season_id, request.is_active)


@router.delete("/{season_id}")
@invalidate_cache_pattern("seasons:*")
async def delete_season(
    season_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await SeasonService(db).delete_season(season_id)
    return {"message": "Season deleted", "season_id": str(season_id)}
