# academy/services/season_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import SeasonNotFound, ResourceInUse, ValidationError
from ..models.course import Course
from ..models.season import Season

logger = logging.getLogger(__name__)


class SeasonService(BaseService[Season]):
    def __init__(self, db: AsyncSession):
        super().__init__(Season, db)

    async def get_or_404(self, season_id: UUID) -> Season:
        season = await self.get(season_id)
        if not season:
            raise SeasonNotFound(season_id)
        return season

    @staticmethod
    def _check_dates(start_date, end_date):
        if start_date and end_date and start_date > end_date:
            raise ValidationError("Season start date must not be after its end date", field="start_date")

    async def create_season(self, season_data: Dict[str, Any], admin_id: Optional[str] = None) -> Season:
        self._check_dates(season_data.get("start_date"), season_data.get("end_date"))
        season = await self.create({
            "name": season_data["name"],
            "start_date": season_data.get("start_date"),
            "end_date": season_data.get("end_date"),
            "is_active": season_data.get("is_active", True),
            "created_by": admin_id,
        })
        logger.info(f"Season {season.id} ({season.name}) created by {admin_id}")
        return season

    async def list_seasons(self, active_only: bool = False) -> List[Season]:
        if active_only:
            return await self.get_multi(order_by="created_at", sort="desc", is_active=True)
        return await self.get_multi(order_by="created_at", sort="desc")

    async def update_season(self, season_id: UUID, updates: Dict[str, Any]) -> Season:
        season = await self.get_or_404(season_id)
        self._check_dates(
            updates.get("start_date", season.start_date),
            updates.get("end_date", season.end_date),
        )
        return await self.update(season_id, updates)

    async def toggle_active(self, season_id: UUID, is_active: bool) -> Season:
        return await self.update_season(season_id, {"is_active": is_active})

    async def delete_season(self, season_id: UUID) -> bool:
        await self.get_or_404(season_id)
        courses = await BaseService(Course, self.db).count(season_id=season_id)
        if courses:
            raise ResourceInUse(f"Season is still referenced by {courses} course(s)")
        return await self.hard_delete(season_id)
