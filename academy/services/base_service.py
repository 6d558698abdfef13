# academy/services/base_service.py
"""Base service with common CRUD operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Type, Any, Dict, Optional, List, TypeVar, Generic

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    async def get(self, id: Any) -> Optional[T]:
        # Rows may have been changed by a separate transaction session;
        # always refresh whatever the identity map already holds.
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def _apply_filters(self, stmt, filters: Dict[str, Any]):
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        return stmt

    def _apply_ordering(self, stmt, order_by: Optional[str], sort: str):
        if order_by and hasattr(self.model, order_by):
            order_field = getattr(self.model, order_by)
            stmt = stmt.order_by(order_field.desc() if sort.lower() == "desc" else order_field.asc())
        return stmt

    async def get_multi(
        self,
        skip: int = 0,
        limit: Optional[int] = None,
        order_by: Optional[str] = "created_at",
        sort: str = "desc",
        **filters
    ) -> List[T]:
        stmt = self._apply_filters(select(self.model), filters)
        stmt = self._apply_ordering(stmt, order_by, sort)
        stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_paginated(
        self,
        page: int = 1,
        size: int = 20,
        order_by: str = None,
        sort: str = "asc",
        **filters
    ):
        """Get paginated results"""
        offset = (page - 1) * size

        count_stmt = self._apply_filters(select(func.count()).select_from(self.model), filters)
        total = (await self.db.execute(count_stmt)).scalar()

        stmt = self._apply_filters(select(self.model), filters)
        stmt = self._apply_ordering(stmt, order_by, sort)
        stmt = stmt.offset(offset).limit(size)
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        items = result.scalars().all()

        return {
            "items": items,
            "total": total,
            "page": page,
            "size": size,
            "total_pages": (total + size - 1) // size,
            "has_next": page * size < total,
            "has_previous": page > 1,
        }

    async def create(self, obj_in: Dict) -> T:
        obj = self.model(**obj_in)
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def update(self, id: Any, obj_in: Dict) -> Optional[T]:
        obj = await self.get(id)
        if not obj:
            return None
        for key, value in obj_in.items():
            setattr(obj, key, value)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def hard_delete(self, id: Any) -> bool:
        """Permanently delete record from database"""
        obj = await self.get(id)
        if not obj:
            return False
        await self.db.delete(obj)
        await self.db.commit()
        return True

    async def count(self, **filters) -> int:
        stmt = self._apply_filters(select(func.count()).select_from(self.model), filters)
        result = await self.db.execute(stmt)
        return result.scalar()
