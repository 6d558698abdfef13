# academy/utils/pagination.py
"""Pagination utilities for consistent API responses."""
from typing import Any, Callable, Dict, Optional
from pydantic import BaseModel, Field
from fastapi import Query


class PaginationParams(BaseModel):
    """Standard pagination parameters."""
    page: int = Field(1, ge=1, description="Page number (starts from 1)")
    size: int = Field(20, ge=1, le=100, description="Items per page")


class Paginator:
    """Pagination utility class."""

    @staticmethod
    def get_pagination_params(
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(20, ge=1, le=100, description="Items per page")
    ) -> PaginationParams:
        """FastAPI dependency for pagination parameters."""
        return PaginationParams(page=page, size=size)

    @staticmethod
    def serialize_page(
        page: Dict[str, Any],
        serializer: Callable[[Any], Any],
        additional_info: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Turn a service page (ORM items) into a JSON-ready response."""
        response = {**page, "items": [serializer(item) for item in page["items"]]}
        if additional_info:
            response.update(additional_info)
        return response
