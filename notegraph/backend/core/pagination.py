"""
Pagination Utilities.

Page-based pagination for list endpoints. There is no total count:
``has_more`` is true whenever a page comes back full.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Query
from pydantic import BaseModel

from notegraph.backend.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata


@dataclass
class PageParams:
    """Pagination parameters extracted from the query string."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_page_params(
    page: int = Query(
        default=1,
        ge=1,
        description="1-based page number",
    ),
    limit: int = Query(
        default=20,
        ge=1,
        le=100,
        description="Maximum number of items to return",
    ),
) -> PageParams:
    """
    FastAPI dependency for pagination parameters.

    Usage:
        @router.get("/items")
        async def list_items(
            pagination: PageParams = Depends(get_page_params),
        ):
            ...
    """
    return PageParams(page=page, limit=limit)


def create_paginated_response(
    items: list[Any],
    item_schema: type[BaseModel],
    params: PageParams,
    request_id: str | None = None,
) -> PaginatedResponse[Any]:
    """
    Create a standardized paginated response.

    Args:
        items: Model instances for the current page
        item_schema: Pydantic schema used to serialize each item
        params: The page that was requested
        request_id: Request ID for the response metadata
    """
    return PaginatedResponse(
        data=[item_schema.model_validate(item) for item in items],
        pagination=PaginationInfo(
            page=params.page,
            limit=params.limit,
            has_more=len(items) == params.limit,
        ),
        metadata=ResponseMetadata(request_id=request_id),
    )
