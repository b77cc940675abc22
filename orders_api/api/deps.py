"""
FastAPI dependencies shared by the API routers.
"""

from typing import Annotated, Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.core.config import get_settings
from orders_api.database.connection import get_db

DatabaseSession = Annotated[AsyncSession, Depends(get_db)]


class PageParams:
    """Pagination query parameters bounded by the configured maximum size."""

    def __init__(
        self,
        page: Annotated[int, Query(ge=1, description="Page number, starting at 1")] = 1,
        size: Annotated[
            Optional[int],
            Query(ge=1, description="Records per page"),
        ] = None,
    ):
        settings = get_settings()
        self.page = page
        self.size = min(size or settings.default_page_size, settings.max_page_size)


Pagination = Annotated[PageParams, Depends()]
