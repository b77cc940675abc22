"""
Shared response schemas.
"""

import math
from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Schema for a paginated list response."""

    model_config = ConfigDict(from_attributes=True)

    items: list[T] = Field(..., description="Records on this page")
    total_count: int = Field(..., ge=0, description="Records matching the filters")
    page: int = Field(..., ge=1, description="Current page number, starting at 1")
    size: int = Field(..., ge=1, description="Number of records per page")
    total_pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def build(cls, items: Sequence[T], total_count: int, page: int, size: int) -> "Page[T]":
        return cls(
            items=list(items),
            total_count=total_count,
            page=page,
            size=size,
            total_pages=math.ceil(total_count / size) if total_count else 0,
        )
