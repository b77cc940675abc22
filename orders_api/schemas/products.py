"""
Product catalog Pydantic schemas for API request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProductCreate(BaseModel):
    """Request schema for adding a product to the catalog."""

    model_config = ConfigDict(str_strip_whitespace=True)

    sku: str = Field(..., min_length=5, max_length=50, description="Stock keeping unit")
    name: str = Field(..., min_length=1, max_length=150, description="Product name")
    price: Decimal = Field(..., ge=0, decimal_places=2, description="Unit price")

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: str) -> str:
        return v.upper()


class ProductUpdate(BaseModel):
    """Request schema for updating a product."""

    model_config = ConfigDict(str_strip_whitespace=True)

    sku: Optional[str] = Field(None, min_length=5, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v is not None else v

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "ProductUpdate":
        """Ensure at least one field is provided for update."""
        if not any(
            getattr(self, field) is not None
            for field in type(self).model_fields
        ):
            raise ValueError("At least one field must be provided for update")
        return self


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: str
    name: str
    price: Decimal
    created_at: datetime
    updated_at: datetime
