"""
Customer Pydantic schemas for API request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CustomerCreate(BaseModel):
    """Request schema for creating a customer."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=150, description="Customer name")
    phone: str = Field(..., min_length=1, max_length=25, description="Phone number")


class CustomerUpdate(BaseModel):
    """Request schema for updating a customer."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    phone: Optional[str] = Field(None, min_length=1, max_length=25)

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "CustomerUpdate":
        """Ensure at least one field is provided for update."""
        if self.name is None and self.phone is None:
            raise ValueError("At least one field must be provided for update")
        return self


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    created_at: datetime
    updated_at: datetime
