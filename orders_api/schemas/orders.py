"""
Order Pydantic schemas for API request/response validation.

Request schemas only shape and bound the payload. Business rules (at least
one item, unique products, legal status changes) are enforced by the order
service so every caller gets the same errors.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from orders_api.services.orders.enums import OrderStatus


def _parse_status(value: Any) -> Any:
    if isinstance(value, str):
        return OrderStatus.from_string(value)
    return value


# Status accepted in any case, e.g. "SHIPPED" or "shipped"
StatusValue = Annotated[OrderStatus, BeforeValidator(_parse_status)]


class OrderItemRequest(BaseModel):
    """Order line in a create, update or add-items request."""

    product_id: int = Field(..., ge=1, description="Product ID")
    quantity: int = Field(..., ge=1, description="Quantity")
    price: Optional[Decimal] = Field(
        None,
        ge=0,
        decimal_places=2,
        description="Unit price; the catalog price is used when omitted",
    )


class OrderCreateRequest(BaseModel):
    """Request schema for creating a new order."""

    customer_id: int = Field(..., ge=1, description="Ordering customer")
    items: list[OrderItemRequest] = Field(..., description="Order items")
    discount: Optional[Decimal] = Field(
        None,
        ge=0,
        decimal_places=2,
        description="Absolute discount; zero when omitted",
    )


class OrderUpdateRequest(BaseModel):
    """
    Partial update of an order.

    ``status`` is applied first. Once the order has left CREATED, the other
    fields are ignored if a status change was made and rejected otherwise.
    """

    items: Optional[list[OrderItemRequest]] = Field(
        None,
        description="Replacement item list",
    )
    customer_id: Optional[int] = Field(None, ge=1, description="New customer")
    discount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    status: Optional[StatusValue] = Field(None, description="New order status")

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "OrderUpdateRequest":
        """Ensure at least one field is provided for update."""
        if not any(
            [
                self.items is not None,
                self.customer_id is not None,
                self.discount is not None,
                self.status is not None,
            ]
        ):
            raise ValueError("At least one field must be provided for update")
        return self


class OrderAddItemsRequest(BaseModel):
    items: list[OrderItemRequest] = Field(..., min_length=1, description="Items to add")


class OrderItemUpdateRequest(BaseModel):
    """Request schema for changing one order line."""

    quantity: int = Field(..., ge=1, description="New quantity")
    price: Optional[Decimal] = Field(
        None,
        ge=0,
        decimal_places=2,
        description="New unit price; the current snapshot is kept when omitted",
    )


class OrderItemResponse(BaseModel):
    """Order item response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    price: Decimal
    line_total: Decimal


class OrderSummaryResponse(BaseModel):
    """Order without item detail, as returned by the listing."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    discount: Decimal
    status: OrderStatus
    total: Decimal
    created_at: datetime
    updated_at: datetime


class OrderResponse(OrderSummaryResponse):
    """Complete order response schema."""

    items: list[OrderItemResponse]
