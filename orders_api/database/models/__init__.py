"""
Database models package initialization.

Models are imported here so they are registered with the Base metadata for
relationship resolution and Alembic.
"""

from orders_api.database.base import Base, BaseModel, IntegerIdMixin, TimestampMixin
from orders_api.database.models.customer import Customer
from orders_api.database.models.order import Order, OrderItem
from orders_api.database.models.product import Product

__all__ = [
    "Base",
    "BaseModel",
    "IntegerIdMixin",
    "TimestampMixin",
    "Customer",
    "Order",
    "OrderItem",
    "Product",
]
