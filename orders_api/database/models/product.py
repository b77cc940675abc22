"""
Product catalog model.

The catalog price is only read when an item is added to an order without an
explicit price; orders keep their own price snapshot afterwards.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from orders_api.database.base import BaseModel


class Product(BaseModel):
    """
    Product catalog entry.

    Attributes:
        id: Product identifier
        sku: Unique stock keeping unit, 5 to 50 characters
        name: Product name
        price: Current catalog unit price
    """

    __tablename__ = "products"

    sku: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Stock keeping unit",
    )

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        index=True,
        comment="Product name",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Catalog unit price",
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("char_length(sku) >= 5", name="ck_products_sku_min_length"),
        {"comment": "Product catalog"},
    )
