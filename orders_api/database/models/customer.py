"""
Customer model.

Customers are referenced by orders by identifier only; an order never owns
or mutates its customer.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from orders_api.database.base import BaseModel


class Customer(BaseModel):
    """
    Customer record.

    Attributes:
        id: Customer identifier
        name: Display name
        phone: Contact phone number
    """

    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        comment="Customer name",
    )

    phone: Mapped[str] = mapped_column(
        String(25),
        nullable=False,
        comment="Customer phone number",
    )

    __table_args__ = (
        Index("ix_customers_name", "name"),
        {"comment": "Customers placing orders"},
    )
