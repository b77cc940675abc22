"""
Pytest configuration and shared test fixtures.

The environment is switched to ``test`` before the application is imported
so settings, logging and the engine pick up test behavior. Fixtures provide
a mocked async session, an HTTP client wired to that session, and factories
for in-memory order aggregates.
"""

import os

os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_LOG_LEVEL", "WARNING")

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.database.connection import get_db
from orders_api.database.models import Customer, Order, OrderItem, Product
from orders_api.main import app
from orders_api.services.orders.enums import OrderStatus

FIXED_NOW = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


# ============================================================================
# Test Data Factories
# ============================================================================


class OrderFactory:
    """Factory for in-memory order aggregates and API payloads."""

    @staticmethod
    def item(
        product_id: int,
        quantity: int = 1,
        price: Any = "10.00",
        item_id: Optional[int] = None,
    ) -> OrderItem:
        return OrderItem(
            id=item_id if item_id is not None else product_id * 10,
            product_id=product_id,
            quantity=quantity,
            price=Decimal(str(price)),
        )

    @classmethod
    def order(
        cls,
        order_id: int = 1,
        customer_id: int = 1,
        status: OrderStatus = OrderStatus.CREATED,
        discount: Any = "0.00",
        items: Optional[list[OrderItem]] = None,
    ) -> Order:
        order = Order(
            id=order_id,
            customer_id=customer_id,
            status=status,
            discount=Decimal(str(discount)),
        )
        order.items = items if items is not None else [cls.item(101, 2, "10.00")]
        order.created_at = FIXED_NOW
        order.updated_at = FIXED_NOW
        return order

    @staticmethod
    def customer(customer_id: int = 1, name: str = "Ada Lovelace") -> Customer:
        customer = Customer(id=customer_id, name=name, phone="+44 20 7946 0000")
        customer.created_at = FIXED_NOW
        customer.updated_at = FIXED_NOW
        return customer

    @staticmethod
    def product(product_id: int = 101, price: Any = "10.00", sku: str = "SKU-00101") -> Product:
        product = Product(id=product_id, sku=sku, name=f"Product {product_id}", price=Decimal(str(price)))
        product.created_at = FIXED_NOW
        product.updated_at = FIXED_NOW
        return product

    @staticmethod
    def order_view(
        order_id: int = 1,
        status: str = "created",
        items: Optional[list[dict[str, Any]]] = None,
    ) -> dict[str, Any]:
        """Order dict as returned by the order services."""
        items = items if items is not None else [
            {
                "id": 1010,
                "product_id": 101,
                "quantity": 2,
                "price": Decimal("10.00"),
                "line_total": Decimal("20.00"),
            }
        ]
        return {
            "id": order_id,
            "customer_id": 1,
            "discount": Decimal("0.00"),
            "status": status,
            "total": sum((i["line_total"] for i in items), Decimal("0.00")),
            "items": items,
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }


# ============================================================================
# Shared Fixtures
# ============================================================================


@pytest.fixture
def factory() -> type[OrderFactory]:
    """Provide the order test data factory."""
    return OrderFactory


@pytest.fixture
def mock_session() -> AsyncMock:
    """
    Create mock async database session.

    ``begin()`` is a plain MagicMock, which supports ``async with`` and lets
    exceptions raised in the block propagate.

    Returns:
        AsyncMock: Mock database session
    """
    session = AsyncMock(spec=AsyncSession)
    session.begin = MagicMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
async def async_client(mock_session: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an asynchronous test client for the FastAPI application.

    The database dependency yields ``mock_session``; the application
    lifespan is not run, so no database connection is attempted. Unhandled
    errors surface as the 500 response the server would send.

    Yields:
        AsyncClient: Asynchronous test client for FastAPI app
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield mock_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
