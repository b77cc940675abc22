"""
Read side of the order service.

``get_order`` reads through the locked order store, so a reader of a single
order waits for (or conflicts with) a concurrent writer and never observes a
half-applied command. ``list_orders`` is a plain filtered, paginated query
over order summaries and takes no locks.
"""

from typing import Any, Optional

from sqlalchemy import ColumnElement, func, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.core.config import get_settings
from orders_api.core.exceptions import OrderNotFoundError, OrderValidationError
from orders_api.core.logging import get_logger
from orders_api.database.models.order import Order, OrderItem, to_money
from orders_api.schemas.common import Page
from orders_api.schemas.orders import OrderSummaryResponse
from orders_api.services.orders.enums import OrderStatus
from orders_api.services.orders.repository import LockedOrderStore
from orders_api.services.orders.service import format_order_response

logger = get_logger(__name__)


def status_filter(status: Optional[OrderStatus]) -> ColumnElement[bool]:
    return Order.status == status if status is not None else true()


def customer_filter(customer_id: Optional[int]) -> ColumnElement[bool]:
    return Order.customer_id == customer_id if customer_id is not None else true()


def product_filter(product_id: Optional[int]) -> ColumnElement[bool]:
    """Orders having at least one item for the product (EXISTS subquery)."""
    if product_id is None:
        return true()
    return Order.items.any(OrderItem.product_id == product_id)


def order_total_expression() -> ColumnElement:
    """SQL counterpart of ``Order.total``: item sum minus discount, floored at 0."""
    item_sum = (
        select(func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0))
        .where(OrderItem.order_id == Order.id)
        .correlate(Order)
        .scalar_subquery()
    )
    return func.greatest(item_sum - Order.discount, 0)


class OrderQueryService:
    """Read-only access to orders."""

    def __init__(
        self,
        session: AsyncSession,
        repository: Optional[LockedOrderStore] = None,
    ):
        self.session = session
        self.repository = repository or LockedOrderStore(session)

    async def get_order(self, order_id: int) -> dict[str, Any]:
        """
        Get one order with its items.

        Uses the same exclusive fetch as the mutation commands.

        Raises:
            OrderNotFoundError: If the order does not exist
            ConcurrencyConflictError: If a writer holds the lock too long
        """
        async with self.repository.transaction():
            order = await self.repository.fetch_for_update(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            response = format_order_response(order)

        return response

    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        customer_id: Optional[int] = None,
        product_id: Optional[int] = None,
        page: int = 1,
        size: Optional[int] = None,
        sort_desc: bool = False,
    ) -> Page[OrderSummaryResponse]:
        """
        List order summaries matching every given filter.

        Args:
            status: Only orders in this status
            customer_id: Only orders of this customer
            product_id: Only orders containing this product
            page: Page number, starting at 1
            size: Page size, the configured default when omitted
            sort_desc: Newest first instead of oldest first

        Returns:
            Page of order summaries without items

        Raises:
            OrderValidationError: If page or size is out of range
        """
        settings = get_settings()
        size = settings.default_page_size if size is None else size
        if page < 1 or not 1 <= size <= settings.max_page_size:
            raise OrderValidationError(
                "Invalid pagination parameters",
                page=page,
                size=size,
                max_page_size=settings.max_page_size,
            )

        conditions = [
            status_filter(status),
            customer_filter(customer_id),
            product_filter(product_id),
        ]
        ordering = Order.created_at.desc() if sort_desc else Order.created_at.asc()

        stmt = (
            select(
                Order.id,
                Order.customer_id,
                Order.discount,
                Order.status,
                order_total_expression().label("total"),
                Order.created_at,
                Order.updated_at,
            )
            .where(*conditions)
            .order_by(ordering, Order.id)
            .offset((page - 1) * size)
            .limit(size)
        )
        count_stmt = select(func.count()).select_from(Order).where(*conditions)

        rows = (await self.session.execute(stmt)).all()
        total_count = (await self.session.execute(count_stmt)).scalar_one()

        logger.debug(
            "Orders listed",
            status=status.value if status else None,
            customer_id=customer_id,
            product_id=product_id,
            page=page,
            size=size,
            total_count=total_count,
        )

        items = [
            OrderSummaryResponse.model_validate(
                {**row._mapping, "total": to_money(row.total)}
            )
            for row in rows
        ]
        return Page[OrderSummaryResponse].build(
            items, total_count=total_count, page=page, size=size
        )
