"""
Order service orchestrating the order mutation commands.

Every command follows the same protocol: open one transaction, lock the
target order with ``SELECT ... FOR UPDATE``, validate against the status
machine and the aggregate invariants, mutate in memory, persist, and commit.
Any error raised along the way rolls the whole transaction back, so a failed
command never leaves a partial write and always releases the row lock.
"""

from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.core.exceptions import (
    CustomerNotFoundError,
    DuplicateProductError,
    ItemNotFoundError,
    OrderAlreadyProcessedError,
    OrderNotFoundError,
    OrderValidationError,
    ProductNotFoundError,
)
from orders_api.core.logging import bind_log_context, get_logger, log_performance
from orders_api.database.models.order import Order
from orders_api.services.customers.repository import CustomerRepository
from orders_api.services.orders.enums import OrderStatus
from orders_api.services.orders.repository import LockedOrderStore
from orders_api.services.orders.state_machine import OrderStateMachine
from orders_api.services.products.repository import ProductRepository

logger = get_logger(__name__)


def format_order_response(order: Order) -> dict[str, Any]:
    """Render an order and its items as the API order view."""
    return {
        "id": order.id,
        "customer_id": order.customer_id,
        "discount": order.discount,
        "status": order.status,
        "total": order.total,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "price": item.price,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


class OrderService:
    """
    Order service implementing the write commands on order aggregates.

    Attributes:
        repository: Locked order store, the only path to a mutable order
        state_machine: Status transition rules
        customers: Customer lookups for resolving references
        products: Product lookups for resolving references and prices
    """

    def __init__(
        self,
        session: AsyncSession,
        repository: Optional[LockedOrderStore] = None,
        state_machine: Optional[OrderStateMachine] = None,
    ):
        self.repository = repository or LockedOrderStore(session)
        self.state_machine = state_machine or OrderStateMachine()
        self.customers = CustomerRepository(session)
        self.products = ProductRepository(session)

    async def create_order(
        self,
        customer_id: int,
        items: list[dict[str, Any]],
        discount: Optional[Decimal] = None,
    ) -> dict[str, Any]:
        """
        Create a new order in status CREATED.

        Args:
            customer_id: Ordering customer
            items: Lines with product_id, quantity and optional price
            discount: Absolute discount, zero when omitted

        Returns:
            Order view with items and total

        Raises:
            OrderValidationError: If items is empty or a line is invalid
            DuplicateProductError: If two lines reference the same product
            CustomerNotFoundError: If the customer does not exist
            ProductNotFoundError: If a product does not exist
        """
        with log_performance(logger, "create_order", customer_id=customer_id):
            if not items:
                raise OrderValidationError(
                    "Order must contain at least one item",
                    customer_id=customer_id,
                )
            self._check_duplicates(items)

            async with self.repository.transaction():
                await self._resolve_customer(customer_id)
                lines = await self._resolve_items(items)

                order = Order(customer_id=customer_id, status=OrderStatus.CREATED)
                order.apply_discount(discount)
                for line in lines:
                    order.add_item(line["product_id"], line["quantity"], line["price"])

                await self.repository.add(order)

            logger.info(
                "Order created",
                order_id=order.id,
                customer_id=customer_id,
                item_count=len(order.items),
                total=str(order.total),
            )
            return format_order_response(order)

    async def update_order(
        self,
        order_id: int,
        items: Optional[list[dict[str, Any]]] = None,
        customer_id: Optional[int] = None,
        discount: Optional[Decimal] = None,
        status: Optional[OrderStatus] = None,
    ) -> dict[str, Any]:
        """
        Partially update an order.

        The status change, if any, is validated and applied first. If the
        order is no longer CREATED afterwards, a call that changed the status
        persists that change alone and the other fields are ignored, while a
        call without a status change is rejected. Otherwise items (full
        replacement), customer and discount are applied where given.

        Raises:
            OrderNotFoundError: If the order does not exist
            InvalidTransitionError: If the status change is not allowed
            OrderAlreadyProcessedError: If the order has left CREATED and no
                status change was requested
            DuplicateProductError: If the new items repeat a product
            CustomerNotFoundError: If the new customer does not exist
            ProductNotFoundError: If a new item's product does not exist
        """
        with bind_log_context(order_id=order_id), log_performance(
            logger, "update_order"
        ):
            async with self.repository.transaction():
                order = await self._load_for_update(order_id)

                status_changed = False
                if status is not None:
                    self.state_machine.apply_transition(order, status)
                    status_changed = True

                if not order.can_be_modified:
                    if not status_changed:
                        raise OrderAlreadyProcessedError(order.id, order.status)
                    ignored = [
                        name
                        for name, value in (
                            ("items", items),
                            ("customer_id", customer_id),
                            ("discount", discount),
                        )
                        if value is not None
                    ]
                    if ignored:
                        logger.info(
                            "Structural changes ignored after status change",
                            status=order.status.value,
                            ignored_fields=ignored,
                        )
                else:
                    if items is not None:
                        self._check_duplicates(items, order_id=order.id)
                        order.replace_items(await self._resolve_items(items))
                    if customer_id is not None:
                        await self._resolve_customer(customer_id)
                        order.customer_id = customer_id
                    if discount is not None:
                        order.apply_discount(discount)

                await self.repository.persist(order)

            logger.info(
                "Order updated",
                status=order.status.value,
                status_changed=status_changed,
                total=str(order.total),
            )
            return format_order_response(order)

    async def add_order_items(
        self,
        order_id: int,
        items: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """
        Append items to an order that is still CREATED.

        Duplicates are checked against the existing items and within the
        batch.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderAlreadyProcessedError: If the order has left CREATED
            DuplicateProductError: If a product is already on the order or
                repeated in the batch
            ProductNotFoundError: If a product does not exist
        """
        with bind_log_context(order_id=order_id), log_performance(
            logger, "add_order_items", item_count=len(items)
        ):
            if not items:
                raise OrderValidationError("No items to add", order_id=order_id)

            async with self.repository.transaction():
                order = await self._load_for_update(order_id)
                self._ensure_modifiable(order)
                self._check_duplicates(items, baseline=order.product_ids, order_id=order.id)

                for line in await self._resolve_items(items):
                    order.add_item(line["product_id"], line["quantity"], line["price"])

                await self.repository.persist(order)

            return format_order_response(order)

    async def update_order_item(
        self,
        order_id: int,
        product_id: int,
        quantity: int,
        price: Optional[Decimal] = None,
    ) -> dict[str, Any]:
        """
        Change quantity and price of one item in place.

        The item keeps its current price snapshot when ``price`` is omitted.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderAlreadyProcessedError: If the order has left CREATED
            OrderValidationError: If quantity or price is invalid
            ItemNotFoundError: If no item references the product
        """
        with bind_log_context(order_id=order_id, product_id=product_id), log_performance(
            logger, "update_order_item"
        ):
            async with self.repository.transaction():
                order = await self._load_for_update(order_id)
                self._ensure_modifiable(order)
                self._validate_line(product_id, quantity, price)

                item = order.find_item(product_id)
                if item is None:
                    raise ItemNotFoundError(product_id, order_id=order.id)
                order.update_item(
                    product_id,
                    quantity,
                    item.price if price is None else price,
                )

                await self.repository.persist(order)

            return format_order_response(order)

    async def delete_order_item(self, order_id: int, product_id: int) -> None:
        """
        Remove one item from an order that is still CREATED.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderAlreadyProcessedError: If the order has left CREATED
            ItemNotFoundError: If no item references the product
        """
        with bind_log_context(order_id=order_id, product_id=product_id), log_performance(
            logger, "delete_order_item"
        ):
            async with self.repository.transaction():
                order = await self._load_for_update(order_id)
                self._ensure_modifiable(order)
                order.remove_item(product_id)
                await self.repository.persist(order)

    async def delete_order(self, order_id: int) -> None:
        """
        Delete an order that is still CREATED, together with its items.

        Raises:
            OrderNotFoundError: If the order does not exist
            OrderAlreadyProcessedError: If the order has left CREATED
        """
        with bind_log_context(order_id=order_id), log_performance(
            logger, "delete_order"
        ):
            async with self.repository.transaction():
                order = await self._load_for_update(order_id)
                self._ensure_modifiable(order)
                await self.repository.delete(order)

            logger.info("Order deleted")

    async def _load_for_update(self, order_id: int) -> Order:
        order = await self.repository.fetch_for_update(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _ensure_modifiable(self, order: Order) -> None:
        if not order.can_be_modified:
            logger.info(
                "Structural change rejected",
                status=order.status.value,
            )
            raise OrderAlreadyProcessedError(order.id, order.status)

    def _check_duplicates(
        self,
        items: Iterable[dict[str, Any]],
        baseline: Iterable[int] = (),
        order_id: Optional[int] = None,
    ) -> None:
        """
        Reject a batch that repeats a product, or repeats one in ``baseline``.

        Raises:
            DuplicateProductError: Naming the first repeated product
        """
        seen = set(baseline)
        for item in items:
            product_id = item["product_id"]
            if product_id in seen:
                logger.info("Duplicate product rejected", product_id=product_id)
                if order_id is None:
                    raise DuplicateProductError(product_id)
                raise DuplicateProductError(product_id, order_id=order_id)
            seen.add(product_id)

    @staticmethod
    def _validate_line(product_id: int, quantity: int, price: Optional[Any]) -> None:
        if quantity is None or quantity < 1:
            raise OrderValidationError(
                "Quantity must be a positive integer",
                product_id=product_id,
                quantity=quantity,
            )
        if price is not None and Decimal(str(price)) < 0:
            raise OrderValidationError(
                "Price must not be negative",
                product_id=product_id,
                price=str(price),
            )

    async def _resolve_customer(self, customer_id: int) -> None:
        if await self.customers.get_by_id(customer_id) is None:
            raise CustomerNotFoundError(customer_id)

    async def _resolve_items(
        self, items: Iterable[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """
        Check every product exists and fix each line's snapshot price.

        A line without a price takes the product's current catalog price.

        Raises:
            ProductNotFoundError: Naming the first missing product
            OrderValidationError: If a quantity or price is out of range
        """
        lines = []
        for item in items:
            product_id = item["product_id"]
            self._validate_line(product_id, item.get("quantity"), item.get("price"))

            product = await self.products.get_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            price = item.get("price")
            lines.append(
                {
                    "product_id": product_id,
                    "quantity": item["quantity"],
                    "price": product.price if price is None else price,
                }
            )
        return lines
