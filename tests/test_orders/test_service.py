"""
Test suite for OrderService business logic.

The locked store and the customer/product lookups are replaced with mocks
so each test drives one command against an in-memory aggregate and checks
both the outcome and what was (or was not) persisted.
"""

from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

from orders_api.core.exceptions import (
    ConcurrencyConflictError,
    CustomerNotFoundError,
    DuplicateProductError,
    InvalidTransitionError,
    ItemNotFoundError,
    OrderAlreadyProcessedError,
    OrderNotFoundError,
    OrderValidationError,
    ProductNotFoundError,
)
from orders_api.services.orders.enums import OrderStatus
from orders_api.services.orders.service import OrderService


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def catalog(factory) -> dict[int, Any]:
    """Products known to the mocked catalog, keyed by id."""
    return {
        101: factory.product(101, "10.00"),
        102: factory.product(102, "7.50", sku="SKU-00102"),
        103: factory.product(103, "3.00", sku="SKU-00103"),
    }


@pytest.fixture
def order_service(mock_session: AsyncMock, factory, catalog) -> OrderService:
    """
    Create OrderService with the store and lookups mocked.

    ``add`` assigns an id and timestamps the way a flush would; ``persist``
    returns the order it was given.
    """
    service = OrderService(session=mock_session)

    def fake_insert(order):
        order.id = 501
        order.created_at = order.updated_at = factory.order().created_at
        for position, item in enumerate(order.items, start=1):
            item.id = position
        return order

    service.repository.fetch_for_update = AsyncMock()
    service.repository.add = AsyncMock(side_effect=fake_insert)
    service.repository.persist = AsyncMock(side_effect=lambda order: order)
    service.repository.delete = AsyncMock()

    service.customers.get_by_id = AsyncMock(
        side_effect=lambda cid: factory.customer(cid) if cid in (1, 2) else None
    )
    service.products.get_by_id = AsyncMock(side_effect=catalog.get)
    return service


def lines(*rows: tuple) -> list[dict[str, Any]]:
    """Build request lines from (product_id, quantity[, price]) tuples."""
    result = []
    for row in rows:
        line = {"product_id": row[0], "quantity": row[1], "price": None}
        if len(row) > 2:
            line["price"] = Decimal(row[2])
        result.append(line)
    return result


# ============================================================================
# Create Order Tests
# ============================================================================


class TestCreateOrder:
    """Test suite for order creation."""

    @pytest.mark.asyncio
    async def test_create_order_success(self, order_service: OrderService):
        result = await order_service.create_order(
            customer_id=1,
            items=lines((101, 2, "10.00"), (102, 1, "5.00")),
            discount=Decimal("3.00"),
        )

        assert result["id"] == 501
        assert result["status"] is OrderStatus.CREATED
        assert result["total"] == Decimal("22.00")
        assert [i["product_id"] for i in result["items"]] == [101, 102]
        order_service.repository.add.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_price_uses_catalog_price(self, order_service: OrderService):
        result = await order_service.create_order(1, lines((102, 2)))

        assert result["items"][0]["price"] == Decimal("7.50")
        assert result["total"] == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_missing_discount_is_zero(self, order_service: OrderService):
        result = await order_service.create_order(1, lines((101, 1)), discount=None)

        assert result["discount"] == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_discount_larger_than_items(self, order_service: OrderService):
        result = await order_service.create_order(
            1, lines((101, 1, "4.00")), discount=Decimal("10.00")
        )

        assert result["total"] == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_empty_items_rejected(self, order_service: OrderService):
        with pytest.raises(OrderValidationError):
            await order_service.create_order(1, [])

        order_service.repository.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_product_in_request(self, order_service: OrderService):
        with pytest.raises(DuplicateProductError) as exc_info:
            await order_service.create_order(1, lines((101, 1), (102, 1), (101, 3)))

        assert exc_info.value.product_id == 101
        order_service.repository.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_customer(self, order_service: OrderService):
        with pytest.raises(CustomerNotFoundError):
            await order_service.create_order(99, lines((101, 1)))

        order_service.repository.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_product(self, order_service: OrderService):
        with pytest.raises(ProductNotFoundError) as exc_info:
            await order_service.create_order(1, lines((101, 1), (999, 1)))

        assert exc_info.value.message == "Product 999 not found"
        order_service.repository.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_positive_quantity(self, order_service: OrderService):
        with pytest.raises(OrderValidationError):
            await order_service.create_order(1, lines((101, 0)))

    @pytest.mark.asyncio
    async def test_negative_discount(self, order_service: OrderService):
        with pytest.raises(OrderValidationError):
            await order_service.create_order(1, lines((101, 1)), discount=Decimal("-1"))


# ============================================================================
# Update Order Tests
# ============================================================================


class TestUpdateOrder:
    """Test suite for partial order updates."""

    @pytest.mark.asyncio
    async def test_order_not_found(self, order_service: OrderService):
        order_service.repository.fetch_for_update.return_value = None

        with pytest.raises(OrderNotFoundError):
            await order_service.update_order(1, discount=Decimal("1.00"))

        order_service.repository.persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_change(self, order_service: OrderService, factory):
        order = factory.order(status=OrderStatus.PROCESSING)
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order(1, status=OrderStatus.SHIPPED)

        assert result["status"] is OrderStatus.SHIPPED
        order_service.repository.persist.assert_awaited_once_with(order)

    @pytest.mark.asyncio
    async def test_invalid_transition_persists_nothing(
        self, order_service: OrderService, factory
    ):
        order = factory.order(status=OrderStatus.CREATED)
        order_service.repository.fetch_for_update.return_value = order

        with pytest.raises(InvalidTransitionError):
            await order_service.update_order(1, status=OrderStatus.DELIVERED)

        assert order.status is OrderStatus.CREATED
        order_service.repository.persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_change_ignores_structural_fields(
        self, order_service: OrderService, factory
    ):
        """Leaving CREATED in the same call drops item/customer/discount changes."""
        order = factory.order(items=[factory.item(101, 2, "10.00")])
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order(
            1,
            status=OrderStatus.PROCESSING,
            items=lines((102, 5)),
            customer_id=2,
            discount=Decimal("5.00"),
        )

        assert result["status"] is OrderStatus.PROCESSING
        assert order.product_ids == {101}
        assert order.customer_id == 1
        assert order.discount == Decimal("0.00")
        order_service.repository.persist.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancel_ignores_structural_fields(
        self, order_service: OrderService, factory
    ):
        order = factory.order()
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order(
            1, status=OrderStatus.CANCELED, discount=Decimal("2.00")
        )

        assert result["status"] is OrderStatus.CANCELED
        assert result["discount"] == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_structural_change_after_processing_rejected(
        self, order_service: OrderService, factory
    ):
        order = factory.order(status=OrderStatus.SHIPPED)
        order_service.repository.fetch_for_update.return_value = order

        with pytest.raises(OrderAlreadyProcessedError) as exc_info:
            await order_service.update_order(1, discount=Decimal("1.00"))

        assert exc_info.value.status_code == 400
        order_service.repository.persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replace_items(self, order_service: OrderService, factory):
        order = factory.order(
            items=[factory.item(101, 1, "10.00"), factory.item(102, 1, "7.50")]
        )
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order(
            1, items=lines((101, 4), (103, 1, "2.00"))
        )

        assert [i["product_id"] for i in result["items"]] == [101, 103]
        assert result["total"] == Decimal("42.00")

    @pytest.mark.asyncio
    async def test_replace_items_may_repeat_existing_products(
        self, order_service: OrderService, factory
    ):
        """Replacement lines are checked against each other, not the old items."""
        order = factory.order(items=[factory.item(101, 1, "10.00")])
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order(1, items=lines((101, 2)))

        assert result["items"][0]["quantity"] == 2

    @pytest.mark.asyncio
    async def test_replace_items_with_duplicates(self, order_service: OrderService, factory):
        order = factory.order()
        order_service.repository.fetch_for_update.return_value = order

        with pytest.raises(DuplicateProductError):
            await order_service.update_order(1, items=lines((102, 1), (102, 2)))

        order_service.repository.persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_change_customer(self, order_service: OrderService, factory):
        order = factory.order()
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order(1, customer_id=2)

        assert result["customer_id"] == 2

    @pytest.mark.asyncio
    async def test_change_to_unknown_customer(self, order_service: OrderService, factory):
        order = factory.order()
        order_service.repository.fetch_for_update.return_value = order

        with pytest.raises(CustomerNotFoundError):
            await order_service.update_order(1, customer_id=77)

        assert order.customer_id == 1

    @pytest.mark.asyncio
    async def test_lock_conflict_propagates(self, order_service: OrderService):
        order_service.repository.fetch_for_update.side_effect = ConcurrencyConflictError(1)

        with pytest.raises(ConcurrencyConflictError):
            await order_service.update_order(1, status=OrderStatus.PROCESSING)


# ============================================================================
# Item Command Tests
# ============================================================================


class TestAddOrderItems:
    """Test suite for appending items."""

    @pytest.mark.asyncio
    async def test_add_items(self, order_service: OrderService, factory):
        order = factory.order(items=[factory.item(101, 2, "10.00")])
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.add_order_items(1, lines((102, 2), (103, 1, "1.00")))

        assert {i["product_id"] for i in result["items"]} == {101, 102, 103}
        assert result["total"] == Decimal("36.00")

    @pytest.mark.asyncio
    async def test_add_existing_product_rejected(
        self, order_service: OrderService, factory
    ):
        order = factory.order(items=[factory.item(101)])
        order_service.repository.fetch_for_update.return_value = order

        with pytest.raises(DuplicateProductError) as exc_info:
            await order_service.add_order_items(1, lines((102, 1), (101, 1)))

        assert exc_info.value.product_id == 101
        assert order.product_ids == {101}
        order_service.repository.persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_add_to_processed_order_rejected(
        self, order_service: OrderService, factory
    ):
        order_service.repository.fetch_for_update.return_value = factory.order(
            status=OrderStatus.PROCESSING
        )

        with pytest.raises(OrderAlreadyProcessedError):
            await order_service.add_order_items(1, lines((102, 1)))

    @pytest.mark.asyncio
    async def test_add_nothing_rejected(self, order_service: OrderService):
        with pytest.raises(OrderValidationError):
            await order_service.add_order_items(1, [])

        order_service.repository.fetch_for_update.assert_not_awaited()


class TestUpdateOrderItem:
    """Test suite for changing a single item."""

    @pytest.mark.asyncio
    async def test_update_item(self, order_service: OrderService, factory):
        order = factory.order(items=[factory.item(101, 1, "10.00")])
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order_item(1, 101, 3, Decimal("9.00"))

        assert result["items"][0]["quantity"] == 3
        assert result["total"] == Decimal("27.00")

    @pytest.mark.asyncio
    async def test_update_item_keeps_price_snapshot(
        self, order_service: OrderService, factory
    ):
        order = factory.order(items=[factory.item(101, 1, "8.00")])
        order_service.repository.fetch_for_update.return_value = order

        result = await order_service.update_order_item(1, 101, 2)

        assert result["items"][0]["price"] == Decimal("8.00")

    @pytest.mark.asyncio
    async def test_update_missing_item(self, order_service: OrderService, factory):
        order_service.repository.fetch_for_update.return_value = factory.order()

        with pytest.raises(ItemNotFoundError):
            await order_service.update_order_item(1, 555, 1)

    @pytest.mark.asyncio
    async def test_update_item_invalid_quantity(self, order_service: OrderService, factory):
        order_service.repository.fetch_for_update.return_value = factory.order()

        with pytest.raises(OrderValidationError):
            await order_service.update_order_item(1, 101, 0)

        order_service.repository.persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_item_missing_order_reported_before_invalid_quantity(
        self, order_service: OrderService
    ):
        order_service.repository.fetch_for_update.return_value = None

        with pytest.raises(OrderNotFoundError):
            await order_service.update_order_item(99, 101, 0)

    @pytest.mark.asyncio
    async def test_update_item_processed_order_reported_before_invalid_quantity(
        self, order_service: OrderService, factory
    ):
        order_service.repository.fetch_for_update.return_value = factory.order(
            status=OrderStatus.PROCESSING
        )

        with pytest.raises(OrderAlreadyProcessedError):
            await order_service.update_order_item(1, 101, -1)


class TestDeleteOrderItem:
    """Test suite for removing a single item."""

    @pytest.mark.asyncio
    async def test_delete_item(self, order_service: OrderService, factory):
        order = factory.order(items=[factory.item(101), factory.item(102)])
        order_service.repository.fetch_for_update.return_value = order

        await order_service.delete_order_item(1, 102)

        assert order.product_ids == {101}
        order_service.repository.persist.assert_awaited_once_with(order)

    @pytest.mark.asyncio
    async def test_delete_item_from_shipped_order(
        self, order_service: OrderService, factory
    ):
        order = factory.order(status=OrderStatus.SHIPPED, items=[factory.item(101)])
        order_service.repository.fetch_for_update.return_value = order

        with pytest.raises(OrderAlreadyProcessedError):
            await order_service.delete_order_item(1, 101)

        assert order.product_ids == {101}


# ============================================================================
# Delete Order Tests
# ============================================================================


class TestDeleteOrder:
    """Test suite for order deletion."""

    @pytest.mark.asyncio
    async def test_delete_created_order(self, order_service: OrderService, factory):
        order = factory.order()
        order_service.repository.fetch_for_update.return_value = order

        await order_service.delete_order(1)

        order_service.repository.delete.assert_awaited_once_with(order)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELED,
        ],
    )
    async def test_delete_processed_order_rejected(
        self, order_service: OrderService, factory, status: OrderStatus
    ):
        order_service.repository.fetch_for_update.return_value = factory.order(
            status=status
        )

        with pytest.raises(OrderAlreadyProcessedError):
            await order_service.delete_order(1)

        order_service.repository.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_missing_order(self, order_service: OrderService):
        order_service.repository.fetch_for_update.return_value = None

        with pytest.raises(OrderNotFoundError):
            await order_service.delete_order(1)


class TestTransactionScope:
    """Every command runs inside exactly one transaction."""

    @pytest.mark.asyncio
    async def test_command_opens_single_transaction(
        self, order_service: OrderService, mock_session: AsyncMock, factory
    ):
        order_service.repository.fetch_for_update.return_value = factory.order()

        await order_service.update_order(1, discount=Decimal("1.00"))

        mock_session.begin.assert_called_once()

    @pytest.mark.asyncio
    async def test_failed_command_leaves_transaction_via_exception(
        self, order_service: OrderService, mock_session: AsyncMock, factory
    ):
        order_service.repository.fetch_for_update.return_value = factory.order(
            status=OrderStatus.DELIVERED
        )

        with pytest.raises(OrderAlreadyProcessedError):
            await order_service.delete_order(1)

        exit_args = mock_session.begin.return_value.__aexit__.await_args.args
        assert exit_args[0] is OrderAlreadyProcessedError
