"""
Order API endpoints.

Thin routing layer over OrderService (write commands) and OrderQueryService
(reads). Domain errors propagate to the application's exception handler,
which maps each error class to its HTTP status.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Query, Response, status

from orders_api.api.deps import DatabaseSession, Pagination
from orders_api.schemas.common import Page
from orders_api.schemas.orders import (
    OrderAddItemsRequest,
    OrderCreateRequest,
    OrderItemUpdateRequest,
    OrderResponse,
    OrderSummaryResponse,
    OrderUpdateRequest,
    StatusValue,
)
from orders_api.services.orders.queries import OrderQueryService
from orders_api.services.orders.service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new order",
)
async def create_order(request: OrderCreateRequest, db: DatabaseSession) -> dict:
    """
    Create an order in status ``created``.

    Items without a price take the product's current catalog price.
    """
    return await OrderService(db).create_order(
        customer_id=request.customer_id,
        items=[item.model_dump() for item in request.items],
        discount=request.discount,
    )


@router.get(
    "",
    response_model=Page[OrderSummaryResponse],
    summary="List orders",
)
async def list_orders(
    db: DatabaseSession,
    pagination: Pagination,
    status_filter: Annotated[Optional[StatusValue], Query(alias="status")] = None,
    customer_id: Annotated[Optional[int], Query(ge=1)] = None,
    product_id: Annotated[Optional[int], Query(ge=1)] = None,
    sort_desc: bool = False,
) -> Page[OrderSummaryResponse]:
    """
    List order summaries, oldest first unless ``sort_desc`` is set.

    Filters combine with AND; an omitted filter matches every order.
    """
    return await OrderQueryService(db).list_orders(
        status=status_filter,
        customer_id=customer_id,
        product_id=product_id,
        page=pagination.page,
        size=pagination.size,
        sort_desc=sort_desc,
    )


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
)
async def get_order(order_id: int, db: DatabaseSession) -> dict:
    return await OrderQueryService(db).get_order(order_id)


@router.patch(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Update order",
)
async def update_order(
    order_id: int,
    request: OrderUpdateRequest,
    db: DatabaseSession,
) -> dict:
    """
    Partially update an order.

    A status change is applied first. After the order leaves ``created``,
    item, customer and discount changes are ignored when sent together with
    a status change and rejected otherwise.
    """
    return await OrderService(db).update_order(
        order_id,
        items=(
            [item.model_dump() for item in request.items]
            if request.items is not None
            else None
        ),
        customer_id=request.customer_id,
        discount=request.discount,
        status=request.status,
    )


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete order",
)
async def delete_order(order_id: int, db: DatabaseSession) -> Response:
    await OrderService(db).delete_order(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{order_id}/items",
    response_model=OrderResponse,
    summary="Add items to order",
)
async def add_order_items(
    order_id: int,
    request: OrderAddItemsRequest,
    db: DatabaseSession,
) -> dict:
    return await OrderService(db).add_order_items(
        order_id,
        [item.model_dump() for item in request.items],
    )


@router.put(
    "/{order_id}/items/{product_id}",
    response_model=OrderResponse,
    summary="Update order item",
)
async def update_order_item(
    order_id: int,
    product_id: int,
    request: OrderItemUpdateRequest,
    db: DatabaseSession,
) -> dict:
    return await OrderService(db).update_order_item(
        order_id,
        product_id,
        quantity=request.quantity,
        price=request.price,
    )


@router.delete(
    "/{order_id}/items/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove order item",
)
async def delete_order_item(
    order_id: int,
    product_id: int,
    db: DatabaseSession,
) -> Response:
    await OrderService(db).delete_order_item(order_id, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
