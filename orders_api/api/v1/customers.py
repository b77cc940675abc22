"""
Customer API endpoints.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Query, Response, status

from orders_api.api.deps import DatabaseSession, Pagination
from orders_api.schemas.common import Page
from orders_api.schemas.customers import (
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
)
from orders_api.services.customers.service import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create customer",
)
async def create_customer(
    request: CustomerCreate, db: DatabaseSession
) -> CustomerResponse:
    return await CustomerService(db).create_customer(request)


@router.get(
    "",
    response_model=Page[CustomerResponse],
    summary="Search customers",
)
async def search_customers(
    db: DatabaseSession,
    pagination: Pagination,
    name: Annotated[Optional[str], Query(max_length=150)] = None,
) -> Page[CustomerResponse]:
    """Search customers by case-insensitive name fragment."""
    return await CustomerService(db).search_customers(
        name, page=pagination.page, size=pagination.size
    )


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get customer",
)
async def get_customer(customer_id: int, db: DatabaseSession) -> CustomerResponse:
    return await CustomerService(db).get_customer(customer_id)


@router.put(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Update customer",
)
async def update_customer(
    customer_id: int,
    request: CustomerUpdate,
    db: DatabaseSession,
) -> CustomerResponse:
    return await CustomerService(db).update_customer(customer_id, request)


@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete customer",
)
async def delete_customer(customer_id: int, db: DatabaseSession) -> Response:
    """Delete a customer; rejected while orders reference it."""
    await CustomerService(db).delete_customer(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
