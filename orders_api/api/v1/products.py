"""
Product catalog API endpoints.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Query, Response, status

from orders_api.api.deps import DatabaseSession, Pagination
from orders_api.schemas.common import Page
from orders_api.schemas.products import ProductCreate, ProductResponse, ProductUpdate
from orders_api.services.products.service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
)
async def create_product(request: ProductCreate, db: DatabaseSession) -> ProductResponse:
    return await ProductService(db).create_product(request)


@router.get(
    "",
    response_model=Page[ProductResponse],
    summary="Search products",
)
async def search_products(
    db: DatabaseSession,
    pagination: Pagination,
    q: Annotated[Optional[str], Query(max_length=150, description="Name or SKU fragment")] = None,
) -> Page[ProductResponse]:
    return await ProductService(db).search_products(
        q, page=pagination.page, size=pagination.size
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product",
)
async def get_product(product_id: int, db: DatabaseSession) -> ProductResponse:
    return await ProductService(db).get_product(product_id)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update product",
)
async def update_product(
    product_id: int,
    request: ProductUpdate,
    db: DatabaseSession,
) -> ProductResponse:
    """Update a product. Existing order items keep their price snapshot."""
    return await ProductService(db).update_product(product_id, request)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete product",
)
async def delete_product(product_id: int, db: DatabaseSession) -> Response:
    await ProductService(db).delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
