"""
Product service for catalog CRUD operations.

SKUs are unique across the catalog; uniqueness is checked before insert and
again by the database constraint.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.core.exceptions import (
    DuplicateSkuError,
    EntityInUseError,
    ProductNotFoundError,
)
from orders_api.core.logging import get_logger
from orders_api.database.models.product import Product
from orders_api.schemas.common import Page
from orders_api.schemas.products import ProductCreate, ProductResponse, ProductUpdate
from orders_api.services.products.repository import ProductRepository

logger = get_logger(__name__)


class ProductService:
    """Business logic service for the product catalog."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = ProductRepository(session)

    async def create_product(self, data: ProductCreate) -> ProductResponse:
        """
        Add a product to the catalog.

        Raises:
            DuplicateSkuError: If the SKU is already taken
        """
        await self._ensure_sku_available(data.sku)
        try:
            product = await self.repository.create(
                Product(sku=data.sku, name=data.name, price=data.price)
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateSkuError(data.sku) from e

        return ProductResponse.model_validate(product)

    async def get_product(self, product_id: int) -> ProductResponse:
        product = await self._get_or_raise(product_id)
        return ProductResponse.model_validate(product)

    async def update_product(
        self, product_id: int, data: ProductUpdate
    ) -> ProductResponse:
        """
        Update a product; a changed SKU is re-checked for uniqueness.

        Raises:
            ProductNotFoundError: If product does not exist
            DuplicateSkuError: If the new SKU is already taken
        """
        product = await self._get_or_raise(product_id)
        if data.sku is not None and data.sku != product.sku:
            await self._ensure_sku_available(data.sku)

        # rollback expires the instance, so the SKU is read beforehand
        sku = data.sku or product.sku
        for field, value in data.model_dump(exclude_none=True).items():
            setattr(product, field, value)

        try:
            product = await self.repository.update(product)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateSkuError(sku) from e

        return ProductResponse.model_validate(product)

    async def delete_product(self, product_id: int) -> None:
        product = await self._get_or_raise(product_id)
        try:
            await self.repository.delete(product)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Product deletion rejected - referenced by order items",
                product_id=product_id,
            )
            raise EntityInUseError(
                "Product is referenced by existing orders",
                product_id=product_id,
            ) from e

    async def search_products(
        self, query: Optional[str], page: int, size: int
    ) -> Page[ProductResponse]:
        products, total = await self.repository.search(
            query=query, skip=(page - 1) * size, limit=size
        )
        return Page[ProductResponse].build(
            [ProductResponse.model_validate(p) for p in products],
            total_count=total,
            page=page,
            size=size,
        )

    async def _ensure_sku_available(self, sku: str) -> None:
        if await self.repository.get_by_sku(sku) is not None:
            logger.info("Duplicate SKU rejected", sku=sku)
            raise DuplicateSkuError(sku)

    async def _get_or_raise(self, product_id: int) -> Product:
        product = await self.repository.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product
