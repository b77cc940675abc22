"""
Product catalog data access repository.

``get_by_id`` is the lookup the order service uses to resolve products and
read their catalog price; the remaining methods back the product CRUD
endpoints.
"""

from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.core.logging import get_logger
from orders_api.database.models.product import Product

logger = get_logger(__name__)


class ProductRepository:
    """Repository for product catalog data access operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        """
        Get product by ID.

        Args:
            product_id: Product identifier

        Returns:
            Product if found, None otherwise

        Raises:
            SQLAlchemyError: If database operation fails
        """
        try:
            result = await self.session.execute(
                select(Product).where(Product.id == product_id)
            )
            product = result.scalar_one_or_none()
            if product is None:
                logger.debug("Product not found", product_id=product_id)
            return product
        except SQLAlchemyError as e:
            logger.error(
                "Failed to retrieve product",
                product_id=product_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def get_by_sku(self, sku: str) -> Optional[Product]:
        result = await self.session.execute(
            select(Product).where(Product.sku == sku.upper())
        )
        return result.scalar_one_or_none()

    async def create(self, product: Product) -> Product:
        self.session.add(product)
        await self.session.flush()
        await self.session.refresh(product)
        logger.info("Product created", product_id=product.id, sku=product.sku)
        return product

    async def update(self, product: Product) -> Product:
        await self.session.flush()
        await self.session.refresh(product)
        logger.info("Product updated", product_id=product.id, sku=product.sku)
        return product

    async def delete(self, product: Product) -> None:
        await self.session.delete(product)
        await self.session.flush()
        logger.info("Product deleted", product_id=product.id)

    async def search(
        self,
        query: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Product], int]:
        """
        Search products by name or SKU with pagination.

        Args:
            query: Case-insensitive substring of the name or SKU
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (products, total_count)
        """
        conditions = []
        if query:
            conditions.append(
                or_(
                    Product.name.ilike(f"%{query}%"),
                    Product.sku.ilike(f"%{query}%"),
                )
            )

        stmt = (
            select(Product)
            .where(*conditions)
            .order_by(Product.id)
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Product).where(*conditions)

        result = await self.session.execute(stmt)
        count_result = await self.session.execute(count_stmt)

        return result.scalars().all(), count_result.scalar_one()
