"""
Customer data access repository.

``get_by_id`` is the lookup the order service uses to resolve a customer
reference; the remaining methods back the customer CRUD endpoints.
"""

from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.core.logging import get_logger
from orders_api.database.models.customer import Customer

logger = get_logger(__name__)


class CustomerRepository:
    """Repository for customer data access operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, customer_id: int) -> Optional[Customer]:
        """
        Get customer by ID.

        Args:
            customer_id: Customer identifier

        Returns:
            Customer if found, None otherwise

        Raises:
            SQLAlchemyError: If database operation fails
        """
        try:
            result = await self.session.execute(
                select(Customer).where(Customer.id == customer_id)
            )
            customer = result.scalar_one_or_none()
            if customer is None:
                logger.debug("Customer not found", customer_id=customer_id)
            return customer
        except SQLAlchemyError as e:
            logger.error(
                "Failed to retrieve customer",
                customer_id=customer_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def create(self, customer: Customer) -> Customer:
        self.session.add(customer)
        await self.session.flush()
        await self.session.refresh(customer)
        logger.info("Customer created", customer_id=customer.id)
        return customer

    async def update(self, customer: Customer) -> Customer:
        await self.session.flush()
        await self.session.refresh(customer)
        logger.info("Customer updated", customer_id=customer.id)
        return customer

    async def delete(self, customer: Customer) -> None:
        await self.session.delete(customer)
        await self.session.flush()
        logger.info("Customer deleted", customer_id=customer.id)

    async def search(
        self,
        name: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Customer], int]:
        """
        Search customers by name with pagination.

        Args:
            name: Case-insensitive substring of the customer name
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (customers, total_count)
        """
        conditions = []
        if name:
            conditions.append(Customer.name.ilike(f"%{name}%"))

        stmt = (
            select(Customer)
            .where(*conditions)
            .order_by(Customer.id)
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Customer).where(*conditions)

        result = await self.session.execute(stmt)
        count_result = await self.session.execute(count_stmt)

        return result.scalars().all(), count_result.scalar_one()
