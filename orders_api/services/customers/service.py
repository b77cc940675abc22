"""
Customer service for directory CRUD operations.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orders_api.core.exceptions import CustomerNotFoundError, EntityInUseError
from orders_api.core.logging import get_logger
from orders_api.database.models.customer import Customer
from orders_api.schemas.common import Page
from orders_api.schemas.customers import (
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
)
from orders_api.services.customers.repository import CustomerRepository

logger = get_logger(__name__)


class CustomerService:
    """Business logic service for customer records."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repository = CustomerRepository(session)

    async def create_customer(self, data: CustomerCreate) -> CustomerResponse:
        customer = await self.repository.create(
            Customer(name=data.name, phone=data.phone)
        )
        await self.session.commit()
        return CustomerResponse.model_validate(customer)

    async def get_customer(self, customer_id: int) -> CustomerResponse:
        """
        Get customer by ID.

        Raises:
            CustomerNotFoundError: If customer does not exist
        """
        customer = await self._get_or_raise(customer_id)
        return CustomerResponse.model_validate(customer)

    async def update_customer(
        self, customer_id: int, data: CustomerUpdate
    ) -> CustomerResponse:
        customer = await self._get_or_raise(customer_id)
        for field, value in data.model_dump(exclude_none=True).items():
            setattr(customer, field, value)

        customer = await self.repository.update(customer)
        await self.session.commit()
        return CustomerResponse.model_validate(customer)

    async def delete_customer(self, customer_id: int) -> None:
        """
        Delete a customer.

        Raises:
            CustomerNotFoundError: If customer does not exist
            EntityInUseError: If orders still reference the customer
        """
        customer = await self._get_or_raise(customer_id)
        try:
            await self.repository.delete(customer)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Customer deletion rejected - referenced by orders",
                customer_id=customer_id,
            )
            raise EntityInUseError(
                "Customer is referenced by existing orders",
                customer_id=customer_id,
            ) from e

    async def search_customers(
        self, name: Optional[str], page: int, size: int
    ) -> Page[CustomerResponse]:
        customers, total = await self.repository.search(
            name=name, skip=(page - 1) * size, limit=size
        )
        return Page[CustomerResponse].build(
            [CustomerResponse.model_validate(c) for c in customers],
            total_count=total,
            page=page,
            size=size,
        )

    async def _get_or_raise(self, customer_id: int) -> Customer:
        customer = await self.repository.get_by_id(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer
