"""
Test suite for CustomerService.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from orders_api.core.exceptions import CustomerNotFoundError, EntityInUseError
from orders_api.schemas.customers import CustomerCreate, CustomerUpdate
from orders_api.services.customers.service import CustomerService


@pytest.fixture
def customer_service(mock_session: AsyncMock) -> CustomerService:
    service = CustomerService(mock_session)
    service.repository = AsyncMock()
    return service


class TestCustomerService:
    """Test suite for customer CRUD."""

    @pytest.mark.asyncio
    async def test_create_customer(
        self, customer_service: CustomerService, mock_session: AsyncMock, factory
    ):
        customer_service.repository.create.return_value = factory.customer(4, "Alan")

        result = await customer_service.create_customer(
            CustomerCreate(name="  Alan ", phone="555-0101")
        )

        assert result.id == 4
        created = customer_service.repository.create.await_args.args[0]
        assert created.name == "Alan"
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_missing_customer(self, customer_service: CustomerService):
        customer_service.repository.get_by_id.return_value = None

        with pytest.raises(CustomerNotFoundError):
            await customer_service.get_customer(8)

    @pytest.mark.asyncio
    async def test_update_customer(self, customer_service: CustomerService, factory):
        customer = factory.customer(2)
        customer_service.repository.get_by_id.return_value = customer
        customer_service.repository.update.side_effect = lambda c: c

        result = await customer_service.update_customer(2, CustomerUpdate(phone="555-0199"))

        assert result.phone == "555-0199"
        assert result.name == "Ada Lovelace"

    def test_update_requires_a_field(self):
        with pytest.raises(ValueError):
            CustomerUpdate()

    @pytest.mark.asyncio
    async def test_delete_referenced_customer(
        self, customer_service: CustomerService, mock_session: AsyncMock, factory
    ):
        customer_service.repository.get_by_id.return_value = factory.customer(2)
        customer_service.repository.delete.side_effect = IntegrityError(
            "DELETE ...", {}, Exception("fk violation")
        )

        with pytest.raises(EntityInUseError) as exc_info:
            await customer_service.delete_customer(2)

        assert exc_info.value.status_code == 409
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_search_customers(self, customer_service: CustomerService, factory):
        customer_service.repository.search.return_value = (
            [factory.customer(1), factory.customer(2, "Ada Byron")],
            12,
        )

        page = await customer_service.search_customers("ada", page=2, size=5)

        assert page.total_count == 12
        assert page.total_pages == 3
        assert len(page.items) == 2
        customer_service.repository.search.assert_awaited_once_with(
            name="ada", skip=5, limit=5
        )
