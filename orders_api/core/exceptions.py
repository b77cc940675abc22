"""
Domain exception hierarchy.

Every error raised by the services derives from ServiceError and carries a
stable ``error_code``, the HTTP ``status_code`` it maps to, and free-form
keyword context (order id, product id, statuses) that is both logged and
returned to the caller.
"""

from typing import Any


class ServiceError(Exception):
    """Base exception for service errors."""

    error_code = "service_error"
    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for an API response body."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": {key: _jsonable(value) for key, value in self.context.items()},
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple, set, frozenset)):
        return sorted(_jsonable(item) for item in value)
    if hasattr(value, "value"):
        return value.value
    return value


class NotFoundError(ServiceError):
    """Raised when a referenced entity does not exist."""

    error_code = "not_found"
    status_code = 404


class OrderNotFoundError(NotFoundError):
    error_code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__("Order not found", order_id=order_id)


class CustomerNotFoundError(NotFoundError):
    error_code = "customer_not_found"

    def __init__(self, customer_id: int):
        super().__init__("Customer not found", customer_id=customer_id)


class ProductNotFoundError(NotFoundError):
    error_code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found", product_id=product_id)


class ItemNotFoundError(NotFoundError):
    error_code = "item_not_found"

    def __init__(self, product_id: int, **context: Any):
        super().__init__(
            f"Order item for product {product_id} not found",
            product_id=product_id,
            **context,
        )


class DuplicateProductError(ServiceError):
    """Raised when two items of one order reference the same product."""

    error_code = "duplicate_product"
    status_code = 409

    def __init__(self, product_id: int, **context: Any):
        super().__init__(
            f"Duplicate product ID: {product_id}",
            product_id=product_id,
            **context,
        )
        self.product_id = product_id


class DuplicateSkuError(ServiceError):
    error_code = "duplicate_sku"
    status_code = 409

    def __init__(self, sku: str):
        super().__init__(f"Product with SKU {sku} already exists", sku=sku)


class InvalidTransitionError(ServiceError):
    """Raised when a status change is not in the transition table."""

    error_code = "invalid_transition"
    status_code = 400

    def __init__(self, current: Any, target: Any, allowed: Any = (), **context: Any):
        super().__init__(
            f"Cannot change status from {current.value} to {target.value}",
            current=current,
            target=target,
            allowed=allowed,
            **context,
        )
        self.current = current
        self.target = target


class OrderAlreadyProcessedError(ServiceError):
    """Raised on a structural change to an order that has left CREATED."""

    error_code = "order_already_processed"
    status_code = 400

    def __init__(self, order_id: Any, status: Any):
        super().__init__(
            "Order cannot be modified as it has already been processed.",
            order_id=order_id,
            status=status,
        )


class OrderValidationError(ServiceError):
    error_code = "validation_error"
    status_code = 400


class ConcurrencyConflictError(ServiceError):
    """
    Raised when the order row lock could not be acquired.

    Distinct from business errors: callers may retry this one verbatim.
    """

    error_code = "concurrency_conflict"
    status_code = 409

    def __init__(self, order_id: int, **context: Any):
        super().__init__(
            "Order is being modified by another request",
            order_id=order_id,
            **context,
        )


class OrderStoreError(ServiceError):
    error_code = "store_error"
    status_code = 500


class EntityInUseError(ServiceError):
    """Raised when deleting a customer or product still referenced by orders."""

    error_code = "entity_in_use"
    status_code = 409
