"""Order status enum and transition table for order lifecycle management.

This module defines the order status values, their ordering rank and the
immutable table of legal status transitions. The table is the single source
of truth for which transitions are allowed; rank only orders statuses for
display and sorting.
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping


class OrderStatus(str, Enum):
    """Order lifecycle status.

    Valid transitions:
    - CREATED -> PROCESSING, CANCELED
    - PROCESSING -> SHIPPED
    - SHIPPED -> DELIVERED
    - DELIVERED -> (terminal state)
    - CANCELED -> (terminal state)
    """

    CREATED = "created"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"

    @classmethod
    def from_string(cls, value: str) -> "OrderStatus":
        """Convert string to OrderStatus enum.

        Args:
            value: String representation of status, in any case

        Returns:
            OrderStatus enum value

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid_values = ", ".join([s.value for s in cls])
            raise ValueError(
                f"Invalid order status: {value}. "
                f"Valid values are: {valid_values}"
            ) from None

    @property
    def rank(self) -> int:
        """Position of the status in the lifecycle, starting at 1."""
        return _STATUS_RANKS[self]

    def is_terminal(self) -> bool:
        """Check if status has no outgoing transitions."""
        return not ORDER_STATUS_TRANSITIONS[self]


_STATUS_RANKS: Mapping[OrderStatus, int] = MappingProxyType(
    {status: position for position, status in enumerate(OrderStatus, start=1)}
)

ORDER_STATUS_TRANSITIONS: Mapping[OrderStatus, FrozenSet[OrderStatus]] = MappingProxyType(
    {
        OrderStatus.CREATED: frozenset(
            {OrderStatus.PROCESSING, OrderStatus.CANCELED}
        ),
        OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED}),
        OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
        OrderStatus.DELIVERED: frozenset(),  # Terminal
        OrderStatus.CANCELED: frozenset(),  # Terminal
    }
)


def validate_order_status_transition(
    current: OrderStatus,
    new: OrderStatus,
) -> bool:
    """Validate if order status transition is allowed.

    Same-status requests are never allowed.
    """
    return new in ORDER_STATUS_TRANSITIONS.get(current, frozenset())


def get_allowed_order_transitions(current: OrderStatus) -> set[OrderStatus]:
    """Get a mutable copy of the statuses reachable from ``current``."""
    return set(ORDER_STATUS_TRANSITIONS.get(current, frozenset()))
