"""Order state machine implementation with transition validation.

This module implements the OrderStateMachine class, the only component
allowed to change an order's status. It is pure: it reads the transition
table, mutates the in-memory order and never touches the session, so the
caller's transaction decides whether a change is kept.
"""

from typing import Any

from orders_api.core.exceptions import InvalidTransitionError
from orders_api.core.logging import get_logger
from orders_api.services.orders.enums import (
    OrderStatus,
    get_allowed_order_transitions,
    validate_order_status_transition,
)

logger = get_logger(__name__)


class OrderStateMachine:
    """State machine for managing order lifecycle transitions."""

    def can_transition(self, current: OrderStatus, target: OrderStatus) -> bool:
        """Check whether ``target`` is reachable from ``current`` in one step."""
        return validate_order_status_transition(current, target)

    def validate_transition(
        self,
        current: OrderStatus,
        target: OrderStatus,
        **context: Any,
    ) -> None:
        """Validate if transition to target status is allowed.

        Args:
            current: Current order status
            target: Desired target status
            **context: Extra fields attached to the error (e.g. order_id)

        Raises:
            InvalidTransitionError: If transition is not in the table
        """
        if not self.can_transition(current, target):
            allowed = self.get_allowed_transitions(current)
            logger.info(
                "Rejected status transition",
                current_status=current.value,
                target_status=target.value,
                allowed=sorted(s.value for s in allowed),
                **context,
            )
            raise InvalidTransitionError(current, target, allowed, **context)

    def apply_transition(self, order: Any, target: OrderStatus) -> OrderStatus:
        """Validate and apply a status change to the order.

        Args:
            order: Order instance to transition
            target: Target status to transition to

        Returns:
            The status the order had before the change

        Raises:
            InvalidTransitionError: If transition is not allowed; the
                order is left unchanged
        """
        previous = order.status
        self.validate_transition(previous, target, order_id=order.id)
        order.status = target

        logger.info(
            "Status transition applied",
            order_id=order.id,
            transition=f"{previous.value}->{target.value}",
        )
        return previous

    def get_allowed_transitions(self, current: OrderStatus) -> set[OrderStatus]:
        return get_allowed_order_transitions(current)
