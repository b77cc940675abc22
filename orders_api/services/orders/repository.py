"""
Locked order store: the concurrency boundary for order mutations.

Every read-modify-write cycle on an order goes through LockedOrderStore. The
store opens one transaction per command, fetches the order with
``SELECT ... FOR UPDATE`` so concurrent commands on the same order serialize,
and translates lock failures reported by PostgreSQL into
ConcurrencyConflictError. Commit or rollback of the transaction releases the
row lock.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orders_api.core.config import get_settings
from orders_api.core.exceptions import (
    ConcurrencyConflictError,
    OrderStoreError,
    ServiceError,
)
from orders_api.core.logging import get_logger
from orders_api.database.models.order import Order

logger = get_logger(__name__)

# lock_not_available, deadlock_detected
LOCK_CONFLICT_SQLSTATES = frozenset({"55P03", "40P01"})


def extract_sqlstate(exc: DBAPIError) -> Optional[str]:
    """
    Return the PostgreSQL SQLSTATE behind a DBAPI error, if any.

    The asyncpg adapter exposes it on the wrapped exception as ``sqlstate``
    (or ``pgcode``); the raw asyncpg error is chained as its cause.
    """
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if isinstance(code, str):
            return code
    return None


class LockedOrderStore:
    """
    Repository for order aggregates under pessimistic locking.

    Attributes:
        session: Async database session owned by the current request
        lock_timeout_ms: How long a fetch waits for a row lock
        nowait: Fail immediately instead of waiting for a held lock
    """

    def __init__(
        self,
        session: AsyncSession,
        lock_timeout_ms: Optional[int] = None,
        nowait: Optional[bool] = None,
    ):
        # lock_timeout=0 means wait forever in PostgreSQL
        if lock_timeout_ms is not None and lock_timeout_ms < 1:
            raise ValueError(
                f"lock_timeout_ms must be at least 1, got {lock_timeout_ms}"
            )
        settings = get_settings()
        self.session = session
        self.lock_timeout_ms = (
            settings.order_lock_timeout_ms if lock_timeout_ms is None else lock_timeout_ms
        )
        self.nowait = settings.order_lock_nowait if nowait is None else nowait

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["LockedOrderStore"]:
        """
        Run a block inside one transaction.

        Commits when the block exits normally and rolls back on any
        exception, which is re-raised. Either way the row locks taken inside
        the block are released.
        """
        try:
            async with self.session.begin():
                yield self
        except ServiceError as e:
            logger.info(
                "Order transaction rolled back",
                error_code=e.error_code,
            )
            raise
        except SQLAlchemyError as e:
            logger.error(
                "Order transaction failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise OrderStoreError(
                "Order transaction failed",
                error_type=type(e).__name__,
            ) from e

    async def fetch_for_update(self, order_id: int) -> Optional[Order]:
        """
        Fetch an order and take an exclusive lock on its row.

        Items are loaded with a second SELECT. The lock is held until the
        enclosing transaction ends.

        Args:
            order_id: Order identifier

        Returns:
            The locked order, or None if it does not exist

        Raises:
            ConcurrencyConflictError: If the lock was not obtained in time
                or the wait ended in a deadlock
            OrderStoreError: On any other database failure
        """
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .with_for_update(nowait=self.nowait)
            .execution_options(populate_existing=True)
        )

        try:
            if not self.nowait:
                # SET cannot take bind parameters; set_config can
                await self.session.execute(
                    select(
                        func.set_config(
                            "lock_timeout", f"{self.lock_timeout_ms}ms", True
                        )
                    )
                )
            result = await self.session.execute(stmt)
            order = result.scalar_one_or_none()
        except DBAPIError as e:
            raise self._translate_error(e, order_id) from e

        logger.debug(
            "Order lock acquired" if order else "Order not found for update",
            order_id=order_id,
        )
        return order

    async def add(self, order: Order) -> Order:
        """Register a new order and flush so its id and timestamps are set."""
        self.session.add(order)
        await self._flush(order_id=None)
        logger.debug("Order inserted", order_id=order.id, item_count=len(order.items))
        return order

    async def persist(self, order: Order) -> Order:
        """
        Write the aggregate back.

        Touches ``updated_at`` so a change limited to the item collection
        still updates the order row. Removed items become deleted rows and
        new items become inserted rows.
        """
        order.updated_at = datetime.now(timezone.utc)
        await self._flush(order_id=order.id)
        logger.debug("Order persisted", order_id=order.id, item_count=len(order.items))
        return order

    async def delete(self, order: Order) -> None:
        """Delete the order; its items go with it."""
        await self.session.delete(order)
        await self._flush(order_id=order.id)
        logger.debug("Order deleted", order_id=order.id)

    async def _flush(self, order_id: Optional[int]) -> None:
        try:
            await self.session.flush()
        except DBAPIError as e:
            raise self._translate_error(e, order_id) from e

    def _translate_error(self, exc: DBAPIError, order_id: Optional[int]) -> ServiceError:
        sqlstate = extract_sqlstate(exc)

        if sqlstate in LOCK_CONFLICT_SQLSTATES:
            logger.warning(
                "Order lock conflict",
                order_id=order_id,
                sqlstate=sqlstate,
                lock_timeout_ms=None if self.nowait else self.lock_timeout_ms,
            )
            return ConcurrencyConflictError(order_id, sqlstate=sqlstate)

        logger.error(
            "Order store failure",
            order_id=order_id,
            sqlstate=sqlstate,
            error=str(exc.orig),
            error_type=type(exc).__name__,
        )
        return OrderStoreError(
            "Order store operation failed",
            order_id=order_id,
            sqlstate=sqlstate,
        )
