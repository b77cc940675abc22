"""
Order aggregate models.

``Order`` is the aggregate root: it exclusively owns its ``OrderItem``
collection and enforces the structural invariants of an order in plain
Python (unique products among items, non-negative discount, derived total,
mutability only while CREATED). Persistence and locking live in the order
store; nothing in this module touches a session.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Numeric,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orders_api.core.exceptions import (
    DuplicateProductError,
    ItemNotFoundError,
    OrderValidationError,
)
from orders_api.database.base import Base, BaseModel, IntegerIdMixin
from orders_api.services.orders.enums import OrderStatus

CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce a numeric value to a Decimal with two fractional digits."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class Order(BaseModel):
    """
    Order aggregate root.

    Attributes:
        id: Order identifier assigned by the database
        customer_id: Weak reference to the ordering customer
        discount: Absolute discount subtracted from the item sum
        status: Current lifecycle status
        items: Owned order lines, ordered by item id
        created_at: Set by the database on insert
        updated_at: Set by the store on every persist
    """

    __tablename__ = "orders"
    __mapper_args__ = {"eager_defaults": True}

    customer_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        comment="Ordering customer identifier",
    )

    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("0.00"),
        server_default=text("0"),
        comment="Absolute discount applied to the order",
    )

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=OrderStatus.CREATED,
        comment="Current order status",
    )

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        Index("ix_orders_customer_status", "customer_id", "status"),
        Index("ix_orders_created_at", "created_at"),
        CheckConstraint("discount >= 0", name="ck_orders_discount_non_negative"),
        {"comment": "Customer orders with status tracking"},
    )

    def __repr__(self) -> str:
        status = self.status.value if self.status else None
        return f"<Order(id={self.id}, customer_id={self.customer_id}, status={status})>"

    @property
    def can_be_modified(self) -> bool:
        """Items, customer and discount may change only while CREATED."""
        return self.status == OrderStatus.CREATED

    @property
    def subtotal(self) -> Decimal:
        """Sum of price times quantity over all items."""
        return sum(
            (to_money(item.price) * item.quantity for item in self.items),
            Decimal("0.00"),
        )

    @property
    def total(self) -> Decimal:
        """
        Order total: the item sum minus the discount, floored at zero.

        Pure computation; never mutates and never fails.
        """
        total = self.subtotal - to_money(self.discount or 0)
        return max(total, Decimal("0.00")).quantize(CENTS)

    @property
    def product_ids(self) -> set[int]:
        return {item.product_id for item in self.items}

    def find_item(self, product_id: int) -> Optional["OrderItem"]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def apply_discount(self, discount: Optional[Any]) -> None:
        """
        Set the discount, clamping an absent value to zero.

        Raises:
            OrderValidationError: If the discount is negative
        """
        if discount is None:
            self.discount = Decimal("0.00")
            return
        value = to_money(discount)
        if value < 0:
            raise OrderValidationError(
                "Discount must not be negative",
                order_id=self.id,
                discount=str(value),
            )
        self.discount = value

    def add_item(self, product_id: int, quantity: int, price: Any) -> "OrderItem":
        """
        Append a new item with a snapshot of the unit price.

        Raises:
            DuplicateProductError: If the product is already on the order
        """
        if self.find_item(product_id) is not None:
            raise DuplicateProductError(product_id, order_id=self.id)
        item = OrderItem(product_id=product_id, quantity=quantity, price=to_money(price))
        self.items.append(item)
        return item

    def replace_items(self, lines: Iterable[dict[str, Any]]) -> None:
        """
        Replace the whole item collection.

        ``lines`` must already be free of duplicate product ids. Items whose
        product appears in ``lines`` keep their identity and take the new
        quantity and price; the rest are removed and new products are
        appended.
        """
        lines = list(lines)
        wanted = {line["product_id"] for line in lines}

        for item in [item for item in self.items if item.product_id not in wanted]:
            self.items.remove(item)

        for line in lines:
            existing = self.find_item(line["product_id"])
            if existing is None:
                self.add_item(line["product_id"], line["quantity"], line["price"])
            else:
                existing.quantity = line["quantity"]
                existing.price = to_money(line["price"])

    def update_item(self, product_id: int, quantity: int, price: Any) -> "OrderItem":
        """
        Change quantity and price of an existing item in place.

        Raises:
            ItemNotFoundError: If no item references the product
        """
        item = self.find_item(product_id)
        if item is None:
            raise ItemNotFoundError(product_id, order_id=self.id)
        item.quantity = quantity
        item.price = to_money(price)
        return item

    def remove_item(self, product_id: int) -> None:
        """
        Remove the item for a product; removing the last item is allowed.

        Raises:
            ItemNotFoundError: If no item references the product
        """
        item = self.find_item(product_id)
        if item is None:
            raise ItemNotFoundError(product_id, order_id=self.id)
        self.items.remove(item)


class OrderItem(Base, IntegerIdMixin):
    """
    Order line owned by exactly one order.

    Attributes:
        id: Item identifier
        order_id: Owning order
        product_id: Product reference
        quantity: Positive quantity
        price: Unit price copied when the item was added
    """

    __tablename__ = "order_items"

    order_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning order identifier",
    )

    product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Product identifier",
    )

    quantity: Mapped[int] = mapped_column(
        nullable=False,
        comment="Quantity of the product",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price snapshot",
    )

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_items_order_product"),
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_order_items_price_non_negative"),
        {"comment": "Individual items in an order"},
    )

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price) * self.quantity
