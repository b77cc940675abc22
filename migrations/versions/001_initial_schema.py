"""
Alembic migration: initial orders schema.

Creates customers, products, orders and order_items with the order_status
enum type. Order items are owned by their order (ON DELETE CASCADE) and a
product may appear at most once per order.

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORDER_STATUS = postgresql.ENUM(
    'created',
    'processing',
    'shipped',
    'delivered',
    'canceled',
    name='order_status',
    create_type=False,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at',
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP'),
            comment='Timestamp when record was created',
        ),
        sa.Column(
            'updated_at',
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text('CURRENT_TIMESTAMP'),
            comment='Timestamp when record was last updated',
        ),
    ]


def upgrade() -> None:
    """
    Create the customers, products, orders and order_items tables.
    """
    ORDER_STATUS.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'customers',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('name', sa.String(150), nullable=False, comment='Customer name'),
        sa.Column('phone', sa.String(25), nullable=False, comment='Customer phone number'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_customers'),
        comment='Customers placing orders',
    )
    op.create_index('ix_customers_name', 'customers', ['name'])

    op.create_table(
        'products',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('sku', sa.String(50), nullable=False, comment='Stock keeping unit'),
        sa.Column('name', sa.String(150), nullable=False, comment='Product name'),
        sa.Column(
            'price',
            sa.Numeric(precision=10, scale=2),
            nullable=False,
            comment='Catalog unit price',
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.CheckConstraint('char_length(sku) >= 5', name='ck_products_sku_min_length'),
        comment='Product catalog',
    )
    op.create_index('ix_products_name', 'products', ['name'])

    op.create_table(
        'orders',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column(
            'customer_id',
            sa.BigInteger(),
            nullable=False,
            comment='Ordering customer identifier',
        ),
        sa.Column(
            'discount',
            sa.Numeric(precision=10, scale=2),
            nullable=False,
            server_default=sa.text('0'),
            comment='Absolute discount applied to the order',
        ),
        sa.Column(
            'status',
            ORDER_STATUS,
            nullable=False,
            server_default=sa.text("'created'"),
            comment='Current order status',
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
        sa.ForeignKeyConstraint(
            ['customer_id'],
            ['customers.id'],
            name='fk_orders_customer_id',
            ondelete='RESTRICT',
        ),
        sa.CheckConstraint('discount >= 0', name='ck_orders_discount_non_negative'),
        comment='Customer orders with status tracking',
    )
    op.create_index('ix_orders_customer_status', 'orders', ['customer_id', 'status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('order_id', sa.BigInteger(), nullable=False, comment='Owning order identifier'),
        sa.Column('product_id', sa.BigInteger(), nullable=False, comment='Product identifier'),
        sa.Column('quantity', sa.Integer(), nullable=False, comment='Quantity of the product'),
        sa.Column(
            'price',
            sa.Numeric(precision=10, scale=2),
            nullable=False,
            comment='Unit price snapshot',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order_items'),
        sa.ForeignKeyConstraint(
            ['order_id'],
            ['orders.id'],
            name='fk_order_items_order_id',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'],
            ['products.id'],
            name='fk_order_items_product_id',
            ondelete='RESTRICT',
        ),
        sa.UniqueConstraint('order_id', 'product_id', name='uq_order_items_order_product'),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('price >= 0', name='ck_order_items_price_non_negative'),
        comment='Individual items in an order',
    )
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])


def downgrade() -> None:
    """
    Drop all tables and the order_status enum type.
    """
    op.drop_index('ix_order_items_product_id', table_name='order_items')
    op.drop_table('order_items')

    op.drop_index('ix_orders_created_at', table_name='orders')
    op.drop_index('ix_orders_customer_status', table_name='orders')
    op.drop_table('orders')

    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')

    op.drop_index('ix_customers_name', table_name='customers')
    op.drop_table('customers')

    ORDER_STATUS.drop(op.get_bind(), checkfirst=True)
