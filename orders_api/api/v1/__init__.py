"""
API v1 package initialization.
"""

from orders_api.api.v1.customers import router as customers_router
from orders_api.api.v1.orders import router as orders_router
from orders_api.api.v1.products import router as products_router

__all__ = ["customers_router", "orders_router", "products_router"]
