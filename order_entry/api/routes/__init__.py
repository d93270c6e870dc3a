"""
API Routes
==========

Route modules for the order-entry server.
"""

from order_entry.api.routes.catalog import router as catalog_router
from order_entry.api.routes.order import router as order_router

__all__ = ["catalog_router", "order_router"]
