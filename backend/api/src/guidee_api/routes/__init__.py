"""API routes package.

Routers are organized by domain:

- health: Health check endpoint
- orders: Order listing, creation, update, cancellation and stats
- payments: Order payment and payment status

All routers are registered in main.py with /api prefix.
"""

from guidee_api.routes.health import router as health_router
from guidee_api.routes.orders import router as orders_router
from guidee_api.routes.payments import router as payments_router

__all__ = [
    "health_router",
    "orders_router",
    "payments_router",
]
