"""API routes package.

Routers are organized by domain:

- health: Health check endpoint
- pricing: Pricing tiers and price calculation
- payments: Payments and refunds

All routers are registered in main.py with /api prefix.
"""

from parking_api.routes.health import router as health_router
from parking_api.routes.payments import router as payments_router
from parking_api.routes.pricing import router as pricing_router

__all__ = [
    "health_router",
    "payments_router",
    "pricing_router",
]
