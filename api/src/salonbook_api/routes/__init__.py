"""API routes package.

Routers are organized by domain:

- health: Health check endpoints
- accounts: Caller account and admin check
- bookings: Booking creation, lookup, status transitions and deletion
- saloons: Saloon-owner booking lists

All routers are registered in main.py with /api prefix.
"""

from salonbook_api.routes.accounts import router as accounts_router
from salonbook_api.routes.bookings import router as bookings_router
from salonbook_api.routes.health import router as health_router
from salonbook_api.routes.saloons import router as saloons_router

__all__ = [
    "accounts_router",
    "bookings_router",
    "health_router",
    "saloons_router",
]
