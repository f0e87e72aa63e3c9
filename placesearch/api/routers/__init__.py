"""
API Routers
"""

from .admin import router as admin_router
from .health import router as health_router
from .places import router as places_router
from .webhooks import router as webhooks_router

__all__ = [
    "admin_router",
    "health_router",
    "places_router",
    "webhooks_router",
]
