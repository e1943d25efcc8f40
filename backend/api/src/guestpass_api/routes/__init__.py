"""API route modules."""

from .access import router as access_router
from .admin import router as admin_router
from .health import router as health_router

__all__ = ["access_router", "admin_router", "health_router"]
