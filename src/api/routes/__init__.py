"""API route modules."""

from .health import router as health_router
from .notifications import router as notifications_router

__all__ = ["health_router", "notifications_router"]
