"""Route modules."""

from .notifications import router as notifications_router
from .uploads import router as uploads_router
from .videos import router as videos_router

__all__ = ["notifications_router", "uploads_router", "videos_router"]
