"""API routes."""

from .auth_routes import router as auth_router
from .messages import router as messages_router

__all__ = ["auth_router", "messages_router"]
