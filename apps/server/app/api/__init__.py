"""Public API package exports."""

from app.api.routes.auth import router as auth_router

__all__ = ["auth_router"]
