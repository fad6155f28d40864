"""API dependency exports."""

from app.core.session import get_session_context
from app.db.session import get_db

__all__ = [
    "get_db",
    "get_session_context",
]
