"""Shared slowapi limiter for the public auth endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings


limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

__all__ = ["limiter"]
