"""Helpers for email verification token lifecycle."""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.user import User


VERIFY_EMAIL_PATH = "/verify-email"


def _hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _normalize_to_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware in UTC."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def issue_verification_token(db: Session, user: User, *, now: datetime | None = None) -> str:
    """Create a new verification token for the user and persist its digest.

    Any pending token is overwritten, so only the latest link works. The raw
    token value is returned for inclusion in outbound emails and is never
    stored.
    """

    now = _normalize_to_utc(now or datetime.now(timezone.utc))
    raw_token = secrets.token_urlsafe(32)

    user.email_verification_token = _hash_token(raw_token)
    user.email_verification_expires_at = now + timedelta(
        minutes=settings.email_verification_token_expiry_minutes
    )
    db.add(user)
    db.flush()
    return raw_token


def validate_verification_token(
    db: Session,
    raw_token: str,
    *,
    now: datetime | None = None,
) -> User | None:
    """Return the unverified user owning ``raw_token`` if it has not expired.

    Unknown, expired and already consumed tokens all return ``None``.
    """

    if not raw_token:
        return None

    now = _normalize_to_utc(now or datetime.now(timezone.utc))
    statement = select(User).where(
        User.email_verification_token == _hash_token(raw_token),
        User.is_email_verified.is_(False),
    )
    user = db.execute(statement).scalar_one_or_none()
    if user is None or user.email_verification_expires_at is None:
        return None

    if _normalize_to_utc(user.email_verification_expires_at) <= now:
        return None
    return user


def mark_email_verified(db: Session, user: User, *, now: datetime | None = None) -> bool:
    """Flip the account to verified and drop the consumed token.

    The update only matches while the row still carries the token digest the
    caller validated and is unverified, so of two requests racing on the same
    link exactly one wins. Returns ``False`` for the loser.
    """

    digest = user.email_verification_token
    if digest is None:
        return False

    statement = (
        update(User)
        .where(
            User.id == user.id,
            User.email_verification_token == digest,
            User.is_email_verified.is_(False),
        )
        .values(
            is_email_verified=True,
            email_verified_at=now or datetime.now(timezone.utc),
            email_verification_token=None,
            email_verification_expires_at=None,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(statement)
    if result.rowcount != 1:
        return False
    db.refresh(user)
    return True


def build_verification_link(token: str) -> str:
    """Construct the client-facing verification link for a token."""

    split = urlsplit(settings.client_url)
    path = split.path.rstrip("/") + VERIFY_EMAIL_PATH
    query_params = dict(parse_qsl(split.query, keep_blank_values=True))
    query_params["token"] = token
    new_query = urlencode(query_params)
    return urlunsplit(
        (split.scheme, split.netloc, path, new_query, split.fragment)
    )


__all__ = [
    "build_verification_link",
    "issue_verification_token",
    "mark_email_verified",
    "validate_verification_token",
]
