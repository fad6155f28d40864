"""Repository helpers for interacting with user records."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User, UserType


class UserEmailAlreadyExistsError(Exception):
    """Raised when attempting to create a user with an email that already exists."""

    def __init__(self, email: str) -> None:
        super().__init__(f"A user with email '{email}' already exists")
        self.email = email


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Fetch a user by email address."""

    normalized_email = normalize_email(email)
    statement = select(User).where(User.email == normalized_email)
    result = db.execute(statement)
    return result.scalar_one_or_none()


def get_user_by_id(db: Session, user_id: uuid.UUID) -> Optional[User]:
    """Fetch a user by primary key."""

    return db.get(User, user_id)


def create_account(
    db: Session,
    *,
    email: str,
    password: str,
    user_type: UserType,
    is_email_verified: bool = False,
) -> User:
    """Stage a new account in the current transaction.

    The row is flushed so the unique email constraint is checked right away;
    the caller owns the commit.
    """

    normalized_email = normalize_email(email)
    if get_user_by_email(db, normalized_email) is not None:
        raise UserEmailAlreadyExistsError(normalized_email)

    user = User(
        email=normalized_email,
        user_type=user_type,
        is_email_verified=is_email_verified,
    )
    user.set_password(password)
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise UserEmailAlreadyExistsError(normalized_email) from exc
    return user


def save_user(db: Session, user: User) -> User:
    """Persist pending changes on ``user`` and reload it."""

    db.add(user)
    db.commit()
    db.refresh(user)
    return user


__all__ = [
    "UserEmailAlreadyExistsError",
    "create_account",
    "get_user_by_email",
    "get_user_by_id",
    "normalize_email",
    "save_user",
]
