"""Security helpers for password hashing."""

from __future__ import annotations

from passlib.context import CryptContext


_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Hash a plaintext password using a secure bcrypt context."""
    return _pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a hashed password."""

    return _pwd_context.verify(plain_password, hashed_password)


def dummy_verify_password() -> None:
    """Spend the same time as a real verification when no account matched."""

    _pwd_context.dummy_verify()


__all__ = [
    "dummy_verify_password",
    "get_password_hash",
    "verify_password",
]
