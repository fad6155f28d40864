"""User ORM model definition."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, Index, String, UniqueConstraint, func
from sqlalchemy.sql import expression
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.security import get_password_hash, verify_password
from app.db.base import Base

if TYPE_CHECKING:
    from app.models.admin import Admin
    from app.models.mentee import Mentee
    from app.models.mentor import Mentor


class UserType(str, enum.Enum):
    """Role an account was registered with."""

    MENTOR = "mentor"
    MENTEE = "mentee"
    ADMIN = "admin"


class User(Base):
    """Represents an account that can sign in."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_email_verification_token", "email_verification_token"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    user_type: Mapped[UserType] = mapped_column(
        Enum(
            UserType,
            name="user_type",
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    is_email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )
    # SHA-256 digest of the outstanding verification token, if any.
    email_verification_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    email_verification_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    email_verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=expression.true(),
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    mentor: Mapped[Optional["Mentor"]] = relationship(
        "Mentor",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    mentee: Mapped[Optional["Mentee"]] = relationship(
        "Mentee",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    admin: Mapped[Optional["Admin"]] = relationship(
        "Admin",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        """Hash and store a new password."""

        self.hashed_password = get_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Return True when the plaintext password matches the stored hash."""

        if not self.hashed_password:
            return False
        return verify_password(password, self.hashed_password)


__all__ = ["User", "UserType"]
