"""Registration, email verification and session lifecycle for accounts.

Accounts move one way, from registered-unverified to verified. Independently
each request is either anonymous or authenticated through its
:class:`~app.core.session.SessionContext`. The functions below are the only
transitions between those states.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import dummy_verify_password
from app.core.session import SessionContext
from app.models.user import User, UserType
from app.schemas.auth import MenteeRegistration, MentorRegistration
from app.services.email import EmailDeliveryError, deliver_welcome_email, send_verification_email
from app.services.email_verification import (
    build_verification_link,
    issue_verification_token,
    mark_email_verified,
    validate_verification_token,
)
from app.services.profiles import (
    Profile,
    ProfilePhoto,
    create_mentee_profile,
    create_mentor_profile,
    display_name,
    get_profile,
)
from app.services.users import (
    UserEmailAlreadyExistsError,
    create_account,
    get_user_by_email,
    get_user_by_id,
    normalize_email,
    save_user,
)

logger = logging.getLogger(__name__)

VerificationEmailSender = Callable[[str, str, str], None]
WelcomeEmailSender = Callable[[str, str, UserType], Any]


class AuthLifecycleError(Exception):
    """Base class for lifecycle transition failures."""


class InvalidOrExpiredTokenError(AuthLifecycleError):
    """Raised for unknown, expired or already consumed verification tokens."""


class AccountNotFoundOrVerifiedError(AuthLifecycleError):
    """Raised when a resend is requested for a missing or verified account."""


class InvalidCredentialsError(AuthLifecycleError):
    """Raised when the email is unknown or the password does not match."""


class EmailNotVerifiedError(AuthLifecycleError):
    """Raised when valid credentials belong to an unverified account."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email address '{email}' has not been verified")
        self.email = email


class NotAuthenticatedError(AuthLifecycleError):
    """Raised when an operation needs a session and none is active."""


@dataclass(frozen=True)
class RegistrationResult:
    user: User
    profile: Profile
    email_sent: bool


@dataclass(frozen=True)
class AuthenticatedResult:
    user: User
    profile: Optional[Profile]


@dataclass(frozen=True)
class WhoAmIResult:
    user: User
    profile: Optional[Profile]
    session: dict[str, Any]


def _dispatch_verification_email(
    recipient: str,
    first_name: str,
    raw_token: str,
    email_sender: VerificationEmailSender | None,
) -> bool:
    sender = email_sender or send_verification_email
    link = build_verification_link(raw_token)
    try:
        sender(recipient, first_name, link)
    except EmailDeliveryError:
        logger.error("Failed to send verification email to %s", recipient, exc_info=True)
        return False
    return True


def _register(
    db: Session,
    session: SessionContext,
    *,
    email: str,
    password: str,
    user_type: UserType,
    create_profile: Callable[[User], Profile],
    email_sender: VerificationEmailSender | None,
) -> RegistrationResult:
    normalized_email = normalize_email(email)
    user = create_account(db, email=normalized_email, password=password, user_type=user_type)

    try:
        profile = create_profile(user)
        raw_token = issue_verification_token(db, user)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UserEmailAlreadyExistsError(normalized_email) from exc

    db.refresh(user)
    logger.info("Registered %s account %s", user_type.value, user.id)

    first_name, _ = display_name(profile)
    email_sent = _dispatch_verification_email(user.email, first_name or "", raw_token, email_sender)

    if settings.auto_login_on_register:
        session.establish(user, profile)

    return RegistrationResult(user=user, profile=profile, email_sent=email_sent)


def register_mentor(
    db: Session,
    session: SessionContext,
    payload: MentorRegistration,
    photo: ProfilePhoto,
    *,
    email_sender: VerificationEmailSender | None = None,
) -> RegistrationResult:
    """Create an unverified mentor account with its profile and send the verification email."""

    def _create_profile(user: User) -> Profile:
        return create_mentor_profile(
            db,
            user,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone_number=payload.phone_number,
            programming_languages=payload.programming_languages,
            technologies=payload.technologies,
            domains=payload.domains,
            years_of_experience=payload.years_of_experience,
            general_description=payload.general_description,
            linkedin_url=payload.linkedin_url,
            photo=photo,
        )

    return _register(
        db,
        session,
        email=str(payload.email),
        password=payload.password,
        user_type=UserType.MENTOR,
        create_profile=_create_profile,
        email_sender=email_sender,
    )


def register_mentee(
    db: Session,
    session: SessionContext,
    payload: MenteeRegistration,
    *,
    email_sender: VerificationEmailSender | None = None,
) -> RegistrationResult:
    """Create an unverified mentee account with its profile and send the verification email."""

    def _create_profile(user: User) -> Profile:
        return create_mentee_profile(
            db,
            user,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone_number=payload.phone_number,
            general_description=payload.general_description or None,
        )

    return _register(
        db,
        session,
        email=str(payload.email),
        password=payload.password,
        user_type=UserType.MENTEE,
        create_profile=_create_profile,
        email_sender=email_sender,
    )


def verify_email(
    db: Session,
    session: SessionContext,
    raw_token: str,
    *,
    background_tasks: BackgroundTasks | None = None,
    welcome_sender: WelcomeEmailSender | None = None,
    now: datetime | None = None,
) -> AuthenticatedResult:
    """Consume a verification token, log the account in and queue the welcome email."""

    user = validate_verification_token(db, raw_token, now=now)
    if user is None:
        raise InvalidOrExpiredTokenError("Invalid or expired verification token")

    if not mark_email_verified(db, user, now=now):
        db.rollback()
        raise InvalidOrExpiredTokenError("Invalid or expired verification token")
    db.commit()
    db.refresh(user)
    logger.info("Email verified for account %s", user.id)

    profile = get_profile(db, user)
    session.establish(user, profile)

    first_name, _ = display_name(profile)
    sender = welcome_sender or deliver_welcome_email
    if background_tasks is not None:
        background_tasks.add_task(sender, user.email, first_name or "", user.user_type)
    else:
        sender(user.email, first_name or "", user.user_type)

    return AuthenticatedResult(user=user, profile=profile)


def resend_verification(
    db: Session,
    email: str,
    *,
    email_sender: VerificationEmailSender | None = None,
) -> bool:
    """Issue a fresh token for an unverified account; returns whether the email went out."""

    user = get_user_by_email(db, email)
    if user is None or user.is_email_verified:
        raise AccountNotFoundOrVerifiedError("User not found or already verified")

    raw_token = issue_verification_token(db, user)
    db.commit()
    db.refresh(user)
    logger.info("Reissued verification token for account %s", user.id)

    first_name, _ = display_name(get_profile(db, user))
    return _dispatch_verification_email(user.email, first_name or "", raw_token, email_sender)


def login(
    db: Session,
    session: SessionContext,
    email: str,
    password: str,
    *,
    now: datetime | None = None,
) -> AuthenticatedResult:
    """Check credentials and open a session for a verified account."""

    user = get_user_by_email(db, email)
    if user is None:
        dummy_verify_password()
        raise InvalidCredentialsError("Invalid email or password")

    if not user.check_password(password):
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_email_verified:
        raise EmailNotVerifiedError(user.email)

    user.last_login_at = now or datetime.now(timezone.utc)
    save_user(db, user)

    profile = get_profile(db, user)
    session.establish(user, profile)
    logger.info("Account %s logged in", user.id)
    return AuthenticatedResult(user=user, profile=profile)


def logout(session: SessionContext) -> str:
    """Destroy the session and return the email it belonged to."""

    if not session.is_authenticated:
        raise NotAuthenticatedError("Not logged in")

    email = session.email or ""
    session.destroy()
    return email


def who_am_i(db: Session, session: SessionContext) -> WhoAmIResult | None:
    """Resolve the session principal; stale sessions are cleared."""

    if not session.is_authenticated:
        return None

    user_id = session.user_id
    user = get_user_by_id(db, user_id) if user_id is not None else None
    if user is None:
        logger.info("Clearing session that references a missing account")
        session.destroy()
        return None

    profile = get_profile(db, user)
    return WhoAmIResult(user=user, profile=profile, session=session.snapshot())


__all__ = [
    "AccountNotFoundOrVerifiedError",
    "AuthLifecycleError",
    "AuthenticatedResult",
    "EmailNotVerifiedError",
    "InvalidCredentialsError",
    "InvalidOrExpiredTokenError",
    "NotAuthenticatedError",
    "RegistrationResult",
    "WhoAmIResult",
    "login",
    "logout",
    "register_mentee",
    "register_mentor",
    "resend_verification",
    "verify_email",
    "who_am_i",
]
