"""Service-level tests for the registration, verification and login lifecycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import BackgroundTasks
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.session import SessionContext
from app.models.user import User, UserType
from app.schemas.auth import MenteeRegistration, MentorRegistration
from app.services import auth_lifecycle
from app.services import users as users_service
from app.services.auth_lifecycle import (
    AccountNotFoundOrVerifiedError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    NotAuthenticatedError,
)
from app.services.email import EmailDeliveryError
from app.services.profiles import ProfilePhoto
from app.services.users import UserEmailAlreadyExistsError, get_user_by_email


def _mentee(**overrides) -> MenteeRegistration:
    values = {
        "email": "bob@x.com",
        "password": "secret123",
        "first_name": "Bob",
        "last_name": "Levi",
        "phone_number": "0501234567",
    }
    values.update(overrides)
    return MenteeRegistration(**values)


def _register(db: Session, payload: MenteeRegistration | None = None) -> tuple[SessionContext, list[str]]:
    tokens: list[str] = []

    def _sender(recipient: str, first_name: str, link: str) -> None:
        tokens.append(link.split("token=", 1)[1])

    session = SessionContext({})
    auth_lifecycle.register_mentee(db, session, payload or _mentee(), email_sender=_sender)
    return session, tokens


def test_register_mentee_creates_unverified_account(db_session: Session) -> None:
    before = datetime.now(timezone.utc)
    session, tokens = _register(db_session)

    user = get_user_by_email(db_session, "bob@x.com")
    assert user.is_email_verified is False
    assert user.user_type is UserType.MENTEE
    assert user.email_verification_token is not None
    expires_at = user.email_verification_expires_at.replace(tzinfo=timezone.utc)
    assert before + timedelta(hours=23, minutes=59) < expires_at
    assert expires_at < datetime.now(timezone.utc) + timedelta(hours=24, minutes=1)
    assert len(tokens) == 1
    assert user.mentee.first_name == "Bob"


def test_register_opens_session_when_auto_login_enabled(db_session: Session) -> None:
    session, _ = _register(db_session)

    assert session.is_authenticated is True
    assert session.email == "bob@x.com"


def test_register_leaves_session_anonymous_when_auto_login_disabled(
    db_session: Session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(auth_lifecycle.settings, "auto_login_on_register", False)

    session, _ = _register(db_session)

    assert session.is_authenticated is False


def test_register_mentor_stores_profile_and_photo(db_session: Session) -> None:
    payload = MentorRegistration(
        email="dana@example.com",
        password="secret123",
        first_name="Dana",
        last_name="Cohen",
        programming_languages="Python, Go",
        technologies=["FastAPI"],
        domains=["Backend"],
        years_of_experience=7,
        general_description="Backend engineer.",
        phone_number="0527654321",
    )
    photo = ProfilePhoto(data=b"img", content_type="image/png", file_name="dana.png")

    result = auth_lifecycle.register_mentor(
        db_session, SessionContext({}), payload, photo, email_sender=lambda *args: None
    )

    assert result.email_sent is True
    assert result.profile.programming_languages == ["Python", "Go"]
    assert result.profile.has_profile_photo is True
    assert result.user.user_type is UserType.MENTOR


def test_register_reports_mail_failure_without_failing(db_session: Session) -> None:
    def _broken(recipient: str, first_name: str, link: str) -> None:
        raise EmailDeliveryError("smtp down")

    result = auth_lifecycle.register_mentee(
        db_session, SessionContext({}), _mentee(), email_sender=_broken
    )

    assert result.email_sent is False
    assert get_user_by_email(db_session, "bob@x.com") is not None


def test_register_duplicate_email(db_session: Session) -> None:
    _register(db_session)

    with pytest.raises(UserEmailAlreadyExistsError):
        _register(db_session, _mentee(email="BOB@x.com"))


def test_concurrent_registration_maps_constraint_violation(
    db_session: Session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _register(db_session)
    monkeypatch.setattr(users_service, "get_user_by_email", lambda db, email: None)

    with pytest.raises(UserEmailAlreadyExistsError):
        _register(db_session)


def test_verify_email_consumes_token_once(db_session: Session) -> None:
    _, tokens = _register(db_session)
    welcomed: list[tuple] = []
    session = SessionContext({})

    result = auth_lifecycle.verify_email(
        db_session, session, tokens[0], welcome_sender=lambda *args: welcomed.append(args)
    )

    assert result.user.is_email_verified is True
    assert result.user.email_verification_token is None
    assert session.user_id == result.user.id
    assert welcomed == [("bob@x.com", "Bob", UserType.MENTEE)]

    with pytest.raises(InvalidOrExpiredTokenError):
        auth_lifecycle.verify_email(db_session, SessionContext({}), tokens[0], welcome_sender=lambda *a: None)


def test_verify_email_racing_consumer_gets_invalid_token(
    db_session: Session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _, tokens = _register(db_session)
    validate = auth_lifecycle.validate_verification_token

    def _validate_then_lose_race(db, raw_token, *, now=None):
        user = validate(db, raw_token, now=now)
        db.execute(
            update(User)
            .where(User.id == user.id)
            .values(is_email_verified=True, email_verification_token=None)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return user

    monkeypatch.setattr(auth_lifecycle, "validate_verification_token", _validate_then_lose_race)
    welcomed: list[tuple] = []
    session = SessionContext({})

    with pytest.raises(InvalidOrExpiredTokenError):
        auth_lifecycle.verify_email(
            db_session, session, tokens[0], welcome_sender=lambda *args: welcomed.append(args)
        )

    assert welcomed == []
    assert session.is_authenticated is False


def test_verify_email_queues_welcome_as_background_task(db_session: Session) -> None:
    _, tokens = _register(db_session)
    background_tasks = BackgroundTasks()

    auth_lifecycle.verify_email(db_session, SessionContext({}), tokens[0], background_tasks=background_tasks)

    assert len(background_tasks.tasks) == 1
    task = background_tasks.tasks[0]
    assert task.args == ("bob@x.com", "Bob", UserType.MENTEE)


def test_verify_email_rejects_expired_token(db_session: Session) -> None:
    _, tokens = _register(db_session)
    later = datetime.now(timezone.utc) + timedelta(hours=25)

    with pytest.raises(InvalidOrExpiredTokenError):
        auth_lifecycle.verify_email(db_session, SessionContext({}), tokens[0], now=later)

    assert get_user_by_email(db_session, "bob@x.com").is_email_verified is False


def test_resend_invalidates_previous_token(db_session: Session) -> None:
    _, tokens = _register(db_session)
    resent: list[str] = []

    email_sent = auth_lifecycle.resend_verification(
        db_session, "bob@x.com", email_sender=lambda r, f, link: resent.append(link.split("token=", 1)[1])
    )

    assert email_sent is True
    assert resent and resent[0] != tokens[0]
    with pytest.raises(InvalidOrExpiredTokenError):
        auth_lifecycle.verify_email(db_session, SessionContext({}), tokens[0], welcome_sender=lambda *a: None)
    auth_lifecycle.verify_email(db_session, SessionContext({}), resent[0], welcome_sender=lambda *a: None)


def test_resend_rejects_unknown_and_verified_accounts(db_session: Session) -> None:
    with pytest.raises(AccountNotFoundOrVerifiedError):
        auth_lifecycle.resend_verification(db_session, "ghost@example.com", email_sender=lambda *a: None)

    _, tokens = _register(db_session)
    auth_lifecycle.verify_email(db_session, SessionContext({}), tokens[0], welcome_sender=lambda *a: None)

    with pytest.raises(AccountNotFoundOrVerifiedError):
        auth_lifecycle.resend_verification(db_session, "bob@x.com", email_sender=lambda *a: None)


def test_login_unverified_account_raises_without_session(db_session: Session) -> None:
    _register(db_session)
    session = SessionContext({})

    with pytest.raises(EmailNotVerifiedError) as exc_info:
        auth_lifecycle.login(db_session, session, "bob@x.com", "secret123")

    assert exc_info.value.email == "bob@x.com"
    assert session.is_authenticated is False


def test_login_wrong_password_and_unknown_email_are_indistinguishable(db_session: Session) -> None:
    _register(db_session)

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        auth_lifecycle.login(db_session, SessionContext({}), "bob@x.com", "nope-nope")
    with pytest.raises(InvalidCredentialsError) as unknown_email:
        auth_lifecycle.login(db_session, SessionContext({}), "nobody@x.com", "secret123")

    assert str(wrong_password.value) == str(unknown_email.value)


def test_login_unknown_email_runs_dummy_hash(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[bool] = []
    monkeypatch.setattr(auth_lifecycle, "dummy_verify_password", lambda: calls.append(True))

    with pytest.raises(InvalidCredentialsError):
        auth_lifecycle.login(db_session, SessionContext({}), "nobody@x.com", "secret123")

    assert calls == [True]


def test_login_verified_account_stamps_last_login(db_session: Session) -> None:
    _, tokens = _register(db_session)
    auth_lifecycle.verify_email(db_session, SessionContext({}), tokens[0], welcome_sender=lambda *a: None)
    session = SessionContext({})
    now = datetime(2025, 5, 1, tzinfo=timezone.utc)

    result = auth_lifecycle.login(db_session, session, " BOB@x.com ", "secret123", now=now)

    assert result.user.last_login_at.replace(tzinfo=timezone.utc) == now
    assert result.profile.first_name == "Bob"
    assert session.email == "bob@x.com"


def test_logout_requires_session() -> None:
    with pytest.raises(NotAuthenticatedError):
        auth_lifecycle.logout(SessionContext({}))


def test_logout_returns_email_and_clears_session(db_session: Session) -> None:
    session, _ = _register(db_session)

    assert auth_lifecycle.logout(session) == "bob@x.com"
    assert session.is_authenticated is False


def test_who_am_i(db_session: Session) -> None:
    assert auth_lifecycle.who_am_i(db_session, SessionContext({})) is None

    session, _ = _register(db_session)
    result = auth_lifecycle.who_am_i(db_session, session)

    assert result.user.email == "bob@x.com"
    assert result.profile.first_name == "Bob"
    assert result.session["userType"] == "mentee"


def test_who_am_i_clears_stale_session(db_session: Session) -> None:
    session, _ = _register(db_session)
    db_session.delete(get_user_by_email(db_session, "bob@x.com"))
    db_session.commit()

    assert auth_lifecycle.who_am_i(db_session, session) is None
    assert session.is_authenticated is False


def test_who_am_i_clears_malformed_session() -> None:
    session = SessionContext({"userId": "garbage"})

    assert auth_lifecycle.who_am_i(None, session) is None
    assert session.is_authenticated is False
