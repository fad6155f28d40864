"""Shared pytest fixtures for server tests."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Generator
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read at import time, so the test environment is fixed first.
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["AUTO_LOGIN_ON_REGISTER"] = "true"

import main  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402


@compiles(UUID, "sqlite")
def compile_uuid_sqlite(_element, _compiler, **_kw) -> str:
    """Render UUID columns as TEXT for the SQLite test database."""

    return "TEXT"


TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    bind=test_engine,
    autocommit=False,
    autoflush=False,
    future=True,
)

Base.metadata.create_all(bind=test_engine)


class SyncASGITestClient:
    """Synchronous wrapper around httpx.AsyncClient for ASGI apps.

    The wrapped client keeps its cookie jar between calls, so the signed
    session cookie set by one request is sent with the next.
    """

    def __init__(self, app) -> None:
        transport = httpx.ASGITransport(app=app)
        self._client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        return asyncio.run(self._client.request(method, url, **kwargs))

    def get(self, url: str, **kwargs) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def options(self, url: str, **kwargs) -> httpx.Response:
        return self.request("OPTIONS", url, **kwargs)

    def __enter__(self) -> "SyncASGITestClient":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        asyncio.run(self._client.aclose())


@pytest.fixture(autouse=True)
def verify_connection_tracker(monkeypatch: pytest.MonkeyPatch) -> Generator[dict[str, int], None, None]:
    """Track how many times the startup connection verifier is called."""

    tracker = {"calls": 0, "migrations": 0}

    def fake_verify_connection() -> None:
        tracker["calls"] += 1

    def fake_run_migrations() -> None:
        tracker["migrations"] += 1

    monkeypatch.setattr(main, "verify_connection", fake_verify_connection)
    monkeypatch.setattr(main, "run_migrations", fake_run_migrations)
    yield tracker


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    """Provide a clean database session for each test."""

    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def override_get_db(db_session: Session) -> Generator[None, None, None]:
    """Override the FastAPI dependency to use the test session."""

    def _get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    main.app.dependency_overrides[get_db] = _get_db
    yield
    main.app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def client() -> Generator[SyncASGITestClient, None, None]:
    """Synchronous test client backed by httpx's ASGI transport."""

    with SyncASGITestClient(main.app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def capture_outbound_email(monkeypatch: pytest.MonkeyPatch) -> Generator[list[dict[str, Any]], None, None]:
    """Record outbound verification and welcome emails for assertions."""

    sent: list[dict[str, Any]] = []

    def _capture_verification(recipient: str, first_name: str, link: str) -> None:
        sent.append(
            {"kind": "verification", "recipient": recipient, "first_name": first_name, "link": link}
        )

    def _capture_welcome(recipient: str, first_name: str, user_type) -> None:
        sent.append(
            {"kind": "welcome", "recipient": recipient, "first_name": first_name, "user_type": user_type}
        )

    monkeypatch.setattr("app.services.auth_lifecycle.send_verification_email", _capture_verification)
    monkeypatch.setattr("app.services.email.send_welcome_email", _capture_welcome)
    yield sent


@pytest.fixture()
def latest_token(capture_outbound_email: list[dict[str, Any]]) -> Callable[[str], str]:
    """Return the raw token from the newest verification email sent to an address."""

    def _latest(recipient: str) -> str:
        links = [
            entry["link"]
            for entry in capture_outbound_email
            if entry["kind"] == "verification" and entry["recipient"] == recipient
        ]
        assert links, f"no verification email captured for {recipient}"
        return parse_qs(urlsplit(links[-1]).query)["token"][0]

    return _latest


@pytest.fixture()
def mentee_payload() -> dict[str, str]:
    """Valid mentee registration body."""

    return {
        "email": "bob@x.com",
        "password": "secret123",
        "firstName": "Bob",
        "lastName": "Levi",
        "phoneNumber": "0501234567",
        "generalDescription": "Looking for help with React.",
    }


@pytest.fixture()
def mentor_form() -> dict[str, Any]:
    """Valid mentor registration form fields (photo sent separately)."""

    return {
        "email": "dana@example.com",
        "password": "secret123",
        "firstName": "Dana",
        "lastName": "Cohen",
        "programmingLanguages": ["Python", "TypeScript"],
        "technologies": "FastAPI, React",
        "domains": ["Backend"],
        "yearsOfExperience": "7",
        "generalDescription": "Backend engineer happy to mentor.",
        "phoneNumber": "0527654321",
        "linkedinUrl": "https://www.linkedin.com/in/dana",
    }


@pytest.fixture()
def photo_file() -> dict[str, tuple[str, bytes, str]]:
    """A small PNG upload for mentor registration."""

    return {"photo": ("dana.png", b"\x89PNG\r\n\x1a\nfake-image-bytes", "image/png")}
