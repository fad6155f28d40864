"""Engine, session factory and connection checks for the accounts database."""

import logging
import time
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> dict[str, Any]:
    """Return ``create_engine`` keyword arguments suited to the database driver."""

    options: dict[str, Any] = {"future": True, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # Routes run in the threadpool, so one connection may cross threads.
        options["connect_args"] = {"check_same_thread": False}
    return options


engine = create_engine(settings.database_url, **engine_options(settings.database_url))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session; services decide when to commit."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Run a unit of work outside a request, committing on success."""

    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def verify_connection(max_attempts: int = 20, delay_seconds: float = 1.0) -> None:
    """Wait for the database to accept connections, backing off linearly.

    Raises the last ``SQLAlchemyError`` once ``max_attempts`` are exhausted.
    """

    for attempt in range(1, max_attempts + 1):
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning(
                "Database not ready (attempt %d/%d): %s",
                attempt,
                max_attempts,
                type(exc).__name__,
            )
            if attempt == max_attempts:
                logger.error("Giving up on the database after %d attempts", max_attempts)
                raise
            time.sleep(delay_seconds * attempt)
            continue

        if attempt > 1:
            logger.info("Database reachable after %d attempt(s)", attempt)
        return


__all__ = ["engine", "engine_options", "SessionLocal", "get_db", "session_scope", "verify_connection"]
