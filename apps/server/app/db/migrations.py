"""Run Alembic migrations for the accounts schema from application code."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings

logger = logging.getLogger(__name__)

SERVER_ROOT = Path(__file__).resolve().parents[2]


def build_alembic_config(database_url: str | None = None) -> Config:
    """Return an Alembic config pointing at the bundled scripts and database."""

    alembic_cfg = Config(str(SERVER_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(SERVER_ROOT / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url)
    return alembic_cfg


def pending_heads(cfg: Config) -> list[str]:
    """Return the head revisions the database has not reached yet."""

    from app.db.session import engine

    heads = list(ScriptDirectory.from_config(cfg).get_heads() or [])
    with engine.connect() as connection:
        current = MigrationContext.configure(connection).get_current_heads()
    logger.info("Migration heads %s, database at %s", heads, list(current))
    return [head for head in heads if head not in current]


def run_migrations() -> None:
    """Upgrade the database to the latest revision, skipping when already current."""

    from app.db.session import engine

    # Pooled app connections would otherwise hold locks during DDL.
    engine.dispose()
    cfg = build_alembic_config()

    try:
        if not pending_heads(cfg):
            logger.info("Database schema is current, skipping migrations")
            return
    except SQLAlchemyError as exc:
        logger.warning("Unable to read migration state (%s), upgrading anyway", exc)

    logger.info("Applying database migrations")
    try:
        command.upgrade(cfg, "heads")
    except Exception:
        logger.exception("Alembic upgrade failed")
        raise
    logger.info("Database migrations applied")


__all__ = ["build_alembic_config", "pending_heads", "run_migrations"]
