from types import SimpleNamespace

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.db import session


def test_get_db_yields_session_and_closes(monkeypatch):
    closed = False

    class DummySession:
        def close(self):
            nonlocal closed
            closed = True

    monkeypatch.setattr(session, "SessionLocal", lambda: DummySession())

    generator = session.get_db()
    produced_session = next(generator)
    assert isinstance(produced_session, DummySession)

    with pytest.raises(StopIteration):
        next(generator)

    assert closed, "Session should be closed after generator exits"


def test_verify_connection_executes_health_query(monkeypatch):
    executed = SimpleNamespace(value=False)

    class DummyConnection:
        def execute(self, statement):
            executed.value = True
            assert "SELECT 1" in str(statement)

    class DummyConnectionManager:
        def __enter__(self):
            return DummyConnection()

        def __exit__(self, *exc):
            return False

    class DummyEngine:
        def connect(self):
            return DummyConnectionManager()

    monkeypatch.setattr(session, "engine", DummyEngine())

    session.verify_connection()
    assert executed.value


def test_verify_connection_retries_then_raises(monkeypatch):
    attempts = []
    sleeps = []

    class DummyEngine:
        def connect(self):
            attempts.append(1)
            raise SQLAlchemyError("boom")

    monkeypatch.setattr(session, "engine", DummyEngine())
    monkeypatch.setattr(session.time, "sleep", sleeps.append)

    with pytest.raises(SQLAlchemyError):
        session.verify_connection(max_attempts=3, delay_seconds=0.5)

    assert len(attempts) == 3
    assert sleeps == [0.5, 1.0]


def test_engine_options_for_sqlite_allow_cross_thread_use():
    options = session.engine_options("sqlite+pysqlite:///:memory:")

    assert options["connect_args"] == {"check_same_thread": False}
    assert "connect_args" not in session.engine_options("postgresql+psycopg://u:p@h/db")


def test_session_scope_commits_and_closes(monkeypatch):
    calls = []

    class DummySession:
        def commit(self):
            calls.append("commit")

        def rollback(self):
            calls.append("rollback")

        def close(self):
            calls.append("close")

    monkeypatch.setattr(session, "SessionLocal", lambda: DummySession())

    with session.session_scope():
        pass

    assert calls == ["commit", "close"]


def test_session_scope_rolls_back_on_error(monkeypatch):
    calls = []

    class DummySession:
        def commit(self):
            calls.append("commit")

        def rollback(self):
            calls.append("rollback")

        def close(self):
            calls.append("close")

    monkeypatch.setattr(session, "SessionLocal", lambda: DummySession())

    with pytest.raises(RuntimeError):
        with session.session_scope():
            raise RuntimeError("boom")

    assert calls == ["rollback", "close"]
