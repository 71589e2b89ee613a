"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coachcal.scheduling.locks import LocalLockManager


@pytest.fixture(scope="function")
def db_session(monkeypatch):
    """
    Provides a transactional in-memory SQLite DB session for tests.

    This fixture:
    - Creates an isolated in-memory SQLite database per test
    - Patches the engine getter to use it
    - Patches get_session() everywhere it is imported to yield the test session
    - Rolls the transaction back at the end instead of deleting rows
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    def mock_get_engine():
        return engine

    monkeypatch.setattr("coachcal.db.session._get_engine", mock_get_engine)

    from coachcal.db.models import Base

    Base.metadata.create_all(engine)

    connection = engine.connect()
    transaction = connection.begin()

    test_session_local = sessionmaker(bind=connection, autocommit=False, autoflush=False)
    session = test_session_local()

    @contextmanager
    def mock_get_session():
        yield session

    import coachcal.db.session as session_module
    import coachcal.scheduling.repository as repository_module

    monkeypatch.setattr(session_module, "get_session", mock_get_session)
    # Patch where it's imported, not just where it's defined
    monkeypatch.setattr(repository_module, "get_session", mock_get_session)

    try:
        yield session
    finally:
        session.rollback()
        if transaction.is_active:
            transaction.rollback()
        session.close()
        connection.close()


@pytest.fixture
def lock_manager() -> LocalLockManager:
    """Fresh in-process lock manager so tests never share lock state."""
    return LocalLockManager(timeout_seconds=1.0)


@pytest.fixture
def client_id() -> str:
    return "client-1"
