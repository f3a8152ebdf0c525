"""
Shared database fixtures.

Every test gets a fresh in-memory SQLite database.
"""

import pytest

from storage.database import create_all_tables, create_database_engine, get_session_factory


# ============================================================
# DATABASE FIXTURES
# ============================================================

@pytest.fixture
def engine():
    """In-memory engine with all ledger tables."""
    engine = create_database_engine("sqlite://")
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def session(session_factory):
    """Open session, never committed."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()
