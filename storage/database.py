"""
Storage - Database.

============================================================
RESPONSIBILITY
============================================================
Manages database engines, session factories and transaction
boundaries for the ledger.

- Engine creation from a SQLAlchemy URL
- Session factory
- Transaction scope (commit on success, rollback on any error)
- Table provisioning

============================================================
DESIGN PRINCIPLES
============================================================
- Handles are created once at process start and passed
  explicitly into every operation; nothing is cached at
  module level
- Repositories never commit; the transaction scope does
- PostgreSQL in deployment, SQLite for local runs and tests

============================================================
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storage.models.base import Base
from storage.repositories.exceptions import ConnectionError, TransactionError


logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///oracle_ledger.db"


# =============================================================
# DATABASE ENGINE
# =============================================================


def get_database_url() -> str:
    """Get database URL from environment."""
    load_dotenv()
    url = os.getenv("DATABASE_URL")
    if url and url.startswith("postgresql+asyncpg"):
        # The ledger runs synchronously
        url = url.replace("postgresql+asyncpg", "postgresql")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")

    return url


def _is_in_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def create_database_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    In-memory SQLite gets a single shared connection so that the
    schema and data survive across sessions.

    Args:
        url: SQLAlchemy URL, defaults to get_database_url()
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    database_url = url or get_database_url()

    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")

    if _is_in_memory_sqlite(database_url):
        engine = create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
    elif database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=echo)
    else:
        engine = create_engine(
            database_url,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,
            echo=echo,
        )

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return engine


def get_session_factory(engine: Engine) -> sessionmaker:
    """Build a session factory bound to the engine."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


# =============================================================
# SESSION MANAGEMENT
# =============================================================


@contextmanager
def transaction_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction boundaries.

    Commits only if no exception occurs.
    Rolls back on ANY exception.

    Database errors are wrapped in TransactionError; every other
    exception is re-raised unchanged after the rollback so callers
    see the original typed failure.

    Usage:
        with transaction_scope(factory) as session:
            dispatcher = PostDispatcher(session)
            dispatcher.submit(...)
            # Commits automatically at end
    """
    session = session_factory()
    try:
        yield session
        session.commit()
        logger.debug("Database transaction committed successfully")
    except SQLAlchemyError as e:
        logger.error(f"Database transaction failed, rolling back: {e}")
        session.rollback()
        raise TransactionError(
            repository_name="transaction_scope",
            operation="commit",
            phase="commit",
            original_error=str(e)
        ) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection(engine: Engine) -> bool:
    """
    Verify database connection is working.

    Raises:
        ConnectionError if connection fails
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection verified successfully")
            return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise ConnectionError(
            repository_name="database",
            operation="verify",
            original_error=str(e)
        ) from e


def create_all_tables(engine: Engine) -> None:
    """Create every ledger table that does not exist yet."""
    # Registers the ledger tables on Base.metadata
    import storage.models.ledger  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info(f"Ledger tables ready: {sorted(Base.metadata.tables)}")
