"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to persistent storage.
All database access MUST go through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. Session Injection: Sessions are injected, not created internally
2. Explicit Methods: may_load / save / load_all, no generic execute
3. No Commits: the caller's transaction scope commits or rolls back
4. Exception Handling: All DB errors wrapped in repository exceptions

============================================================
REPOSITORIES
============================================================
- HistoryRepository: one serialized series per owning key,
  over metric_histories / redemption_rate_histories /
  purchase_rate_histories
- ConfigRepository: the oracle_config singleton

============================================================
USAGE
============================================================

    from storage.models import MetricHistoryRecord
    from storage.repositories import HistoryRepository

    repo = HistoryRepository(session, MetricHistoryRecord)
    payload = repo.may_load("stuosmo_redemption_rate")

============================================================
"""

from storage.repositories.base import BaseRepository
from storage.repositories.config import ConfigRepository
from storage.repositories.exceptions import (
    ConnectionError,
    QueryError,
    RecordNotFoundError,
    RepositoryException,
    SerializationError,
    TransactionError,
)
from storage.repositories.history import HistoryRepository

__all__ = [
    "BaseRepository",
    "ConfigRepository",
    "HistoryRepository",
    "RepositoryException",
    "RecordNotFoundError",
    "ConnectionError",
    "QueryError",
    "TransactionError",
    "SerializationError",
]
