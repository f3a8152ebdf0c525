"""
History Repositories.

============================================================
PURPOSE
============================================================
Load/save access to the history tables. Each row holds the
serialized bounded series for one owning key (metric key or
denom); the repository never interprets the payload.

============================================================
"""

from typing import Dict, List, Optional, Tuple, Type, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from storage.models.ledger import (
    MetricHistoryRecord,
    PurchaseRateHistoryRecord,
    RedemptionRateHistoryRecord,
)
from storage.repositories.base import BaseRepository


HistoryRecord = Union[
    MetricHistoryRecord,
    RedemptionRateHistoryRecord,
    PurchaseRateHistoryRecord,
]


class HistoryRepository(BaseRepository[HistoryRecord]):
    """
    Key-addressed payload store over one history table.
    
    Usage:
        repo = HistoryRepository(session, MetricHistoryRecord, "metric_histories")
        payload = repo.may_load("stuatom_redemption_rate")
        repo.save("stuatom_redemption_rate", new_payload)
    """
    
    def __init__(
        self,
        session: Session,
        model_class: Type[HistoryRecord],
        repository_name: Optional[str] = None,
    ) -> None:
        super().__init__(
            session,
            model_class,
            repository_name or model_class.__tablename__,
        )
    
    def may_load(self, owner_key: str) -> Optional[Dict]:
        """Return the stored payload for owner_key, or None if never written."""
        row = self._get_by_id(owner_key)
        if row is None:
            return None
        return row.payload
    
    def exists(self, owner_key: str) -> bool:
        return self._get_by_id(owner_key) is not None
    
    def save(self, owner_key: str, payload: Dict) -> None:
        """Insert or overwrite the payload for owner_key."""
        row = self._get_by_id(owner_key)
        if row is None:
            self._add(self._model_class(owner_key=owner_key, payload=payload))
            self._logger.debug(f"Created history row for {owner_key}")
            return
        # Assign a fresh object so the JSON column is marked dirty
        row.payload = dict(payload)
        self._flush()
    

    def load_all(self) -> List[Tuple[str, Dict]]:
        """
        Every (owner_key, payload) pair in ascending key order.

        Sorted here rather than in SQL so the order does not depend
        on the backend collation.
        """
        rows = self._execute_query(select(self._model_class))
        return sorted(
            ((row.owner_key, row.payload) for row in rows),
            key=lambda pair: pair[0],
        )
