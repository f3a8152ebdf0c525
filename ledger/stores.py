"""
Ledger stores.

============================================================
RESPONSIBILITY
============================================================
Key-addressed collections of bounded series on top of the
history repositories.

- MetricLedger: metric key -> series of Metric (always written)
- DerivedRateIndex: denom -> series of RateRecord, one instance
  per rate kind

Each write is load -> add -> save of the whole series for one
owning key. Series are created lazily on first write and never
deleted.

============================================================
"""

import logging
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from core.constants import HISTORY_ITEM_CAP
from core.exceptions import NotFoundError
from ledger.history import AddOutcome, BoundedTimeSeries
from ledger.models import HasTime, Metric, RateKind, RateRecord
from storage.models.ledger import (
    MetricHistoryRecord,
    PurchaseRateHistoryRecord,
    RedemptionRateHistoryRecord,
)
from storage.repositories.exceptions import SerializationError
from storage.repositories.history import HistoryRecord, HistoryRepository


logger = logging.getLogger(__name__)

T = TypeVar("T", bound=HasTime)


RATE_TABLES: Dict[RateKind, Type[HistoryRecord]] = {
    RateKind.REDEMPTION: RedemptionRateHistoryRecord,
    RateKind.PURCHASE: PurchaseRateHistoryRecord,
}


class SeriesStore(Generic[T]):
    """
    Shared load/add/save logic for one history table.

    Subclasses provide the item decoder and a store name used in
    NotFound errors and logs.
    """

    store_name: str = "series"

    def __init__(
        self,
        repository: HistoryRepository,
        decode_item: Callable[[Dict[str, Any]], T],
        capacity: int = HISTORY_ITEM_CAP,
    ) -> None:
        self._repository = repository
        self._decode_item = decode_item
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        """Capacity given to series created by this store."""
        return self._capacity

    def _may_load(self, owner_key: str) -> Optional[BoundedTimeSeries[T]]:
        payload = self._repository.may_load(owner_key)
        if payload is None:
            return None
        return self._decode_series(owner_key, payload)

    def _decode_series(self, owner_key: str, payload: Dict[str, Any]) -> BoundedTimeSeries[T]:
        try:
            return BoundedTimeSeries.from_dict(payload, self._decode_item)
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(
                repository_name=self._repository.repository_name,
                record_id=owner_key,
                reason=str(e),
            ) from e

    def _load(self, owner_key: str) -> BoundedTimeSeries[T]:
        series = self._may_load(owner_key)
        if series is None:
            raise NotFoundError(self.store_name, owner_key)
        return series

    def record(self, owner_key: str, item: T) -> AddOutcome:
        """Add item to the series of owner_key, creating the series if needed."""
        series = self._may_load(owner_key)
        if series is None:
            series = BoundedTimeSeries(self._capacity)
        outcome = series.add(item)
        self._repository.save(owner_key, series.to_dict(lambda entry: entry.to_dict()))

        if outcome is AddOutcome.DROPPED:
            logger.debug(
                f"{self.store_name} {owner_key}: time {item.time()} is older than a "
                f"full window of {series.capacity}, not retained"
            )
        elif outcome is not AddOutcome.INSERTED:
            logger.debug(f"{self.store_name} {owner_key}: {outcome.value} at time {item.time()}")
        return outcome

    def exists(self, owner_key: str) -> bool:
        return self._repository.exists(owner_key)

    def latest(self, owner_key: str) -> T:
        """
        Most recent item for owner_key.

        Raises:
            NotFoundError: If nothing was ever written for owner_key
        """
        latest = self._load(owner_key).get_latest()
        if latest is None:
            raise NotFoundError(self.store_name, owner_key)
        return latest

    def historical(self, owner_key: str, limit: Optional[int] = None) -> List[T]:
        """
        Retained items for owner_key, newest first, optionally capped.

        Raises:
            NotFoundError: If nothing was ever written for owner_key
        """
        series = self._load(owner_key)
        if limit is None:
            return series.get_all()
        return series.get_latest_range(limit)


class MetricLedger(SeriesStore[Metric]):
    """Generic metric history keyed on the metric key."""

    store_name = "metric"

    def __init__(self, session: Session, capacity: int = HISTORY_ITEM_CAP) -> None:
        super().__init__(
            HistoryRepository(session, MetricHistoryRecord),
            Metric.from_dict,
            capacity,
        )

    def all_latest(self) -> List[Metric]:
        """Latest metric of every key, in ascending key order."""
        metrics = []
        for owner_key, payload in self._repository.load_all():
            series = self._decode_series(owner_key, payload)
            latest = series.get_latest()
            if latest is not None:
                metrics.append(latest)
        return metrics


class DerivedRateIndex(SeriesStore[RateRecord]):
    """Rate history keyed on denom, for one rate kind."""

    def __init__(
        self,
        session: Session,
        kind: RateKind,
        capacity: int = HISTORY_ITEM_CAP,
    ) -> None:
        super().__init__(
            HistoryRepository(session, RATE_TABLES[kind]),
            lambda raw: RateRecord.from_dict(kind, raw),
            capacity,
        )
        self._kind = kind
        self.store_name = kind.value

    @property
    def kind(self) -> RateKind:
        return self._kind
