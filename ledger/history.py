"""
Bounded time series.

The history of every metric key (and of every derived rate denom) is
kept as a list sorted ascending by update time with a fixed maximum
length. New items usually land at the back, so recent-range lookups
read from the back as well. When the list is full the oldest entry is
dropped from the front.
"""

from bisect import bisect_left
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from core.constants import HISTORY_ITEM_CAP
from ledger.models import HasTime


T = TypeVar("T", bound=HasTime)


class AddOutcome(Enum):
    """What a single add() did to the series."""
    INSERTED = "inserted"
    REPLACED = "replaced"
    EVICTED_OLDEST = "evicted_oldest"
    DROPPED = "dropped"


def _time_of(item: HasTime) -> int:
    return item.time()


class BoundedTimeSeries(Generic[T]):
    """
    Sorted, capacity-bounded history with dedup by time.

    Invariants:
    - strictly ascending by time(), so no two items share a time
    - len(series) <= capacity
    - items only leave through front eviction or same-time replacement
    """

    def __init__(self, capacity: int = HISTORY_ITEM_CAP, items: Optional[List[T]] = None):
        self._capacity = capacity
        self._items: List[T] = list(items) if items else []

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        """Iterate oldest first."""
        return iter(self._items)

    def __repr__(self) -> str:
        return f"BoundedTimeSeries(capacity={self._capacity}, len={len(self._items)})"

    def add(self, item: T) -> AddOutcome:
        """
        Add an item, keeping the list sorted by time.

        - same time already present: replace it in place
        - otherwise insert at the sorted position, then drop the front
          item if capacity was exceeded

        An item older than everything retained in a full series is
        inserted at the front and evicted straight away (DROPPED).
        """
        item_time = item.time()
        index = bisect_left(self._items, item_time, key=_time_of)

        if index < len(self._items) and self._items[index].time() == item_time:
            self._items[index] = item
            return AddOutcome.REPLACED

        self._items.insert(index, item)
        if len(self._items) > self._capacity:
            self._items.pop(0)
            if index == 0:
                return AddOutcome.DROPPED
            return AddOutcome.EVICTED_OLDEST
        return AddOutcome.INSERTED

    def get_latest(self) -> Optional[T]:
        """Most recent item, or None if empty."""
        if not self._items:
            return None
        return self._items[-1]

    def get_latest_range(self, n: int) -> List[T]:
        """Up to n most recent items, newest first."""
        if n <= 0:
            return []
        return self._items[::-1][:n]

    def get_all(self) -> List[T]:
        """All items, newest first."""
        return self._items[::-1]

    # =========================================================
    # SERIALIZATION
    # =========================================================

    def to_dict(self, encode: Callable[[T], Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "capacity": self._capacity,
            "items": [encode(item) for item in self._items],
        }

    @classmethod
    def from_dict(
        cls,
        raw: Dict[str, Any],
        decode: Callable[[Dict[str, Any]], T],
    ) -> "BoundedTimeSeries[T]":
        """
        Rebuild a series from its stored form.

        Raises:
            ValueError: If the stored items are not strictly ascending
        """
        items = [decode(entry) for entry in raw["items"]]
        times = [item.time() for item in items]
        if any(earlier >= later for earlier, later in zip(times, times[1:])):
            raise ValueError("stored items are not strictly ascending by time")
        return cls(capacity=int(raw["capacity"]), items=items)
