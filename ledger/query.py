"""
Query View - read-only projections over the ledger stores.

The rate queries accept a ``params`` argument only so their shape
matches other price oracles (which use it for things like TWAP).
It must always be None.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.constants import HISTORY_ITEM_CAP
from core.exceptions import InvalidRequestError
from ledger.models import Metric, RateKind, RateRecord
from ledger.stores import DerivedRateIndex, MetricLedger


logger = logging.getLogger(__name__)


class QueryView:
    """Latest/historical lookups by metric key and by denom."""

    def __init__(
        self,
        ledger: MetricLedger,
        rate_indices: Dict[RateKind, DerivedRateIndex],
    ) -> None:
        self._ledger = ledger
        self._rate_indices = rate_indices

    @classmethod
    def from_session(cls, session: Session, capacity: int = HISTORY_ITEM_CAP) -> "QueryView":
        return cls(
            MetricLedger(session, capacity),
            {kind: DerivedRateIndex(session, kind, capacity) for kind in RateKind},
        )

    # =========================================================
    # METRICS
    # =========================================================

    def latest_metric(self, key: str) -> Metric:
        """Most recent metric for key; NotFoundError if never written."""
        return self._ledger.latest(key)

    def historical_metrics(self, key: str, limit: Optional[int] = None) -> List[Metric]:
        """Retained metrics for key, newest first, optionally capped."""
        _check_limit(limit)
        return self._ledger.historical(key, limit)

    def all_latest_metrics(self) -> List[Metric]:
        """Latest metric for each key, ascending by key."""
        return self._ledger.all_latest()

    # =========================================================
    # RATES
    # =========================================================

    def latest_rate(self, kind: RateKind, denom: str, params: Optional[Any] = None) -> RateRecord:
        """Most recent rate for denom."""
        _check_params(params)
        return self._rate_indices[kind].latest(denom)

    def historical_rates(
        self,
        kind: RateKind,
        denom: str,
        params: Optional[Any] = None,
        limit: Optional[int] = None,
    ) -> List[RateRecord]:
        """Retained rates for denom, newest first, optionally capped."""
        _check_params(params)
        _check_limit(limit)
        return self._rate_indices[kind].historical(denom, limit)


def _check_params(params: Optional[Any]) -> None:
    if params is not None:
        logger.debug("Rejected rate query with params set")
        raise InvalidRequestError("params must be None")


def _check_limit(limit: Optional[int]) -> None:
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
        raise InvalidRequestError("limit must be a non-negative integer")
