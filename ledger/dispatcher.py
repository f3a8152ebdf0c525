"""
Post Dispatcher.

============================================================
RESPONSIBILITY
============================================================
Stores a metric submitted by the authorized reporter.

- The metric is always written to the generic MetricLedger
- Rate-type metrics are additionally written to the matching
  DerivedRateIndex, keyed on the denom from their attributes

The metric lands in the ledger when:
  * no metric with that key and time was submitted before, OR
  * one was, in which case it is replaced, AND
  * the history is not full, or the metric is newer than the
    oldest retained one

============================================================
ORDERING
============================================================
The ledger write happens before the attributes are interpreted.
A rate metric with missing or malformed attributes therefore
leaves the ledger updated and the derived index untouched; the
surrounding transaction decides whether that write is kept.

============================================================
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from core.constants import HISTORY_ITEM_CAP
from core.exceptions import InvalidRequestError, MissingMetadataError, SubmissionError
from ledger.codec import decode_rate_attributes, parse_rate
from ledger.models import Metric, MetricType, RateKind, RateRecord
from ledger.stores import DerivedRateIndex, MetricLedger


logger = logging.getLogger(__name__)

U64_MAX = 2 ** 64 - 1


class PostDispatcher:
    """
    Routes a metric submission into the ledger and derived indices.

    Usage:
        dispatcher = PostDispatcher.from_session(session)
        metric = dispatcher.submit(
            key="stuosmo_redemption_rate",
            value="1.0303",
            metric_type=MetricType.redemption_rate(),
            update_time=100,
            block_height=1000,
            attributes=encode_rate_attributes("stuosmo"),
        )
    """

    def __init__(
        self,
        ledger: MetricLedger,
        rate_indices: Dict[RateKind, DerivedRateIndex],
    ) -> None:
        self._ledger = ledger
        self._rate_indices = rate_indices

    @classmethod
    def from_session(cls, session: Session, capacity: int = HISTORY_ITEM_CAP) -> "PostDispatcher":
        return cls(
            MetricLedger(session, capacity),
            {kind: DerivedRateIndex(session, kind, capacity) for kind in RateKind},
        )

    @property
    def ledger(self) -> MetricLedger:
        return self._ledger

    def rate_index(self, kind: RateKind) -> DerivedRateIndex:
        return self._rate_indices[kind]

    def submit(
        self,
        key: str,
        value: str,
        metric_type: MetricType,
        update_time: int,
        block_height: int,
        attributes: Optional[bytes] = None,
    ) -> Metric:
        """
        Store a metric and fan it out by type.

        No check is made against the current time; backfills are allowed.

        Returns:
            The stored metric

        Raises:
            InvalidRequestError: Empty key or out-of-range time/height
            MissingMetadataError: Rate metric without attributes
            InvalidMetadataError: Rate metric attributes do not decode
            InvalidValueError: Rate metric value is not a decimal
        """
        self._validate_envelope(key, update_time, block_height)

        metric = Metric(
            key=key,
            value=value,
            metric_type=metric_type,
            update_time=update_time,
            block_height=block_height,
            attributes=attributes,
        )

        self._ledger.record(key, metric)

        rate_kind = metric_type.rate_kind
        try:
            if rate_kind is not None:
                self._record_rate(metric, rate_kind)
            else:
                logger.debug(f"Metric {key} type {metric_type} has no derived store")
        except SubmissionError as e:
            logger.warning(f"Metric {key} stored without derived record: {e.to_log_format()}")
            raise

        logger.info(
            f"Stored metric {key}={value} type={metric_type} "
            f"time={update_time} height={block_height}"
        )
        return metric

    def _record_rate(self, metric: Metric, kind: RateKind) -> RateRecord:
        if metric.attributes is None:
            raise MissingMetadataError(metric.metric_type)

        attributes = decode_rate_attributes(metric.metric_type, metric.attributes)
        record = RateRecord(
            kind=kind,
            denom=attributes.sttoken_denom,
            rate=parse_rate(metric.value),
            update_time=metric.update_time,
        )
        self._rate_indices[kind].record(record.denom, record)
        return record

    @staticmethod
    def _validate_envelope(key: str, update_time: int, block_height: int) -> None:
        if not key:
            raise InvalidRequestError("metric key must not be empty")
        for name, number in (("update_time", update_time), ("block_height", block_height)):
            if isinstance(number, bool) or not isinstance(number, int) or not 0 <= number <= U64_MAX:
                raise InvalidRequestError(f"{name} must be an unsigned 64-bit integer")
