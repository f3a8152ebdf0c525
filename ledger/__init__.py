"""
Ledger Package.

Key-addressed, capacity-bounded time-series ledger for oracle
metrics, with per-denom rate indices for redemption and purchase
rates.

Modules:
- models: Metric, MetricType, RateRecord
- history: BoundedTimeSeries
- codec: rate attribute and decimal value parsing
- stores: MetricLedger, DerivedRateIndex
- dispatcher: PostDispatcher
- query: QueryView
- config: OracleConfig, LedgerSettings
- helpers: denom and channel helpers
- service: OracleService (transactional host boundary)
- cli: oracle-ledger command
"""

from ledger.dispatcher import PostDispatcher
from ledger.history import AddOutcome, BoundedTimeSeries
from ledger.models import Metric, MetricKind, MetricType, RateKind, RateRecord
from ledger.query import QueryView
from ledger.stores import DerivedRateIndex, MetricLedger

__all__ = [
    "AddOutcome",
    "BoundedTimeSeries",
    "DerivedRateIndex",
    "Metric",
    "MetricKind",
    "MetricLedger",
    "MetricType",
    "PostDispatcher",
    "QueryView",
    "RateKind",
    "RateRecord",
]
