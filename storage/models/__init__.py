"""
Storage Models Package.

This package contains all ORM models for the oracle ledger database.

============================================================
MODEL ORGANIZATION
============================================================

Ledger (ledger.py)
- MetricHistoryRecord
- RedemptionRateHistoryRecord
- PurchaseRateHistoryRecord
- OracleConfigRecord

============================================================
"""

from storage.models.base import Base, PayloadJSON, TimestampMixin
from storage.models.ledger import (
    CONFIG_SINGLETON_ID,
    MetricHistoryRecord,
    OracleConfigRecord,
    PurchaseRateHistoryRecord,
    RedemptionRateHistoryRecord,
)

__all__ = [
    "Base",
    "PayloadJSON",
    "TimestampMixin",
    "CONFIG_SINGLETON_ID",
    "MetricHistoryRecord",
    "RedemptionRateHistoryRecord",
    "PurchaseRateHistoryRecord",
    "OracleConfigRecord",
]
