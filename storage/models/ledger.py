"""
Ledger Domain ORM Models.

============================================================
PURPOSE
============================================================
Persisted layout of the oracle ledger. Each history table holds
exactly one row per owning key; the row payload is the whole
serialized bounded series for that key.

============================================================
DATA LIFECYCLE ROLE
============================================================
- Rows are created lazily on first write for an owning key
- Rows are rewritten in place on every later write
- Rows are never deleted

============================================================
MODELS
============================================================
- MetricHistoryRecord: series of metrics per metric key
- RedemptionRateHistoryRecord: series of redemption rates per denom
- PurchaseRateHistoryRecord: series of purchase rates per denom
- OracleConfigRecord: singleton admin configuration

============================================================
"""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, PayloadJSON, TimestampMixin


CONFIG_SINGLETON_ID = 1


class MetricHistoryRecord(Base, TimestampMixin):
    """
    Bounded history of a generic metric, keyed on the metric key.

    Every accepted submission lands here, regardless of type.
    """

    __tablename__ = "metric_histories"

    owner_key: Mapped[str] = mapped_column(
        "metric_key",
        Text,
        primary_key=True,
        comment="Metric key (e.g. stuatom_redemption_rate)"
    )

    payload: Mapped[dict] = mapped_column(
        PayloadJSON,
        nullable=False,
        comment="Serialized bounded series of metrics"
    )

    def __repr__(self) -> str:
        return f"<MetricHistoryRecord(metric_key={self.owner_key})>"


class RedemptionRateHistoryRecord(Base, TimestampMixin):
    """Bounded history of redemption rates, keyed on the stToken denom."""

    __tablename__ = "redemption_rate_histories"

    owner_key: Mapped[str] = mapped_column(
        "denom",
        Text,
        primary_key=True,
        comment="stToken denom"
    )

    payload: Mapped[dict] = mapped_column(
        PayloadJSON,
        nullable=False,
        comment="Serialized bounded series of redemption rates"
    )

    def __repr__(self) -> str:
        return f"<RedemptionRateHistoryRecord(denom={self.owner_key})>"


class PurchaseRateHistoryRecord(Base, TimestampMixin):
    """Bounded history of purchase rates, keyed on the token denom."""

    __tablename__ = "purchase_rate_histories"

    owner_key: Mapped[str] = mapped_column(
        "denom",
        Text,
        primary_key=True,
        comment="Token denom"
    )

    payload: Mapped[dict] = mapped_column(
        PayloadJSON,
        nullable=False,
        comment="Serialized bounded series of purchase rates"
    )

    def __repr__(self) -> str:
        return f"<PurchaseRateHistoryRecord(denom={self.owner_key})>"


class OracleConfigRecord(Base, TimestampMixin):
    """
    Singleton ledger configuration.

    Holds the only identity allowed to post metrics, the optional
    transfer channel and the deployed name/version used by migrate.
    """

    __tablename__ = "oracle_config"

    config_id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        default=CONFIG_SINGLETON_ID,
        comment="Always 1"
    )

    admin_address: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Identity allowed to post metrics"
    )

    transfer_channel_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="Transfer channel from the oracle chain to the controller chain"
    )

    contract_name: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Deployment name recorded at instantiate"
    )

    contract_version: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Deployment version recorded at instantiate/migrate"
    )

    def __repr__(self) -> str:
        return (
            f"<OracleConfigRecord(admin_address={self.admin_address}, "
            f"transfer_channel_id={self.transfer_channel_id})>"
        )
