"""
Ledger Data Models - Metrics, metric type tags and derived rate records.

A metric is the generic unit of the ledger: a keyed, timestamped value
posted by the reporter. Rate-type metrics are additionally fanned out
into per-denom rate records.
"""

import base64
import binascii
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Union


class HasTime(Protocol):
    """Anything that can be stored in a bounded time series."""

    def time(self) -> int:
        ...


class MetricKind(Enum):
    """Known metric categories, plus the open-ended fallback."""
    REDEMPTION_RATE = "redemption_rate"
    PURCHASE_RATE = "purchase_rate"
    OTHER = "other"


class RateKind(Enum):
    """Derived rate indices."""
    REDEMPTION = "redemption_rate"
    PURCHASE = "purchase_rate"


@dataclass(frozen=True)
class MetricType:
    """
    Tagged metric category.

    ``kind`` selects one of the known variants; ``name`` is only set
    for the OTHER fallback and carries the reporter's label. An OTHER
    type whose label happens to read "redemption_rate" is still OTHER.
    """
    kind: MetricKind
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is MetricKind.OTHER:
            if not isinstance(self.name, str):
                raise ValueError("Other metric type requires a string name")
        elif self.name is not None:
            raise ValueError(f"{self.kind.value} metric type does not take a name")

    @classmethod
    def redemption_rate(cls) -> "MetricType":
        return cls(MetricKind.REDEMPTION_RATE)

    @classmethod
    def purchase_rate(cls) -> "MetricType":
        return cls(MetricKind.PURCHASE_RATE)

    @classmethod
    def other(cls, name: str) -> "MetricType":
        return cls(MetricKind.OTHER, name)

    @classmethod
    def parse(cls, label: str) -> "MetricType":
        """Map a string label onto a known variant, falling back to OTHER."""
        if label == MetricKind.REDEMPTION_RATE.value:
            return cls.redemption_rate()
        if label == MetricKind.PURCHASE_RATE.value:
            return cls.purchase_rate()
        return cls.other(label)

    @property
    def rate_kind(self) -> Optional[RateKind]:
        """Derived index this type feeds, if any."""
        if self.kind is MetricKind.REDEMPTION_RATE:
            return RateKind.REDEMPTION
        if self.kind is MetricKind.PURCHASE_RATE:
            return RateKind.PURCHASE
        return None

    def to_wire(self) -> Union[str, Dict[str, str]]:
        """Persisted form: a bare string for known kinds, {"other": name} otherwise."""
        if self.kind is MetricKind.OTHER:
            return {"other": self.name}
        return self.kind.value

    @classmethod
    def from_wire(cls, raw: Any) -> "MetricType":
        if isinstance(raw, dict) and set(raw) == {"other"}:
            return cls.other(raw["other"])
        if raw == MetricKind.REDEMPTION_RATE.value:
            return cls.redemption_rate()
        if raw == MetricKind.PURCHASE_RATE.value:
            return cls.purchase_rate()
        raise ValueError(f"Unknown metric type: {raw!r}")

    def __str__(self) -> str:
        if self.kind is MetricKind.OTHER:
            return self.name
        return self.kind.value


def encode_attributes(attributes: Optional[bytes]) -> Optional[str]:
    """Render an attribute payload as standard base64 text."""
    if attributes is None:
        return None
    return base64.b64encode(attributes).decode("ascii")


def decode_attributes(text: Optional[str]) -> Optional[bytes]:
    if text is None:
        return None
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ValueError(f"attributes are not valid base64: {e}") from e


@dataclass(frozen=True)
class Metric:
    """
    Generic metric record.

    - key/value: the data point itself; value is never parsed here
    - metric_type: category, decides derived-index fan-out
    - update_time: time the value was updated on the source chain
    - block_height: height at which it was updated (informational)
    - attributes: optional type-specific metadata payload
    """
    key: str
    value: str
    metric_type: MetricType
    update_time: int
    block_height: int
    attributes: Optional[bytes] = None

    def time(self) -> int:
        return self.update_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "value": self.value,
            "metric_type": self.metric_type.to_wire(),
            "update_time": self.update_time,
            "block_height": self.block_height,
            "attributes": encode_attributes(self.attributes),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Metric":
        return cls(
            key=raw["key"],
            value=raw["value"],
            metric_type=MetricType.from_wire(raw["metric_type"]),
            update_time=int(raw["update_time"]),
            block_height=int(raw["block_height"]),
            attributes=decode_attributes(raw.get("attributes")),
        )


@dataclass(frozen=True)
class RateRecord:
    """Rate of a token at a point in time, derived from a rate-type metric."""
    kind: RateKind
    denom: str
    rate: Decimal
    update_time: int

    def time(self) -> int:
        return self.update_time

    def to_dict(self) -> Dict[str, Any]:
        """Stored and listed form, e.g. {"denom": "utia", "purchase_rate": "1.05", "update_time": 7}."""
        return {
            "denom": self.denom,
            self.kind.value: format_decimal(self.rate),
            "update_time": self.update_time,
        }

    @classmethod
    def from_dict(cls, kind: RateKind, raw: Dict[str, Any]) -> "RateRecord":
        try:
            rate = Decimal(raw[kind.value])
        except InvalidOperation as e:
            raise ValueError(f"stored rate is not a decimal: {raw[kind.value]!r}") from e
        return cls(
            kind=kind,
            denom=raw["denom"],
            rate=rate,
            update_time=int(raw["update_time"]),
        )

    def to_response(self) -> Dict[str, Any]:
        """Latest-rate query shape, e.g. {"redemption_rate": "1.03", "update_time": 5}."""
        return {
            self.kind.value: format_decimal(self.rate),
            "update_time": self.update_time,
        }


def format_decimal(value: Decimal) -> str:
    """Plain notation without trailing zeros: 1.0300 -> 1.03, 1E+2 -> 100."""
    return format(value.normalize(), "f")
