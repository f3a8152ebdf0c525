"""
Ledger codecs.

- Rate metadata attributes: JSON payload with exactly one field,
  ``sttoken_denom``, validated with pydantic
- Rate values: non-negative fixed-point decimals with at most 18
  fractional digits
"""

import json
import re
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from core.constants import (
    DECIMAL_FRACTIONAL_DIGITS,
    DECIMAL_MAX_ATOMICS,
    DECIMAL_MAX_WHOLE_DIGITS,
)
from core.exceptions import InvalidMetadataError, InvalidValueError
from ledger.models import MetricType


_DECIMAL_PATTERN = re.compile(r"([0-9]+)(?:\.([0-9]+))?")


# =============================================================
# RATE METADATA
# =============================================================


class RateAttributes(BaseModel):
    """
    Metadata attached to redemption/purchase rate metrics.

    sttoken_denom is the token denom as it appears on the controller
    chain (e.g. ``stuosmo``); it becomes the key of the derived index.
    """

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    sttoken_denom: str


def decode_rate_attributes(metric_type: MetricType, payload: bytes) -> RateAttributes:
    """
    Decode a rate metric's attribute payload.

    Raises:
        InvalidMetadataError: If the payload is not a JSON object with
            exactly a string ``sttoken_denom`` field
    """
    try:
        return RateAttributes.model_validate_json(payload)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        raise InvalidMetadataError(metric_type, reason=str(e)) from e


def encode_rate_attributes(sttoken_denom: str) -> bytes:
    """Build the attribute payload a reporter sends with a rate metric."""
    return json.dumps({"sttoken_denom": sttoken_denom}).encode("utf-8")


# =============================================================
# RATE VALUES
# =============================================================


def parse_rate(value: str) -> Decimal:
    """
    Parse a metric value as a fixed-point decimal.

    Accepts digits with an optional fractional part ("1", "1.0303").
    Signs, exponents, whitespace and empty parts are rejected.

    Raises:
        InvalidValueError: If the value is not a valid decimal
    """
    match = _DECIMAL_PATTERN.fullmatch(value)
    if match is None:
        raise InvalidValueError(value, "Error parsing decimal")

    whole, fractional = match.group(1), match.group(2) or ""
    if len(fractional) > DECIMAL_FRACTIONAL_DIGITS:
        raise InvalidValueError(
            value,
            f"Cannot parse more than {DECIMAL_FRACTIONAL_DIGITS} fractional digits",
        )

    # Any longer integer part exceeds the maximum
    whole = whole.lstrip("0") or "0"
    if len(whole) > DECIMAL_MAX_WHOLE_DIGITS:
        raise InvalidValueError(value, "Value too big")

    atomics = int(whole) * 10 ** DECIMAL_FRACTIONAL_DIGITS
    if fractional:
        atomics += int(fractional.ljust(DECIMAL_FRACTIONAL_DIGITS, "0"))
    if atomics > DECIMAL_MAX_ATOMICS:
        raise InvalidValueError(value, "Value too big")

    return Decimal(value)
