"""
Denom and channel helpers.

Validation follows the Cosmos SDK rules: denoms are 3-128 characters,
start with a letter and continue with letters, digits or one of
``/ : . _ -``.
"""

import hashlib
import re

from core.constants import (
    CHANNEL_ID_PATTERN,
    DENOM_MAX_LENGTH,
    DENOM_MIN_LENGTH,
    DENOM_SEPARATORS,
    TRANSFER_PORT_ID,
)
from core.exceptions import (
    InvalidChannelIdError,
    InvalidDenomError,
    InvalidRedemptionRateDenomError,
)


_CHANNEL_RE = re.compile(CHANNEL_ID_PATTERN)


def validate_native_denom(denom: str) -> None:
    """Raise InvalidDenomError unless denom is a valid native denom."""
    if len(denom) < DENOM_MIN_LENGTH or len(denom) > DENOM_MAX_LENGTH:
        raise InvalidDenomError("Invalid denom length")

    if not (denom[0].isascii() and denom[0].isalpha()):
        raise InvalidDenomError("First character is not ASCII alphabetic")

    for char in denom[1:]:
        if not ((char.isascii() and char.isalnum()) or char in DENOM_SEPARATORS):
            raise InvalidDenomError(
                "Not all characters are ASCII alphanumeric or one of:  /  :  .  _  -"
            )


def validate_channel_id(channel_id: str) -> None:
    """Raise InvalidChannelIdError unless channel_id is channel-N."""
    if not _CHANNEL_RE.fullmatch(channel_id):
        raise InvalidChannelIdError(channel_id)


def denom_trace_to_hash(base_denom: str, channel_id: str) -> str:
    """
    IBC denom of a token sent over transfer/channel_id.

    E.g. base_denom uosmo, channel-0 -> ibc/{SHA256("transfer/channel-0/uosmo")}
    Only tokens native to the counterparty chain are supported.
    """
    if base_denom.startswith("ibc/"):
        raise InvalidRedemptionRateDenomError(base_denom)
    validate_native_denom(base_denom)

    denom_trace = f"{TRANSFER_PORT_ID}/{channel_id}/{base_denom}"
    digest = hashlib.sha256(denom_trace.encode("utf-8")).hexdigest()
    return f"ibc/{digest.upper()}"
