"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Defines all system-wide constants.

- Single source of truth for magic values
- No business logic here

============================================================
"""

# ============================================================
# SYSTEM CONSTANTS
# ============================================================

CONTRACT_NAME = "oracle-ledger"
CONTRACT_VERSION = "1.0.1"

# ============================================================
# HISTORY CONSTANTS
# ============================================================

# Retained entries per metric key / denom when the caller does not override it
HISTORY_ITEM_CAP = 100

# ============================================================
# FIXED-POINT DECIMAL CONSTANTS
# ============================================================

DECIMAL_FRACTIONAL_DIGITS = 18

# Largest representable value of a 128-bit fixed-point decimal with 18 places
DECIMAL_MAX_ATOMICS = 2 ** 128 - 1

# Integer digits of that value (340282366920938463463)
DECIMAL_MAX_WHOLE_DIGITS = 21

# ============================================================
# IBC CONSTANTS
# ============================================================

CHANNEL_ID_PATTERN = r"channel-[0-9]+"
TRANSFER_PORT_ID = "transfer"
DENOM_MIN_LENGTH = 3
DENOM_MAX_LENGTH = 128
DENOM_SEPARATORS = ("/", ":", ".", "_", "-")

# ============================================================
# ACKNOWLEDGMENT CONSTANTS
# ============================================================

ACTION_INSTANTIATE = "instantiate"
ACTION_POST_METRIC = "post_metric"
ACTION_MIGRATE = "migrate"
NONE_ATTRIBUTE = "None"
