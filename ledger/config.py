"""
Ledger - Configuration.

============================================================
CONFIGURATION SOURCES
============================================================

OracleConfig is the persisted singleton written at instantiate:
- admin_address: the only identity allowed to post metrics
- transfer_channel_id: optional channel from the oracle chain to
  the controller chain (channel-N)

LedgerSettings is process configuration, loaded from:
- Default values
- Environment variables (a .env file is honoured)

    DATABASE_URL             SQLAlchemy URL
    LEDGER_HISTORY_CAPACITY  entries kept per key/denom (default 100)
    LOG_LEVEL                DEBUG | INFO | WARNING | ERROR | CRITICAL
    LOG_FORMAT               text | json

============================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from core.constants import HISTORY_ITEM_CAP
from core.exceptions import ConfigurationError
from ledger.helpers import validate_channel_id
from storage.database import DEFAULT_DATABASE_URL


logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


# =============================================================
# PERSISTED CONFIG
# =============================================================


@dataclass(frozen=True)
class OracleConfig:
    """Admin identity and optional transfer channel."""
    admin_address: str
    transfer_channel_id: Optional[str] = None

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: Empty admin address
            InvalidChannelIdError: Channel id not of the form channel-N
        """
        if not self.admin_address:
            raise ConfigurationError("admin_address must not be empty", config_key="admin_address")
        if self.transfer_channel_id is not None:
            validate_channel_id(self.transfer_channel_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin_address": self.admin_address,
            "transfer_channel_id": self.transfer_channel_id,
        }


# =============================================================
# PROCESS SETTINGS
# =============================================================


@dataclass
class LedgerSettings:
    """Process-level settings for the ledger runtime."""
    database_url: str = DEFAULT_DATABASE_URL
    history_capacity: int = HISTORY_ITEM_CAP
    log_level: str = "INFO"
    log_format: str = "text"

    def __post_init__(self) -> None:
        if self.history_capacity < 1:
            raise ConfigurationError(
                "history capacity must be at least 1",
                config_key="LEDGER_HISTORY_CAPACITY",
                actual_value=self.history_capacity,
            )
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"log level must be one of {', '.join(LOG_LEVELS)}",
                config_key="LOG_LEVEL",
                actual_value=self.log_level,
            )
        self.log_format = self.log_format.lower()
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"log format must be one of {', '.join(LOG_FORMATS)}",
                config_key="LOG_FORMAT",
                actual_value=self.log_format,
            )

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        """Build settings from environment variables over the defaults."""
        load_dotenv()

        settings = {}
        if os.getenv("DATABASE_URL"):
            settings["database_url"] = os.getenv("DATABASE_URL")
        if os.getenv("LEDGER_HISTORY_CAPACITY"):
            raw = os.getenv("LEDGER_HISTORY_CAPACITY")
            try:
                settings["history_capacity"] = int(raw)
            except ValueError as e:
                raise ConfigurationError(
                    "history capacity must be an integer",
                    config_key="LEDGER_HISTORY_CAPACITY",
                    actual_value=raw,
                ) from e
        if os.getenv("LOG_LEVEL"):
            settings["log_level"] = os.getenv("LOG_LEVEL")
        if os.getenv("LOG_FORMAT"):
            settings["log_format"] = os.getenv("LOG_FORMAT")

        config = cls(**settings)
        logger.debug(f"Loaded ledger settings: capacity={config.history_capacity}")
        return config


def load_settings() -> LedgerSettings:
    return LedgerSettings.from_env()
