"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the oracle ledger.

- Provides clear exception hierarchy
- Every failure is terminal for the single operation
- Carries context for debugging and acknowledgment logs

============================================================
EXCEPTION HIERARCHY
============================================================
OracleException (base)
├── ConfigurationError
│   ├── InvalidChannelIdError
│   ├── InvalidContractError
│   └── InvalidContractVersionError
├── UnauthorizedError
├── NotFoundError
├── SubmissionError
│   ├── MissingMetadataError
│   ├── InvalidMetadataError
│   └── InvalidValueError
├── InvalidRequestError
└── DenomError
    ├── InvalidDenomError
    └── InvalidRedemptionRateDenomError

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for alerting."""

    LOW = "low"
    """Caller error, informational."""

    MEDIUM = "medium"
    """Rejected submission, requires reporter attention."""

    HIGH = "high"
    """Misconfiguration, the ledger cannot serve requests."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class OracleException(Exception):
    """
    Base exception for all oracle ledger errors.

    All exceptions carry:
    - severity: for alerting
    - context: for debugging
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/CLI output."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_log_format(self) -> str:
        """Format exception for structured logging."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        if ctx_str:
            line += f" | {ctx_str}"
        return line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(OracleException):
    """Error in configuration."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


class InvalidChannelIdError(ConfigurationError):
    """Transfer channel id is not of the form channel-N."""

    def __init__(self, channel_id: str):
        super().__init__(
            message=f"Invalid channelID: {channel_id}",
            config_key="transfer_channel_id",
            actual_value=channel_id,
        )
        self.channel_id = channel_id


class InvalidContractError(ConfigurationError):
    """Stored ledger belongs to a different deployment."""

    def __init__(self, stored_name: str, expected_name: str):
        super().__init__(
            message="Cannot upgrade to a different contract",
            context={"stored_name": stored_name, "expected_name": expected_name},
        )


class InvalidContractVersionError(ConfigurationError):
    """Stored version cannot be migrated to the running version."""

    def __init__(self, stored_version: str, running_version: str):
        super().__init__(
            message="Invalid contract version",
            context={
                "stored_version": stored_version,
                "running_version": running_version,
            },
        )


# ============================================================
# ACCESS ERRORS
# ============================================================

class UnauthorizedError(OracleException):
    """Sender is not the configured admin."""

    default_severity = Severity.MEDIUM

    def __init__(self, sender: str):
        super().__init__("Unauthorized", context={"sender": sender})
        self.sender = sender


# ============================================================
# QUERY ERRORS
# ============================================================

class NotFoundError(OracleException):
    """Query against a key or denom that was never written."""

    default_severity = Severity.LOW

    def __init__(self, store: str, key: str):
        super().__init__(
            message=f"{store} not found for {key}",
            context={"store": store, "key": key},
        )
        self.store = store
        self.key = key


class InvalidRequestError(OracleException):
    """Query shape is not accepted."""

    default_severity = Severity.LOW

    def __init__(self, reason: str):
        super().__init__(f"invalid query request - {reason}", context={"reason": reason})
        self.reason = reason


# ============================================================
# SUBMISSION ERRORS
# ============================================================

class SubmissionError(OracleException):
    """Base class for rejected metric submissions."""

    default_severity = Severity.MEDIUM


class MissingMetadataError(SubmissionError):
    """Rate-type submission arrived without attributes."""

    def __init__(self, metric_type: Any):
        super().__init__(
            message=f"The provided metric (type {metric_type}) does not contain required attributes",
            context={"metric_type": str(metric_type)},
        )
        self.metric_type = metric_type


class InvalidMetadataError(SubmissionError):
    """Attributes present but do not decode into the expected shape."""

    def __init__(self, metric_type: Any, reason: Optional[str] = None):
        context = {"metric_type": str(metric_type)}
        if reason:
            context["reason"] = reason[:200]
        super().__init__(
            message=f"The provided metric (type {metric_type}) has invalid metadata attributes",
            context=context,
        )
        self.metric_type = metric_type


class InvalidValueError(SubmissionError):
    """Metric value is not a valid fixed-point decimal."""

    def __init__(self, value: str, reason: str):
        super().__init__(
            message=f"Invalid decimal value {value!r}: {reason}",
            context={"value": value[:100], "reason": reason},
        )
        self.value = value
        self.reason = reason


# ============================================================
# DENOM ERRORS
# ============================================================

class DenomError(OracleException):
    """Base class for denom string errors."""

    default_severity = Severity.LOW


class InvalidDenomError(DenomError):
    """Denom fails the native denom character rules."""

    def __init__(self, reason: str):
        super().__init__(f"Invalid denom: {reason}", context={"reason": reason})
        self.reason = reason


class InvalidRedemptionRateDenomError(DenomError):
    """An IBC denom was given where a base denom is required."""

    def __init__(self, denom: str):
        super().__init__(
            message=f"The denom for the redemption rate metric must not be an IBC denom, {denom} provided",
            context={"denom": denom},
        )
        self.denom = denom
