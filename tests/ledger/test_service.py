"""
Tests for OracleService.

============================================================
PURPOSE
============================================================
1. Instantiate and configuration
2. Authorization of post_metric
3. Whole-submission rollback at the transaction boundary
4. Acknowledgment attributes
5. Version migration

============================================================
"""

import base64
from decimal import Decimal

import pytest

from core.constants import CONTRACT_NAME, CONTRACT_VERSION
from core.exceptions import (
    ConfigurationError,
    InvalidChannelIdError,
    InvalidContractError,
    InvalidContractVersionError,
    InvalidMetadataError,
    MissingMetadataError,
    NotFoundError,
    UnauthorizedError,
)
from ledger.codec import encode_rate_attributes
from ledger.config import OracleConfig
from ledger.models import MetricType, RateKind
from ledger.service import OracleService


ADMIN = "admin"


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def service(session_factory):
    return OracleService(session_factory)


@pytest.fixture
def ready_service(service):
    """Service already instantiated with ADMIN."""
    service.instantiate(ADMIN, "channel-0")
    return service


# ============================================================
# INSTANTIATE TESTS
# ============================================================

class TestInstantiate:
    """Tests for instantiate()."""

    def test_ack_with_channel(self, service):
        ack = service.instantiate(ADMIN, "channel-0")

        assert ack.attributes == [
            ("action", "instantiate"),
            ("admin_address", ADMIN),
            ("transfer_channel_id", "channel-0"),
        ]
        assert service.get_config() == OracleConfig(ADMIN, "channel-0")

    def test_ack_without_channel(self, service):
        """Test the channel attribute reads None when absent."""
        ack = service.instantiate(ADMIN)

        assert ack.get("transfer_channel_id") == "None"
        assert service.get_config().transfer_channel_id is None

    def test_invalid_channel(self, service):
        with pytest.raises(InvalidChannelIdError):
            service.instantiate(ADMIN, "chan-0")

        with pytest.raises(ConfigurationError):
            service.get_config()

    def test_empty_admin(self, service):
        with pytest.raises(ConfigurationError):
            service.instantiate("")

    def test_second_instantiate_rejected(self, ready_service):
        """Test the configuration singleton is written once."""
        with pytest.raises(ConfigurationError):
            ready_service.instantiate("someone-else")

        assert ready_service.get_config().admin_address == ADMIN


# ============================================================
# POST METRIC TESTS
# ============================================================

class TestPostMetric:
    """Tests for post_metric()."""

    def test_ack_attributes(self, ready_service):
        """Test the acknowledgment lists every metric field in order."""
        payload = encode_rate_attributes("stuosmo")

        ack = ready_service.post_metric(
            ADMIN, "stuosmo_redemption_rate", "1.0303",
            MetricType.redemption_rate(), 100, 1000, payload,
        )

        assert ack.action == "post_metric"
        assert ack.attributes == [
            ("action", "post_metric"),
            ("metric_key", "stuosmo_redemption_rate"),
            ("metric_value", "1.0303"),
            ("metric_type", "redemption_rate"),
            ("metric_update_time", "100"),
            ("metric_block_height", "1000"),
            ("metric_attributes", base64.b64encode(payload).decode()),
        ]

    def test_ack_without_attributes(self, ready_service):
        ack = ready_service.post_metric(ADMIN, "tvl", "42", MetricType.other("tvl"), 1, 1)

        assert ack.get("metric_type") == "tvl"
        assert ack.get("metric_attributes") == "None"

    def test_post_then_query(self, ready_service):
        """Test a committed post is visible to later reads."""
        ready_service.post_metric(
            ADMIN, "k", "1.02", MetricType.redemption_rate(), 10, 10,
            encode_rate_attributes("stuosmo"),
        )

        assert ready_service.latest_metric("k").value == "1.02"
        assert ready_service.latest_rate(RateKind.REDEMPTION, "stuosmo").rate == Decimal("1.02")
        assert [m.key for m in ready_service.all_latest_metrics()] == ["k"]
        assert len(ready_service.historical_metrics("k", 5)) == 1
        assert len(ready_service.historical_rates(RateKind.REDEMPTION, "stuosmo")) == 1

    def test_unauthorized_sender(self, ready_service):
        """Test a non-admin sender stores nothing."""
        with pytest.raises(UnauthorizedError) as exc_info:
            ready_service.post_metric("not_admin", "k", "1", MetricType.other("x"), 1, 1)

        assert exc_info.value.sender == "not_admin"
        assert str(exc_info.value) == "Unauthorized"
        with pytest.raises(NotFoundError):
            ready_service.latest_metric("k")

    def test_not_instantiated(self, service):
        with pytest.raises(ConfigurationError):
            service.post_metric(ADMIN, "k", "1", MetricType.other("x"), 1, 1)

    def test_missing_attributes_rolls_back_ledger(self, ready_service):
        """Test a failed rate submission leaves no committed ledger entry."""
        with pytest.raises(MissingMetadataError):
            ready_service.post_metric(ADMIN, "k", "1", MetricType.redemption_rate(), 1, 1)

        with pytest.raises(NotFoundError):
            ready_service.latest_metric("k")

    def test_failed_resubmission_keeps_previous_history(self, ready_service):
        """Test rollback restores the series as it was before the call."""
        ready_service.post_metric(
            ADMIN, "k", "1.1", MetricType.redemption_rate(), 1, 1,
            encode_rate_attributes("stuosmo"),
        )

        with pytest.raises(InvalidMetadataError):
            ready_service.post_metric(
                ADMIN, "k", "1.2", MetricType.redemption_rate(), 2, 2, b"{cantparse}",
            )

        assert [m.value for m in ready_service.historical_metrics("k")] == ["1.1"]


# ============================================================
# MIGRATE TESTS
# ============================================================

class TestMigrate:
    """Tests for migrate()."""

    def test_older_version_upgraded(self, session_factory):
        OracleService(session_factory, contract_version="1.0.0").instantiate(ADMIN)
        service = OracleService(session_factory)

        ack = service.migrate()

        assert ack.attributes == [
            ("action", "migrate"),
            ("from_version", "1.0.0"),
            ("to_version", CONTRACT_VERSION),
        ]
        with pytest.raises(InvalidContractVersionError):
            service.migrate()

    def test_same_version_rejected(self, ready_service):
        with pytest.raises(InvalidContractVersionError):
            ready_service.migrate()

    def test_newer_stored_version_rejected(self, session_factory):
        OracleService(session_factory, contract_version="2.0.0").instantiate(ADMIN)

        with pytest.raises(InvalidContractVersionError):
            OracleService(session_factory).migrate()

    def test_different_contract_rejected(self, session_factory):
        OracleService(session_factory, contract_name="other-ledger").instantiate(ADMIN)

        with pytest.raises(InvalidContractError) as exc_info:
            OracleService(session_factory, contract_name=CONTRACT_NAME).migrate()

        assert exc_info.value.context["stored_name"] == "other-ledger"

    def test_not_instantiated(self, service):
        with pytest.raises(ConfigurationError):
            service.migrate()
