"""
Oracle Service - host boundary of the ledger.

============================================================
RESPONSIBILITY
============================================================
Entry points that wrap the core in transactions and identity
checks.

- instantiate: record the admin identity and transfer channel
- post_metric: authorize the sender, dispatch the submission
- queries: read-only projections, one transaction each
- migrate: bump the recorded deployment version

Every call runs in its own transaction_scope. A submission that
fails after the ledger write is rolled back as a whole, so the
ledger and derived indices never diverge in committed state.

============================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import sessionmaker

from core.constants import (
    ACTION_INSTANTIATE,
    ACTION_MIGRATE,
    ACTION_POST_METRIC,
    CONTRACT_NAME,
    CONTRACT_VERSION,
    HISTORY_ITEM_CAP,
    NONE_ATTRIBUTE,
)
from core.exceptions import (
    ConfigurationError,
    InvalidContractError,
    InvalidContractVersionError,
    OracleException,
    UnauthorizedError,
)
from ledger.config import OracleConfig
from ledger.dispatcher import PostDispatcher
from ledger.models import Metric, MetricType, RateKind, RateRecord, encode_attributes
from ledger.query import QueryView
from storage.database import transaction_scope
from storage.repositories.config import ConfigRepository


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Acknowledgment:
    """Ordered (name, value) attributes reported back for a write."""
    attributes: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def action(self) -> str:
        return self.get("action")

    def get(self, name: str) -> Optional[str]:
        for key, value in self.attributes:
            if key == name:
                return value
        return None

    def to_dict(self) -> Dict[str, str]:
        return dict(self.attributes)


def post_metric_acknowledgment(metric: Metric) -> Acknowledgment:
    return Acknowledgment([
        ("action", ACTION_POST_METRIC),
        ("metric_key", metric.key),
        ("metric_value", metric.value),
        ("metric_type", str(metric.metric_type)),
        ("metric_update_time", str(metric.update_time)),
        ("metric_block_height", str(metric.block_height)),
        ("metric_attributes", encode_attributes(metric.attributes) or NONE_ATTRIBUTE),
    ])


def _parse_version(version: str) -> Tuple[int, ...]:
    parts = version.split(".")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"not a MAJOR.MINOR.PATCH version: {version!r}")
    return tuple(int(part) for part in parts)


class OracleService:
    """
    Transactional facade over PostDispatcher and QueryView.

    Usage:
        engine = create_database_engine(settings.database_url)
        create_all_tables(engine)
        service = OracleService(get_session_factory(engine), settings.history_capacity)
        service.instantiate("admin")
        service.post_metric("admin", "k1", "1.02", MetricType.redemption_rate(), 5, 50,
                            encode_rate_attributes("stuosmo"))
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        capacity: int = HISTORY_ITEM_CAP,
        contract_name: str = CONTRACT_NAME,
        contract_version: str = CONTRACT_VERSION,
    ) -> None:
        self._session_factory = session_factory
        self._capacity = capacity
        self._contract_name = contract_name
        self._contract_version = contract_version

    # =========================================================
    # WRITES
    # =========================================================

    def instantiate(
        self,
        admin_address: str,
        transfer_channel_id: Optional[str] = None,
    ) -> Acknowledgment:
        """
        Record the configuration singleton.

        Raises:
            ConfigurationError: Already instantiated or empty admin
            InvalidChannelIdError: Channel id not of the form channel-N
        """
        config = OracleConfig(admin_address, transfer_channel_id)
        config.validate()

        with transaction_scope(self._session_factory) as session:
            repository = ConfigRepository(session)
            if repository.may_load() is not None:
                raise ConfigurationError("ledger is already instantiated")
            repository.save(
                admin_address=config.admin_address,
                transfer_channel_id=config.transfer_channel_id,
                contract_name=self._contract_name,
                contract_version=self._contract_version,
            )

        logger.info(
            f"Instantiated {self._contract_name} {self._contract_version} "
            f"admin={admin_address} channel={transfer_channel_id}"
        )
        return Acknowledgment([
            ("action", ACTION_INSTANTIATE),
            ("admin_address", admin_address),
            ("transfer_channel_id", transfer_channel_id or NONE_ATTRIBUTE),
        ])

    def post_metric(
        self,
        sender: str,
        key: str,
        value: str,
        metric_type: MetricType,
        update_time: int,
        block_height: int,
        attributes: Optional[bytes] = None,
    ) -> Acknowledgment:
        """
        Store a metric on behalf of sender.

        Raises:
            UnauthorizedError: sender is not the configured admin
            ConfigurationError: Ledger not instantiated
            SubmissionError: See PostDispatcher.submit
        """
        try:
            with transaction_scope(self._session_factory) as session:
                config = self._load_config(ConfigRepository(session))
                if sender != config.admin_address:
                    raise UnauthorizedError(sender)

                dispatcher = PostDispatcher.from_session(session, self._capacity)
                metric = dispatcher.submit(
                    key=key,
                    value=value,
                    metric_type=metric_type,
                    update_time=update_time,
                    block_height=block_height,
                    attributes=attributes,
                )
        except OracleException as e:
            logger.warning(f"Rejected metric {key}: {e.to_log_format()}")
            raise

        return post_metric_acknowledgment(metric)

    def migrate(self) -> Acknowledgment:
        """
        Move the recorded deployment to the running version.

        Raises:
            InvalidContractError: Stored name differs from the running one
            InvalidContractVersionError: Stored version is not older
        """
        with transaction_scope(self._session_factory) as session:
            repository = ConfigRepository(session)
            row = repository.may_load()
            if row is None:
                raise ConfigurationError("ledger is not instantiated")
            if row.contract_name != self._contract_name:
                raise InvalidContractError(row.contract_name, self._contract_name)

            try:
                stored = _parse_version(row.contract_version)
                running = _parse_version(self._contract_version)
            except ValueError as e:
                raise InvalidContractVersionError(row.contract_version, self._contract_version) from e
            if stored >= running:
                raise InvalidContractVersionError(row.contract_version, self._contract_version)

            previous = row.contract_version
            repository.set_version(self._contract_version)

        logger.info(f"Migrated {self._contract_name} from {previous} to {self._contract_version}")
        return Acknowledgment([
            ("action", ACTION_MIGRATE),
            ("from_version", previous),
            ("to_version", self._contract_version),
        ])

    # =========================================================
    # READS
    # =========================================================

    def get_config(self) -> OracleConfig:
        with transaction_scope(self._session_factory) as session:
            return self._load_config(ConfigRepository(session))

    def latest_metric(self, key: str) -> Metric:
        with transaction_scope(self._session_factory) as session:
            return self._view(session).latest_metric(key)

    def historical_metrics(self, key: str, limit: Optional[int] = None) -> List[Metric]:
        with transaction_scope(self._session_factory) as session:
            return self._view(session).historical_metrics(key, limit)

    def all_latest_metrics(self) -> List[Metric]:
        with transaction_scope(self._session_factory) as session:
            return self._view(session).all_latest_metrics()

    def latest_rate(self, kind: RateKind, denom: str, params: Optional[Any] = None) -> RateRecord:
        with transaction_scope(self._session_factory) as session:
            return self._view(session).latest_rate(kind, denom, params)

    def historical_rates(
        self,
        kind: RateKind,
        denom: str,
        params: Optional[Any] = None,
        limit: Optional[int] = None,
    ) -> List[RateRecord]:
        with transaction_scope(self._session_factory) as session:
            return self._view(session).historical_rates(kind, denom, params, limit)

    # =========================================================
    # INTERNALS
    # =========================================================

    def _view(self, session) -> QueryView:
        return QueryView.from_session(session, self._capacity)

    @staticmethod
    def _load_config(repository: ConfigRepository) -> OracleConfig:
        row = repository.may_load()
        if row is None:
            raise ConfigurationError("ledger is not instantiated")
        return OracleConfig(row.admin_address, row.transfer_channel_id)
