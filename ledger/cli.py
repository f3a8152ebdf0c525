"""
Ledger - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for operating the oracle ledger.

- Instantiates the ledger and posts metrics as the admin
- Runs every query and prints the result as JSON
- Loads configuration from CLI flags over the environment

============================================================
USAGE
============================================================
oracle-ledger init --admin oval1 --channel-id channel-0
oracle-ledger post --sender oval1 --key stuosmo_redemption_rate \\
    --value 1.0303 --type redemption_rate --update-time 100 \\
    --block-height 1000 --denom stuosmo
oracle-ledger all-latest
oracle-ledger rates redemption stuosmo --limit 5

============================================================
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from core.exceptions import OracleException
from ledger.codec import encode_rate_attributes
from ledger.config import LOG_FORMATS, LOG_LEVELS, LedgerSettings, load_settings
from ledger.helpers import denom_trace_to_hash
from ledger.models import MetricType, RateKind
from ledger.service import OracleService
from storage.database import (
    create_all_tables,
    create_database_engine,
    get_session_factory,
    verify_database_connection,
)
from storage.repositories.exceptions import RepositoryException


logger = logging.getLogger(__name__)

RATE_KIND_CHOICES = {
    "redemption": RateKind.REDEMPTION,
    "purchase": RateKind.PURCHASE,
}


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up logging on stderr so stdout carries only command output.

    Args:
        level: Log level
        log_format: Output format (json or text)

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("ledger")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="oracle-ledger",
        description="Bounded time-series ledger for oracle metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # --------------------------------------------------------
    # Global Options
    # --------------------------------------------------------
    parser.add_argument(
        "--database-url",
        type=str,
        help="SQLAlchemy database URL (default: $DATABASE_URL)",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        metavar="N",
        help="History entries kept per key/denom for new series",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=list(LOG_LEVELS),
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=list(LOG_FORMATS),
        help="Logging format (default: $LOG_FORMAT or text)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    # --------------------------------------------------------
    # Writes
    # --------------------------------------------------------
    init = commands.add_parser("init", help="Create tables and record the admin")
    init.add_argument("--admin", required=True, help="Address allowed to post metrics")
    init.add_argument("--channel-id", help="Transfer channel id (channel-N)")

    post = commands.add_parser("post", help="Post a metric as the admin")
    post.add_argument("--sender", required=True)
    post.add_argument("--key", required=True)
    post.add_argument("--value", required=True)
    post.add_argument(
        "--type",
        dest="metric_type",
        required=True,
        help="redemption_rate, purchase_rate or any other label",
    )
    post.add_argument("--update-time", type=int, required=True)
    post.add_argument("--block-height", type=int, required=True)
    attributes = post.add_mutually_exclusive_group()
    attributes.add_argument("--denom", help="Build rate attributes for this sttoken denom")
    attributes.add_argument("--attributes", help="Raw attribute payload (JSON text)")

    commands.add_parser("migrate", help="Record the running version")

    # --------------------------------------------------------
    # Queries
    # --------------------------------------------------------
    commands.add_parser("config", help="Show the ledger configuration")

    latest = commands.add_parser("latest", help="Latest metric for a key")
    latest.add_argument("key")

    history = commands.add_parser("history", help="Metric history for a key, newest first")
    history.add_argument("key")
    history.add_argument("--limit", type=int)

    commands.add_parser("all-latest", help="Latest metric for every key")

    rate = commands.add_parser("rate", help="Latest rate for a denom")
    rate.add_argument("kind", choices=list(RATE_KIND_CHOICES))
    rate.add_argument("denom")

    rates = commands.add_parser("rates", help="Rate history for a denom, newest first")
    rates.add_argument("kind", choices=list(RATE_KIND_CHOICES))
    rates.add_argument("denom")
    rates.add_argument("--limit", type=int)

    # --------------------------------------------------------
    # Helpers
    # --------------------------------------------------------
    denom_hash = commands.add_parser("denom-hash", help="IBC denom of a base denom over a channel")
    denom_hash.add_argument("base_denom")
    denom_hash.add_argument("channel_id")

    return parser


def build_settings(args: argparse.Namespace) -> LedgerSettings:
    """Overlay CLI flags on environment settings."""
    settings = load_settings()
    return LedgerSettings(
        database_url=args.database_url or settings.database_url,
        history_capacity=args.capacity if args.capacity is not None else settings.history_capacity,
        log_level=args.log_level or settings.log_level,
        log_format=args.log_format or settings.log_format,
    )


# ============================================================
# COMMANDS
# ============================================================

def run_command(args: argparse.Namespace, service: OracleService) -> Any:
    """Execute one parsed command and return its JSON-ready result."""
    command = args.command

    if command == "init":
        return service.instantiate(args.admin, args.channel_id).to_dict()

    if command == "post":
        if args.denom is not None:
            attributes = encode_rate_attributes(args.denom)
        elif args.attributes is not None:
            attributes = args.attributes.encode("utf-8")
        else:
            attributes = None
        return service.post_metric(
            sender=args.sender,
            key=args.key,
            value=args.value,
            metric_type=MetricType.parse(args.metric_type),
            update_time=args.update_time,
            block_height=args.block_height,
            attributes=attributes,
        ).to_dict()

    if command == "migrate":
        return service.migrate().to_dict()

    if command == "config":
        return service.get_config().to_dict()

    if command == "latest":
        return service.latest_metric(args.key).to_dict()

    if command == "history":
        return {"metrics": [m.to_dict() for m in service.historical_metrics(args.key, args.limit)]}

    if command == "all-latest":
        return {"metrics": [m.to_dict() for m in service.all_latest_metrics()]}

    if command == "rate":
        return service.latest_rate(RATE_KIND_CHOICES[args.kind], args.denom).to_response()

    if command == "rates":
        kind = RATE_KIND_CHOICES[args.kind]
        records = service.historical_rates(kind, args.denom, limit=args.limit)
        return {f"{kind.value}s": [r.to_dict() for r in records]}

    raise ValueError(f"Unknown command: {command}")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "denom-hash":
            print(json.dumps({"ibc_denom": denom_trace_to_hash(args.base_denom, args.channel_id)}))
            return 0

        settings = build_settings(args)
        setup_logging(settings.log_level, settings.log_format)

        engine = create_database_engine(settings.database_url)
        try:
            verify_database_connection(engine)
            create_all_tables(engine)
            service = OracleService(get_session_factory(engine), settings.history_capacity)
            result = run_command(args, service)
        finally:
            engine.dispose()
    except (OracleException, RepositoryException) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
