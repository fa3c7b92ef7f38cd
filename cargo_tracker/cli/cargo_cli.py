"""
Command-line interface for cargo records.

Usage:
    python -m cargo_tracker.cli.cargo_cli search --snapshot <file> [--query <text>] [--field <name>]
    python -m cargo_tracker.cli.cargo_cli alerts --snapshot <file> [--now <iso datetime>]
    python -m cargo_tracker.cli.cargo_cli validate --input <file>
    python -m cargo_tracker.cli.cargo_cli list [--query <text>] [--field <name>] [store options]
    python -m cargo_tracker.cli.cargo_cli add --input <file> [store options]
    python -m cargo_tracker.cli.cargo_cli delete --id <record_id> [store options]
    python -m cargo_tracker.cli.cargo_cli watch [--interval <seconds>] [--metrics] [store options]

Snapshot and input files hold a JSON array of raw cargo documents. The
list, add, delete and watch commands use the store backend from settings
(CARGO_STORE): "postgres", or "memory" seeded from --snapshot.
"""

import argparse
import json
import signal
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any

import psycopg

from cargo_tracker.app.auth import AnonymousIdentityProvider
from cargo_tracker.app.service import CargoService
from cargo_tracker.app.state import MessageKind
from cargo_tracker.config import Settings, load_settings
from cargo_tracker.core.models import CargoRecord, FieldName
from cargo_tracker.core.records import (
    filter_records,
    format_eta,
    is_eta_urgent,
    normalize_snapshot,
    parse_eta,
    sort_by_consignee,
)
from cargo_tracker.core.rules import RuleEngine
from cargo_tracker.observability.logger import configure_logging, get_logger
from cargo_tracker.observability.metrics import start_metrics_server
from cargo_tracker.store.base import CargoStore
from cargo_tracker.store.connection import DatabaseConnectionPool
from cargo_tracker.store.errors import StoreError
from cargo_tracker.store.memory import InMemoryCargoStore
from cargo_tracker.store.postgres import PostgresCargoStore

logger = get_logger(__name__)

# Set by SIGINT/SIGTERM to end the watch loop
_shutdown_requested = False


def load_documents(path: str) -> list[dict[str, Any]]:
    """
    Read a JSON array of raw documents.

    Raises:
        ValueError: If the file does not hold a JSON array of objects
    """
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"{path} must contain a JSON array of objects")
    return data


def build_rule_engine(settings: Settings) -> RuleEngine:
    if Path(settings.rules_path).exists():
        return RuleEngine.from_yaml(settings.rules_path)
    logger.warning(f"Validation rules file not found: {settings.rules_path}, using defaults")
    return RuleEngine()


def current_time() -> datetime:
    return datetime.now().astimezone()


def print_records(records: list[CargoRecord], now: datetime) -> None:
    """Print one block per record; urgent ETAs are marked with '!'."""
    print(f"\n{'=' * 80}")
    print(f"CARGO ITEMS ({len(records)})")
    print(f"{'=' * 80}\n")
    for record in records:
        flag = "!" if is_eta_urgent(record, now) else " "
        print(f"{record.consignee or 'N/A'}  [{record.current_status}]  id={record.id or '-'}")
        print(f"  Consol#: {record.consol_number}   Shipment#: {record.shipment_number}   MAWB#: {record.master_air_waybill}")
        print(f"  HAWB#: {', '.join(record.house_air_waybills)}")
        print(f"  KLL#: {record.kll_number}   Pre-Alert: {record.pre_alert_date}")
        print(f" {flag}ETA: {format_eta(record.eta)}")
        if record.instructions:
            print(f"  Instructions: {record.instructions}")
        print()


def parse_now(value: str | None) -> datetime:
    if value is None:
        return current_time()
    now = parse_eta(value)
    if now is None:
        raise ValueError(f"Invalid --now value: {value}")
    return now


def search_command(args) -> int:
    records = sort_by_consignee(normalize_snapshot(load_documents(args.snapshot)))
    matches = filter_records(records, args.query, args.field)
    if not matches:
        if args.query:
            print(f'No matching cargo found for "{args.query}".')
        else:
            print("No cargo items yet. Add one to get started!")
        return 0
    print_records(matches, current_time())
    return 0


def alerts_command(args) -> int:
    now = parse_now(args.now)
    records = sort_by_consignee(normalize_snapshot(load_documents(args.snapshot)))
    urgent = [record for record in records if is_eta_urgent(record, now)]
    print(f"{len(urgent)} of {len(records)} cargo items have reached their ETA day and are not completed")
    for record in urgent:
        print(f"  {record.id or '-'}  {record.consignee}  ETA {format_eta(record.eta)}  [{record.current_status}]")
    return 0


def validate_command(args, settings: Settings) -> int:
    engine = build_rule_engine(settings)
    records = normalize_snapshot(load_documents(args.input))
    invalid = 0
    for index, record in enumerate(records):
        result = engine.validate(record)
        if not result.passed:
            invalid += 1
            label = record.id or f"#{index}"
            print(f"{label}: missing or invalid {', '.join(result.failed_fields)}")
    print(f"{len(records) - invalid} valid, {invalid} invalid")
    return 1 if invalid else 0


def open_store(args, settings: Settings) -> tuple[DatabaseConnectionPool | None, CargoStore]:
    """
    Open the configured store backend.

    The memory backend starts from --snapshot when given, else empty.
    """
    if settings.store == "memory":
        documents = load_documents(args.snapshot) if args.snapshot else None
        return None, InMemoryCargoStore(settings.collection_path, documents)

    database = settings.database.model_copy(update={
        key: value for key, value in {
            "host": args.db_host,
            "port": args.db_port,
            "name": args.db_name,
            "user": args.db_user,
            "password": args.db_password,
        }.items() if value is not None
    })
    pool = DatabaseConnectionPool.from_settings(database)
    pool.open()
    store = PostgresCargoStore(pool, settings.collection_path)
    store.ensure_schema()
    return pool, store


def close_pool(pool: DatabaseConnectionPool | None) -> None:
    if pool is not None:
        pool.close()


def list_command(args, settings: Settings) -> int:
    pool, store = open_store(args, settings)
    try:
        records = sort_by_consignee(normalize_snapshot(store.snapshot()))
        print_records(filter_records(records, args.query, args.field), current_time())
    finally:
        close_pool(pool)
    return 0


def add_command(args, settings: Settings) -> int:
    records = normalize_snapshot(load_documents(args.input))
    pool, store = open_store(args, settings)
    service = CargoService(store, AnonymousIdentityProvider(), rule_engine=build_rule_engine(settings))
    failures = 0
    try:
        service.start()
        for record in records:
            result = service.rule_engine.validate(record)
            if not result.passed:
                failures += 1
                print(f"Skipped {record.consignee or '(no consignee)'}: missing {', '.join(result.failed_fields)}")
                continue
            if not service.add(record.model_copy(update={"id": None})):
                failures += 1
            print(service.state.message.message)
    finally:
        service.stop()
        close_pool(pool)
    return 1 if failures else 0


def delete_command(args, settings: Settings) -> int:
    pool, store = open_store(args, settings)
    service = CargoService(store, AnonymousIdentityProvider())
    try:
        service.start()
        deleted = service.delete(args.id)
        print(service.state.message.message)
    finally:
        service.stop()
        close_pool(pool)
    return 0 if deleted else 1


def signal_handler(signum, frame):  # type: ignore[no-untyped-def]
    """Request a graceful stop of the watch loop on SIGINT/SIGTERM."""
    global _shutdown_requested
    logger.info(f"Received {signal.Signals(signum).name} signal, stopping watch")
    _shutdown_requested = True


def print_alert_summary(records: list[CargoRecord], urgent: list[str], now: datetime) -> None:
    print(f"[{now:%Y-%m-%d %H:%M:%S}] {len(records)} cargo items, {len(urgent)} at or past ETA day")
    for record in records:
        if record.id in urgent:
            print(f"  ! {record.consignee}  ETA {format_eta(record.eta)}  [{record.current_status}]")


def watch_command(args, settings: Settings) -> int:
    """
    Follow the store, printing a summary whenever the list or its alerts change.

    The store is re-read and alerts are re-evaluated every --interval
    seconds, so an ETA day that begins during the watch is reported. With --metrics the
    Prometheus endpoint is served on the configured metrics port.
    """
    global _shutdown_requested
    _shutdown_requested = False
    previous_handlers = {
        signum: signal.signal(signum, signal_handler)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }

    if args.metrics:
        start_metrics_server(settings.metrics_port)
        logger.info(f"Serving metrics on port {settings.metrics_port}")

    pool, store = open_store(args, settings)
    service = CargoService(
        store, AnonymousIdentityProvider(), rule_engine=build_rule_engine(settings), now=current_time
    )
    last_records: list[CargoRecord] | None = None
    last_urgent: list[str] | None = None
    polls = 0
    try:
        service.start()
        while not _shutdown_requested:
            state = service.state
            if state.message is not None and state.message.kind is MessageKind.ERROR:
                print(state.message.message, file=sys.stderr)
                service.dismiss_message()
            urgent = service.refresh_alerts()
            if state.records != last_records or urgent != last_urgent:
                print_alert_summary(state.records, urgent, service.now())
                last_records = state.records
                last_urgent = urgent

            polls += 1
            if args.iterations and polls >= args.iterations:
                break
            time.sleep(args.interval)
            store.refresh()
    finally:
        service.stop()
        close_pool(pool)
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)
    return 0


def add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--snapshot", help="Seed the memory store from this JSON file")
    parser.add_argument("--db-host", help="Database host (default: DB_HOST / config)")
    parser.add_argument("--db-port", type=int, help="Database port (default: DB_PORT / config)")
    parser.add_argument("--db-name", help="Database name (default: DB_NAME / config)")
    parser.add_argument("--db-user", help="Database user (default: DB_USER / config)")
    parser.add_argument("--db-password", help="Database password (default: DB_PASSWORD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search, check and manage cargo records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Settings YAML file (default: config/cargo_tracker.yaml)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    field_choices = [field.value for field in FieldName]

    search = subparsers.add_parser("search", help="Search a snapshot file")
    search.add_argument("--snapshot", required=True, help="JSON array of raw cargo documents")
    search.add_argument("--query", default="", help="Case-insensitive search text")
    search.add_argument("--field", choices=field_choices, help="Restrict the search to one field")

    alerts = subparsers.add_parser("alerts", help="List records whose ETA day has arrived")
    alerts.add_argument("--snapshot", required=True, help="JSON array of raw cargo documents")
    alerts.add_argument("--now", help="Evaluate at this ISO date-time instead of the current time")

    validate = subparsers.add_parser("validate", help="Validate records in a file")
    validate.add_argument("--input", required=True, help="JSON array of raw cargo documents")

    list_parser = subparsers.add_parser("list", help="List records in the configured store")
    list_parser.add_argument("--query", default="", help="Case-insensitive search text")
    list_parser.add_argument("--field", choices=field_choices, help="Restrict the search to one field")
    add_store_arguments(list_parser)

    add = subparsers.add_parser("add", help="Validate and add records from a file")
    add.add_argument("--input", required=True, help="JSON array of raw cargo documents")
    add_store_arguments(add)

    delete = subparsers.add_parser("delete", help="Delete a record by id")
    delete.add_argument("--id", required=True, help="Record id")
    add_store_arguments(delete)

    watch = subparsers.add_parser("watch", help="Follow the store and report ETA alerts")
    watch.add_argument("--interval", type=float, default=30.0, help="Seconds between store reads")
    watch.add_argument("--iterations", type=int, default=0, help="Stop after this many reads (0: run until stopped)")
    watch.add_argument("--metrics", action="store_true", help="Serve Prometheus metrics on the configured port")
    add_store_arguments(watch)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
        configure_logging(settings.log_level, settings.log_format)
        if args.command == "search":
            return search_command(args)
        if args.command == "alerts":
            return alerts_command(args)
        if args.command == "validate":
            return validate_command(args, settings)
        if args.command == "list":
            return list_command(args, settings)
        if args.command == "add":
            return add_command(args, settings)
        if args.command == "delete":
            return delete_command(args, settings)
        if args.command == "watch":
            return watch_command(args, settings)
    except (OSError, ValueError, StoreError, psycopg.OperationalError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 1


if __name__ == "__main__":
    sys.exit(main())
