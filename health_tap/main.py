from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import time
from typing import Any

from health_tap.collector import TelemetryCollector
from health_tap.config import AppConfig, load_config
from health_tap.logging_utils import configure_logging, resolve_log_level
from health_tap.mqtt_client import SnapshotPublisher
from health_tap.schema import validate_payload

logger = logging.getLogger("health_tap")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Health Tap hardware health snapshots")
    parser.add_argument(
        "--config",
        help="Path to CFG configuration file (defaults are used when omitted)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging (-v) or trace logging (-vv)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print snapshots to stdout instead of publishing to MQTT",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Collect a single snapshot, then exit",
    )
    parser.add_argument(
        "--dump-json",
        help="Write the JSON snapshot to a file (overwrites on each loop)",
    )
    parser.add_argument(
        "--publish-status",
        metavar="STATUS",
        help="Publish a status (e.g., 'sleeping', 'online') to the availability topic and exit",
    )
    return parser


def _emit(
    payload: dict[str, Any],
    args: argparse.Namespace,
    publisher: SnapshotPublisher | None,
    pretty: bool,
) -> None:
    schema_errors = validate_payload(payload)
    if schema_errors:
        logger.warning("Schema validation failed with %s errors.", len(schema_errors))
        logger.debug("Schema errors: %s", schema_errors)
    payload_json = json.dumps(payload, indent=2) if pretty else json.dumps(payload)
    if args.dump_json:
        Path(args.dump_json).write_text(payload_json, encoding="utf-8")
    if publisher is None:
        print(payload_json, flush=True)
    else:
        publisher.publish(payload_json)


def run(args: argparse.Namespace, config: AppConfig) -> int:
    if args.publish_status:
        if config.mqtt is None:
            logger.error("No [mqtt] section configured; cannot publish status.")
            return 1
        publisher = SnapshotPublisher(config.mqtt)
        publisher.connect()
        # Wait briefly for the connection and then for delivery.
        time.sleep(0.5)
        if not publisher.connected:
            logger.error("Failed to connect to MQTT broker")
            publisher.disconnect()
            return 1
        publisher.publish_status(args.publish_status)
        time.sleep(0.5)
        publisher.disconnect()
        return 0

    collector = TelemetryCollector(config.collector)
    publisher = None
    if config.mqtt is not None and not args.dry_run:
        publisher = SnapshotPublisher(config.mqtt)
        publisher.connect()
    pretty = logger.getEffectiveLevel() <= logging.DEBUG

    try:
        _emit(collector.collect(), args, publisher, pretty)
        if args.once:
            return 0
        interval = max(1, config.publish.interval_s)
        logger.info("Health Tap started. Collecting every %s seconds.", interval)
        while True:
            time.sleep(interval)
            _emit(collector.collect(), args, publisher, pretty)
    except KeyboardInterrupt:
        logger.info("Health Tap stopped.")
    finally:
        if publisher is not None:
            publisher.disconnect()
    return 0


def main() -> int:
    args = build_parser().parse_args()
    configure_logging(resolve_log_level(args.verbose, args.log_level))
    config = load_config(args.config) if args.config else AppConfig()
    return run(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
