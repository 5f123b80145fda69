"""Command-line entry point.

Usage:
    # Broadcast forever, events as JSON lines on stderr:
    minute-beacon run

    # Three rounds with local sources only:
    BEACON_REMOTE_SOURCES_ENABLED=false minute-beacon run --rounds 3

    # Mix a digit for the next boundary right now:
    minute-beacon once

    # List registered entropy sources:
    minute-beacon sources
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys

from minute_beacon.broadcast import LogSink
from minute_beacon.clock import SystemClock, isoformat_z, next_boundary
from minute_beacon.config import BeaconConfig
from minute_beacon.entropy import EntropySourceRegistry, build_provider_set
from minute_beacon.exceptions import MinuteBeaconError
from minute_beacon.logging.logger import RoundLogger
from minute_beacon.mixer import mix
from minute_beacon.scheduler import RoundScheduler
from minute_beacon.stats import ProviderStats

logger = logging.getLogger("minute_beacon")


def _cmd_run(config: BeaconConfig, args: argparse.Namespace) -> int:
    providers = build_provider_set(config)
    stats = ProviderStats(providers.names)
    scheduler = RoundScheduler(
        providers,
        LogSink(),
        stats=stats,
        config=config,
        round_logger=RoundLogger(config),
    )

    # Graceful shutdown on SIGINT (SIGTERM not available on Windows).
    def _shutdown(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        scheduler.stop(timeout=0)

    signal.signal(signal.SIGINT, _shutdown)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _shutdown)

    try:
        scheduler.run(max_rounds=args.rounds)
    finally:
        providers.close()
    logger.info("Final stats: %s", json.dumps(stats.snapshot(), sort_keys=True))
    return 0


def _cmd_once(config: BeaconConfig, args: argparse.Namespace) -> int:
    providers = build_provider_set(config)
    try:
        boundary = next_boundary(SystemClock().now(), config.boundary_epsilon_s)
        result = mix(
            boundary,
            providers,
            payload_cap_hex=config.payload_cap_hex,
            digit_prefix_hex=config.digit_prefix_hex,
        )
    finally:
        providers.close()
    output = {
        "minuteBoundary": isoformat_z(boundary),
        "digit": result.digit,
        "hash": result.proof,
        "provider": result.primary,
        "tags": list(result.tags),
        "unavailable": {c.name: c.reason for c in result.attempts if not c.success},
    }
    sys.stdout.write(json.dumps(output, indent=2) + "\n")
    return 0


def _cmd_sources(config: BeaconConfig, args: argparse.Namespace) -> int:
    for name in EntropySourceRegistry.list_available():
        marker = "*" if name in config.sources else " "
        sys.stdout.write(f"{marker} {name}\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch the subcommand."""
    parser = argparse.ArgumentParser(
        prog="minute-beacon",
        description="Minute-aligned preview/reveal digit beacon",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Broadcast rounds until interrupted")
    run.add_argument(
        "--rounds",
        type=int,
        default=None,
        help="Stop after this many boundaries (default: run forever).",
    )
    run.set_defaults(handler=_cmd_run)

    once = sub.add_parser("once", help="Mix one digit for the next boundary and print it")
    once.set_defaults(handler=_cmd_once)

    sources = sub.add_parser("sources", help="List registered entropy sources (* = configured)")
    sources.set_defaults(handler=_cmd_sources)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = BeaconConfig()
        return args.handler(config, args)
    except MinuteBeaconError as exc:
        logger.critical("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
