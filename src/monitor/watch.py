"""
Slab Trend Monitor - CLI Entry Point
Polls kernel slab caches and flags caches whose memory shows a monotonic increase.
"""

import argparse
import dataclasses
import os
import sys

import structlog

from src.core.logger import LOG_LEVELS, setup_logging

from .config import CONFIGS
from .driver import CycleDriver
from .models import ConfigurationError, MonitorConfig
from .ordering import ORDERING_ALIASES, list_orderings
from .sinks import DelimitedFileSink, KafkaSink, RecordSink
from .sources import SlabinfoSource

logger = structlog.get_logger(__name__)


def parse_arguments(argv: list[str] | None = None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Slab cache memory trend monitor (Mann-Kendall over three windows)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
            Examples:
            # Reference settings: poll every 30s, sort by active objects
            python -m src.monitor.watch

            # Poll every 10s, sort by name, stop after one hour
            python -m src.monitor.watch -d 10 -s n --duration 3600

            # Stricter threshold, also publish records to Kafka
            python -m src.monitor.watch --critical-value 2.576 --kafka-servers kafka:9092
        """,
    )

    parser.add_argument(
        "--config", choices=list(CONFIGS.keys()), help="Use a predefined configuration"
    )

    # Polling. String defaults from the environment go through type=, so a
    # malformed value is reported as a usage error (exit code 2)
    parser.add_argument(
        "-d",
        "--delay",
        type=int,
        default=os.getenv("TREND_POLL_INTERVAL") or None,
        help="Delay in seconds between snapshots (default: 30)",
    )
    parser.add_argument(
        "-s",
        "--sort",
        default=os.getenv("TREND_ORDERING"),
        help=(
            "Output ordering: "
            + ", ".join(f"{alias}/{name}" for alias, name in ORDERING_ALIASES.items())
            + f" (choices: {', '.join(list_orderings())}; default: active)"
        ),
    )

    # Trend test
    parser.add_argument(
        "--critical-value",
        type=float,
        default=os.getenv("TREND_CRITICAL_VALUE") or None,
        help="Critical z value for flagging growth (default: 1.96)",
    )
    parser.add_argument("--mid-term", type=int, help="Mid-term window in seconds (default: 3600)")
    parser.add_argument(
        "--short-term", type=int, help="Short-term window in seconds (default: 900)"
    )
    parser.add_argument(
        "--history-limit",
        type=int,
        help="Keep at most N samples per cache in the since-start window (default: unbounded)",
    )

    # Input / output
    parser.add_argument(
        "--slabinfo",
        default=os.getenv("SLABINFO_PATH"),
        help="Path of the slabinfo file (default: /proc/slabinfo)",
    )
    parser.add_argument(
        "--output",
        default=os.getenv("TREND_OUTPUT"),
        help="Delimited log file to append records to (default: SLABLog.txt)",
    )
    parser.add_argument(
        "--no-output", action="store_true", help="Do not write the delimited log file"
    )
    parser.add_argument(
        "--kafka-servers",
        default=os.getenv("KAFKA_BOOTSTRAP_SERVERS"),
        help="Kafka bootstrap servers; enables the Kafka sink when set",
    )
    parser.add_argument(
        "--topic",
        default=os.getenv("KAFKA_TOPIC"),
        help="Kafka topic for trend records (default: slab-trends)",
    )

    # Snapshot failures
    parser.add_argument("--retries", type=int, help="Snapshot attempts per cycle (default: 3)")
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop when a snapshot can't be taken instead of continuing degraded",
    )

    # Runtime settings
    parser.add_argument(
        "--duration", type=int, help="Duration to run in seconds (default: infinite)"
    )
    parser.add_argument("--cycles", type=int, help="Number of cycles to run (default: infinite)")

    # Logging
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=list(LOG_LEVELS),
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Plain log output (default: colored when stderr is a terminal)",
    )

    return parser.parse_args(argv)


def build_config_from_args(args) -> MonitorConfig:
    """Build a MonitorConfig from command-line arguments

    Raises:
        ConfigurationError: If the resulting settings are invalid
    """
    if args.config:
        base = CONFIGS[args.config]
        logger.info("Using predefined configuration", config_name=args.config)
    else:
        base = MonitorConfig()
        logger.info("Using default configuration")

    overrides = {}
    if args.delay is not None:
        overrides["poll_interval_seconds"] = args.delay
    if args.sort:
        overrides["ordering"] = args.sort
    if args.critical_value is not None:
        overrides["critical_value"] = args.critical_value
    if args.mid_term is not None:
        overrides["mid_term_seconds"] = args.mid_term
    if args.short_term is not None:
        overrides["short_term_seconds"] = args.short_term
    if args.history_limit is not None:
        overrides["history_limit"] = args.history_limit
    if args.slabinfo:
        overrides["snapshot_path"] = args.slabinfo
    if args.output:
        overrides["output_path"] = args.output
    if args.no_output:
        overrides["output_path"] = None
    if args.kafka_servers:
        overrides["kafka_bootstrap_servers"] = args.kafka_servers
    if args.topic:
        overrides["kafka_topic"] = args.topic
    if args.retries is not None:
        overrides["retry_attempts"] = args.retries
    if args.fail_fast:
        overrides["fail_fast"] = True

    # replace() re-runs validation and leaves the preset untouched
    return dataclasses.replace(base, **overrides)


def build_sinks(config: MonitorConfig) -> list[RecordSink]:
    """Open the configured sinks; on failure, close the ones already opened"""
    sinks: list[RecordSink] = []
    try:
        if config.output_path:
            sinks.append(DelimitedFileSink(config.output_path))
        if config.kafka_bootstrap_servers:
            sinks.append(KafkaSink(config.kafka_bootstrap_servers, config.kafka_topic))
    except Exception:
        for sink in sinks:
            sink.close()
        raise

    if not sinks:
        logger.warning("No output sink configured, results are only logged")
    return sinks


def main(argv: list[str] | None = None):
    """Main entry point"""
    args = parse_arguments(argv)

    setup_logging(level=LOG_LEVELS[args.log_level], colors=False if args.no_color else None)

    logger.info("Starting slab trend monitor")

    try:
        config = build_config_from_args(args)
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e))
        return 2

    try:
        driver = CycleDriver(
            config,
            source=SlabinfoSource(config.snapshot_path),
            sinks=build_sinks(config),
        )
        driver.run(duration_seconds=args.duration, max_cycles=args.cycles)

        logger.info("Monitor completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Monitor failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
