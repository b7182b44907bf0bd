"""
Cycle driver: polls a snapshot source and feeds the trend registry.
"""

import time
from collections.abc import Callable

import structlog

from src.trend import EntityRegistry, TrendEvaluator, Window, WindowMaintainer

from .models import MonitorConfig, SnapshotUnavailable, TrendRecord
from .ordering import get_ordering
from .retry import RetryPolicy
from .sinks import RecordSink
from .sources import SnapshotSource

logger = structlog.get_logger(__name__)

STATS_LOG_INTERVAL_SECONDS = 300


def build_registry(config: MonitorConfig) -> EntityRegistry:
    """Create an empty registry configured from `config`"""
    return EntityRegistry(
        maintainer=WindowMaintainer(
            mid_term_seconds=config.mid_term_seconds,
            short_term_seconds=config.short_term_seconds,
        ),
        evaluator=TrendEvaluator(critical_value=config.critical_value),
        history_limit=config.history_limit,
    )


class CycleDriver:
    """Runs polling cycles: snapshot, order, evaluate, emit.

    Timestamps default to seconds since start on a logical clock
    (cycle index x poll interval); pass `clock` to stamp cycles differently.
    """

    def __init__(
        self,
        config: MonitorConfig,
        source: SnapshotSource,
        sinks: list[RecordSink],
        registry: EntityRegistry | None = None,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[int], int] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.source = source
        self.sinks = sinks
        self.registry = registry or build_registry(config)
        self.retry_policy = retry_policy or RetryPolicy.from_config(config)
        self.clock = clock or (lambda cycle: cycle * config.poll_interval_seconds)
        self.sleep = sleep
        self.ordering = get_ordering(config.ordering)
        self.degraded = False

        self.stats = {
            "cycles": 0,
            "failed_cycles": 0,
            "records_emitted": 0,
            "growth_flags": 0,
            "entity_errors": 0,
        }

        logger.info(
            "Cycle driver initialized",
            source=repr(source),
            sinks=[type(sink).__name__ for sink in sinks],
            ordering=self.ordering.name,
            poll_interval=config.poll_interval_seconds,
            critical_value=config.critical_value,
            history_limit=config.history_limit or "unbounded",
        )

    def run_cycle(self, timestamp: int) -> list[TrendRecord]:
        """Run one polling cycle stamped with `timestamp`.

        Returns:
            Records emitted this cycle, in output order. Empty when the
            snapshot could not be taken and the policy is not fail-fast.

        Raises:
            SnapshotUnavailable: If retries are exhausted and the policy is fail-fast
        """
        self.stats["cycles"] += 1

        try:
            entries = self.retry_policy.call(self.source.fetch)
        except SnapshotUnavailable as e:
            self.stats["failed_cycles"] += 1
            logger.error("Snapshot retries exhausted", timestamp=timestamp, error=str(e))
            if self.retry_policy.fail_fast:
                raise
            if not self.degraded:
                self.degraded = True
                logger.warning("Entering degraded state, skipping cycle", timestamp=timestamp)
            return []

        if self.degraded:
            self.degraded = False
            logger.info("Snapshot source recovered", timestamp=timestamp)

        records = []
        for entry in self.ordering.apply(entries):
            try:
                results = self.registry.observe(entry.name, timestamp, entry.value)
            except Exception as e:
                logger.error("Failed to evaluate entity", entity=entry.name, error=str(e))
                self.stats["entity_errors"] += 1
                continue

            record = TrendRecord(
                timestamp=timestamp,
                count=entry.count,
                unit_size=entry.unit_size,
                name=entry.name,
                results=results,
            )
            for sink in self.sinks:
                sink.write(record)
            records.append(record)

            if record.growing:
                self.stats["growth_flags"] += 1
                logger.warning(
                    "Increasing trend detected",
                    entity=entry.name,
                    value=entry.value,
                    **{
                        window.value: round(results[window].z, 3)
                        for window in Window
                        if results[window].verdict
                    },
                )

        for sink in self.sinks:
            sink.end_cycle()

        self.stats["records_emitted"] += len(records)
        logger.debug("Cycle complete", timestamp=timestamp, entities=len(records))
        return records

    def run(self, duration_seconds: int | None = None, max_cycles: int | None = None):
        """Poll until interrupted, or until a duration or cycle limit is reached

        Args:
            duration_seconds: Optional wall-clock limit in seconds
            max_cycles: Optional number of cycles to run
        """
        logger.info(
            "Starting trend monitor",
            duration=duration_seconds if duration_seconds is not None else "indefinite",
            max_cycles=max_cycles if max_cycles is not None else "unlimited",
        )

        start_time = time.time()
        last_log_time = start_time
        cycle = 0

        try:
            while max_cycles is None or cycle < max_cycles:
                self.run_cycle(self.clock(cycle))
                cycle += 1

                elapsed = time.time() - start_time

                if time.time() - last_log_time >= STATS_LOG_INTERVAL_SECONDS:
                    logger.info(
                        "Monitor stats",
                        entities=len(self.registry),
                        degraded=self.degraded,
                        elapsed_sec=round(elapsed, 1),
                        **self.stats,
                    )
                    last_log_time = time.time()

                if max_cycles is not None and cycle >= max_cycles:
                    logger.info("Cycle limit reached", max_cycles=max_cycles)
                    break

                if duration_seconds is not None and elapsed >= duration_seconds:
                    logger.info("Duration limit reached", duration_seconds=duration_seconds)
                    break

                self.sleep(self.config.poll_interval_seconds)

        except KeyboardInterrupt:
            logger.info("Received interrupt signal, stopping monitor")

        except Exception as e:
            logger.error("Monitor error", error=str(e), exc_info=True)
            raise

        finally:
            self.close()
            logger.info(
                "Monitor stopped",
                entities=len(self.registry),
                elapsed_sec=round(time.time() - start_time, 1),
                **self.stats,
            )

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()
        self.source.close()
