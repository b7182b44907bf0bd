"""
Data models, configuration and errors for the trend monitor.
"""

from dataclasses import dataclass

from src.trend.models import Window, WindowResult


class ConfigurationError(ValueError):
    """Invalid monitor settings, rejected at startup"""


class SnapshotUnavailable(RuntimeError):
    """A snapshot source could not produce a cycle's data"""


@dataclass(frozen=True)
class SnapshotEntry:
    """One live entity in a snapshot: name, object count and unit size"""

    name: str
    count: int
    unit_size: int

    @property
    def value(self) -> int:
        return self.count * self.unit_size


@dataclass
class TrendRecord:
    """Output of one entity in one cycle"""

    timestamp: int
    count: int
    unit_size: int
    name: str
    results: dict[Window, WindowResult]

    @property
    def growing(self) -> bool:
        return any(result.verdict for result in self.results.values())

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            "timestamp": self.timestamp,
            "count": self.count,
            "unit_size": self.unit_size,
            "name": self.name,
            **{window.value: self.results[window].to_dict() for window in Window},
        }


@dataclass
class MonitorConfig:
    """Configuration for the trend monitor"""

    # Polling
    poll_interval_seconds: int = 30
    ordering: str = "active"

    # Trend test
    critical_value: float = 1.96
    mid_term_seconds: int = 3600
    short_term_seconds: int = 900
    history_limit: int | None = None  # None keeps every sample since start

    # Snapshot source
    snapshot_path: str = "/proc/slabinfo"
    retry_attempts: int = 3
    retry_backoff_seconds: float = 1.0
    retry_backoff_max_seconds: float = 30.0
    fail_fast: bool = False

    # Output sinks
    output_path: str | None = "SLABLog.txt"
    kafka_bootstrap_servers: str | None = None  # Kafka sink disabled when unset
    kafka_topic: str = "slab-trends"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check settings.

        Raises:
            ConfigurationError: On the first invalid setting found
        """
        if self.poll_interval_seconds < 0:
            raise ConfigurationError(
                f"Poll interval can't be negative: {self.poll_interval_seconds}"
            )
        if self.critical_value <= 0:
            raise ConfigurationError(f"Critical value must be positive: {self.critical_value}")
        if self.mid_term_seconds <= 0 or self.short_term_seconds <= 0:
            raise ConfigurationError(
                f"Window lengths must be positive: mid_term={self.mid_term_seconds}, "
                f"short_term={self.short_term_seconds}"
            )
        if self.history_limit is not None and self.history_limit < 1:
            raise ConfigurationError(f"History limit must be at least 1: {self.history_limit}")
        if self.retry_attempts < 1:
            raise ConfigurationError(f"Retry attempts must be at least 1: {self.retry_attempts}")
        if self.retry_backoff_seconds < 0 or self.retry_backoff_max_seconds < 0:
            raise ConfigurationError("Retry backoff can't be negative")
