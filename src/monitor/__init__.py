"""
Slab Trend Monitor
Polls per-entity snapshots and flags entities whose value shows a significant increasing trend.
"""

from .config import BOUNDED_CONFIG, CONFIGS, DEFAULT_CONFIG, FAST_CONFIG, STRICT_CONFIG
from .driver import CycleDriver, build_registry
from .models import (
    ConfigurationError,
    MonitorConfig,
    SnapshotEntry,
    SnapshotUnavailable,
    TrendRecord,
)
from .ordering import ORDERINGS, Ordering, get_ordering, sort_entries
from .retry import RetryPolicy
from .sinks import DelimitedFileSink, KafkaSink, RecordSink
from .sources import SlabinfoSource, SnapshotSource

__all__ = [
    "BOUNDED_CONFIG",
    "CONFIGS",
    "DEFAULT_CONFIG",
    "FAST_CONFIG",
    "STRICT_CONFIG",
    "ConfigurationError",
    "CycleDriver",
    "DelimitedFileSink",
    "KafkaSink",
    "MonitorConfig",
    "ORDERINGS",
    "Ordering",
    "RecordSink",
    "RetryPolicy",
    "SlabinfoSource",
    "SnapshotEntry",
    "SnapshotSource",
    "SnapshotUnavailable",
    "TrendRecord",
    "build_registry",
    "get_ordering",
    "sort_entries",
]

__version__ = "1.0.0"
