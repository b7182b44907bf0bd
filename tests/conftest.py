"""
Pytest configuration and shared fixtures.
"""

import pytest

from src.monitor.models import MonitorConfig, SnapshotEntry
from src.trend import EntityRegistry, TrendEvaluator, WindowMaintainer

SLABINFO_TEXT = """slabinfo - version: 2.1
# name            <active_objs> <num_objs> <objsize> <objperslab> <pagesperslab> : tunables <limit> <batchcount> <sharedfactor> : slabdata <active_slabs> <num_slabs> <sharedavail>
kmalloc-256         1024   1056    256   32    2 : tunables    0    0    0 : slabdata     33     33      0
dentry             40950  41034    192   21    1 : tunables    0    0    0 : slabdata   1954   1954      0
inode_cache         9120   9156    600   13    2 : tunables    0    0    0 : slabdata    704    704      0
"""


# Trend fixtures
@pytest.fixture
def registry():
    """Registry with reference windows (1h / 15min) and critical value 1.96."""
    return EntityRegistry(
        maintainer=WindowMaintainer(mid_term_seconds=3600, short_term_seconds=900),
        evaluator=TrendEvaluator(critical_value=1.96),
    )


@pytest.fixture
def evaluator():
    return TrendEvaluator()


# Monitor fixtures
@pytest.fixture
def monitor_config():
    """Configuration for fast driver tests: no output file, no retry backoff."""
    return MonitorConfig(
        poll_interval_seconds=30,
        output_path=None,
        retry_attempts=2,
        retry_backoff_seconds=0.0,
        retry_backoff_max_seconds=0.0,
    )


@pytest.fixture
def slabinfo_file(tmp_path):
    """A slabinfo file with three caches."""
    path = tmp_path / "slabinfo"
    path.write_text(SLABINFO_TEXT)
    return path


@pytest.fixture
def entries():
    return [
        SnapshotEntry(name="kmalloc-256", count=1024, unit_size=256),
        SnapshotEntry(name="dentry", count=40950, unit_size=192),
        SnapshotEntry(name="inode_cache", count=9120, unit_size=600),
    ]


@pytest.fixture
def feed():
    """Observe a value sequence on consecutive cycles; returns the last cycle's results."""

    def _feed(registry, name, values, interval=30, start=0):
        results = None
        for i, value in enumerate(values):
            results = registry.observe(name, start + i * interval, value)
        return results

    return _feed
