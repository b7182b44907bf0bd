"""
Tests for CycleDriver.
"""

from unittest.mock import MagicMock

import pytest

from src.monitor.driver import CycleDriver, build_registry
from src.monitor.models import MonitorConfig, SnapshotEntry, SnapshotUnavailable
from src.monitor.retry import RetryPolicy
from src.monitor.sinks import RecordSink
from src.monitor.sources import SnapshotSource
from src.trend.models import Window


def snapshot(**values):
    """Entries with unit size 1 so that value == count."""
    return [SnapshotEntry(name, count=count, unit_size=1) for name, count in values.items()]


@pytest.fixture
def source():
    return MagicMock(spec=SnapshotSource)


@pytest.fixture
def sink():
    return MagicMock(spec=RecordSink)


@pytest.fixture
def no_wait_policy():
    return RetryPolicy(attempts=2, backoff_seconds=0.0, sleep=MagicMock())


class TestCycleDriver:
    """Tests for CycleDriver cycles."""

    def test_initialization(self, monitor_config, source, sink):
        driver = CycleDriver(monitor_config, source, [sink])

        assert len(driver.registry) == 0
        assert driver.ordering.name == "active"
        assert driver.degraded is False
        assert driver.stats["cycles"] == 0

    def test_build_registry_uses_config(self):
        config = MonitorConfig(
            critical_value=2.5, mid_term_seconds=600, short_term_seconds=60, history_limit=10
        )

        registry = build_registry(config)

        assert registry.evaluator.critical_value == 2.5
        assert registry.maintainer.lengths[Window.MID_TERM] == 600
        assert registry.maintainer.lengths[Window.SHORT_TERM] == 60
        assert registry.history_limit == 10

    def test_run_cycle_emits_one_record_per_entity(self, monitor_config, source, sink):
        source.fetch.return_value = snapshot(a=5, b=50, c=20)
        driver = CycleDriver(monitor_config, source, [sink])

        records = driver.run_cycle(0)

        assert [r.name for r in records] == ["b", "c", "a"]
        assert sink.write.call_count == 3
        sink.end_cycle.assert_called_once()
        assert driver.stats["records_emitted"] == 3

    def test_record_carries_raw_inputs(self, monitor_config, source, sink):
        source.fetch.return_value = [SnapshotEntry("dentry", count=100, unit_size=192)]
        driver = CycleDriver(monitor_config, source, [sink])

        record = driver.run_cycle(30)[0]

        assert record.timestamp == 30
        assert record.count == 100
        assert record.unit_size == 192
        assert driver.registry.get("dentry").head.value == 19200
        assert set(record.results) == set(Window)

    def test_ordering_by_name(self, source, sink):
        config = MonitorConfig(output_path=None, ordering="n")
        source.fetch.return_value = snapshot(zeta=1, alpha=3, mid=2)
        driver = CycleDriver(config, source, [sink])

        assert [r.name for r in driver.run_cycle(0)] == ["alpha", "mid", "zeta"]

    def test_unknown_ordering_falls_back(self, source, sink):
        config = MonitorConfig(output_path=None, ordering="q")

        driver = CycleDriver(config, source, [sink])

        assert driver.ordering.name == "active"

    def test_growth_detected_over_cycles(self, monitor_config, source, sink):
        """A steadily growing cache gets flagged, a flat one does not."""
        source.fetch.side_effect = [snapshot(grow=100 + 10 * i, flat=50) for i in range(10)]
        driver = CycleDriver(monitor_config, source, [sink])

        for i in range(10):
            records = driver.run_cycle(i * 30)

        by_name = {r.name: r for r in records}
        assert by_name["grow"].growing is True
        assert by_name["grow"].results[Window.TOTAL].s == 45
        assert by_name["flat"].growing is False
        assert driver.stats["growth_flags"] > 0

    def test_absent_entity_not_purged(self, monitor_config, source, sink):
        source.fetch.side_effect = [snapshot(a=1, b=1), snapshot(a=2)]
        driver = CycleDriver(monitor_config, source, [sink])

        driver.run_cycle(0)
        records = driver.run_cycle(30)

        assert [r.name for r in records] == ["a"]
        assert "b" in driver.registry
        assert len(driver.registry.get("b")) == 1

    def test_entity_failure_is_isolated(self, monitor_config, source, sink):
        """An entity whose evaluation fails does not stop the others."""
        source.fetch.return_value = snapshot(a=1, b=2)
        driver = CycleDriver(monitor_config, source, [sink])
        driver.run_cycle(100)

        # stamping a cycle in the past makes every insertion fail
        records = driver.run_cycle(50)

        assert records == []
        assert driver.stats["entity_errors"] == 2
        sink.end_cycle.assert_called()

    def test_degraded_on_exhausted_retries(self, monitor_config, source, sink, no_wait_policy):
        source.fetch.side_effect = SnapshotUnavailable("gone")
        driver = CycleDriver(monitor_config, source, [sink], retry_policy=no_wait_policy)

        records = driver.run_cycle(0)

        assert records == []
        assert driver.degraded is True
        assert driver.stats["failed_cycles"] == 1
        assert source.fetch.call_count == 2
        sink.write.assert_not_called()

    def test_recovers_from_degraded(self, monitor_config, source, sink, no_wait_policy):
        source.fetch.side_effect = [
            SnapshotUnavailable("gone"),
            SnapshotUnavailable("gone"),
            snapshot(a=1),
        ]
        driver = CycleDriver(monitor_config, source, [sink], retry_policy=no_wait_policy)

        driver.run_cycle(0)
        records = driver.run_cycle(30)

        assert driver.degraded is False
        assert len(records) == 1

    def test_fail_fast_raises(self, monitor_config, source, sink):
        source.fetch.side_effect = SnapshotUnavailable("gone")
        policy = RetryPolicy(attempts=1, fail_fast=True, sleep=MagicMock())
        driver = CycleDriver(monitor_config, source, [sink], retry_policy=policy)

        with pytest.raises(SnapshotUnavailable):
            driver.run_cycle(0)

    def test_sink_failure_propagates(self, monitor_config, source, sink):
        source.fetch.return_value = snapshot(a=1)
        sink.write.side_effect = OSError("disk full")
        driver = CycleDriver(monitor_config, source, [sink])

        with pytest.raises(OSError, match="disk full"):
            driver.run_cycle(0)

    def test_ordering_does_not_change_statistics(self, monitor_config, sink):
        """Name and size orderings emit records in different order with identical results."""
        cycles = [
            [
                SnapshotEntry("alpha", count=100 + 5 * i, unit_size=8),
                SnapshotEntry("beta", count=50 - i, unit_size=64),
                SnapshotEntry("gamma", count=20 + (i % 2), unit_size=32),
            ]
            for i in range(6)
        ]

        outputs = {}
        for ordering in ("n", "s"):
            source = MagicMock(spec=SnapshotSource)
            source.fetch.side_effect = list(cycles)
            config = MonitorConfig(output_path=None, ordering=ordering)
            driver = CycleDriver(config, source, [sink])
            outputs[ordering] = [driver.run_cycle(i * 30) for i in range(len(cycles))]

        for by_name, by_size in zip(outputs["n"], outputs["s"]):
            assert [r.name for r in by_name] == ["alpha", "beta", "gamma"]
            assert [r.name for r in by_size] == ["beta", "gamma", "alpha"]
            assert {r.name: r.results for r in by_name} == {r.name: r.results for r in by_size}
        assert outputs["n"][-1][0].results[Window.TOTAL].verdict is True


class TestCycleDriverRun:
    """Tests for the polling loop."""

    def test_logical_clock_and_sleep(self, monitor_config, source, sink):
        source.fetch.return_value = snapshot(a=1)
        sleep = MagicMock()
        driver = CycleDriver(monitor_config, source, [sink], sleep=sleep)

        driver.run(max_cycles=4)

        timestamps = [call.args[0].timestamp for call in sink.write.call_args_list]
        assert timestamps == [0, 30, 60, 90]
        assert sleep.call_count == 3
        sleep.assert_called_with(30)

    def test_custom_clock(self, monitor_config, source, sink):
        source.fetch.return_value = snapshot(a=1)
        driver = CycleDriver(
            monitor_config, source, [sink], clock=lambda cycle: 1000 + cycle, sleep=MagicMock()
        )

        driver.run(max_cycles=2)

        timestamps = [call.args[0].timestamp for call in sink.write.call_args_list]
        assert timestamps == [1000, 1001]

    def test_run_closes_sinks_and_source(self, monitor_config, source, sink):
        source.fetch.return_value = snapshot(a=1)
        driver = CycleDriver(monitor_config, source, [sink], sleep=MagicMock())

        driver.run(max_cycles=1)

        sink.close.assert_called_once()
        source.close.assert_called_once()

    def test_run_stops_on_interrupt(self, monitor_config, source, sink):
        source.fetch.return_value = snapshot(a=1)
        driver = CycleDriver(
            monitor_config, source, [sink], sleep=MagicMock(side_effect=KeyboardInterrupt)
        )

        driver.run()

        assert driver.stats["cycles"] == 1
        sink.close.assert_called_once()

    def test_run_propagates_fatal_errors(self, monitor_config, source, sink):
        source.fetch.side_effect = SnapshotUnavailable("gone")
        policy = RetryPolicy(attempts=1, fail_fast=True, sleep=MagicMock())
        driver = CycleDriver(
            monitor_config, source, [sink], retry_policy=policy, sleep=MagicMock()
        )

        with pytest.raises(SnapshotUnavailable):
            driver.run()

        sink.close.assert_called_once()

    def test_run_survives_failed_cycles(self, monitor_config, source, sink, no_wait_policy):
        source.fetch.side_effect = [
            SnapshotUnavailable("gone"),
            SnapshotUnavailable("gone"),
            snapshot(a=1),
        ]
        driver = CycleDriver(
            monitor_config, source, [sink], retry_policy=no_wait_policy, sleep=MagicMock()
        )

        driver.run(max_cycles=2)

        assert driver.stats["cycles"] == 2
        assert driver.stats["failed_cycles"] == 1
        assert sink.write.call_count == 1

    def test_zero_cycle_limit_runs_nothing(self, monitor_config, source, sink):
        driver = CycleDriver(monitor_config, source, [sink], sleep=MagicMock())

        driver.run(max_cycles=0)

        assert driver.stats["cycles"] == 0
        source.fetch.assert_not_called()
        sink.close.assert_called_once()

    def test_zero_duration_runs_one_cycle(self, monitor_config, source, sink):
        source.fetch.return_value = snapshot(a=1)
        sleep = MagicMock()
        driver = CycleDriver(monitor_config, source, [sink], sleep=sleep)

        driver.run(duration_seconds=0)

        assert driver.stats["cycles"] == 1
        sleep.assert_not_called()
