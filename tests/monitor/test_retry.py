"""
Tests for the snapshot retry policy.
"""

from unittest.mock import MagicMock

import pytest

from src.monitor.models import MonitorConfig, SnapshotUnavailable
from src.monitor.retry import RetryPolicy


class TestRetryPolicy:
    """Tests for RetryPolicy.call."""

    def test_success_first_attempt(self):
        sleep = MagicMock()
        func = MagicMock(return_value=["ok"])

        assert RetryPolicy(attempts=3, sleep=sleep).call(func) == ["ok"]
        func.assert_called_once()
        sleep.assert_not_called()

    def test_retries_until_success(self):
        sleep = MagicMock()
        func = MagicMock(side_effect=[SnapshotUnavailable("busy"), ["ok"]])

        assert RetryPolicy(attempts=3, sleep=sleep).call(func) == ["ok"]
        assert func.call_count == 2
        assert sleep.call_count == 1

    def test_exhausted_attempts_reraise(self):
        sleep = MagicMock()
        func = MagicMock(side_effect=SnapshotUnavailable("gone"))

        with pytest.raises(SnapshotUnavailable, match="gone"):
            RetryPolicy(attempts=3, sleep=sleep).call(func)

        assert func.call_count == 3
        assert sleep.call_count == 2

    def test_backoff_grows_and_is_capped(self):
        sleep = MagicMock()
        func = MagicMock(side_effect=SnapshotUnavailable("gone"))
        policy = RetryPolicy(attempts=5, backoff_seconds=1.0, backoff_max_seconds=3.0, sleep=sleep)

        with pytest.raises(SnapshotUnavailable):
            policy.call(func)

        waits = [call.args[0] for call in sleep.call_args_list]
        assert waits == sorted(waits)
        assert max(waits) <= 3.0

    def test_other_errors_not_retried(self):
        sleep = MagicMock()
        func = MagicMock(side_effect=KeyError("bug"))

        with pytest.raises(KeyError):
            RetryPolicy(attempts=3, sleep=sleep).call(func)

        func.assert_called_once()
        sleep.assert_not_called()

    def test_from_config(self):
        config = MonitorConfig(
            retry_attempts=7,
            retry_backoff_seconds=0.5,
            retry_backoff_max_seconds=4.0,
            fail_fast=True,
        )

        policy = RetryPolicy.from_config(config)

        assert policy.attempts == 7
        assert policy.backoff_seconds == 0.5
        assert policy.backoff_max_seconds == 4.0
        assert policy.fail_fast is True
