"""
Retry policy for snapshot fetches.

Only SnapshotUnavailable is retried; any other exception is a bug and
propagates immediately.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .models import MonitorConfig, SnapshotUnavailable

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Snapshot unavailable, retrying",
        attempt=retry_state.attempt_number,
        wait_seconds=round(retry_state.next_action.sleep, 2) if retry_state.next_action else 0,
        error=str(exception),
    )


@dataclass
class RetryPolicy:
    """Bounded exponential backoff around a snapshot fetch.

    With fail_fast the driver treats an exhausted policy as fatal; otherwise
    the cycle is skipped and the monitor keeps running in a degraded state.
    """

    attempts: int = 3
    backoff_seconds: float = 1.0
    backoff_max_seconds: float = 30.0
    fail_fast: bool = False
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "RetryPolicy":
        return cls(
            attempts=config.retry_attempts,
            backoff_seconds=config.retry_backoff_seconds,
            backoff_max_seconds=config.retry_backoff_max_seconds,
            fail_fast=config.fail_fast,
        )

    def call(self, func: Callable[[], T]) -> T:
        """Run `func`, retrying on SnapshotUnavailable.

        Raises:
            SnapshotUnavailable: The last failure once every attempt is used up
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=self.backoff_max_seconds),
            retry=retry_if_exception_type(SnapshotUnavailable),
            before_sleep=_log_retry,
            sleep=self.sleep,
            reraise=True,
        )
        return retrying(func)
