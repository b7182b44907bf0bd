"""
Window boundary maintenance: ages samples out of the bounded windows.
"""

import structlog

from .models import BOUNDED_WINDOWS, Window
from .series import SeriesRecord

logger = structlog.get_logger(__name__)

DEFAULT_MID_TERM_SECONDS = 3600
DEFAULT_SHORT_TERM_SECONDS = 900


class WindowMaintainer:
    """Advances boundary cursors and evicts tie occurrences of aged-out samples"""

    def __init__(
        self,
        mid_term_seconds: int = DEFAULT_MID_TERM_SECONDS,
        short_term_seconds: int = DEFAULT_SHORT_TERM_SECONDS,
    ):
        if mid_term_seconds <= 0 or short_term_seconds <= 0:
            raise ValueError("Window lengths must be positive")

        self.lengths: dict[Window, int] = {
            Window.MID_TERM: mid_term_seconds,
            Window.SHORT_TERM: short_term_seconds,
        }

    def cutoff(self, window: Window, timestamp: int) -> int | None:
        """Oldest timestamp still inside `window` at `timestamp` (None for TOTAL)"""
        if window is Window.TOTAL:
            return None
        return timestamp - self.lengths[window]

    def advance(self, record: SeriesRecord, timestamp: int) -> dict[Window, int]:
        """Move each bounded window's cursor past samples older than its cutoff.

        Must run before the sample for `timestamp` is inserted. The cursor may
        stop one slot past the current head, which is where that sample lands.

        Returns:
            Number of samples evicted from each bounded window
        """
        evicted = {}
        for window in BOUNDED_WINDOWS:
            cutoff = self.cutoff(window, timestamp)
            cursor = record.boundaries[window]
            start = cursor

            while cursor < len(record.samples) and record.samples[cursor].timestamp < cutoff:
                record.ties[window].remove_occurrence(record.samples[cursor].value)
                cursor += 1

            record.boundaries[window] = cursor
            evicted[window] = cursor - start

        if any(evicted.values()):
            logger.debug(
                "Samples aged out",
                entity=record.name,
                timestamp=timestamp,
                mid_term=evicted[Window.MID_TERM],
                short_term=evicted[Window.SHORT_TERM],
            )
        return evicted

    def trim(self, record: SeriesRecord, limit: int) -> int:
        """Drop the oldest samples until at most `limit` remain.

        Dropped samples leave the TOTAL tie index, and the bounded windows
        that still contained them.

        Returns:
            Number of samples dropped
        """
        dropped = 0
        while len(record.samples) > limit:
            oldest = record.samples.pop(0)
            record.ties[Window.TOTAL].remove_occurrence(oldest.value)
            for window in BOUNDED_WINDOWS:
                if record.boundaries[window] == 0:
                    record.ties[window].remove_occurrence(oldest.value)
                else:
                    record.boundaries[window] -= 1
            dropped += 1
        return dropped
