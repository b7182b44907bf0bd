"""
Per-entity sample history.

Each entity owns an append-only list of samples (oldest first, newest last) and
one integer cursor per bounded window marking the oldest sample still inside it.
The TOTAL window retains the whole history for the life of the process unless a
history limit is configured, so memory grows with uptime / poll interval for
every entity ever observed.
"""

from .models import BOUNDED_WINDOWS, Sample, Window
from .ties import TieBucketIndex


class SeriesRecord:
    """History, window cursors and tie indexes of a single entity"""

    def __init__(self, name: str):
        self.name = name
        self.samples: list[Sample] = []
        self.boundaries: dict[Window, int] = {window: 0 for window in BOUNDED_WINDOWS}
        self.ties: dict[Window, TieBucketIndex] = {window: TieBucketIndex() for window in Window}

    @classmethod
    def seed(cls, name: str, timestamp: int, value: float) -> "SeriesRecord":
        """Create a record holding one sample, with every window starting at it"""
        record = cls(name)
        record.insert(timestamp, value)
        for index in record.ties.values():
            index.record_value(value)
        return record

    @property
    def head(self) -> Sample | None:
        """Newest sample"""
        return self.samples[-1] if self.samples else None

    def insert(self, timestamp: int, value: float) -> Sample:
        """Append a new newest sample to the chain.

        Raises:
            ValueError: If `timestamp` is older than the current head
        """
        head = self.head
        if head is not None and timestamp < head.timestamp:
            raise ValueError(
                f"Sample for '{self.name}' at {timestamp} is older than head at {head.timestamp}"
            )

        sample = Sample(timestamp=timestamp, value=value)
        self.samples.append(sample)
        return sample

    def window_samples(self, window: Window) -> list[Sample]:
        """Samples currently inside `window`, oldest first"""
        if window is Window.TOTAL:
            return list(self.samples)
        return self.samples[self.boundaries[window] :]

    def window_values(self, window: Window) -> list[float]:
        return [sample.value for sample in self.window_samples(window)]

    def __len__(self) -> int:
        return len(self.samples)

    def __repr__(self) -> str:
        boundaries = {window.value: index for window, index in self.boundaries.items()}
        return f"SeriesRecord(name={self.name!r}, samples={len(self.samples)}, boundaries={boundaries})"
