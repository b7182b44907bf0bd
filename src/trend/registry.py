"""
Registry of per-entity trend state.
"""

from collections.abc import Iterator

import structlog

from .evaluator import TrendEvaluator
from .models import Window, WindowResult
from .series import SeriesRecord
from .window import WindowMaintainer

logger = structlog.get_logger(__name__)


class EntityRegistry:
    """Owns the SeriesRecord of every entity observed so far.

    Entities that stop appearing in snapshots are kept as they are; nothing is
    ever purged.
    """

    def __init__(
        self,
        maintainer: WindowMaintainer | None = None,
        evaluator: TrendEvaluator | None = None,
        history_limit: int | None = None,
    ):
        if history_limit is not None and history_limit < 1:
            raise ValueError(f"History limit must be at least 1, got {history_limit}")

        self.maintainer = maintainer or WindowMaintainer()
        self.evaluator = evaluator or TrendEvaluator()
        self.history_limit = history_limit
        self._records: dict[str, SeriesRecord] = {}

    def observe(self, name: str, timestamp: int, value: float) -> dict[Window, WindowResult]:
        """Record one sample for `name` and evaluate all three windows.

        Returns:
            Trend result per window
        """
        record = self._records.get(name)

        if record is None:
            record = SeriesRecord.seed(name, timestamp, value)
            self._records[name] = record
            logger.debug("Entity onboarded", entity=name, timestamp=timestamp, value=value)
        else:
            self.maintainer.advance(record, timestamp)
            record.insert(timestamp, value)
            for index in record.ties.values():
                index.record_value(value)

        if self.history_limit is not None:
            self.maintainer.trim(record, self.history_limit)

        return self.evaluate(record)

    def evaluate(self, record: SeriesRecord) -> dict[Window, WindowResult]:
        results = {}
        for window in Window:
            results[window] = self.evaluator.evaluate(
                record.window_values(window), record.ties[window]
            )

        logger.debug(
            "Entity evaluated",
            entity=record.name,
            **{w.value: (r.n, r.s, round(r.var_s, 3)) for w, r in results.items()},
        )
        return results

    def get(self, name: str) -> SeriesRecord | None:
        return self._records.get(name)

    def names(self) -> list[str]:
        return list(self._records)

    def __contains__(self, name: str) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SeriesRecord]:
        return iter(self._records.values())
