"""
Tie bookkeeping for the variance correction of the S statistic.
"""

from collections.abc import Iterator


def tie_contribution(count: int) -> int:
    """Variance correction term t(t-1)(2t+5) for a bucket of `count` tied values"""
    return count * (count - 1) * (2 * count + 5)


class TieBucketIndex:
    """Population of value -> number of samples with exactly that value in one window.

    Buckets are never deleted: a count that decays to zero stays in the index
    and contributes nothing to the tie term.
    """

    def __init__(self):
        self._counts: dict[float, int] = {}

    def record_value(self, value: float) -> int:
        """Add one occurrence of `value`, creating its bucket if needed"""
        self._counts[value] = self._counts.get(value, 0) + 1
        return self._counts[value]

    def remove_occurrence(self, value: float) -> int | None:
        """Remove one occurrence of `value` if a bucket exists for it.

        Returns:
            The bucket's new count, or None when no bucket matches the value
        """
        if value not in self._counts:
            return None
        self._counts[value] -= 1
        return self._counts[value]

    def count(self, value: float) -> int:
        return self._counts.get(value, 0)

    def tie_term(self) -> int:
        """Sum of t(t-1)(2t+5) over every bucket with t > 1"""
        return sum(tie_contribution(t) for t in self._counts.values() if t > 1)

    def population(self) -> int:
        return sum(self._counts.values())

    def items(self) -> Iterator[tuple[float, int]]:
        return iter(self._counts.items())

    def __contains__(self, value: float) -> bool:
        return value in self._counts

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"TieBucketIndex({self._counts!r})"
