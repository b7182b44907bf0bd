"""
Deterministic ordering of a cycle's snapshot entries.

Ordering only affects iteration and output order, never the statistics.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import structlog

from .models import SnapshotEntry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Ordering:
    """Sort key over snapshot entries plus its direction"""

    name: str
    key: Callable[[SnapshotEntry], Any]
    descending: bool = False

    def apply(self, entries: Iterable[SnapshotEntry]) -> list[SnapshotEntry]:
        # sorted() is stable in both directions: ties keep snapshot order
        return sorted(entries, key=self.key, reverse=self.descending)


ORDERINGS = {
    "name": Ordering("name", key=lambda entry: entry.name),
    "active": Ordering("active", key=lambda entry: entry.count, descending=True),
    "size": Ordering("size", key=lambda entry: entry.unit_size, descending=True),
}

# Single-letter keys accepted by -s/--sort
ORDERING_ALIASES = {"n": "name", "a": "active", "s": "size"}

DEFAULT_ORDERING = "active"


def get_ordering(key: str | None) -> Ordering:
    """Resolve an ordering by name or alias.

    Unrecognized keys fall back to the default ordering.
    """
    name = ORDERING_ALIASES.get(key, key)
    if name not in ORDERINGS:
        logger.warning(
            "Unknown ordering key, using default",
            key=key,
            default=DEFAULT_ORDERING,
            available=", ".join(ORDERINGS),
        )
        name = DEFAULT_ORDERING
    return ORDERINGS[name]


def sort_entries(entries: Iterable[SnapshotEntry], key: str | None = None) -> list[SnapshotEntry]:
    return get_ordering(key or DEFAULT_ORDERING).apply(entries)


def list_orderings() -> list[str]:
    """List all available ordering names"""
    return list(ORDERINGS.keys())
