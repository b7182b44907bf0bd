"""
Snapshot sources: supply one collection of (name, count, unit size) per cycle.
"""

from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from .models import SnapshotEntry, SnapshotUnavailable

logger = structlog.get_logger(__name__)


class SnapshotSource(ABC):
    """Abstract base class for snapshot sources

    Each source must implement fetch(), returning every currently live entity.
    Failure to produce a snapshot is reported by raising SnapshotUnavailable.
    """

    @abstractmethod
    def fetch(self) -> list[SnapshotEntry]:
        """Take one snapshot

        Returns:
            Unordered list of entries, one per live entity

        Raises:
            SnapshotUnavailable: If no snapshot can be produced this cycle
        """
        pass

    def close(self) -> None:
        """Release any resources held by the source"""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class SlabinfoSource(SnapshotSource):
    """Reads kernel slab caches from /proc/slabinfo (format version 2.x).

    Each cache yields its active object count and object size, so an entry's
    value is the memory held by the cache's active objects.
    """

    def __init__(self, path: str = "/proc/slabinfo"):
        self.path = Path(path)

    def fetch(self) -> list[SnapshotEntry]:
        try:
            text = self.path.read_text()
        except OSError as e:
            raise SnapshotUnavailable(f"Cannot read {self.path}: {e}") from e

        return self.parse(text)

    def parse(self, text: str) -> list[SnapshotEntry]:
        lines = text.splitlines()
        if not lines or not lines[0].startswith("slabinfo - version:"):
            raise SnapshotUnavailable(f"{self.path} is not a slabinfo file")

        version = lines[0].split(":", 1)[1].strip()
        if not version.startswith("2."):
            raise SnapshotUnavailable(f"Unsupported slabinfo version {version}")

        entries = []
        for line_number, line in enumerate(lines[1:], start=2):
            if not line.strip() or line.startswith("#"):
                continue

            fields = line.split()
            try:
                # name <active_objs> <num_objs> <objsize> ...
                entries.append(
                    SnapshotEntry(name=fields[0], count=int(fields[1]), unit_size=int(fields[3]))
                )
            except (IndexError, ValueError):
                logger.warning("Skipping malformed slabinfo line", line=line_number, content=line)

        return entries

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(path={str(self.path)!r})"
