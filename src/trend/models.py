"""
Data models for the trend detection core.
"""

from dataclasses import asdict, dataclass
from enum import Enum


class Window(Enum):
    """Trailing spans of an entity's history, each scoping one trend test"""

    TOTAL = "total"
    MID_TERM = "mid_term"
    SHORT_TERM = "short_term"


# Windows whose oldest samples age out; TOTAL keeps everything since start
BOUNDED_WINDOWS = (Window.MID_TERM, Window.SHORT_TERM)


@dataclass(frozen=True)
class Sample:
    """One timestamped observation of an entity"""

    timestamp: int
    value: float


@dataclass
class WindowResult:
    """Outcome of the trend test over one window.

    Degenerate windows (fewer than two samples, non-positive variance) keep the
    zero defaults and a negative verdict.
    """

    n: int = 0
    s: int = 0
    var_s: float = 0.0
    z: float = 0.0
    verdict: bool = False
    base_variance: float = 0.0  # n(n-1)(2n+5)
    tie_term: float = 0.0  # sum of t(t-1)(2t+5) over tied buckets

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return asdict(self)
