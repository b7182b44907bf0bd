"""
Sliding-window Mann-Kendall trend detection with tie correction.
"""

from .evaluator import DEFAULT_CRITICAL_VALUE, TrendEvaluator, concordance
from .models import BOUNDED_WINDOWS, Sample, Window, WindowResult
from .registry import EntityRegistry
from .series import SeriesRecord
from .ties import TieBucketIndex
from .window import DEFAULT_MID_TERM_SECONDS, DEFAULT_SHORT_TERM_SECONDS, WindowMaintainer

__all__ = [
    "BOUNDED_WINDOWS",
    "DEFAULT_CRITICAL_VALUE",
    "DEFAULT_MID_TERM_SECONDS",
    "DEFAULT_SHORT_TERM_SECONDS",
    "EntityRegistry",
    "Sample",
    "SeriesRecord",
    "TieBucketIndex",
    "TrendEvaluator",
    "Window",
    "WindowMaintainer",
    "WindowResult",
    "concordance",
]
