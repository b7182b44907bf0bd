"""
Mann-Kendall trend test with tie-corrected variance.

For a window holding n samples x_1..x_n (oldest first):

    S     = sum over i < j of sign(x_j - x_i)
    varS  = (n(n-1)(2n+5) - sum over tied groups of t(t-1)(2t+5)) / 18
    z     = (S - 1) / sqrt(varS)   if S > 0
            (S + 1) / sqrt(varS)   if S < 0
            0                      if S = 0

A window is flagged as a significant increasing trend when |z| exceeds the
critical value and z is positive. Significant decreases are computed but never
flagged. No serial-correlation correction is applied.
"""

import math
from collections.abc import Sequence
from typing import Any

import numpy as np
import structlog

from .models import WindowResult
from .ties import TieBucketIndex

logger = structlog.get_logger(__name__)

DEFAULT_CRITICAL_VALUE = 1.96


def concordance(values: Sequence[float]) -> int:
    """Concordant minus discordant pairs of `values` taken in time order"""
    data = np.asarray(values, dtype=float)
    s = 0
    for i in range(len(data) - 1):
        s += int(np.sign(data[i + 1 :] - data[i]).sum())
    return s


def base_variance(n: int) -> int:
    """Untied variance numerator n(n-1)(2n+5)"""
    return n * (n - 1) * (2 * n + 5)


def z_score(s: int, var_s: float) -> float:
    """Continuity-corrected z of S; 0 when S or the variance is non-positive"""
    if var_s <= 0 or s == 0:
        return 0.0
    if s > 0:
        return (s - 1) / math.sqrt(var_s)
    return (s + 1) / math.sqrt(var_s)


class TrendEvaluator:
    """Runs the trend test for one window population"""

    def __init__(self, critical_value: float = DEFAULT_CRITICAL_VALUE):
        if critical_value <= 0:
            raise ValueError(f"Critical value must be positive, got {critical_value}")
        self.critical_value = critical_value

    def evaluate(self, values: Sequence[float], ties: TieBucketIndex) -> WindowResult:
        """Evaluate the samples of a window.

        Args:
            values: Sample values inside the window, oldest first
            ties: The window's tie bucket index

        Returns:
            WindowResult; degenerate windows resolve to zeros and a False verdict
        """
        n = len(values)
        if n <= 1:
            return WindowResult(n=n)

        s = concordance(values)
        first = base_variance(n)
        tie_term = ties.tie_term()
        var_s = (first - tie_term) / 18
        z = z_score(s, var_s)

        return WindowResult(
            n=n,
            s=s,
            var_s=var_s,
            z=z,
            verdict=self.is_increasing(z),
            base_variance=float(first),
            tie_term=float(tie_term),
        )

    def is_increasing(self, z: float) -> bool:
        return abs(z) > self.critical_value and z > 0

    def get_config(self) -> dict[str, Any]:
        return {"critical_value": self.critical_value}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.get_config()})"
