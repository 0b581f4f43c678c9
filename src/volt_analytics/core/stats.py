"""Small numpy helpers shared by the analyzers.

Every helper returns a defined neutral value for empty input instead of
numpy's ``nan`` and warning.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def safe_mean(values: Sequence[float], default: float = 0.0) -> float:
    if len(values) == 0:
        return default
    return float(np.mean(values))


def safe_std(values: Sequence[float], ddof: int = 0, default: float = 0.0) -> float:
    if len(values) <= ddof:
        return default
    return float(np.std(values, ddof=ddof))


def coefficient_of_variation(values: Sequence[float]) -> float | None:
    """``|std / mean|`` (population std); ``None`` when the mean is zero."""
    if len(values) == 0:
        return None
    mean = float(np.mean(values))
    if mean == 0:
        return None
    return abs(float(np.std(values)) / mean)


def rms(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    arr = np.asarray(values, dtype=float)
    return float(np.sqrt(np.mean(arr ** 2)))


def percentage(part: float, whole: float) -> float:
    """``part / whole * 100``, 0 when ``whole`` is zero."""
    if whole == 0:
        return 0.0
    return part / whole * 100.0
