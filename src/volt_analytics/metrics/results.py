"""Metric result records and benchmark status derivation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from ..core.config import MetricThreshold
from ..core.enums import MetricFormat, MetricStatus, RatioKind, Trend
from ..core.ratio import Ratio


@dataclass(frozen=True)
class MetricResult:
    """One computed metric, produced fresh on every call.

    ``sample_size`` is the number of observations behind the value (trades
    or days); zero means "no data", which is distinct from a value of 0.
    """

    name: str
    value: Ratio
    status: MetricStatus
    format: MetricFormat
    description: str = ""
    benchmark: float | None = None
    trend: Trend | None = None
    sample_size: int = 0
    low_confidence: bool = False

    @property
    def has_data(self) -> bool:
        return self.sample_size > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value.to_json(),
            "display": str(self.value),
            "status": self.status.value,
            "format": self.format.value,
            "description": self.description,
            "benchmark": self.benchmark,
            "trend": self.trend.value if self.trend else None,
            "sample_size": self.sample_size,
            "low_confidence": self.low_confidence,
        }


def derive_status(value: Ratio, threshold: MetricThreshold) -> MetricStatus:
    """Map a value onto good / warning / danger using a benchmark band."""
    if value.kind == RatioKind.UNDEFINED:
        return MetricStatus.WARNING
    if value.kind == RatioKind.INFINITE:
        return MetricStatus.GOOD if threshold.higher_is_better else MetricStatus.DANGER

    v = value.value
    if threshold.higher_is_better:
        good = v > threshold.good if threshold.strict else v >= threshold.good
        warn = v >= threshold.warning
    else:
        good = v < threshold.good if threshold.strict else v <= threshold.good
        warn = v <= threshold.warning
    if good:
        return MetricStatus.GOOD
    if warn:
        return MetricStatus.WARNING
    return MetricStatus.DANGER


def sign_status(value: Ratio) -> MetricStatus:
    """Status for currency amounts with no benchmark: positive is good."""
    if not value.is_finite or value.value == 0:
        return MetricStatus.WARNING
    return MetricStatus.GOOD if value.value > 0 else MetricStatus.DANGER


def make_metric(
    name: str,
    value: Ratio | float,
    fmt: MetricFormat,
    *,
    thresholds: dict[str, MetricThreshold] | None = None,
    sample_size: int = 0,
    min_sample: int = 0,
    description: str = "",
    status: MetricStatus | None = None,
) -> MetricResult:
    """Build a ``MetricResult``, deriving status and benchmark from ``thresholds``.

    Without data the status is WARNING regardless of the value.
    """
    ratio = value if isinstance(value, Ratio) else Ratio.finite(value)
    threshold = (thresholds or {}).get(name)
    if status is None:
        if sample_size == 0:
            status = MetricStatus.WARNING
        elif threshold is not None:
            status = derive_status(ratio, threshold)
        else:
            status = MetricStatus.GOOD
    return MetricResult(
        name=name,
        value=ratio,
        status=status,
        format=fmt,
        description=description,
        benchmark=threshold.benchmark if threshold is not None else None,
        sample_size=sample_size,
        low_confidence=0 < sample_size < min_sample,
    )


def trend_between(current: Ratio, previous: Ratio, tolerance: float = 0.01) -> Trend | None:
    """Direction of change from ``previous`` to ``current``.

    Changes within ``tolerance`` (relative to the previous value) are
    STABLE.  ``None`` when either side is undefined.
    """
    if current.is_undefined or previous.is_undefined:
        return None
    if current.is_infinite or previous.is_infinite:
        if current.kind == previous.kind:
            return Trend.STABLE
        return Trend.UP if current.is_infinite else Trend.DOWN

    delta = current.value - previous.value
    scale = abs(previous.value) if previous.value != 0 else 1.0
    if abs(delta) / scale <= tolerance:
        return Trend.STABLE
    return Trend.UP if delta > 0 else Trend.DOWN


def with_trend(current: MetricResult, previous: MetricResult, tolerance: float = 0.01) -> MetricResult:
    """Copy of ``current`` with ``trend`` set against a previous period."""
    if not previous.has_data:
        return current
    return replace(current, trend=trend_between(current.value, previous.value, tolerance))
