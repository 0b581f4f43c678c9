from .calculator import (
    LongShortComparison,
    MetricsCalculator,
    PerformanceMetrics,
    RiskOfRuinDetail,
    compute_metrics,
)
from .equity import DailyPnL, EquityCurve, EquityPoint, build_equity_curve
from .insights import MetricInsight
from .results import MetricResult, derive_status, with_trend

__all__ = [
    "DailyPnL",
    "EquityCurve",
    "EquityPoint",
    "LongShortComparison",
    "MetricInsight",
    "MetricResult",
    "MetricsCalculator",
    "PerformanceMetrics",
    "RiskOfRuinDetail",
    "build_equity_curve",
    "compute_metrics",
    "derive_status",
    "with_trend",
]
