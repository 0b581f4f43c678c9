from .analyzer import (
    DistributionBucket,
    ExcursionAnalyzer,
    ExcursionRecord,
    ExcursionStats,
    SeriesPoint,
    edge_ratio,
    excursions_from_series,
    exit_efficiency,
    suggest_bar_interval,
)

__all__ = [
    "DistributionBucket",
    "ExcursionAnalyzer",
    "ExcursionRecord",
    "ExcursionStats",
    "SeriesPoint",
    "edge_ratio",
    "excursions_from_series",
    "exit_efficiency",
    "suggest_bar_interval",
]
