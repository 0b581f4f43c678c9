"""One-call facade over every analyzer.

Validates the trade collection once, then runs metrics, excursion,
behavioural and execution analysis with a shared P&L resolver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .behavior.analyzer import BehavioralAnalyzer, BehavioralSnapshot
from .core.config import AnalyticsSettings
from .core.models import RejectedTrade, Trade, partition_trades
from .excursion.analyzer import ExcursionAnalyzer, ExcursionRecord, ExcursionStats
from .execution.analyzer import ExecutionAnalyzer, ExecutionReport
from .market.resolver import MarketPnLResolver
from .metrics.calculator import MetricsCalculator, PerformanceMetrics
from .observability.logger import new_run_id

logger = logging.getLogger(__name__)

SECTIONS = ("metrics", "excursions", "behavior", "execution")


@dataclass
class AnalyticsReport:
    run_id: str
    metrics: PerformanceMetrics
    excursions: list[ExcursionRecord]
    excursion_stats: ExcursionStats
    behavior: BehavioralSnapshot
    execution: ExecutionReport
    rejected: list[RejectedTrade] = field(default_factory=list)

    def to_dict(self, sections: Iterable[str] = SECTIONS, include_series: bool = True) -> dict[str, Any]:
        wanted = set(sections)
        out: dict[str, Any] = {
            "run_id": self.run_id,
            "rejected": [
                {"trade_id": getattr(r.trade, "trade_id", None), "reason": r.reason}
                for r in self.rejected
            ],
        }
        if "metrics" in wanted:
            out["metrics"] = self.metrics.to_dict()
        if "excursions" in wanted:
            out["excursions"] = {
                "stats": self.excursion_stats.to_dict(),
                "trades": [r.to_dict(include_series=include_series) for r in self.excursions],
            }
        if "behavior" in wanted:
            out["behavior"] = self.behavior.to_dict()
        if "execution" in wanted:
            out["execution"] = self.execution.to_dict()
        return out


def analyze(trades: Iterable[Trade], settings: AnalyticsSettings | None = None) -> AnalyticsReport:
    """Run every analyzer over ``trades``.

    Malformed trades are excluded and listed in ``report.rejected``; no
    exception escapes for a collection of ``Trade`` objects.
    """
    settings = settings or AnalyticsSettings()
    run_id = new_run_id()
    valid, rejected = partition_trades(trades)

    resolver = MarketPnLResolver(settings.market)
    excursion = ExcursionAnalyzer(settings.excursion, resolver=resolver)
    records = excursion.analyze(valid)

    report = AnalyticsReport(
        run_id=run_id,
        metrics=MetricsCalculator(settings.metrics, resolver=resolver).compute(valid),
        excursions=records,
        excursion_stats=excursion.aggregate(records),
        behavior=BehavioralAnalyzer(settings.behavior, settings.metrics, resolver=resolver).analyze(valid),
        execution=ExecutionAnalyzer(settings.execution, resolver=resolver).analyze(valid),
        rejected=rejected,
    )
    report.metrics.rejected_trades = len(rejected)
    report.behavior.rejected_trades = len(rejected)
    report.execution.rejected_trades = len(rejected)

    logger.info(
        "Analysis complete: %d trades (%d rejected, %d closed), Volt Score %.1f, execution score %.1f",
        len(valid),
        len(rejected),
        report.behavior.closed_trades,
        report.behavior.volt_score.score,
        report.execution.score,
    )
    return report
