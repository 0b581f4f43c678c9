"""Order-execution quality.

Rolls slippage, stop/target hit rates, scale-out management and
commission drag into one 0-100 execution score.  Components without
data (e.g. no intended prices recorded) drop out and the remaining
weights are renormalised.

Usage::

    analyzer = ExecutionAnalyzer(settings.execution)
    report = analyzer.analyze(trades)
    print(report.score, report.label)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..behavior.volt_score import score_label
from ..core.config import ExecutionConfig, MarketConfig
from ..core.enums import ScoreLabel
from ..core.models import Trade, closed_trades, partition_trades
from ..core.stats import clamp
from ..market.resolver import MarketPnLResolver
from .commission import CommissionAnalysis, analyze_commission
from .hit_rates import HitRateAnalysis, analyze_hit_rates
from .partial_exits import PartialExitAnalysis, analyze_partial_exits
from .slippage import SlippageSummary, analyze_slippage

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    slippage: SlippageSummary = field(default_factory=SlippageSummary)
    hit_rates: HitRateAnalysis = field(default_factory=HitRateAnalysis)
    partial_exits: PartialExitAnalysis = field(default_factory=PartialExitAnalysis)
    commission: CommissionAnalysis = field(default_factory=CommissionAnalysis)
    components: dict[str, float] = field(default_factory=dict)
    score: float = 0.0
    label: ScoreLabel = ScoreLabel.NEEDS_IMPROVEMENT
    insights: list[str] = field(default_factory=list)
    rejected_trades: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label.value,
            "components": self.components,
            "slippage": self.slippage.to_dict(),
            "hit_rates": self.hit_rates.to_dict(),
            "partial_exits": self.partial_exits.to_dict(),
            "commission": self.commission.to_dict(),
            "insights": self.insights,
            "rejected_trades": self.rejected_trades,
        }


class ExecutionAnalyzer:
    """Measure execution quality over a trade set.

    Parameters
    ----------
    config : ExecutionConfig | None
        Hit tolerance, ideal stop-hit rate and component weights.
    market : MarketConfig | None
        Contract conventions for currency slippage and notional.
    """

    def __init__(
        self,
        config: ExecutionConfig | None = None,
        market: MarketConfig | None = None,
        *,
        resolver: MarketPnLResolver | None = None,
    ) -> None:
        self._config = config or ExecutionConfig()
        self._resolver = resolver or MarketPnLResolver(market)

    def analyze(self, trades: Iterable[Trade]) -> ExecutionReport:
        valid, rejected = partition_trades(trades)
        closed = closed_trades(valid)
        resolved = self._resolver.resolve_closed(closed)

        report = ExecutionReport(
            slippage=analyze_slippage(valid, self._resolver),
            hit_rates=analyze_hit_rates(resolved, self._resolver, self._config.hit_tolerance_pct),
            partial_exits=analyze_partial_exits(closed),
            commission=analyze_commission(resolved, self._resolver),
            rejected_trades=len(rejected),
        )
        report.components = self.component_scores(report)
        report.score = self.composite(report.components)
        report.label = score_label(report.score)
        report.insights = execution_insights(report)
        return report

    def component_scores(self, report: ExecutionReport) -> dict[str, float]:
        """0-100 score per component that has data."""
        cfg = self._config
        scores: dict[str, float] = {}

        avg_slip = report.slippage.avg_pct
        if avg_slip is not None:
            scores["slippage"] = clamp(100.0 - max(0.0, avg_slip) * cfg.slippage_penalty)

        stop_rate = report.hit_rates.stop_hit_rate
        if stop_rate is not None:
            scores["stop_loss"] = 50.0 if stop_rate == 0 else clamp(
                100.0 - abs(stop_rate - cfg.ideal_stop_hit_rate) * 2.0
            )

        target_rate = report.hit_rates.target_hit_rate
        if target_rate is not None:
            scores["take_profit"] = clamp(target_rate * 1.5)

        management = report.partial_exits.management_score
        if management is not None:
            scores["partial_exits"] = management

        pct = report.commission.pct_of_pnl
        if report.commission.trades and not pct.is_undefined:
            scores["commission"] = 0.0 if pct.is_infinite else clamp(100.0 - pct.value)
        return scores

    def composite(self, components: dict[str, float]) -> float:
        weights = self._config.weights.model_dump()
        used = {k: weights[k] for k in components if weights.get(k, 0) > 0}
        total = sum(used.values())
        if total == 0:
            logger.debug("No execution data to score")
            return 0.0
        return clamp(sum(components[k] * w for k, w in used.items()) / total)


def execution_insights(report: ExecutionReport) -> list[str]:
    out: list[str] = []
    slip = report.slippage.avg_pct
    if slip is not None and slip > 0.5:
        out.append(
            f"Average slippage of {slip:.2f}% is high. Consider limit orders or trading more liquid hours."
        )
    stop_rate = report.hit_rates.stop_hit_rate
    if stop_rate is not None and stop_rate > 50:
        out.append(f"{stop_rate:.0f}% of trades hit their stop loss. Stops may be too tight.")
    target_rate = report.hit_rates.target_hit_rate
    if target_rate is not None and target_rate < 30:
        out.append(f"Only {target_rate:.0f}% of targets are reached. Targets may be too ambitious.")
    if report.hit_rates.missed_profit > 0:
        out.append(f"Exiting before target left {report.hit_rates.missed_profit:,.2f} on the table.")
    pct = report.commission.pct_of_pnl
    if pct.is_infinite or (pct.is_finite and pct.value > 20):
        out.append("Commission consumes more than 20% of gross P&L. Review broker costs or trade frequency.")
    return out
