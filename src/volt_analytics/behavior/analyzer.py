"""Behavioural snapshot over a trade history.

Ties together streaks, daily consistency, revenge trading, outlier
dependence and the composite Volt Score.

Usage::

    analyzer = BehavioralAnalyzer(settings.behavior)
    snapshot = analyzer.analyze(trades)
    print(snapshot.volt_score.score, snapshot.volt_score.label)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from ..core.config import BehaviorConfig, MarketConfig, MetricsConfig
from ..core.models import Trade, partition_trades
from ..core.ratio import Ratio
from ..market.resolver import MarketPnLResolver, ResolvedTrade
from ..metrics.calculator import average_loss, average_win, payoff_ratio, profit_factor, win_rate
from ..metrics.equity import aggregate_daily, build_equity_curve
from .consistency import DailyConsistency, analyze_consistency
from .outliers import OutlierAnalysis, analyze_outliers
from .revenge import RevengeAnalysis, RevengeDetector
from .streaks import StreakSummary, analyze_streaks
from .volt_score import VoltScore, compute_volt_score

logger = logging.getLogger(__name__)


@dataclass
class BehavioralSnapshot:
    streaks: StreakSummary = field(default_factory=StreakSummary)
    consistency: DailyConsistency = field(default_factory=DailyConsistency)
    revenge: RevengeAnalysis = field(default_factory=RevengeAnalysis)
    outliers: OutlierAnalysis = field(default_factory=OutlierAnalysis)
    volt_score: VoltScore = field(default_factory=VoltScore)
    stop_compliance: float | None = None
    closed_trades: int = 0
    rejected_trades: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "closed_trades": self.closed_trades,
            "rejected_trades": self.rejected_trades,
            "streaks": self.streaks.to_dict(),
            "consistency": self.consistency.to_dict(),
            "revenge": self.revenge.to_dict(),
            "outliers": self.outliers.to_dict(),
            "stop_compliance": self.stop_compliance,
            "volt_score": self.volt_score.to_dict(),
        }


class BehavioralAnalyzer:
    """Detect sequential and time-based behaviour patterns.

    Parameters
    ----------
    config : BehaviorConfig | None
        Revenge detection, outlier fraction and Volt Score weights.
    metrics : MetricsConfig | None
        Starting balance for the drawdown-based recovery factor.
    market : MarketConfig | None
        Contract conventions for the P&L resolver.
    """

    def __init__(
        self,
        config: BehaviorConfig | None = None,
        metrics: MetricsConfig | None = None,
        market: MarketConfig | None = None,
        *,
        resolver: MarketPnLResolver | None = None,
    ) -> None:
        self._config = config or BehaviorConfig()
        self._metrics = metrics or MetricsConfig()
        self._resolver = resolver or MarketPnLResolver(market)
        self._revenge = RevengeDetector(
            self._config.revenge,
            notional=lambda r: float(self._resolver.notional(r.trade)),
        )

    def analyze(self, trades: Iterable[Trade]) -> BehavioralSnapshot:
        valid, rejected = partition_trades(trades)
        resolved = self._resolver.resolve_closed(valid)
        if not resolved:
            return BehavioralSnapshot(rejected_trades=len(rejected))

        pnls = [r.net for r in resolved]
        days = aggregate_daily((r.trade.trade_date, r.net) for r in resolved)
        consistency = analyze_consistency(days, self._config.consistency_cv_penalty)
        revenge = self._revenge.detect(resolved)

        curve = build_equity_curve(
            ((r.trade.sort_time, r.trade.trade_id, r.net) for r in resolved),
            starting_balance=self._metrics.starting_balance,
        )
        max_dd = curve.max_drawdown_amount
        recovery = Ratio.divide(sum(pnls), max_dd) if max_dd > 0 else Ratio.undefined()
        compliance = self.stop_compliance(resolved)

        volt = compute_volt_score(
            win_rate_pct=win_rate(pnls),
            profit_factor=profit_factor(pnls),
            payoff_ratio=payoff_ratio(average_win(pnls), average_loss(pnls)),
            consistency=consistency.score,
            recovery_factor=recovery,
            revenge_score=revenge.score,
            stop_compliance=compliance,
            weights=self._config.weights,
        )
        logger.debug("Volt Score %.1f (%s) over %d trades", volt.score, volt.label.value, len(resolved))

        return BehavioralSnapshot(
            streaks=analyze_streaks(resolved),
            consistency=consistency,
            revenge=revenge,
            outliers=analyze_outliers(resolved, self._config.outlier_fraction),
            volt_score=volt,
            stop_compliance=compliance,
            closed_trades=len(resolved),
            rejected_trades=len(rejected),
        )

    def stop_compliance(self, resolved: Sequence[ResolvedTrade]) -> float | None:
        """% of losing trades with a stop whose loss stayed within planned risk.

        ``None`` when no trade carries a stop loss.  Planned risk is the stop
        distance times size, plus ``stop_tolerance_pct`` for slippage.
        """
        with_stop = [r for r in resolved if r.trade.stop_loss is not None]
        if not with_stop:
            return None
        losers = [r for r in with_stop if r.is_loss]
        if not losers:
            return 100.0

        tolerance = 1 + self._config.stop_tolerance_pct / 100.0
        compliant = 0
        for r in losers:
            t = r.trade
            planned = float(abs(t.entry_price - t.stop_loss) * t.quantity * self._resolver.contract_multiplier(t))
            if abs(r.net) <= planned * tolerance:
                compliant += 1
        return compliant / len(losers) * 100.0
