"""Rule-based commentary on computed metrics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .calculator import PerformanceMetrics


@dataclass(frozen=True)
class MetricInsight:
    kind: str       # "positive", "warning", "danger" or "info"
    metric: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "metric": self.metric, "message": self.message}


def generate_insights(metrics: PerformanceMetrics, *, min_sample_size: int = 30) -> list[MetricInsight]:
    """Plain-language observations for the notable metrics in ``metrics``."""
    out: list[MetricInsight] = []
    closed = int(metrics.closed_trades.value.value)
    if closed == 0:
        return out

    wr = metrics.win_rate.value.value
    if wr < 40:
        out.append(MetricInsight(
            "warning", "win_rate",
            f"Win rate of {wr:.1f}% is low. Review entry criteria or make sure winners outsize losers.",
        ))
    elif wr > 70:
        out.append(MetricInsight(
            "positive", "win_rate", f"Win rate of {wr:.1f}% is excellent.",
        ))

    pf = metrics.profit_factor.value
    if pf.is_finite and pf.value < 1:
        out.append(MetricInsight(
            "danger", "profit_factor",
            f"Profit factor of {pf.value:.2f} means losses exceed profits.",
        ))
    elif pf.is_infinite or (pf.is_finite and pf.value > 2):
        out.append(MetricInsight(
            "positive", "profit_factor", f"Profit factor of {pf} shows a strong edge.",
        ))

    payoff = metrics.payoff_ratio.value
    if payoff.is_finite and 0 < payoff.value < 1:
        out.append(MetricInsight(
            "warning", "payoff_ratio",
            f"Average win is only {payoff.value:.2f}x the average loss. Let winners run or cut losers sooner.",
        ))

    dd = metrics.max_drawdown.value.value
    if dd > 20:
        out.append(MetricInsight(
            "danger", "max_drawdown",
            f"Maximum drawdown of {dd:.1f}% is high. Consider reducing position size.",
        ))

    sharpe = metrics.sharpe_ratio.value
    if sharpe.is_finite and sharpe.value < 0:
        out.append(MetricInsight(
            "danger", "sharpe_ratio", "Negative Sharpe ratio: returns trail the risk-free rate.",
        ))
    elif sharpe.is_finite and sharpe.value > 1.5:
        out.append(MetricInsight(
            "positive", "sharpe_ratio", f"Sharpe ratio of {sharpe.value:.2f} indicates strong risk-adjusted returns.",
        ))

    if closed < min_sample_size:
        out.append(MetricInsight(
            "info", "closed_trades",
            f"Only {closed} closed trades. At least {min_sample_size} are needed for reliable statistics.",
        ))
    return out
