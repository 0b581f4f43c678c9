"""Day-level consistency of trading results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.ratio import Ratio
from ..core.stats import clamp, coefficient_of_variation, percentage, safe_mean, safe_std
from ..metrics.equity import DailyPnL

# Blend of the three day-level signals in the consistency score
_CV_WEIGHT = 0.4
_PROFITABLE_WEIGHT = 0.4
_SHARPE_WEIGHT = 0.2


@dataclass
class DailyConsistency:
    days: list[DailyPnL] = field(default_factory=list)
    profitable_days_pct: float = 0.0
    coefficient_of_variation: float | None = None
    daily_sharpe: Ratio = field(default_factory=Ratio.undefined)
    score: float = 0.0

    @property
    def trading_days(self) -> int:
        return len(self.days)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trading_days": self.trading_days,
            "profitable_days_pct": self.profitable_days_pct,
            "coefficient_of_variation": self.coefficient_of_variation,
            "daily_sharpe": self.daily_sharpe.to_json(),
            "score": self.score,
            "days": [d.to_dict() for d in self.days],
        }


def daily_sharpe(pnls: Sequence[float]) -> Ratio:
    """Mean / std of daily P&L (unannualised); UNDEFINED under two days or zero spread."""
    if len(pnls) < 2:
        return Ratio.undefined()
    std = safe_std(pnls)
    if std == 0:
        return Ratio.undefined()
    return Ratio.finite(safe_mean(pnls) / std)


def analyze_consistency(days: list[DailyPnL], cv_penalty: float = 50.0) -> DailyConsistency:
    """Score day-to-day stability in [0, 100].

    The score blends a CV score (``100 - cv * cv_penalty``, a zero mean
    counting as CV 1), the share of profitable days and a Sharpe score
    mapping a daily Sharpe of -2..2 onto 0..100.
    """
    if not days:
        return DailyConsistency()

    pnls = [d.pnl for d in days]
    profitable = percentage(sum(1 for d in days if d.profitable), len(days))
    cv = coefficient_of_variation(pnls)
    cv_score = max(0.0, 100.0 - (cv if cv is not None else 1.0) * cv_penalty)
    sharpe = daily_sharpe(pnls)
    sharpe_score = clamp((sharpe.or_else(0.0) + 2.0) * 25.0)

    score = clamp(
        _CV_WEIGHT * cv_score + _PROFITABLE_WEIGHT * profitable + _SHARPE_WEIGHT * sharpe_score
    )
    return DailyConsistency(
        days=days,
        profitable_days_pct=profitable,
        coefficient_of_variation=cv,
        daily_sharpe=sharpe,
        score=score,
    )
