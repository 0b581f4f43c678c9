"""Dependence of total P&L on a handful of extreme trades."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.ratio import Ratio
from ..market.resolver import ResolvedTrade


@dataclass
class OutlierAnalysis:
    largest_win: float = 0.0
    largest_win_trade_id: str | None = None
    largest_loss: float = 0.0
    largest_loss_trade_id: str | None = None
    total_pnl: float = 0.0
    pnl_without_outliers: float = 0.0
    trimmed_each_side: int = 0
    outlier_ratio: Ratio = field(default_factory=Ratio.undefined)

    def to_dict(self) -> dict[str, Any]:
        return {
            "largest_win": self.largest_win,
            "largest_win_trade_id": self.largest_win_trade_id,
            "largest_loss": self.largest_loss,
            "largest_loss_trade_id": self.largest_loss_trade_id,
            "total_pnl": self.total_pnl,
            "pnl_without_outliers": self.pnl_without_outliers,
            "trimmed_each_side": self.trimmed_each_side,
            "outlier_ratio": self.outlier_ratio.to_json(),
        }


def analyze_outliers(resolved: Sequence[ResolvedTrade], fraction: float = 0.10) -> OutlierAnalysis:
    """Compare total P&L with and without the top and bottom ``fraction`` of trades.

    Every resolved trade is ranked, break-even ones included.  ``outlier_ratio``
    is ``|total - trimmed total| / |total|``.
    """
    ranked = sorted(resolved, key=lambda r: r.net_pnl)
    total = sum(r.net for r in resolved)
    if not ranked:
        return OutlierAnalysis(total_pnl=total, pnl_without_outliers=total)

    k = math.floor(len(ranked) * fraction)
    kept = ranked[k:len(ranked) - k]
    without = sum(r.net for r in kept)

    best, worst = ranked[-1], ranked[0]
    return OutlierAnalysis(
        largest_win=best.net if best.is_win else 0.0,
        largest_win_trade_id=best.trade.trade_id if best.is_win else None,
        largest_loss=worst.net if worst.is_loss else 0.0,
        largest_loss_trade_id=worst.trade.trade_id if worst.is_loss else None,
        total_pnl=total,
        pnl_without_outliers=without,
        trimmed_each_side=k,
        outlier_ratio=Ratio.divide(abs(total - without), abs(total)),
    )
