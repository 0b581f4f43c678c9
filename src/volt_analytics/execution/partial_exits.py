"""Scale-out (partial exit) effectiveness."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from ..core.models import Trade
from ..core.stats import clamp, percentage, safe_mean
from ..excursion.analyzer import price_path

# Share of trades using partial exits that earns full marks in the score
_FULL_SHARE_PCT = 20.0


@dataclass(frozen=True)
class PartialExitTrade:
    trade_id: str
    partials: int
    weighted_exit: float
    optimal_exit: float
    efficiency: float | None


@dataclass
class PartialExitAnalysis:
    closed_trades: int = 0
    trades_with_partials: int = 0
    total_partials: int = 0
    successful_partials: int = 0
    per_trade: list[PartialExitTrade] = field(default_factory=list)

    @property
    def share_pct(self) -> float:
        return percentage(self.trades_with_partials, self.closed_trades)

    @property
    def success_rate(self) -> float | None:
        return percentage(self.successful_partials, self.total_partials) if self.total_partials else None

    @property
    def avg_efficiency(self) -> float | None:
        values = [p.efficiency for p in self.per_trade if p.efficiency is not None]
        return safe_mean(values) if values else None

    @property
    def management_score(self) -> float | None:
        """0.5 efficiency + 0.3 success rate + 0.2 adoption, on 0-100."""
        if not self.trades_with_partials:
            return None
        adoption = min(100.0, self.share_pct / _FULL_SHARE_PCT * 100.0)
        return clamp(
            0.5 * (self.avg_efficiency or 0.0)
            + 0.3 * (self.success_rate or 0.0)
            + 0.2 * adoption
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "trades_with_partials": self.trades_with_partials,
            "total_partials": self.total_partials,
            "share_pct": self.share_pct,
            "success_rate": self.success_rate,
            "avg_efficiency": self.avg_efficiency,
            "management_score": self.management_score,
            "per_trade": [
                {
                    "trade_id": p.trade_id,
                    "partials": p.partials,
                    "weighted_exit": p.weighted_exit,
                    "optimal_exit": p.optimal_exit,
                    "efficiency": p.efficiency,
                }
                for p in self.per_trade
            ],
        }


def weighted_exit_price(trade: Trade) -> Decimal:
    """Quantity-weighted average of partial exit prices and the final exit."""
    scaled = sum((p.quantity for p in trade.partial_exits), Decimal("0"))
    remaining = trade.quantity - scaled
    value = sum((p.price * p.quantity for p in trade.partial_exits), Decimal("0"))
    value += trade.exit_price * remaining
    return value / trade.quantity


def analyze_partial_exits(closed: Sequence[Trade]) -> PartialExitAnalysis:
    """Compare each scaled-out trade's average exit with the best price seen."""
    analysis = PartialExitAnalysis(closed_trades=len(closed))
    for trade in closed:
        if not trade.partial_exits or trade.exit_price is None:
            continue
        sign = trade.direction.sign
        entry = trade.entry_price
        analysis.trades_with_partials += 1
        analysis.total_partials += len(trade.partial_exits)
        analysis.successful_partials += sum(
            1 for p in trade.partial_exits if (p.price - entry) * sign > 0
        )

        path, _ = price_path(trade)
        candidates = [p.price for p in path] + [p.price for p in trade.partial_exits]
        optimal = max(candidates, key=lambda price: (price - entry) * sign)
        weighted = weighted_exit_price(trade)
        best_move = (optimal - entry) * sign
        efficiency = None
        if best_move > 0:
            efficiency = clamp(float((weighted - entry) * sign / best_move) * 100.0)
        analysis.per_trade.append(
            PartialExitTrade(
                trade_id=trade.trade_id,
                partials=len(trade.partial_exits),
                weighted_exit=float(weighted),
                optimal_exit=float(optimal),
                efficiency=efficiency,
            )
        )
    return analysis
