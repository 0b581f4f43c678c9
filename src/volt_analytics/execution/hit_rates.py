"""Stop-loss and take-profit hit analysis."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence

from ..core.enums import ExitReason
from ..core.stats import percentage, safe_mean
from ..market.resolver import MarketPnLResolver, ResolvedTrade


@dataclass
class HitRateAnalysis:
    trades_with_stop: int = 0
    stop_hits: int = 0
    trades_with_target: int = 0
    target_hits: int = 0
    avg_target_distance_pct: float | None = None
    avg_hours_to_target: float | None = None
    avg_hours_to_stop: float | None = None
    avg_missed_by_pct: float | None = None
    avg_loss_on_stop: float | None = None
    avg_gain_on_target: float | None = None
    win_rate_without_stops: float | None = None
    missed_profit: float = 0.0

    @property
    def stop_hit_rate(self) -> float | None:
        return percentage(self.stop_hits, self.trades_with_stop) if self.trades_with_stop else None

    @property
    def target_hit_rate(self) -> float | None:
        return percentage(self.target_hits, self.trades_with_target) if self.trades_with_target else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "trades_with_stop": self.trades_with_stop,
            "stop_hits": self.stop_hits,
            "stop_hit_rate": self.stop_hit_rate,
            "trades_with_target": self.trades_with_target,
            "target_hits": self.target_hits,
            "target_hit_rate": self.target_hit_rate,
            "avg_target_distance_pct": self.avg_target_distance_pct,
            "avg_hours_to_target": self.avg_hours_to_target,
            "avg_hours_to_stop": self.avg_hours_to_stop,
            "avg_missed_by_pct": self.avg_missed_by_pct,
            "avg_loss_on_stop": self.avg_loss_on_stop,
            "avg_gain_on_target": self.avg_gain_on_target,
            "win_rate_without_stops": self.win_rate_without_stops,
            "missed_profit": self.missed_profit,
        }


def _near(price: Decimal, level: Decimal, tolerance_pct: float) -> bool:
    return abs(float((price - level) / level)) * 100.0 <= tolerance_pct


def hit_stop(r: ResolvedTrade, tolerance_pct: float) -> bool:
    """Whether the trade exited at its stop (explicit reason wins over tolerance)."""
    t = r.trade
    if t.exit_reason is not None:
        return t.exit_reason == ExitReason.STOP_LOSS
    return t.stop_loss is not None and _near(t.exit_price, t.stop_loss, tolerance_pct)


def hit_target(r: ResolvedTrade, tolerance_pct: float) -> bool:
    t = r.trade
    if t.exit_reason is not None:
        return t.exit_reason == ExitReason.TAKE_PROFIT
    return t.take_profit is not None and _near(t.exit_price, t.take_profit, tolerance_pct)


def analyze_hit_rates(
    resolved: Sequence[ResolvedTrade],
    resolver: MarketPnLResolver,
    tolerance_pct: float = 0.1,
) -> HitRateAnalysis:
    """Hit rates count only trades that set the corresponding level."""
    with_stop = [r for r in resolved if r.trade.stop_loss is not None]
    with_target = [r for r in resolved if r.trade.take_profit is not None]
    stops = [r for r in with_stop if hit_stop(r, tolerance_pct)]
    targets = [r for r in with_target if hit_target(r, tolerance_pct)]
    stop_ids = {r.trade.trade_id for r in stops}
    target_ids = {r.trade.trade_id for r in targets}

    distances: list[float] = []
    missed_pct: list[float] = []
    missed_profit = 0.0
    for r in with_target:
        t = r.trade
        sign = t.direction.sign
        distances.append(abs(float((t.take_profit - t.entry_price) / t.entry_price)) * 100.0)
        if t.trade_id in target_ids:
            continue
        shortfall = (t.take_profit - t.exit_price) * sign
        if shortfall > 0:
            missed_pct.append(float(shortfall / t.entry_price) * 100.0)
            missed_profit += float(shortfall * t.quantity * resolver.contract_multiplier(t))

    rest = [r for r in resolved if r.trade.trade_id not in stop_ids]
    return HitRateAnalysis(
        trades_with_stop=len(with_stop),
        stop_hits=len(stops),
        trades_with_target=len(with_target),
        target_hits=len(targets),
        avg_target_distance_pct=safe_mean(distances) if distances else None,
        avg_hours_to_target=_avg_hours(targets),
        avg_hours_to_stop=_avg_hours(stops),
        avg_missed_by_pct=safe_mean(missed_pct) if missed_pct else None,
        avg_loss_on_stop=safe_mean([r.net for r in stops]) if stops else None,
        avg_gain_on_target=safe_mean([r.net for r in targets]) if targets else None,
        win_rate_without_stops=percentage(sum(1 for r in rest if r.is_win), len(rest)) if rest else None,
        missed_profit=missed_profit,
    )


def _avg_hours(trades: Sequence[ResolvedTrade]) -> float | None:
    hours = [t.trade.hold_minutes / 60.0 for t in trades if t.trade.hold_minutes is not None]
    return safe_mean(hours) if hours else None
