"""Fill slippage against intended prices.

Slippage is signed so that positive always means "worse than intended":
paying more on a long entry, receiving less on a long exit, and the
mirror image for shorts.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from ..core.enums import Direction
from ..core.models import Trade
from ..core.stats import safe_mean
from ..market.resolver import MarketPnLResolver


@dataclass(frozen=True)
class TradeSlippage:
    trade_id: str
    market: str
    entry_pct: float | None
    exit_pct: float | None
    cost: float   # currency, positive is a cost

    @property
    def total_pct(self) -> float:
        return (self.entry_pct or 0.0) + (self.exit_pct or 0.0)


@dataclass
class MarketSlippage:
    trades: int = 0
    avg_entry_pct: float | None = None
    avg_exit_pct: float | None = None
    total_cost: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "trades": self.trades,
            "avg_entry_pct": self.avg_entry_pct,
            "avg_exit_pct": self.avg_exit_pct,
            "total_cost": self.total_cost,
        }


@dataclass
class SlippageSummary:
    trades_measured: int = 0
    avg_entry_pct: float | None = None
    avg_exit_pct: float | None = None
    total_cost: float = 0.0
    best: TradeSlippage | None = None
    worst: TradeSlippage | None = None
    by_market: dict[str, MarketSlippage] = field(default_factory=dict)
    per_trade: list[TradeSlippage] = field(default_factory=list)

    @property
    def avg_pct(self) -> float | None:
        """Mean of the available entry and exit averages."""
        parts = [p for p in (self.avg_entry_pct, self.avg_exit_pct) if p is not None]
        return safe_mean(parts) if parts else None

    def to_dict(self) -> dict[str, Any]:
        def _one(s: TradeSlippage | None) -> dict[str, Any] | None:
            if s is None:
                return None
            return {"trade_id": s.trade_id, "total_pct": s.total_pct, "cost": s.cost}

        return {
            "trades_measured": self.trades_measured,
            "avg_entry_pct": self.avg_entry_pct,
            "avg_exit_pct": self.avg_exit_pct,
            "total_cost": self.total_cost,
            "best": _one(self.best),
            "worst": _one(self.worst),
            "by_market": {k: v.to_dict() for k, v in self.by_market.items()},
        }


def entry_slippage_pct(direction: Direction, intended: Decimal, actual: Decimal) -> float:
    return float((actual - intended) / intended * 100) * direction.sign


def exit_slippage_pct(direction: Direction, intended: Decimal, actual: Decimal) -> float:
    return float((intended - actual) / intended * 100) * direction.sign


def trade_slippage(trade: Trade, resolver: MarketPnLResolver) -> TradeSlippage | None:
    """Slippage for one trade, ``None`` without any intended price to compare."""
    entry_pct = exit_pct = None
    cost = 0.0
    mult = resolver.contract_multiplier(trade)
    if trade.intended_entry is not None:
        entry_pct = entry_slippage_pct(trade.direction, trade.intended_entry, trade.entry_price)
        cost += entry_pct / 100.0 * float(trade.intended_entry * trade.quantity * mult)
    if trade.intended_exit is not None and trade.exit_price is not None:
        exit_pct = exit_slippage_pct(trade.direction, trade.intended_exit, trade.exit_price)
        cost += exit_pct / 100.0 * float(trade.intended_exit * trade.quantity * mult)
    if entry_pct is None and exit_pct is None:
        return None
    market = trade.market.value if trade.market is not None else str(trade.market_type)
    return TradeSlippage(
        trade_id=trade.trade_id, market=market, entry_pct=entry_pct, exit_pct=exit_pct, cost=cost,
    )


def analyze_slippage(trades: Sequence[Trade], resolver: MarketPnLResolver) -> SlippageSummary:
    measured = [s for s in (trade_slippage(t, resolver) for t in trades) if s is not None]
    if not measured:
        return SlippageSummary()

    grouped: dict[str, list[TradeSlippage]] = defaultdict(list)
    for s in measured:
        grouped[s.market].append(s)

    return SlippageSummary(
        trades_measured=len(measured),
        avg_entry_pct=_avg([s.entry_pct for s in measured]),
        avg_exit_pct=_avg([s.exit_pct for s in measured]),
        total_cost=sum(s.cost for s in measured),
        best=min(measured, key=lambda s: s.total_pct),
        worst=max(measured, key=lambda s: s.total_pct),
        by_market={
            market: MarketSlippage(
                trades=len(items),
                avg_entry_pct=_avg([s.entry_pct for s in items]),
                avg_exit_pct=_avg([s.exit_pct for s in items]),
                total_cost=sum(s.cost for s in items),
            )
            for market, items in sorted(grouped.items())
        },
        per_trade=measured,
    )


def _avg(values: list[float | None]) -> float | None:
    present = [v for v in values if v is not None]
    return safe_mean(present) if present else None
