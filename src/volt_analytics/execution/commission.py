"""Commission drag on results."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..core.ratio import Ratio
from ..market.resolver import MarketPnLResolver, ResolvedTrade


@dataclass
class MarketCommission:
    trades: int = 0
    total_commission: float = 0.0
    total_notional: float = 0.0

    @property
    def break_even_move_pct(self) -> float:
        """Favourable move needed just to cover commission."""
        return self.total_commission / self.total_notional * 100.0 if self.total_notional else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "trades": self.trades,
            "total_commission": self.total_commission,
            "total_notional": self.total_notional,
            "break_even_move_pct": self.break_even_move_pct,
        }


@dataclass
class CommissionAnalysis:
    trades: int = 0
    total_commission: float = 0.0
    total_gross_pnl: float = 0.0
    total_notional: float = 0.0
    pct_of_pnl: Ratio = field(default_factory=Ratio.undefined)
    by_market: dict[str, MarketCommission] = field(default_factory=dict)

    @property
    def avg_commission(self) -> float:
        return self.total_commission / self.trades if self.trades else 0.0

    @property
    def pct_of_volume(self) -> float:
        return self.total_commission / self.total_notional * 100.0 if self.total_notional else 0.0

    @property
    def break_even_move_pct(self) -> float:
        return self.pct_of_volume

    def to_dict(self) -> dict[str, Any]:
        return {
            "trades": self.trades,
            "total_commission": self.total_commission,
            "avg_commission": self.avg_commission,
            "total_gross_pnl": self.total_gross_pnl,
            "pct_of_pnl": self.pct_of_pnl.to_json(),
            "pct_of_volume": self.pct_of_volume,
            "break_even_move_pct": self.break_even_move_pct,
            "by_market": {k: v.to_dict() for k, v in self.by_market.items()},
        }


def analyze_commission(resolved: Sequence[ResolvedTrade], resolver: MarketPnLResolver) -> CommissionAnalysis:
    """Commission as a share of gross P&L and of traded notional.

    ``pct_of_pnl`` divides by the absolute gross P&L, so it is INFINITE
    when commission was paid on a flat book.
    """
    if not resolved:
        return CommissionAnalysis()

    by_market: dict[str, MarketCommission] = defaultdict(MarketCommission)
    total_comm = gross = notional = 0.0
    for r in resolved:
        t = r.trade
        comm = float(r.commission)
        size = float(resolver.notional(t))
        total_comm += comm
        gross += float(r.gross_pnl)
        notional += size
        bucket = by_market[t.market.value if t.market is not None else str(t.market_type)]
        bucket.trades += 1
        bucket.total_commission += comm
        bucket.total_notional += size

    pct = Ratio.divide(total_comm * 100.0, abs(gross))
    return CommissionAnalysis(
        trades=len(resolved),
        total_commission=total_comm,
        total_gross_pnl=gross,
        total_notional=notional,
        pct_of_pnl=pct,
        by_market=dict(sorted(by_market.items())),
    )
