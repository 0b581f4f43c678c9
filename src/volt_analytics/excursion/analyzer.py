"""Maximum adverse / favourable excursion analysis.

For each trade the analyzer walks the intratrade price path (provided by
the caller, or reconstructed from entry, partial exits and exit) once,
keeping running extremes, and derives MAE, MFE, edge ratio, exit
efficiency and updraw.  All percentages are moves relative to the entry
price, signed so that positive is favourable to the position.

Usage::

    analyzer = ExcursionAnalyzer(settings.excursion)
    records = analyzer.analyze(trades)
    stats = analyzer.aggregate(records)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Sequence

from ..core.config import ExcursionConfig, MarketConfig
from ..core.models import PricePoint, Trade, partition_trades
from ..core.ratio import Ratio, mean_of_finite
from ..core.stats import clamp, safe_mean
from ..market.resolver import MarketPnLResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesPoint:
    """One sample of a trade's running P&L."""

    timestamp: datetime | None
    price: float
    pnl_pct: float
    pnl_amount: float
    mae_pct: float   # worst adverse move up to and including this sample
    mfe_pct: float   # best favourable move up to and including this sample

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "price": self.price,
            "pnl_pct": self.pnl_pct,
            "pnl_amount": self.pnl_amount,
            "mae_pct": self.mae_pct,
            "mfe_pct": self.mfe_pct,
        }


@dataclass
class ExcursionRecord:
    trade_id: str
    symbol: str
    mae_pct: float
    mfe_pct: float
    edge_ratio: Ratio
    exit_efficiency: float | None
    updraw_pct: float | None
    realized_pct: float | None
    mae_price: float
    mfe_price: float
    series: list[SeriesPoint] = field(default_factory=list)
    path_reconstructed: bool = False

    @property
    def is_closed(self) -> bool:
        return self.realized_pct is not None

    def to_dict(self, include_series: bool = True) -> dict[str, Any]:
        out: dict[str, Any] = {
            "trade_id": self.trade_id,
            "symbol": self.symbol,
            "mae_pct": self.mae_pct,
            "mfe_pct": self.mfe_pct,
            "edge_ratio": self.edge_ratio.to_json(),
            "exit_efficiency": self.exit_efficiency,
            "updraw_pct": self.updraw_pct,
            "realized_pct": self.realized_pct,
            "mae_price": self.mae_price,
            "mfe_price": self.mfe_price,
            "path_reconstructed": self.path_reconstructed,
        }
        if include_series:
            out["series"] = [p.to_dict() for p in self.series]
        return out


@dataclass(frozen=True)
class DistributionBucket:
    label: str
    lower: float
    upper: float | None   # None for the open-ended last bucket
    count: int
    pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "lower": self.lower,
            "upper": self.upper,
            "count": self.count,
            "pct": self.pct,
        }


@dataclass
class ExcursionStats:
    count: int
    avg_mae: float
    avg_mfe: float
    avg_edge_ratio: Ratio
    avg_efficiency: Ratio
    avg_updraw: Ratio
    mae_distribution: list[DistributionBucket]
    mfe_distribution: list[DistributionBucket]

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "avg_mae": self.avg_mae,
            "avg_mfe": self.avg_mfe,
            "avg_edge_ratio": self.avg_edge_ratio.to_json(),
            "avg_efficiency": self.avg_efficiency.to_json(),
            "avg_updraw": self.avg_updraw.to_json(),
            "mae_distribution": [b.to_dict() for b in self.mae_distribution],
            "mfe_distribution": [b.to_dict() for b in self.mfe_distribution],
        }


class ExcursionAnalyzer:
    """Per-trade excursion records and their aggregate distribution.

    Parameters
    ----------
    config : ExcursionConfig | None
        Distribution bucket edges.
    market : MarketConfig | None
        Contract conventions, used for the currency P&L of each sample.
    """

    def __init__(
        self,
        config: ExcursionConfig | None = None,
        market: MarketConfig | None = None,
        *,
        resolver: MarketPnLResolver | None = None,
    ) -> None:
        self._config = config or ExcursionConfig()
        self._resolver = resolver or MarketPnLResolver(market)

    # ------------------------------------------------------------------ #
    # Per trade                                                          #
    # ------------------------------------------------------------------ #

    def analyze(self, trades: Iterable[Trade]) -> list[ExcursionRecord]:
        """Excursion records for every valid trade; malformed ones are excluded."""
        valid, _ = partition_trades(trades)
        return [self.analyze_trade(t) for t in valid]

    def analyze_trade(self, trade: Trade) -> ExcursionRecord:
        path, reconstructed = price_path(trade)
        entry = float(trade.entry_price)
        sign = trade.direction.sign
        unit_value = float(trade.quantity * self._resolver.contract_multiplier(trade))

        series: list[SeriesPoint] = []
        worst = best = 0.0
        worst_price = best_price = entry
        for point in path:
            price = float(point.price)
            move = (price - entry) / entry * 100.0 * sign
            if move < worst:
                worst, worst_price = move, price
            if move > best:
                best, best_price = move, price
            series.append(
                SeriesPoint(
                    timestamp=point.timestamp,
                    price=price,
                    pnl_pct=move,
                    pnl_amount=(price - entry) * sign * unit_value,
                    mae_pct=-worst,
                    mfe_pct=best,
                )
            )

        mae, mfe = -worst, best
        realized = None
        if trade.exit_price is not None:
            realized = (float(trade.exit_price) - entry) / entry * 100.0 * sign

        return ExcursionRecord(
            trade_id=trade.trade_id,
            symbol=trade.symbol,
            mae_pct=mae,
            mfe_pct=mfe,
            edge_ratio=edge_ratio(mae, mfe),
            exit_efficiency=exit_efficiency(realized, mfe),
            updraw_pct=self._updraw(trade, mfe),
            realized_pct=realized,
            mae_price=worst_price,
            mfe_price=best_price,
            series=series,
            path_reconstructed=reconstructed,
        )

    @staticmethod
    def _updraw(trade: Trade, mfe_pct: float) -> float | None:
        """Progress toward the take-profit target as % of the full distance."""
        if trade.take_profit is None:
            return None
        entry = trade.entry_price
        target_pct = float((trade.take_profit - entry) / entry * 100) * trade.direction.sign
        if target_pct <= 0:
            logger.debug("Take profit on the wrong side of entry for trade %s", trade.trade_id)
            return None
        return min(100.0, mfe_pct / target_pct * 100.0)

    # ------------------------------------------------------------------ #
    # Aggregate                                                          #
    # ------------------------------------------------------------------ #

    def aggregate(self, records: Sequence[ExcursionRecord]) -> ExcursionStats:
        maes = [r.mae_pct for r in records]
        mfes = [r.mfe_pct for r in records]
        efficiencies = [r.exit_efficiency for r in records if r.exit_efficiency is not None]
        updraws = [r.updraw_pct for r in records if r.updraw_pct is not None]
        return ExcursionStats(
            count=len(records),
            avg_mae=safe_mean(maes),
            avg_mfe=safe_mean(mfes),
            avg_edge_ratio=mean_of_finite(r.edge_ratio for r in records),
            avg_efficiency=Ratio.finite(safe_mean(efficiencies)) if efficiencies else Ratio.undefined(),
            avg_updraw=Ratio.finite(safe_mean(updraws)) if updraws else Ratio.undefined(),
            mae_distribution=distribution(maes, self._config.bucket_edges),
            mfe_distribution=distribution(mfes, self._config.bucket_edges),
        )


# ---------------------------------------------------------------------- #
# Formulas                                                               #
# ---------------------------------------------------------------------- #

def edge_ratio(mae_pct: float, mfe_pct: float) -> Ratio:
    """MFE / MAE; UNDEFINED when either excursion is zero."""
    if mae_pct <= 0 or mfe_pct <= 0:
        return Ratio.undefined()
    return Ratio.finite(mfe_pct / mae_pct)


def exit_efficiency(realized_pct: float | None, mfe_pct: float) -> float | None:
    """Realized move as % of MFE, clamped to [0, 100].

    ``None`` for open trades or when there was no favourable excursion.
    """
    if realized_pct is None or mfe_pct <= 0:
        return None
    if realized_pct <= 0:
        return 0.0
    return clamp(realized_pct / mfe_pct * 100.0)


def price_path(trade: Trade) -> tuple[list[PricePoint], bool]:
    """Ordered price samples from entry to exit, and whether they were reconstructed.

    The entry price is always the first sample and the exit price (for
    closed trades) the last.  Caller-provided samples outside the holding
    period are dropped.  Without a provided path the samples are the
    entry, each timestamped partial exit and the exit.
    """
    start = PricePoint(timestamp=trade.entry_time, price=trade.entry_price)
    inner: list[PricePoint]
    reconstructed = not trade.price_path
    if trade.price_path:
        inner = [
            p for p in trade.price_path
            if p.timestamp >= trade.entry_time
            and (trade.exit_time is None or p.timestamp <= trade.exit_time)
        ]
    else:
        inner = [
            PricePoint(timestamp=p.timestamp, price=p.price)
            for p in trade.partial_exits
            if p.timestamp is not None
        ]
    inner.sort(key=lambda p: p.timestamp)

    path = [start, *inner]
    if trade.exit_price is not None:
        path.append(PricePoint(timestamp=trade.exit_time, price=trade.exit_price))
    return path, reconstructed


def excursions_from_series(series: Sequence[SeriesPoint]) -> tuple[float, float]:
    """Recompute ``(mae_pct, mfe_pct)`` from a running P&L series."""
    moves = [p.pnl_pct for p in series]
    return max(0.0, -min(moves, default=0.0)), max(0.0, max(moves, default=0.0))


def distribution(values: Sequence[float], edges: Sequence[float]) -> list[DistributionBucket]:
    """Histogram of ``values`` over ``[0, e1), [e1, e2), ..., [en, inf)``."""
    bounds = [0.0, *edges]
    counts = [0] * len(bounds)
    for v in values:
        idx = 0
        while idx + 1 < len(bounds) and v >= bounds[idx + 1]:
            idx += 1
        counts[idx] += 1

    total = len(values)
    buckets: list[DistributionBucket] = []
    for i, lower in enumerate(bounds):
        upper = bounds[i + 1] if i + 1 < len(bounds) else None
        label = f"{lower:g}-{upper:g}%" if upper is not None else f">{lower:g}%"
        buckets.append(
            DistributionBucket(
                label=label,
                lower=lower,
                upper=upper,
                count=counts[i],
                pct=counts[i] / total * 100.0 if total else 0.0,
            )
        )
    return buckets


def suggest_bar_interval(trade: Trade) -> str | None:
    """Price-bar interval suited to fetching a path for ``trade``.

    ``None`` while the trade has no exit timestamp.
    """
    minutes = trade.hold_minutes
    if minutes is None:
        return None
    if minutes < 60:
        return "1m"
    if minutes < 240:
        return "5m"
    if minutes < 1440:
        return "15m"
    return "1h"
