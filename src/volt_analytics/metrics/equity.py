"""Equity curve and drawdown statistics.

The curve starts at a fixed balance and adds each closed trade's net P&L
in chronological order.  Drawdown at a point is measured against the
running peak, which starts at the starting balance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from ..core.stats import rms, safe_mean


@dataclass(frozen=True)
class EquityPoint:
    timestamp: datetime | None
    trade_id: str
    pnl: float
    balance: float
    peak: float
    drawdown_pct: float
    drawdown_amount: float

    @property
    def in_drawdown(self) -> bool:
        return self.drawdown_amount > 0


@dataclass
class EquityCurve:
    starting_balance: float
    points: list[EquityPoint] = field(default_factory=list)

    @property
    def final_balance(self) -> float:
        return self.points[-1].balance if self.points else self.starting_balance

    @property
    def max_drawdown_pct(self) -> float:
        return max((p.drawdown_pct for p in self.points), default=0.0)

    @property
    def max_drawdown_amount(self) -> float:
        return max((p.drawdown_amount for p in self.points), default=0.0)

    @property
    def avg_drawdown_pct(self) -> float:
        """Mean of the non-zero point drawdowns."""
        return safe_mean([p.drawdown_pct for p in self.points if p.drawdown_pct > 0])

    @property
    def ulcer_index(self) -> float:
        """Root-mean-square of drawdown percentages over every point."""
        return rms([p.drawdown_pct for p in self.points])

    def to_dict(self) -> dict:
        return {
            "starting_balance": self.starting_balance,
            "final_balance": self.final_balance,
            "max_drawdown_pct": self.max_drawdown_pct,
            "max_drawdown_amount": self.max_drawdown_amount,
            "points": [
                {
                    "timestamp": p.timestamp.isoformat() if p.timestamp else None,
                    "trade_id": p.trade_id,
                    "pnl": p.pnl,
                    "balance": p.balance,
                    "peak": p.peak,
                    "drawdown_pct": p.drawdown_pct,
                    "in_drawdown": p.in_drawdown,
                }
                for p in self.points
            ],
        }


def build_equity_curve(
    entries: Iterable[tuple[datetime | None, str, float]],
    starting_balance: float = 10_000.0,
) -> EquityCurve:
    """Build an equity curve from ``(timestamp, trade_id, net_pnl)`` in order.

    Callers pass entries already sorted chronologically.
    """
    curve = EquityCurve(starting_balance=starting_balance)
    balance = starting_balance
    peak = starting_balance
    for ts, trade_id, pnl in entries:
        balance += pnl
        peak = max(peak, balance)
        dd_amount = peak - balance
        dd_pct = dd_amount / peak * 100.0 if peak > 0 else 0.0
        curve.points.append(
            EquityPoint(
                timestamp=ts,
                trade_id=trade_id,
                pnl=pnl,
                balance=balance,
                peak=peak,
                drawdown_pct=dd_pct,
                drawdown_amount=dd_amount,
            )
        )
    return curve


def curve_from_balances(balances: list[float]) -> EquityCurve:
    """Equity curve from a raw balance series; the first value is the start."""
    if not balances:
        return EquityCurve(starting_balance=0.0)
    start = balances[0]
    deltas = [
        (None, str(i), b - a) for i, (a, b) in enumerate(zip(balances, balances[1:]), start=1)
    ]
    return build_equity_curve(deltas, starting_balance=start)


# ---------------------------------------------------------------------- #
# Daily aggregation                                                      #
# ---------------------------------------------------------------------- #

@dataclass
class DailyPnL:
    day: date
    pnl: float = 0.0
    trades: int = 0
    wins: int = 0
    losses: int = 0

    @property
    def profitable(self) -> bool:
        return self.pnl > 0

    def to_dict(self) -> dict:
        return {
            "day": self.day.isoformat(),
            "pnl": self.pnl,
            "trades": self.trades,
            "wins": self.wins,
            "losses": self.losses,
        }


def aggregate_daily(entries: Iterable[tuple[date, float]]) -> list[DailyPnL]:
    """Sum ``(day, net_pnl)`` pairs per calendar day, oldest day first."""
    days: dict[date, DailyPnL] = {}
    for day, pnl in entries:
        bucket = days.get(day)
        if bucket is None:
            bucket = days[day] = DailyPnL(day=day)
        bucket.pnl += pnl
        bucket.trades += 1
        if pnl > 0:
            bucket.wins += 1
        elif pnl < 0:
            bucket.losses += 1
    return [days[d] for d in sorted(days)]


def daily_returns(days: list[DailyPnL], starting_balance: float) -> list[float]:
    """Each day's P&L as a fraction of the equity at the start of that day.

    Days that start with non-positive equity are skipped.
    """
    returns: list[float] = []
    equity = starting_balance
    for d in days:
        if equity > 0:
            returns.append(d.pnl / equity)
        equity += d.pnl
    return returns
