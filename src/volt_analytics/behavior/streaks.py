"""Win/loss streak detection.

A streak is a maximal run of consecutive trades with the same outcome,
where a break-even trade (net P&L >= 0) counts as a win.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from ..core.enums import StreakType
from ..core.stats import safe_mean
from ..market.resolver import ResolvedTrade


@dataclass
class StreakRun:
    type: StreakType
    length: int = 0
    pnl: float = 0.0
    started_at: datetime | None = None
    ended_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "length": self.length,
            "pnl": self.pnl,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }


@dataclass
class StreakSummary:
    current_type: StreakType = StreakType.NONE
    current_count: int = 0
    current_pnl: float = 0.0
    current_started_at: datetime | None = None
    longest_win: int = 0
    longest_loss: int = 0
    avg_win_streak: float = 0.0
    avg_loss_streak: float = 0.0
    runs: list[StreakRun] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": {
                "type": self.current_type.value,
                "count": self.current_count,
                "pnl": self.current_pnl,
                "started_at": self.current_started_at.isoformat() if self.current_started_at else None,
            },
            "longest_win": self.longest_win,
            "longest_loss": self.longest_loss,
            "avg_win_streak": self.avg_win_streak,
            "avg_loss_streak": self.avg_loss_streak,
            "runs": [r.to_dict() for r in self.runs],
        }


def streak_runs(resolved: Sequence[ResolvedTrade]) -> list[StreakRun]:
    """Split chronologically ordered trades into maximal same-outcome runs."""
    runs: list[StreakRun] = []
    for r in resolved:
        kind = StreakType.WIN if r.net_pnl >= 0 else StreakType.LOSS
        ts = r.trade.sort_time
        if not runs or runs[-1].type != kind:
            runs.append(StreakRun(type=kind, started_at=ts))
        run = runs[-1]
        run.length += 1
        run.pnl += r.net
        run.ended_at = ts
    return runs


def analyze_streaks(resolved: Sequence[ResolvedTrade]) -> StreakSummary:
    """Current streak (the most recent run) plus history-wide streak statistics."""
    runs = streak_runs(resolved)
    if not runs:
        return StreakSummary()

    wins = [r.length for r in runs if r.type == StreakType.WIN]
    losses = [r.length for r in runs if r.type == StreakType.LOSS]
    current = runs[-1]
    return StreakSummary(
        current_type=current.type,
        current_count=current.length,
        current_pnl=current.pnl,
        current_started_at=current.started_at,
        longest_win=max(wins, default=0),
        longest_loss=max(losses, default=0),
        avg_win_streak=safe_mean(wins),
        avg_loss_streak=safe_mean(losses),
        runs=runs,
    )
