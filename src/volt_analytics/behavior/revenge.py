"""Revenge-trading detection.

Scans closed trades chronologically.  Every losing trade opens a window
covering the next ``window_trades`` trades entered within
``window_minutes`` of the loss.  The window is compared against the
trader's own trailing behaviour on five indicators:

positionSizeIncrease       largest window notional >= trailing average x size_increase_factor
reducedTimeBetweenTrades   a re-entry gap under quick_reentry_minutes, or under
                           the trailing average gap x reentry_factor
winRateDegradation         window win rate below the win rate of the trailing trades before the loss
volumeSpike                window trade frequency >= trailing frequency x volume_spike_factor
aggressiveRecovery         same symbol re-entered with more size than the losing trade

A window with at least ``min_indicators`` indicators is an incident.
Winning or break-even trades never open a window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Sequence

from ..core.config import RevengeConfig
from ..core.enums import RevengeIndicator, Severity
from ..core.stats import safe_mean
from ..market.resolver import ResolvedTrade

logger = logging.getLogger(__name__)

_MIN_WINDOW_MINUTES = 1.0


@dataclass
class RevengeIncident:
    trigger_trade_id: str
    trigger_pnl: float
    trigger_time: datetime | None
    window_trade_ids: list[str]
    indicators: dict[RevengeIndicator, bool]
    severity: Severity
    size_ratio: float
    min_gap_minutes: float | None
    window_pnl: float

    @property
    def active_indicators(self) -> list[RevengeIndicator]:
        return [k for k, v in self.indicators.items() if v]

    @property
    def indicator_count(self) -> int:
        return len(self.active_indicators)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_trade_id": self.trigger_trade_id,
            "trigger_pnl": self.trigger_pnl,
            "trigger_time": self.trigger_time.isoformat() if self.trigger_time else None,
            "window_trade_ids": self.window_trade_ids,
            "indicators": {k.value: v for k, v in self.indicators.items()},
            "severity": self.severity.value,
            "size_ratio": self.size_ratio,
            "min_gap_minutes": self.min_gap_minutes,
            "window_pnl": self.window_pnl,
        }


@dataclass
class RevengeAnalysis:
    incidents: list[RevengeIncident] = field(default_factory=list)
    score: float = 0.0   # 0-100, higher is worse
    average_recovery_attempt: float = 0.0

    @property
    def detected(self) -> bool:
        return bool(self.incidents)

    @property
    def discipline_score(self) -> float:
        return 100.0 - self.score

    def to_dict(self) -> dict[str, Any]:
        return {
            "detected": self.detected,
            "score": self.score,
            "discipline_score": self.discipline_score,
            "average_recovery_attempt": self.average_recovery_attempt,
            "incidents": [i.to_dict() for i in self.incidents],
        }


class RevengeDetector:
    """Detect impulsive, size-escalated re-entries after losses.

    Parameters
    ----------
    config : RevengeConfig | None
        Window size, baseline lookback and indicator thresholds.
    notional : callable | None
        Maps a trade to its position notional.  Defaults to entry price x
        quantity; the behavioural analyzer passes a multiplier-aware one.
    """

    def __init__(
        self,
        config: RevengeConfig | None = None,
        *,
        notional: Callable[[ResolvedTrade], float] | None = None,
    ) -> None:
        self._config = config or RevengeConfig()
        self._notional = notional or (lambda r: float(r.trade.notional))

    def detect(self, resolved: Sequence[ResolvedTrade]) -> RevengeAnalysis:
        """Run detection over chronologically ordered closed trades."""
        cfg = self._config
        if len(resolved) < 2:
            return RevengeAnalysis()

        incidents: list[RevengeIncident] = []

        for i, trigger in enumerate(resolved):
            if not trigger.is_loss:
                continue
            window = self._window(resolved, i)
            if not window:
                continue
            baseline = resolved[max(0, i + 1 - cfg.baseline_lookback): i + 1]
            incident = self._evaluate(resolved, i, window, baseline)
            if incident is not None:
                incidents.append(incident)

        score = min(100.0, sum(cfg.severity_weights.for_severity(x.severity) for x in incidents))
        if incidents:
            logger.debug("Detected %d revenge-trading incident(s), score %.1f", len(incidents), score)
        return RevengeAnalysis(
            incidents=incidents,
            score=score,
            average_recovery_attempt=safe_mean([x.size_ratio for x in incidents]),
        )

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    def _window(self, resolved: Sequence[ResolvedTrade], i: int) -> list[ResolvedTrade]:
        cfg = self._config
        trigger_end = resolved[i].trade.sort_time
        window: list[ResolvedTrade] = []
        for r in resolved[i + 1: i + 1 + cfg.window_trades]:
            if cfg.window_minutes is not None and trigger_end is not None:
                elapsed = (r.trade.entry_time - trigger_end).total_seconds() / 60.0
                if elapsed > cfg.window_minutes:
                    break
            window.append(r)
        return window

    def _evaluate(
        self,
        resolved: Sequence[ResolvedTrade],
        i: int,
        window: list[ResolvedTrade],
        baseline: Sequence[ResolvedTrade],
    ) -> RevengeIncident | None:
        cfg = self._config
        trigger = resolved[i]

        # Size
        baseline_notional = safe_mean([self._notional(r) for r in baseline])
        window_notional = max(self._notional(r) for r in window)
        size_ratio = window_notional / baseline_notional if baseline_notional > 0 else 1.0

        # Re-entry speed: gap between each window trade and the trade before it
        gaps = [
            _gap_minutes(resolved[j - 1], resolved[j])
            for j in range(i + 1, i + 1 + len(window))
        ]
        baseline_gaps = [
            _gap_minutes(baseline[k - 1], baseline[k]) for k in range(1, len(baseline))
        ]
        avg_gap = safe_mean(baseline_gaps)
        min_gap = min(gaps) if gaps else None
        quick = min_gap is not None and (
            min_gap < cfg.quick_reentry_minutes
            or (avg_gap > 0 and min_gap < avg_gap * cfg.reentry_factor)
        )

        # Outcomes against the trades leading up to the trigger
        prior = baseline[:-1]
        window_win_rate = sum(1 for r in window if r.is_win) / len(window)
        degraded = bool(prior) and window_win_rate < sum(1 for r in prior if r.is_win) / len(prior)

        # Frequency, trades per minute
        spike = False
        if len(baseline) >= 2:
            first = baseline[0].trade.entry_time
            span = (trigger.trade.entry_time - first).total_seconds() / 60.0
            if span > 0:
                baseline_freq = (len(baseline) - 1) / span
                end = trigger.trade.sort_time
                window_span = (window[-1].trade.entry_time - end).total_seconds() / 60.0
                window_freq = len(window) / max(window_span, _MIN_WINDOW_MINUTES)
                spike = window_freq >= baseline_freq * cfg.volume_spike_factor

        recovery = any(
            r.trade.symbol == trigger.trade.symbol and r.trade.quantity > trigger.trade.quantity
            for r in window
        )

        indicators = {
            RevengeIndicator.POSITION_SIZE_INCREASE: size_ratio >= cfg.size_increase_factor,
            RevengeIndicator.REDUCED_TIME_BETWEEN_TRADES: quick,
            RevengeIndicator.WIN_RATE_DEGRADATION: degraded,
            RevengeIndicator.VOLUME_SPIKE: spike,
            RevengeIndicator.AGGRESSIVE_RECOVERY: recovery,
        }
        count = sum(indicators.values())
        if count < cfg.min_indicators:
            return None

        return RevengeIncident(
            trigger_trade_id=trigger.trade.trade_id,
            trigger_pnl=trigger.net,
            trigger_time=trigger.trade.sort_time,
            window_trade_ids=[r.trade.trade_id for r in window],
            indicators=indicators,
            severity=_severity(count, size_ratio, cfg),
            size_ratio=size_ratio,
            min_gap_minutes=min_gap,
            window_pnl=sum(r.net for r in window),
        )


def _gap_minutes(prev: ResolvedTrade, nxt: ResolvedTrade) -> float:
    """Minutes from one trade's exit to the next trade's entry (0 if they overlap)."""
    end = prev.trade.sort_time
    if end is None:
        return 0.0
    return max(0.0, (nxt.trade.entry_time - end).total_seconds() / 60.0)


def _severity(count: int, size_ratio: float, cfg: RevengeConfig) -> Severity:
    points = count + (1 if size_ratio >= cfg.severe_size_factor else 0)
    if points >= 4:
        return Severity.HIGH
    if points >= 3:
        return Severity.MEDIUM
    return Severity.LOW
