"""Composite trading-discipline score ("Volt Score")."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..core.config import VoltWeights
from ..core.enums import ScoreLabel
from ..core.ratio import Ratio
from ..core.stats import clamp

# Scale factors mapping raw ratios onto 0-100
_PROFIT_FACTOR_SCALE = 20.0     # PF 5 -> 100
_RISK_REWARD_SCALE = 33.33      # payoff 3 -> 100
_RECOVERY_FACTOR_SCALE = 10.0   # RF 10 -> 100


def score_label(score: float) -> ScoreLabel:
    if score >= 80:
        return ScoreLabel.EXCELLENT
    if score >= 60:
        return ScoreLabel.GOOD
    if score >= 40:
        return ScoreLabel.AVERAGE
    return ScoreLabel.NEEDS_IMPROVEMENT


@dataclass
class VoltComponents:
    win_rate: float = 0.0
    profit_factor: float = 0.0
    risk_reward: float = 0.0
    consistency: float = 0.0
    recovery: float = 0.0
    discipline: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor,
            "risk_reward": self.risk_reward,
            "consistency": self.consistency,
            "recovery": self.recovery,
            "discipline": self.discipline,
        }


@dataclass
class VoltScore:
    score: float = 0.0
    label: ScoreLabel = ScoreLabel.NEEDS_IMPROVEMENT
    components: VoltComponents = field(default_factory=VoltComponents)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label.value,
            "components": self.components.as_dict(),
        }


def normalize_ratio(value: Ratio, scale: float, *, undefined: float = 0.0) -> float:
    """Map a ratio onto 0-100 as ``value * scale``; INFINITE is 100."""
    if value.is_infinite:
        return 100.0
    if value.is_undefined:
        return undefined
    return clamp(value.value * scale)


def compute_volt_score(
    *,
    win_rate_pct: float,
    profit_factor: Ratio,
    payoff_ratio: Ratio,
    consistency: float,
    recovery_factor: Ratio,
    revenge_score: float,
    stop_compliance: float | None = None,
    weights: VoltWeights | None = None,
) -> VoltScore:
    """Weighted blend of six 0-100 sub-scores, clamped to [0, 100].

    Recovery averages the inverse revenge score with the normalised
    recovery factor; an undefined recovery factor (no drawdown) counts
    as full recovery.  Discipline is stop-loss compliance when known,
    otherwise the inverse revenge score.
    """
    w = weights or VoltWeights()
    inverse_revenge = clamp(100.0 - revenge_score)
    components = VoltComponents(
        win_rate=clamp(win_rate_pct),
        profit_factor=normalize_ratio(profit_factor, _PROFIT_FACTOR_SCALE),
        risk_reward=normalize_ratio(payoff_ratio, _RISK_REWARD_SCALE),
        consistency=clamp(consistency),
        recovery=0.5 * inverse_revenge
        + 0.5 * normalize_ratio(recovery_factor, _RECOVERY_FACTOR_SCALE, undefined=100.0),
        discipline=clamp(stop_compliance) if stop_compliance is not None else inverse_revenge,
    )
    score = clamp(
        components.win_rate * w.win_rate
        + components.profit_factor * w.profit_factor
        + components.risk_reward * w.risk_reward
        + components.consistency * w.consistency
        + components.recovery * w.recovery
        + components.discipline * w.discipline
    )
    return VoltScore(score=score, label=score_label(score), components=components)
