"""Enumerations used across the analytics engine."""

from enum import Enum


class Direction(str, Enum):
    BUY = "buy"    # long
    SELL = "sell"  # short

    @property
    def sign(self) -> int:
        return 1 if self is Direction.BUY else -1


class MarketType(str, Enum):
    STOCKS = "stocks"
    OPTIONS = "options"
    FUTURES = "futures"
    FOREX = "forex"
    CRYPTO = "crypto"


class ExitReason(str, Enum):
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    MANUAL = "manual"
    OTHER = "other"


class RatioKind(str, Enum):
    FINITE = "finite"
    INFINITE = "infinite"
    UNDEFINED = "undefined"


class MetricStatus(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"


class MetricFormat(str, Enum):
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    DECIMAL = "decimal"
    COUNT = "count"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class StreakType(str, Enum):
    WIN = "win"
    LOSS = "loss"
    NONE = "none"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScoreLabel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    NEEDS_IMPROVEMENT = "needs_improvement"


class RevengeIndicator(str, Enum):
    POSITION_SIZE_INCREASE = "positionSizeIncrease"
    REDUCED_TIME_BETWEEN_TRADES = "reducedTimeBetweenTrades"
    WIN_RATE_DEGRADATION = "winRateDegradation"
    VOLUME_SPIKE = "volumeSpike"
    AGGRESSIVE_RECOVERY = "aggressiveRecovery"
