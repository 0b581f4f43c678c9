"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
Every analyzer receives the relevant sub-config explicitly; nothing
reads global state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from .enums import MarketType, Severity
from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

def _default_futures_multipliers() -> dict[str, float]:
    return {
        "ES": 50,
        "NQ": 20,
        "RTY": 50,
        "YM": 5,
        "CL": 1000,
        "GC": 100,
        "ZB": 1000,
        "ZN": 1000,
        "ZF": 1000,
        "ZT": 2000,
        "6E": 125_000,
        "6J": 12_500_000,
        "NG": 10_000,
    }


class MarketConfig(BaseModel):
    """Per-market contract conventions used by the P&L resolver."""

    futures_multipliers: dict[str, float] = Field(
        default_factory=_default_futures_multipliers
    )
    options_multiplier: float = Field(default=100, gt=0)
    # Optional lot/pip multiplier per market (e.g. {"forex": 100000}).
    # Empty means STOCKS/FOREX/CRYPTO use the base result unmodified.
    lot_sizes: dict[MarketType, float] = Field(default_factory=dict)

    @field_validator("futures_multipliers")
    @classmethod
    def _upper_symbols(cls, v: dict[str, float]) -> dict[str, float]:
        for symbol, mult in v.items():
            if mult <= 0:
                raise ValueError(f"multiplier for {symbol} must be positive")
        return {k.upper(): val for k, val in v.items()}


class MetricThreshold(BaseModel):
    """Benchmark band used to derive a metric's status.

    With ``higher_is_better`` a value is good at or above ``good`` (strictly
    above when ``strict``) and warning at or above ``warning``.  The
    comparisons flip for lower-is-better metrics such as drawdown.
    """

    good: float
    warning: float
    higher_is_better: bool = True
    strict: bool = False
    benchmark: float | None = None


def default_thresholds() -> dict[str, MetricThreshold]:
    t = MetricThreshold
    return {
        "win_rate": t(good=50, warning=40, benchmark=50),
        "profit_factor": t(good=1.5, warning=1.0, benchmark=1.5),
        "expectancy": t(good=0, warning=0, strict=True, benchmark=0),
        "payoff_ratio": t(good=1.5, warning=1.0, benchmark=1.5),
        "max_drawdown": t(good=10, warning=20, higher_is_better=False, strict=True, benchmark=10),
        "avg_drawdown": t(good=5, warning=10, higher_is_better=False, strict=True, benchmark=5),
        "recovery_factor": t(good=3, warning=1, benchmark=3),
        "kelly_percentage": t(good=15, warning=5, strict=True, benchmark=15),
        "risk_of_ruin": t(good=1, warning=5, higher_is_better=False, strict=True, benchmark=5),
        "r_multiple": t(good=2, warning=1, benchmark=2),
        "sharpe_ratio": t(good=1, warning=0, strict=True, benchmark=1),
        "sortino_ratio": t(good=1.5, warning=0, strict=True, benchmark=1.5),
        "calmar_ratio": t(good=1, warning=0, strict=True, benchmark=1),
        "treynor_ratio": t(good=0.05, warning=0, strict=True),
        "jensen_alpha": t(good=0, warning=0, strict=True),
        "ulcer_index": t(good=5, warning=10, higher_is_better=False, strict=True, benchmark=5),
        "consistency": t(good=70, warning=50, benchmark=70),
    }


class MetricsConfig(BaseModel):
    starting_balance: float = Field(default=10_000.0, gt=0)
    risk_free_rate: float = 0.04  # annual
    trading_days_per_year: int = Field(default=252, gt=0)
    min_sample_size: int = Field(default=30, ge=1)  # low-confidence below this
    min_daily_points: int = Field(default=2, ge=2)
    calmar_min_days: int = Field(default=30, ge=1)
    # Risk of ruin: each trade risks this % of capital; ruin is losing
    # ruin_threshold_pct of the starting balance.
    risk_per_trade_pct: float = Field(default=2.0, gt=0, le=100)
    ruin_threshold_pct: float = Field(default=50.0, gt=0, le=100)
    ruin_confidence: float = Field(default=0.95, gt=0, lt=1)
    default_risk_amount: float | None = Field(default=None, gt=0)
    market_beta: float = 1.2
    market_return: float = 0.10
    consistency_cv_penalty: float = Field(default=50.0, ge=0)
    trend_tolerance: float = Field(default=0.01, ge=0)  # relative change treated as stable
    thresholds: dict[str, MetricThreshold] = Field(default_factory=default_thresholds)

    @model_validator(mode="before")
    @classmethod
    def _merge_thresholds(cls, data: Any) -> Any:
        # Partial threshold tables extend the defaults instead of replacing them.
        if isinstance(data, dict) and data.get("thresholds"):
            merged: dict[str, Any] = dict(default_thresholds())
            merged.update(data["thresholds"])
            data = {**data, "thresholds": merged}
        return data


class ExcursionConfig(BaseModel):
    # Bucket upper edges in %; default gives 0-1, 1-2, 2-5, 5-10, >10.
    bucket_edges: list[float] = Field(default_factory=lambda: [1.0, 2.0, 5.0, 10.0])

    @field_validator("bucket_edges")
    @classmethod
    def _ascending(cls, v: list[float]) -> list[float]:
        if any(b <= a for a, b in zip(v, v[1:])):
            raise ValueError("bucket_edges must be strictly ascending")
        if v and v[0] <= 0:
            raise ValueError("bucket_edges must be positive")
        return v


class SeverityWeights(BaseModel):
    low: float = 10.0
    medium: float = 20.0
    high: float = 30.0

    def for_severity(self, severity: Severity) -> float:
        return getattr(self, severity.value)


class RevengeConfig(BaseModel):
    """Revenge-trading detection parameters."""

    window_trades: int = Field(default=3, ge=1)
    window_minutes: float | None = Field(default=60.0, gt=0)  # None: no time bound
    baseline_lookback: int = Field(default=20, ge=1)
    size_increase_factor: float = Field(default=1.5, gt=1)
    severe_size_factor: float = Field(default=2.0, gt=1)
    quick_reentry_minutes: float = Field(default=5.0, ge=0)
    reentry_factor: float = Field(default=0.5, gt=0, le=1)
    volume_spike_factor: float = Field(default=2.0, gt=1)
    min_indicators: int = Field(default=2, ge=1, le=5)
    severity_weights: SeverityWeights = Field(default_factory=SeverityWeights)


class VoltWeights(BaseModel):
    win_rate: float = 0.20
    profit_factor: float = 0.20
    risk_reward: float = 0.15
    consistency: float = 0.20
    recovery: float = 0.15
    discipline: float = 0.10

    @model_validator(mode="after")
    def _sum_to_one(self) -> VoltWeights:
        total = sum(self.model_dump().values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Volt Score weights must sum to 1.0, got {total:.4f}")
        return self


class BehaviorConfig(BaseModel):
    revenge: RevengeConfig = Field(default_factory=RevengeConfig)
    outlier_fraction: float = Field(default=0.10, ge=0, lt=0.5)
    weights: VoltWeights = Field(default_factory=VoltWeights)
    consistency_cv_penalty: float = Field(default=50.0, ge=0)
    stop_tolerance_pct: float = Field(default=10.0, ge=0)


class ExecutionWeights(BaseModel):
    slippage: float = 0.25
    stop_loss: float = 0.20
    take_profit: float = 0.20
    partial_exits: float = 0.15
    commission: float = 0.20


class ExecutionConfig(BaseModel):
    hit_tolerance_pct: float = Field(default=0.1, ge=0)
    ideal_stop_hit_rate: float = Field(default=35.0, ge=0, le=100)
    slippage_penalty: float = Field(default=20.0, ge=0)  # score points per 1% slippage
    weights: ExecutionWeights = Field(default_factory=ExecutionWeights)


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------

class AnalyticsSettings(BaseSettings):
    """Root configuration for the analytics engine.

    Loaded from TOML config files, overridden by environment variables
    (``VOLT_METRICS__STARTING_BALANCE=25000``).
    """

    market: MarketConfig = Field(default_factory=MarketConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    excursion: ExcursionConfig = Field(default_factory=ExcursionConfig)
    behavior: BehaviorConfig = Field(default_factory=BehaviorConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "VOLT_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AnalyticsSettings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: the file is missing or unreadable, or a value
            fails validation.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        import tomli

        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    try:
        return AnalyticsSettings(**data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
