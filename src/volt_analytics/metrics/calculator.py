"""Performance and risk metrics over a trade set.

All P&L figures are net of commission and come from closed trades only.
Per-period ratios (Sharpe, Sortino, Calmar, Treynor, Jensen) use daily
aggregated returns rather than per-trade returns.

Usage::

    calc = MetricsCalculator(settings.metrics)
    metrics = calc.compute(trades)
    print(metrics.profit_factor.value)   # Ratio: finite, inf or undefined
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Iterable, Sequence

import numpy as np

from ..core.config import MarketConfig, MetricsConfig
from ..core.enums import Direction, MetricFormat, MetricStatus
from ..core.models import Trade, partition_trades
from ..core.ratio import Ratio
from ..core.stats import clamp, coefficient_of_variation, safe_mean
from ..market.resolver import MarketPnLResolver, ResolvedTrade
from .equity import DailyPnL, EquityCurve, aggregate_daily, build_equity_curve, daily_returns
from .insights import generate_insights
from .results import MetricResult, make_metric, sign_status, with_trend

logger = logging.getLogger(__name__)

_PCT = MetricFormat.PERCENTAGE
_CUR = MetricFormat.CURRENCY
_DEC = MetricFormat.DECIMAL
_CNT = MetricFormat.COUNT


# ====================================================================== #
# Pure formulas                                                          #
# ====================================================================== #

def win_rate(pnls: Sequence[float]) -> float:
    """Winning trades (P&L > 0) as a % of ``pnls``; 0 when empty."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls) * 100.0


def profit_factor(pnls: Sequence[float]) -> Ratio:
    """Gross profit / |gross loss|.

    INFINITE when there are profits and no losses; 0 when there is no
    gross profit (including the all-zero case).
    """
    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = abs(sum(p for p in pnls if p < 0))
    if gross_profit == 0:
        return Ratio.finite(0.0)
    return Ratio.divide(gross_profit, gross_loss)


def expectancy(pnls: Sequence[float]) -> float:
    return safe_mean(pnls)


def average_win(pnls: Sequence[float]) -> float:
    return safe_mean([p for p in pnls if p > 0])


def average_loss(pnls: Sequence[float]) -> float:
    """Mean losing P&L, reported as a negative number (0 without losses)."""
    return safe_mean([p for p in pnls if p < 0])


def payoff_ratio(avg_win: float, avg_loss: float) -> Ratio:
    """Average win / |average loss|."""
    if avg_win == 0:
        return Ratio.finite(0.0) if avg_loss != 0 else Ratio.undefined()
    return Ratio.divide(avg_win, abs(avg_loss))


def kelly_percentage(win_rate_pct: float, avg_win: float, avg_loss: float) -> Ratio:
    """Kelly fraction W - (1 - W) / R as a %, clamped to [0, 100].

    UNDEFINED without losses (R has no denominator); 0 without wins.
    """
    if avg_loss == 0:
        return Ratio.undefined()
    if avg_win <= 0:
        return Ratio.finite(0.0)
    w = win_rate_pct / 100.0
    r = avg_win / abs(avg_loss)
    return Ratio.finite(clamp((w - (1 - w) / r) * 100.0))


def risk_of_ruin(
    win_rate_pct: float,
    avg_win: float,
    avg_loss: float,
    *,
    risk_per_trade_pct: float = 2.0,
    ruin_threshold_pct: float = 50.0,
) -> float:
    """Probability (%) of losing ``ruin_threshold_pct`` of capital.

    Gambler's-ruin approximation ``((1 - edge) / (1 + edge)) ** units`` where
    ``edge = W * R - (1 - W)`` is the expected return per unit risked and
    ``units`` is how many risk units fit in the ruin threshold.
    """
    w = win_rate_pct / 100.0
    if w <= 0:
        return 100.0
    if avg_loss == 0:
        return 0.0
    r = avg_win / abs(avg_loss)
    edge = w * r - (1 - w)
    if edge <= 0:
        return 100.0
    if edge >= 1:
        return 0.0
    units = ruin_threshold_pct / risk_per_trade_pct
    return clamp(((1 - edge) / (1 + edge)) ** units * 100.0)


def max_consecutive_losses(win_rate_pct: float, confidence: float = 0.95) -> int | None:
    """Losing streak length not exceeded with ``confidence`` probability.

    ``None`` when every trade loses (the streak is unbounded).
    """
    loss_p = 1 - win_rate_pct / 100.0
    if loss_p <= 0:
        return 0
    if loss_p >= 1:
        return None
    return math.ceil(math.log(1 - confidence) / math.log(loss_p))


def ruin_recommendation(risk_of_ruin_pct: float) -> str:
    if risk_of_ruin_pct < 1:
        return "Excellent risk management. Current position sizing is sustainable."
    if risk_of_ruin_pct < 5:
        return "Acceptable risk level. Monitor position sizes during losing streaks."
    if risk_of_ruin_pct < 10:
        return "Elevated risk. Consider reducing position size per trade."
    return "High risk of ruin. Reduce position size significantly and review your edge."


def sharpe_ratio(
    returns: Sequence[float], risk_free_rate: float = 0.04, periods: int = 252, min_points: int = 2,
) -> Ratio:
    """Annualised Sharpe ratio of periodic returns (sample std).

    UNDEFINED with fewer than ``min_points`` periods or zero volatility.
    """
    if len(returns) < max(min_points, 2):
        return Ratio.undefined()
    excess = np.asarray(returns, dtype=float) - risk_free_rate / periods
    std = float(np.std(excess, ddof=1))
    if std == 0:
        return Ratio.undefined()
    return Ratio.finite(float(np.mean(excess)) / std * math.sqrt(periods))


def sortino_ratio(
    returns: Sequence[float], risk_free_rate: float = 0.04, periods: int = 252, min_points: int = 2,
) -> Ratio:
    """Annualised Sortino ratio; only below-target periods form the denominator.

    With no negative excess periods the ratio is INFINITE for a positive
    mean and UNDEFINED otherwise.
    """
    if len(returns) < max(min_points, 2):
        return Ratio.undefined()
    excess = np.asarray(returns, dtype=float) - risk_free_rate / periods
    downside = np.minimum(excess, 0.0)
    downside_dev = float(np.sqrt(np.mean(downside ** 2)))
    mean = float(np.mean(excess))
    if downside_dev == 0:
        return Ratio.infinite() if mean > 0 else Ratio.undefined()
    return Ratio.finite(mean / downside_dev * math.sqrt(periods))


def annualized_return(returns: Sequence[float], periods: int = 252) -> float:
    """Simple annualised mean periodic return (fraction)."""
    return safe_mean(returns) * periods


def calmar_ratio(annual_return_pct: float, max_drawdown_pct: float) -> Ratio:
    return Ratio.divide(annual_return_pct, max_drawdown_pct)


def treynor_ratio(annual_return: float, risk_free_rate: float, beta: float) -> Ratio:
    return Ratio.divide(annual_return - risk_free_rate, beta)


def jensen_alpha(annual_return: float, risk_free_rate: float, beta: float, market_return: float) -> float:
    return annual_return - (risk_free_rate + beta * (market_return - risk_free_rate))


def consistency_score(daily_pnls: Sequence[float], cv_penalty: float = 50.0) -> float:
    """100 minus a coefficient-of-variation penalty on daily P&L, in [0, 100].

    A zero mean counts as a CV of 1.
    """
    if not daily_pnls:
        return 0.0
    cv = coefficient_of_variation(daily_pnls)
    if cv is None:
        cv = 1.0
    return clamp(100.0 - cv * cv_penalty)


# ====================================================================== #
# Result records                                                         #
# ====================================================================== #

@dataclass
class LongShortComparison:
    long_win_rate: MetricResult
    long_profit_factor: MetricResult
    short_win_rate: MetricResult
    short_profit_factor: MetricResult
    long_trades: int = 0
    short_trades: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "long": {
                "trades": self.long_trades,
                "win_rate": self.long_win_rate.to_dict(),
                "profit_factor": self.long_profit_factor.to_dict(),
            },
            "short": {
                "trades": self.short_trades,
                "win_rate": self.short_win_rate.to_dict(),
                "profit_factor": self.short_profit_factor.to_dict(),
            },
        }


@dataclass
class RiskOfRuinDetail:
    probability: float
    kelly_percentage: Ratio
    max_consecutive_losses: int | None
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "probability": self.probability,
            "kelly_percentage": self.kelly_percentage.to_json(),
            "max_consecutive_losses": self.max_consecutive_losses,
            "recommendation": self.recommendation,
        }


@dataclass
class TradeRMultiple:
    trade_id: str
    r_multiple: float | None


@dataclass
class PerformanceMetrics:
    """Every scalar metric for one trade set, plus supporting detail."""

    total_trades: MetricResult
    closed_trades: MetricResult
    open_trades: MetricResult
    net_pnl: MetricResult
    win_rate: MetricResult
    profit_factor: MetricResult
    expectancy: MetricResult
    avg_win: MetricResult
    avg_loss: MetricResult
    largest_win: MetricResult
    largest_loss: MetricResult
    payoff_ratio: MetricResult
    max_drawdown: MetricResult
    max_drawdown_amount: MetricResult
    avg_drawdown: MetricResult
    recovery_factor: MetricResult
    kelly_percentage: MetricResult
    risk_of_ruin: MetricResult
    r_multiple: MetricResult
    sharpe_ratio: MetricResult
    sortino_ratio: MetricResult
    calmar_ratio: MetricResult
    treynor_ratio: MetricResult
    jensen_alpha: MetricResult
    ulcer_index: MetricResult
    consistency: MetricResult

    long_short: LongShortComparison
    ruin: RiskOfRuinDetail
    equity_curve: EquityCurve
    daily: list[DailyPnL] = field(default_factory=list)
    r_multiples: list[TradeRMultiple] = field(default_factory=list)
    insights: list = field(default_factory=list)
    rejected_trades: int = 0

    def metrics(self) -> dict[str, MetricResult]:
        """All ``MetricResult`` fields keyed by name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if isinstance(getattr(self, f.name), MetricResult)
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics": {k: v.to_dict() for k, v in self.metrics().items()},
            "long_short": self.long_short.to_dict(),
            "risk_of_ruin": self.ruin.to_dict(),
            "equity_curve": self.equity_curve.to_dict(),
            "daily": [d.to_dict() for d in self.daily],
            "r_multiples": [
                {"trade_id": r.trade_id, "r_multiple": r.r_multiple} for r in self.r_multiples
            ],
            "insights": [i.to_dict() for i in self.insights],
            "rejected_trades": self.rejected_trades,
        }


# ====================================================================== #
# Calculator                                                             #
# ====================================================================== #

class MetricsCalculator:
    """Compute ``PerformanceMetrics`` for a trade collection.

    Parameters
    ----------
    config : MetricsConfig | None
        Starting balance, risk-free rate, thresholds and sample sizes.
    market : MarketConfig | None
        Contract conventions for the P&L resolver.
    """

    def __init__(
        self,
        config: MetricsConfig | None = None,
        market: MarketConfig | None = None,
        *,
        resolver: MarketPnLResolver | None = None,
    ) -> None:
        self._config = config or MetricsConfig()
        self._resolver = resolver or MarketPnLResolver(market)

    @property
    def resolver(self) -> MarketPnLResolver:
        return self._resolver

    def compute(self, trades: Iterable[Trade]) -> PerformanceMetrics:
        """Compute every metric.  Malformed trades are excluded, never raised."""
        cfg = self._config
        th = cfg.thresholds
        valid, rejected = partition_trades(trades)
        resolved = self._resolver.resolve_closed(valid)
        pnls = [r.net for r in resolved]
        n = len(pnls)
        min_n = cfg.min_sample_size

        def metric(name: str, value: Ratio | float, fmt: MetricFormat, *,
                   sample: int = n, minimum: int = min_n, description: str = "",
                   status: MetricStatus | None = None) -> MetricResult:
            return make_metric(
                name, value, fmt, thresholds=th, sample_size=sample,
                min_sample=minimum, description=description, status=status,
            )

        # -- Trade P&L --------------------------------------------------
        wr = win_rate(pnls)
        pf = profit_factor(pnls)
        avg_w = average_win(pnls)
        avg_l = average_loss(pnls)
        net = float(sum(pnls))
        net_r = Ratio.finite(net)

        # -- Equity curve -----------------------------------------------
        curve = build_equity_curve(
            ((r.trade.sort_time, r.trade.trade_id, r.net) for r in resolved),
            starting_balance=cfg.starting_balance,
        )
        max_dd_amt = curve.max_drawdown_amount
        recovery = Ratio.divide(net, max_dd_amt) if max_dd_amt > 0 else Ratio.undefined()

        # -- Daily series -----------------------------------------------
        daily = aggregate_daily((r.trade.trade_date, r.net) for r in resolved)
        returns = daily_returns(daily, cfg.starting_balance)
        n_days = len(returns)
        days_per_year = cfg.trading_days_per_year
        sharpe = sharpe_ratio(returns, cfg.risk_free_rate, days_per_year, cfg.min_daily_points)
        sortino = sortino_ratio(returns, cfg.risk_free_rate, days_per_year, cfg.min_daily_points)

        if n_days < cfg.min_daily_points:
            logger.debug("Only %d trading day(s), per-period ratios are undefined", n_days)
        annual = annualized_return(returns, days_per_year)
        if n_days >= cfg.min_daily_points:
            treynor = treynor_ratio(annual, cfg.risk_free_rate, cfg.market_beta)
            jensen = Ratio.finite(
                jensen_alpha(annual, cfg.risk_free_rate, cfg.market_beta, cfg.market_return) * 100.0
            )
            calmar = calmar_ratio(annual * 100.0, curve.max_drawdown_pct)
        else:
            treynor = jensen = calmar = Ratio.undefined()

        # -- Sizing and ruin --------------------------------------------
        kelly = kelly_percentage(wr, avg_w, avg_l)
        ruin_pct = risk_of_ruin(
            wr, avg_w, avg_l,
            risk_per_trade_pct=cfg.risk_per_trade_pct,
            ruin_threshold_pct=cfg.ruin_threshold_pct,
        ) if n else 0.0
        ruin = RiskOfRuinDetail(
            probability=ruin_pct,
            kelly_percentage=kelly,
            max_consecutive_losses=max_consecutive_losses(wr, cfg.ruin_confidence) if n else 0,
            recommendation=ruin_recommendation(ruin_pct) if n else "Not enough trades to assess risk of ruin.",
        )

        r_multiples = [TradeRMultiple(r.trade.trade_id, self.r_multiple(r)) for r in resolved]
        r_values = [r.r_multiple for r in r_multiples if r.r_multiple is not None]
        avg_r = Ratio.finite(safe_mean(r_values)) if r_values else Ratio.undefined()

        daily_pnls = [d.pnl for d in daily]
        consistency = consistency_score(daily_pnls, cfg.consistency_cv_penalty)

        largest_win = max((p for p in pnls if p > 0), default=0.0)
        largest_loss = min((p for p in pnls if p < 0), default=0.0)
        n_open = sum(1 for t in valid if not t.is_closed)

        result = PerformanceMetrics(
            total_trades=metric("total_trades", len(valid), _CNT, sample=len(valid), minimum=0),
            closed_trades=metric("closed_trades", n, _CNT, minimum=0),
            open_trades=metric("open_trades", n_open, _CNT, sample=len(valid), minimum=0),
            net_pnl=metric("net_pnl", net_r, _CUR, status=sign_status(net_r) if n else None),
            win_rate=metric("win_rate", wr, _PCT, description="Winning trades as % of closed trades"),
            profit_factor=metric("profit_factor", pf, _DEC, description="Gross profit / gross loss"),
            expectancy=metric("expectancy", expectancy(pnls), _CUR, description="Average net P&L per trade"),
            avg_win=metric("avg_win", avg_w, _CUR, sample=sum(1 for p in pnls if p > 0), minimum=0),
            avg_loss=metric("avg_loss", avg_l, _CUR, sample=sum(1 for p in pnls if p < 0), minimum=0),
            largest_win=metric("largest_win", largest_win, _CUR, minimum=0),
            largest_loss=metric("largest_loss", largest_loss, _CUR, minimum=0),
            payoff_ratio=metric("payoff_ratio", payoff_ratio(avg_w, avg_l), _DEC,
                                description="Average win / average loss"),
            max_drawdown=metric("max_drawdown", curve.max_drawdown_pct, _PCT,
                                description="Largest peak-to-trough equity decline"),
            max_drawdown_amount=metric("max_drawdown_amount", max_dd_amt, _CUR, minimum=0),
            avg_drawdown=metric("avg_drawdown", curve.avg_drawdown_pct, _PCT),
            recovery_factor=metric("recovery_factor", recovery, _DEC,
                                   description="Net P&L / max drawdown amount"),
            kelly_percentage=metric("kelly_percentage", kelly, _PCT),
            risk_of_ruin=metric("risk_of_ruin", ruin_pct, _PCT),
            r_multiple=metric("r_multiple", avg_r, _DEC, sample=len(r_values)),
            sharpe_ratio=metric("sharpe_ratio", sharpe, _DEC, sample=n_days, minimum=cfg.min_daily_points),
            sortino_ratio=metric("sortino_ratio", sortino, _DEC, sample=n_days, minimum=cfg.min_daily_points),
            calmar_ratio=metric("calmar_ratio", calmar, _DEC, sample=n_days, minimum=cfg.calmar_min_days),
            treynor_ratio=metric("treynor_ratio", treynor, _DEC, sample=n_days, minimum=cfg.min_daily_points),
            jensen_alpha=metric("jensen_alpha", jensen, _PCT, sample=n_days, minimum=cfg.min_daily_points),
            ulcer_index=metric("ulcer_index", curve.ulcer_index, _DEC),
            consistency=metric("consistency", consistency, _PCT, sample=len(daily), minimum=cfg.min_daily_points),
            long_short=self.long_short(resolved),
            ruin=ruin,
            equity_curve=curve,
            daily=daily,
            r_multiples=r_multiples,
            rejected_trades=len(rejected),
        )
        result.insights = generate_insights(result, min_sample_size=min_n)
        return result

    # ------------------------------------------------------------------ #
    # Pieces                                                             #
    # ------------------------------------------------------------------ #

    def r_multiple(self, resolved: ResolvedTrade) -> float | None:
        """Net P&L in units of initial risk (stop distance x size).

        Falls back to ``default_risk_amount`` for trades without a stop;
        ``None`` when no risk unit is known.
        """
        trade = resolved.trade
        risk: float | None = None
        if trade.stop_loss is not None and trade.entry_price is not None and trade.quantity is not None:
            per_unit = abs(trade.entry_price - trade.stop_loss)
            risk = float(per_unit * trade.quantity * self._resolver.contract_multiplier(trade))
        if not risk:
            risk = self._config.default_risk_amount
        if not risk:
            return None
        return resolved.net / risk

    def long_short(self, resolved: list[ResolvedTrade]) -> LongShortComparison:
        th = self._config.thresholds
        longs = [r.net for r in resolved if r.trade.direction == Direction.BUY]
        shorts = [r.net for r in resolved if r.trade.direction == Direction.SELL]
        return LongShortComparison(
            long_win_rate=make_metric("win_rate", win_rate(longs), _PCT, thresholds=th, sample_size=len(longs)),
            long_profit_factor=make_metric(
                "profit_factor", profit_factor(longs), _DEC, thresholds=th, sample_size=len(longs),
            ),
            short_win_rate=make_metric("win_rate", win_rate(shorts), _PCT, thresholds=th, sample_size=len(shorts)),
            short_profit_factor=make_metric(
                "profit_factor", profit_factor(shorts), _DEC, thresholds=th, sample_size=len(shorts),
            ),
            long_trades=len(longs),
            short_trades=len(shorts),
        )

    def compare(self, current: PerformanceMetrics, previous: PerformanceMetrics) -> PerformanceMetrics:
        """Copy of ``current`` with each metric's trend set against ``previous``."""
        prev = previous.metrics()
        tol = self._config.trend_tolerance
        updates = {
            name: with_trend(result, prev[name], tol)
            for name, result in current.metrics().items()
        }
        return replace(current, **updates)


def compute_metrics(trades: Iterable[Trade], config: MetricsConfig | None = None) -> PerformanceMetrics:
    """Shortcut for ``MetricsCalculator(config).compute(trades)``."""
    return MetricsCalculator(config).compute(trades)

