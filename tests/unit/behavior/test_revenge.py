"""Tests for revenge-trading detection."""

from datetime import timedelta

import pytest

from volt_analytics.behavior.revenge import RevengeDetector
from volt_analytics.core.config import RevengeConfig
from volt_analytics.core.enums import RevengeIndicator, Severity

from tests.factories import T0, make_series, make_trade

HOLD = 5.0


def _sequence(specs):
    """Trades from ``(pnl, qty, gap_minutes)``; the gap runs from the previous exit."""
    trades = []
    start = T0
    for i, (pnl, qty, gap) in enumerate(specs):
        start = start + timedelta(minutes=gap)
        trades.append(
            make_trade(pnl, trade_id=f"r{i}", qty=qty, entry_time=start, hold_minutes=HOLD)
        )
        start = start + timedelta(minutes=HOLD)
    return trades


def scenario_d():
    """A win, two normally spaced losses, then three doubled-size losses re-entered within seconds."""
    return _sequence([
        (50, 1, 0),
        (-20, 1, 30),
        (-20, 1, 30),
        (-40, 2, 0.5),
        (-40, 2, 0.5),
        (-40, 2, 0.5),
    ])


class TestRevengeDetector:
    def test_scenario_d_flags_size_and_speed(self, resolver):
        analysis = RevengeDetector().detect(resolver.resolve_closed(scenario_d()))
        assert analysis.detected
        assert any(
            i.indicators[RevengeIndicator.POSITION_SIZE_INCREASE]
            and i.indicators[RevengeIndicator.REDUCED_TIME_BETWEEN_TRADES]
            for i in analysis.incidents
        )

    def test_scenario_d_incident_detail(self, resolver):
        analysis = RevengeDetector().detect(resolver.resolve_closed(scenario_d()))
        by_trigger = {i.trigger_trade_id: i for i in analysis.incidents}
        incident = by_trigger["r2"]
        assert incident.window_trade_ids == ["r3", "r4", "r5"]
        assert incident.size_ratio == pytest.approx(2.0)
        assert incident.min_gap_minutes == pytest.approx(0.5)
        assert incident.indicators[RevengeIndicator.AGGRESSIVE_RECOVERY]
        assert incident.indicators[RevengeIndicator.WIN_RATE_DEGRADATION]
        assert incident.severity == Severity.HIGH
        assert 0 < analysis.score <= 100
        assert analysis.discipline_score == 100 - analysis.score

    def test_win_rate_baseline_ignores_later_trades(self, resolver):
        specs = [(-10, 1, 0), (-10, 1, 30), (-10, 1, 30)] + [(-10, 2, 0.5)] * 3 + [(10, 1, 30)] * 6
        analysis = RevengeDetector().detect(resolver.resolve_closed(_sequence(specs)))
        incident = {i.trigger_trade_id: i for i in analysis.incidents}["r2"]
        assert incident.indicators[RevengeIndicator.POSITION_SIZE_INCREASE]
        assert not incident.indicators[RevengeIndicator.WIN_RATE_DEGRADATION]

    def test_wins_never_trigger(self, resolver):
        trades = _sequence([(10, 1, 0), (10, 3, 0.5), (10, 3, 0.5), (10, 3, 0.5)])
        assert not RevengeDetector().detect(resolver.resolve_closed(trades)).detected

    def test_calm_trading_after_loss(self, resolver):
        resolved = resolver.resolve_closed(make_series([-10, 10, 10, 10]))
        analysis = RevengeDetector().detect(resolved)
        assert not analysis.detected
        assert analysis.score == 0.0

    def test_window_bounded_by_time(self, resolver):
        trades = _sequence([(-20, 1, 0), (-20, 3, 90), (-20, 3, 0.5)])
        analysis = RevengeDetector().detect(resolver.resolve_closed(trades))
        assert all(i.trigger_trade_id != "r0" for i in analysis.incidents)

    def test_min_indicators_configurable(self, resolver):
        strict = RevengeDetector(RevengeConfig(min_indicators=5))
        lenient = RevengeDetector(RevengeConfig(min_indicators=1))
        resolved = resolver.resolve_closed(scenario_d())
        assert len(lenient.detect(resolved).incidents) >= len(strict.detect(resolved).incidents)

    def test_fewer_than_two_trades(self, resolver):
        assert not RevengeDetector().detect(resolver.resolve_closed(make_series([-10]))).detected
        assert RevengeDetector().detect([]).score == 0.0

    def test_score_capped(self, resolver):
        specs = [(50, 1, 0)] + [(-10, 1, 30)] * 4 + [(-10, 4, 0.5)] * 12
        analysis = RevengeDetector().detect(resolver.resolve_closed(_sequence(specs)))
        assert analysis.score <= 100.0

    def test_incident_serializes_indicator_names(self, resolver):
        analysis = RevengeDetector().detect(resolver.resolve_closed(scenario_d()))
        d = analysis.to_dict()
        assert d["detected"] is True
        assert "positionSizeIncrease" in d["incidents"][0]["indicators"]
