"""Tests for the equity curve and daily aggregation."""

from datetime import date

import pytest

from volt_analytics.metrics.equity import (
    aggregate_daily,
    build_equity_curve,
    curve_from_balances,
    daily_returns,
)


class TestEquityCurve:
    def test_scenario_c_max_drawdown(self):
        curve = curve_from_balances([10_000, 10_500, 9_800, 11_000])
        assert curve.max_drawdown_pct == pytest.approx(700 / 10_500 * 100)
        assert curve.max_drawdown_pct == pytest.approx(6.6667, abs=1e-3)
        assert curve.max_drawdown_amount == pytest.approx(700)
        assert curve.final_balance == pytest.approx(11_000)

    def test_no_drawdown_when_monotonic(self):
        curve = build_equity_curve([(None, "a", 10.0), (None, "b", 5.0)], 1000)
        assert curve.max_drawdown_pct == 0.0
        assert not any(p.in_drawdown for p in curve.points)
        assert curve.avg_drawdown_pct == 0.0
        assert curve.ulcer_index == 0.0

    def test_peak_starts_at_starting_balance(self):
        curve = build_equity_curve([(None, "a", -100.0)], 1000)
        assert curve.points[0].peak == 1000
        assert curve.max_drawdown_pct == pytest.approx(10.0)

    def test_average_drawdown_ignores_zero_points(self):
        # dd: 0, 10%, 0, 5%
        curve = build_equity_curve(
            [(None, "a", 0.0), (None, "b", -100.0), (None, "c", 200.0), (None, "d", -55.0)],
            1000,
        )
        assert curve.points[3].drawdown_pct == pytest.approx(5.0)
        assert curve.avg_drawdown_pct == pytest.approx(7.5)

    def test_ulcer_index_is_rms_of_drawdowns(self):
        curve = build_equity_curve([(None, "a", -100.0), (None, "b", 100.0)], 1000)
        # drawdowns 10% and 0%
        assert curve.ulcer_index == pytest.approx((100 / 2) ** 0.5)

    def test_empty_curve(self):
        curve = build_equity_curve([], 5000)
        assert curve.points == []
        assert curve.final_balance == 5000
        assert curve.max_drawdown_pct == 0.0


class TestDailyAggregation:
    def test_groups_by_day(self):
        d1, d2 = date(2024, 1, 2), date(2024, 1, 3)
        days = aggregate_daily([(d2, 10.0), (d1, 5.0), (d1, -2.0)])
        assert [d.day for d in days] == [d1, d2]
        assert days[0].pnl == pytest.approx(3.0)
        assert days[0].trades == 2
        assert days[0].wins == 1
        assert days[0].losses == 1

    def test_daily_returns_use_start_of_day_equity(self):
        d1, d2 = date(2024, 1, 2), date(2024, 1, 3)
        days = aggregate_daily([(d1, 100.0), (d2, -101.0)])
        returns = daily_returns(days, 10_000)
        assert returns == pytest.approx([0.01, -0.01])
