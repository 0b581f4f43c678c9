"""Property tests: behavioural and execution scores stay in range."""

from datetime import timedelta

from hypothesis import given, settings, strategies as st

from volt_analytics.behavior.analyzer import BehavioralAnalyzer
from volt_analytics.behavior.outliers import analyze_outliers
from volt_analytics.behavior.revenge import RevengeDetector
from volt_analytics.behavior.streaks import streak_runs
from volt_analytics.behavior.volt_score import compute_volt_score
from volt_analytics.core.ratio import Ratio
from volt_analytics.execution.analyzer import ExecutionAnalyzer
from volt_analytics.market.resolver import MarketPnLResolver

from tests.factories import T0, make_series, make_trade

pnl_lists = st.lists(st.integers(min_value=-500, max_value=500), max_size=20)

ratios = st.one_of(
    st.builds(Ratio.finite, st.floats(min_value=-100, max_value=100)),
    st.just(Ratio.infinite()),
    st.just(Ratio.undefined()),
)


@given(
    win_rate=st.floats(min_value=0, max_value=100),
    pf=ratios,
    payoff=ratios,
    consistency=st.floats(min_value=0, max_value=100),
    recovery=ratios,
    revenge=st.floats(min_value=0, max_value=100),
    compliance=st.one_of(st.none(), st.floats(min_value=0, max_value=100)),
)
@settings(max_examples=100)
def test_volt_score_bounded(win_rate, pf, payoff, consistency, recovery, revenge, compliance):
    v = compute_volt_score(
        win_rate_pct=win_rate,
        profit_factor=pf,
        payoff_ratio=payoff,
        consistency=consistency,
        recovery_factor=recovery,
        revenge_score=revenge,
        stop_compliance=compliance,
    )
    assert 0 <= v.score <= 100
    assert all(0 <= c <= 100 for c in v.components.as_dict().values())


@given(pnls=pnl_lists)
@settings(max_examples=100)
def test_streak_runs_partition_trades(pnls):
    resolved = MarketPnLResolver().resolve_closed(make_series(pnls, entry=1000))
    runs = streak_runs(resolved)
    assert sum(r.length for r in runs) == len(pnls)
    assert all(a.type != b.type for a, b in zip(runs, runs[1:]))


@given(pnls=pnl_lists, minutes=st.lists(st.floats(min_value=0, max_value=120), min_size=20, max_size=20))
@settings(max_examples=100)
def test_revenge_triggers_are_losses(pnls, minutes):
    trades = []
    start = T0
    for i, pnl in enumerate(pnls):
        start = start + timedelta(minutes=minutes[i])
        trades.append(
            make_trade(pnl, trade_id=f"p{i}", entry=1000, qty=1 + i % 3, entry_time=start, hold_minutes=2)
        )
        start = start + timedelta(minutes=2)
    resolved = MarketPnLResolver().resolve_closed(trades)
    analysis = RevengeDetector().detect(resolved)
    losses = {r.trade.trade_id for r in resolved if r.is_loss}
    assert all(i.trigger_trade_id in losses for i in analysis.incidents)
    assert 0 <= analysis.score <= 100


@given(pnls=pnl_lists, spacing_hours=st.integers(min_value=1, max_value=30))
@settings(max_examples=100)
def test_snapshot_scores_bounded(pnls, spacing_hours):
    trades = make_series(pnls, entry=1000, spacing=timedelta(hours=spacing_hours))
    snap = BehavioralAnalyzer().analyze(trades)
    assert 0 <= snap.consistency.score <= 100
    assert 0 <= snap.volt_score.score <= 100
    assert snap.outliers.trimmed_each_side * 2 <= max(len(pnls), 0)


@given(pnls=pnl_lists, commission=st.integers(min_value=0, max_value=20))
@settings(max_examples=100)
def test_execution_score_bounded(pnls, commission):
    report = ExecutionAnalyzer().analyze(make_series(pnls, entry=1000, commission=commission))
    assert 0 <= report.score <= 100
    assert all(0 <= v <= 100 for v in report.components.values())


@given(pnls=pnl_lists)
@settings(max_examples=100)
def test_outliers_without_trim_match_total(pnls):
    resolved = MarketPnLResolver().resolve_closed(make_series(pnls, entry=1000))
    o = analyze_outliers(resolved, fraction=0.0)
    assert o.pnl_without_outliers == o.total_pnl
