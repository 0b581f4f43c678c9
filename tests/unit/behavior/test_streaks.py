from volt_analytics.behavior.streaks import analyze_streaks, streak_runs
from volt_analytics.core.enums import StreakType

from tests.factories import make_series


class TestStreaks:
    def test_runs(self, resolver):
        resolved = resolver.resolve_closed(make_series([10, 0, -5, -5, 10, -1]))
        runs = streak_runs(resolved)
        assert [(r.type, r.length) for r in runs] == [
            (StreakType.WIN, 2),
            (StreakType.LOSS, 2),
            (StreakType.WIN, 1),
            (StreakType.LOSS, 1),
        ]
        assert runs[1].pnl == -10

    def test_summary(self, resolver):
        summary = analyze_streaks(resolver.resolve_closed(make_series([10, 0, -5, -5, 10, -1])))
        assert summary.current_type == StreakType.LOSS
        assert summary.current_count == 1
        assert summary.current_pnl == -1
        assert summary.longest_win == 2
        assert summary.longest_loss == 2
        assert summary.avg_win_streak == 1.5
        assert summary.avg_loss_streak == 1.5

    def test_break_even_counts_as_win(self, resolver):
        summary = analyze_streaks(resolver.resolve_closed(make_series([0, 0, 0])))
        assert summary.current_type == StreakType.WIN
        assert summary.current_count == 3
        assert summary.longest_loss == 0

    def test_empty(self):
        summary = analyze_streaks([])
        assert summary.current_type == StreakType.NONE
        assert summary.current_count == 0
        assert summary.to_dict()["runs"] == []
