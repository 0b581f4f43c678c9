import pytest
from pydantic import ValidationError

from volt_analytics.behavior.volt_score import compute_volt_score, normalize_ratio, score_label
from volt_analytics.core.config import VoltWeights
from volt_analytics.core.enums import ScoreLabel
from volt_analytics.core.ratio import Ratio


class TestHelpers:
    @pytest.mark.parametrize(
        "score,label",
        [
            (95, ScoreLabel.EXCELLENT),
            (80, ScoreLabel.EXCELLENT),
            (79.9, ScoreLabel.GOOD),
            (60, ScoreLabel.GOOD),
            (40, ScoreLabel.AVERAGE),
            (39.9, ScoreLabel.NEEDS_IMPROVEMENT),
        ],
    )
    def test_label_bands(self, score, label):
        assert score_label(score) == label

    def test_normalize_ratio(self):
        assert normalize_ratio(Ratio.finite(2.0), 20) == 40.0
        assert normalize_ratio(Ratio.finite(9.0), 20) == 100.0
        assert normalize_ratio(Ratio.infinite(), 20) == 100.0
        assert normalize_ratio(Ratio.undefined(), 20) == 0.0
        assert normalize_ratio(Ratio.undefined(), 20, undefined=100.0) == 100.0


class TestComputeVoltScore:
    def test_known_inputs(self):
        v = compute_volt_score(
            win_rate_pct=60,
            profit_factor=Ratio.finite(3.0),
            payoff_ratio=Ratio.finite(2.0),
            consistency=90,
            recovery_factor=Ratio.finite(8.0),
            revenge_score=0,
        )
        c = v.components
        assert c.profit_factor == pytest.approx(60.0)
        assert c.risk_reward == pytest.approx(66.66)
        assert c.recovery == pytest.approx(90.0)
        assert c.discipline == 100.0
        assert v.score == pytest.approx(75.499)
        assert v.label == ScoreLabel.GOOD

    def test_perfect(self):
        v = compute_volt_score(
            win_rate_pct=100,
            profit_factor=Ratio.infinite(),
            payoff_ratio=Ratio.infinite(),
            consistency=100,
            recovery_factor=Ratio.undefined(),
            revenge_score=0,
        )
        assert v.score == pytest.approx(100.0)
        assert v.label == ScoreLabel.EXCELLENT

    def test_worst(self):
        v = compute_volt_score(
            win_rate_pct=0,
            profit_factor=Ratio.finite(0.0),
            payoff_ratio=Ratio.undefined(),
            consistency=0,
            recovery_factor=Ratio.finite(-2.0),
            revenge_score=100,
        )
        assert v.score == 0.0
        assert v.label == ScoreLabel.NEEDS_IMPROVEMENT

    def test_stop_compliance_drives_discipline(self):
        kwargs = dict(
            win_rate_pct=50,
            profit_factor=Ratio.finite(1.0),
            payoff_ratio=Ratio.finite(1.0),
            consistency=50,
            recovery_factor=Ratio.finite(1.0),
            revenge_score=40,
        )
        assert compute_volt_score(**kwargs).components.discipline == 60.0
        assert compute_volt_score(**kwargs, stop_compliance=25).components.discipline == 25.0

    def test_custom_weights(self):
        weights = VoltWeights(
            win_rate=1.0, profit_factor=0, risk_reward=0, consistency=0, recovery=0, discipline=0,
        )
        v = compute_volt_score(
            win_rate_pct=42,
            profit_factor=Ratio.finite(5.0),
            payoff_ratio=Ratio.finite(3.0),
            consistency=100,
            recovery_factor=Ratio.finite(10.0),
            revenge_score=0,
            weights=weights,
        )
        assert v.score == pytest.approx(42.0)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError):
            VoltWeights(win_rate=0.5)
