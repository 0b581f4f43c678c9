"""Tests for the numpy statistics helpers."""

import pytest

from volt_analytics.core.stats import clamp, coefficient_of_variation, percentage, rms, safe_mean, safe_std


class TestStats:
    def test_empty_inputs_are_neutral(self):
        assert safe_mean([]) == 0.0
        assert safe_std([1.0], ddof=1) == 0.0
        assert coefficient_of_variation([]) is None
        assert rms([]) == 0.0
        assert percentage(1, 0) == 0.0

    def test_cv_zero_mean_is_none(self):
        assert coefficient_of_variation([1.0, -1.0]) is None

    def test_cv(self):
        # mean 2, population std 1
        assert coefficient_of_variation([1.0, 3.0]) == pytest.approx(0.5)

    def test_rms(self):
        assert rms([3.0, 4.0]) == pytest.approx((12.5) ** 0.5)

    def test_clamp(self):
        assert clamp(150) == 100
        assert clamp(-5) == 0
        assert clamp(42) == 42
