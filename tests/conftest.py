"""Shared fixtures for the volt-analytics test suite."""

from __future__ import annotations

import pytest

from volt_analytics.core.config import AnalyticsSettings
from volt_analytics.market.resolver import MarketPnLResolver

from .factories import make_series


@pytest.fixture
def settings():
    return AnalyticsSettings()


@pytest.fixture
def resolver():
    return MarketPnLResolver()


@pytest.fixture
def scenario_a_trades():
    """10 closed BUY trades: 6 wins of +100, 4 losses of -50."""
    return make_series([100, 100, -50, 100, -50, 100, 100, -50, 100, -50])
