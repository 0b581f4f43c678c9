"""Trading-performance analytics: P&L, risk, excursion, behaviour and execution."""

from .core.config import AnalyticsSettings, load_settings
from .core.enums import Direction, ExitReason, MarketType
from .core.models import PartialExit, PricePoint, Trade, partition_trades, validate_trade
from .core.ratio import Ratio
from .engine import AnalyticsReport, analyze

__all__ = [
    "AnalyticsReport",
    "AnalyticsSettings",
    "Direction",
    "ExitReason",
    "MarketType",
    "PartialExit",
    "PricePoint",
    "Ratio",
    "Trade",
    "analyze",
    "load_settings",
    "partition_trades",
    "validate_trade",
]
