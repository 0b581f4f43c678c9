from .config import AnalyticsSettings, load_settings
from .enums import Direction, ExitReason, MarketType, RatioKind
from .errors import AnalyticsError, ConfigError, NonFiniteValueError, TradeValidationError
from .models import PartialExit, PricePoint, RejectedTrade, Trade, partition_trades, validate_trade
from .ratio import Ratio

__all__ = [
    "AnalyticsError",
    "AnalyticsSettings",
    "ConfigError",
    "Direction",
    "ExitReason",
    "MarketType",
    "NonFiniteValueError",
    "PartialExit",
    "PricePoint",
    "Ratio",
    "RatioKind",
    "RejectedTrade",
    "Trade",
    "TradeValidationError",
    "load_settings",
    "partition_trades",
    "validate_trade",
]
