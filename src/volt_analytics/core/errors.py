"""Custom exception hierarchy for the analytics engine."""


class AnalyticsError(Exception):
    """Base exception for all analytics engine errors."""


# --- Configuration ---
class ConfigError(AnalyticsError):
    """Invalid or missing configuration."""


# --- Data ---
class TradeValidationError(AnalyticsError):
    """A trade record is malformed and cannot take part in a computation."""

    def __init__(self, trade_id: str, reason: str):
        self.trade_id = trade_id
        self.reason = reason
        super().__init__(f"Trade [{trade_id}]: {reason}")


# --- Results ---
class NonFiniteValueError(AnalyticsError):
    """An infinite or undefined ratio was unwrapped as a plain number."""
