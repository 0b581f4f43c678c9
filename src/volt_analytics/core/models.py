"""Trade records consumed by every analyzer.

A ``Trade`` is an immutable input record.  Optional fields are explicit
``None`` rather than missing attributes, so every formula states its own
null policy.  Prices and quantities are ``Decimal``; analyzers convert to
float only once they start computing statistics.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from .enums import Direction, ExitReason, MarketType
from .errors import TradeValidationError

logger = logging.getLogger(__name__)


def naive_utc(value: Any) -> Any:
    """Convert an aware ``datetime`` to naive UTC; anything else passes through."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass(frozen=True)
class PricePoint:
    """One observed price between entry and exit."""

    timestamp: datetime
    price: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", naive_utc(self.timestamp))


@dataclass(frozen=True)
class PartialExit:
    """A scale-out fill that closes part of the position before the final exit."""

    price: Decimal
    quantity: Decimal
    timestamp: datetime | None = None
    commission: Decimal = Decimal("0")
    reason: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", naive_utc(self.timestamp))


@dataclass(frozen=True)
class Trade:
    """Single round-trip trade.

    ``exit_price`` of ``None`` means the position is still open.  ``market_type``
    may hold an unrecognised string; the resolver then falls back to the
    unmultiplied base P&L.
    """

    symbol: str
    direction: Direction
    entry_price: Decimal | None
    quantity: Decimal | None
    entry_time: datetime | None
    exit_price: Decimal | None = None
    exit_time: datetime | None = None
    market_type: MarketType | str = MarketType.STOCKS
    commission: Decimal = Decimal("0")

    # Execution plan
    intended_entry: Decimal | None = None
    intended_exit: Decimal | None = None
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None
    exit_reason: ExitReason | None = None

    partial_exits: tuple[PartialExit, ...] = ()
    price_path: tuple[PricePoint, ...] = ()
    trade_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        # Aware timestamps become naive UTC so records from mixed sources compare
        object.__setattr__(self, "entry_time", naive_utc(self.entry_time))
        object.__setattr__(self, "exit_time", naive_utc(self.exit_time))

    # ------------------------------------------------------------------ #
    # Derived                                                            #
    # ------------------------------------------------------------------ #

    @property
    def is_closed(self) -> bool:
        return self.exit_price is not None

    @property
    def market(self) -> MarketType | None:
        """The market as an enum, or ``None`` if the type is unrecognised."""
        if isinstance(self.market_type, MarketType):
            return self.market_type
        try:
            return MarketType(str(self.market_type).lower())
        except ValueError:
            return None

    @property
    def notional(self) -> Decimal:
        """Entry notional (price x quantity), before any contract multiplier."""
        if self.entry_price is None or self.quantity is None:
            return Decimal("0")
        return self.entry_price * self.quantity

    @property
    def sort_time(self) -> datetime | None:
        """Chronological key: exit time, falling back to entry time."""
        return self.exit_time or self.entry_time

    @property
    def trade_date(self) -> date | None:
        ts = self.sort_time
        return ts.date() if ts is not None else None

    @property
    def hold_minutes(self) -> float | None:
        if self.entry_time is None or self.exit_time is None:
            return None
        return (self.exit_time - self.entry_time).total_seconds() / 60.0

    # ------------------------------------------------------------------ #
    # Serialisation                                                      #
    # ------------------------------------------------------------------ #

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Trade:
        """Parse a plain mapping (e.g. decoded JSON) into a ``Trade``.

        Timestamps are ISO-8601 strings; timezone-aware values are
        normalised to naive UTC so trades from mixed sources compare.

        Raises:
            TradeValidationError: a field cannot be parsed.
        """
        trade_id = str(data.get("trade_id") or data.get("id") or uuid.uuid4())

        direction_raw = data.get("direction", data.get("side"))
        direction = _parse_direction(direction_raw, trade_id)

        partials = tuple(
            PartialExit(
                price=_to_decimal(p.get("price"), "partial_exits.price", trade_id),
                quantity=_to_decimal(p.get("quantity"), "partial_exits.quantity", trade_id),
                timestamp=_to_datetime(p.get("timestamp"), "partial_exits.timestamp", trade_id),
                commission=_to_decimal(p.get("commission"), "partial_exits.commission", trade_id)
                or Decimal("0"),
                reason=p.get("reason"),
            )
            for p in _records(data, "partial_exits", trade_id)
        )
        path = tuple(
            PricePoint(
                timestamp=_to_datetime(p.get("timestamp"), "price_path.timestamp", trade_id),
                price=_to_decimal(p.get("price"), "price_path.price", trade_id),
            )
            for p in _records(data, "price_path", trade_id)
        )

        exit_reason = data.get("exit_reason")
        if exit_reason is not None:
            try:
                exit_reason = ExitReason(str(exit_reason).lower())
            except ValueError as exc:
                raise TradeValidationError(trade_id, f"unknown exit_reason {exit_reason!r}") from exc

        market_raw = data.get("market_type", MarketType.STOCKS.value)
        try:
            market: MarketType | str = MarketType(str(market_raw).lower())
        except ValueError:
            market = str(market_raw)

        return cls(
            symbol=str(data.get("symbol", "")),
            direction=direction,
            entry_price=_to_decimal(data.get("entry_price"), "entry_price", trade_id),
            quantity=_to_decimal(data.get("quantity"), "quantity", trade_id),
            entry_time=_to_datetime(data.get("entry_time"), "entry_time", trade_id),
            exit_price=_to_decimal(data.get("exit_price"), "exit_price", trade_id),
            exit_time=_to_datetime(data.get("exit_time"), "exit_time", trade_id),
            market_type=market,
            commission=_to_decimal(data.get("commission"), "commission", trade_id) or Decimal("0"),
            intended_entry=_to_decimal(data.get("intended_entry"), "intended_entry", trade_id),
            intended_exit=_to_decimal(data.get("intended_exit"), "intended_exit", trade_id),
            stop_loss=_to_decimal(data.get("stop_loss"), "stop_loss", trade_id),
            take_profit=_to_decimal(data.get("take_profit"), "take_profit", trade_id),
            exit_reason=exit_reason,
            partial_exits=partials,
            price_path=path,
            trade_id=trade_id,
        )

    def to_dict(self) -> dict[str, Any]:
        def _num(v: Decimal | None) -> str | None:
            return str(v) if v is not None else None

        def _ts(v: datetime | None) -> str | None:
            return v.isoformat() if v is not None else None

        market = self.market_type.value if isinstance(self.market_type, MarketType) else self.market_type
        return {
            "trade_id": self.trade_id,
            "symbol": self.symbol,
            "direction": self.direction.value,
            "market_type": market,
            "entry_price": _num(self.entry_price),
            "exit_price": _num(self.exit_price),
            "quantity": _num(self.quantity),
            "entry_time": _ts(self.entry_time),
            "exit_time": _ts(self.exit_time),
            "commission": _num(self.commission),
            "intended_entry": _num(self.intended_entry),
            "intended_exit": _num(self.intended_exit),
            "stop_loss": _num(self.stop_loss),
            "take_profit": _num(self.take_profit),
            "exit_reason": self.exit_reason.value if self.exit_reason else None,
            "partial_exits": [
                {
                    "price": _num(p.price),
                    "quantity": _num(p.quantity),
                    "timestamp": _ts(p.timestamp),
                    "commission": _num(p.commission),
                    "reason": p.reason,
                }
                for p in self.partial_exits
            ],
            "price_path": [
                {"timestamp": _ts(p.timestamp), "price": _num(p.price)}
                for p in self.price_path
            ],
        }


@dataclass(frozen=True)
class RejectedTrade:
    trade: Any
    reason: str


# ---------------------------------------------------------------------- #
# Validation                                                             #
# ---------------------------------------------------------------------- #

def _is_decimal(value: Any) -> bool:
    return isinstance(value, Decimal) and value.is_finite()


def validate_trade(trade: Trade) -> None:
    """Raise ``TradeValidationError`` if ``trade`` cannot be analysed."""
    tid = getattr(trade, "trade_id", "?")
    if not isinstance(trade, Trade):
        raise TradeValidationError(tid, f"expected Trade, got {type(trade).__name__}")
    if not isinstance(trade.direction, Direction):
        raise TradeValidationError(tid, f"invalid direction {trade.direction!r}")
    if trade.entry_price is None:
        raise TradeValidationError(tid, "missing entry_price")
    if not _is_decimal(trade.entry_price) or trade.entry_price <= 0:
        raise TradeValidationError(tid, f"entry_price must be a positive Decimal, got {trade.entry_price!r}")
    if trade.quantity is None:
        raise TradeValidationError(tid, "missing quantity")
    if not _is_decimal(trade.quantity) or trade.quantity <= 0:
        raise TradeValidationError(tid, f"quantity must be a positive Decimal, got {trade.quantity!r}")
    if not isinstance(trade.entry_time, datetime):
        raise TradeValidationError(tid, "missing entry_time")
    if trade.exit_price is not None and (not _is_decimal(trade.exit_price) or trade.exit_price < 0):
        raise TradeValidationError(tid, f"exit_price must be a non-negative Decimal, got {trade.exit_price!r}")
    if trade.exit_time is not None and not isinstance(trade.exit_time, datetime):
        raise TradeValidationError(tid, f"exit_time must be a datetime, got {trade.exit_time!r}")
    if trade.exit_time is not None and naive_utc(trade.exit_time) < naive_utc(trade.entry_time):
        raise TradeValidationError(tid, "exit_time precedes entry_time")
    if not _is_decimal(trade.commission):
        raise TradeValidationError(tid, f"commission must be a Decimal, got {trade.commission!r}")
    for name in ("intended_entry", "intended_exit", "stop_loss", "take_profit"):
        value = getattr(trade, name)
        if value is not None and (not _is_decimal(value) or value <= 0):
            raise TradeValidationError(tid, f"{name} must be a positive Decimal, got {value!r}")

    scaled = Decimal("0")
    for partial in trade.partial_exits:
        if not (_is_decimal(partial.quantity) and _is_decimal(partial.price)):
            raise TradeValidationError(tid, "partial exit price and quantity must be Decimals")
        if partial.timestamp is not None and not isinstance(partial.timestamp, datetime):
            raise TradeValidationError(tid, "partial exit timestamp must be a datetime")
        if partial.quantity <= 0 or partial.price < 0:
            raise TradeValidationError(tid, "partial exit needs positive quantity and non-negative price")
        scaled += partial.quantity
    if scaled > trade.quantity:
        raise TradeValidationError(
            tid, f"partial exits close {scaled}, more than the position size {trade.quantity}"
        )
    for point in trade.price_path:
        if not _is_decimal(point.price) or not isinstance(point.timestamp, datetime):
            raise TradeValidationError(tid, "price path points need a timestamp and a Decimal price")


def partition_trades(trades: Iterable[Any]) -> tuple[list[Trade], list[RejectedTrade]]:
    """Split ``trades`` into analysable records and rejected ones.

    Never raises: each malformed record is logged and excluded so one bad
    row cannot abort a batch.
    """
    valid: list[Trade] = []
    rejected: list[RejectedTrade] = []
    for trade in trades:
        try:
            validate_trade(trade)
        except TradeValidationError as exc:
            logger.warning(
                "Excluding trade %s: %s", exc.trade_id, exc.reason,
            )
            rejected.append(RejectedTrade(trade=trade, reason=exc.reason))
            continue
        valid.append(trade)
    return valid, rejected


def chronological(trades: Iterable[Trade]) -> list[Trade]:
    """Trades ordered by exit time (entry time for open trades); ties keep input order."""
    return sorted(trades, key=lambda t: naive_utc(t.sort_time) or datetime.min)


def closed_trades(trades: Iterable[Trade]) -> list[Trade]:
    return [t for t in trades if t.is_closed]


# ---------------------------------------------------------------------- #
# Parsing helpers                                                        #
# ---------------------------------------------------------------------- #

def _to_decimal(value: Any, name: str, trade_id: str) -> Decimal | None:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so floats like 0.1 keep their printed value
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise TradeValidationError(trade_id, f"{name} is not a number: {value!r}") from exc


def _to_datetime(value: Any, name: str, trade_id: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        try:
            ts = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise TradeValidationError(trade_id, f"{name} is not an ISO timestamp: {value!r}") from exc
    return naive_utc(ts)


def _records(data: Mapping[str, Any], name: str, trade_id: str) -> list[Mapping[str, Any]]:
    items = data.get(name) or ()
    if not isinstance(items, (list, tuple)):
        raise TradeValidationError(trade_id, f"{name} must be a list, got {type(items).__name__}")
    for item in items:
        if not isinstance(item, Mapping):
            raise TradeValidationError(trade_id, f"{name} entries must be objects, got {item!r}")
    return list(items)


def _parse_direction(value: Any, trade_id: str) -> Direction:
    if isinstance(value, Direction):
        return value
    key = str(value or "").strip().lower()
    if key in ("buy", "long"):
        return Direction.BUY
    if key in ("sell", "short"):
        return Direction.SELL
    raise TradeValidationError(trade_id, f"unknown direction {value!r}")
