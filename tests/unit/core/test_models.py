"""Tests for trade records, parsing and validation."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from volt_analytics.core.enums import Direction, ExitReason, MarketType
from volt_analytics.core.errors import TradeValidationError
from volt_analytics.core.models import (
    PartialExit,
    PricePoint,
    Trade,
    chronological,
    partition_trades,
    validate_trade,
)

from tests.factories import T0, make_partial, make_trade


class TestTradeProperties:
    def test_closed_iff_exit_price(self):
        assert make_trade(10).is_closed
        assert not make_trade(open_=True).is_closed

    def test_unknown_market_is_none(self):
        assert make_trade(market_type="bonds").market is None
        assert make_trade(market_type="FUTURES").market == MarketType.FUTURES

    def test_sort_time_falls_back_to_entry(self):
        t = make_trade(open_=True)
        assert t.sort_time == T0

    def test_hold_minutes(self):
        assert make_trade(1, hold_minutes=45).hold_minutes == 45


class TestValidateTrade:
    def test_valid_trade_passes(self):
        validate_trade(make_trade(10))  # Should not raise

    def test_missing_entry_price(self):
        t = make_trade(10)
        bad = Trade(**{**t.__dict__, "entry_price": None})
        with pytest.raises(TradeValidationError, match="missing entry_price"):
            validate_trade(bad)

    def test_non_positive_quantity(self):
        with pytest.raises(TradeValidationError, match="quantity"):
            validate_trade(make_trade(10, qty=0))

    def test_float_price_rejected(self):
        t = make_trade(10)
        bad = Trade(**{**t.__dict__, "entry_price": 100.0})
        with pytest.raises(TradeValidationError, match="entry_price"):
            validate_trade(bad)

    def test_exit_before_entry(self):
        t = make_trade(10)
        bad = Trade(**{**t.__dict__, "exit_time": T0 - timedelta(minutes=1)})
        with pytest.raises(TradeValidationError, match="precedes"):
            validate_trade(bad)

    def test_partials_exceeding_size(self):
        t = make_trade(10, qty=1, partial_exits=(make_partial(105, 0.6), make_partial(106, 0.6)))
        with pytest.raises(TradeValidationError, match="more than the position size"):
            validate_trade(t)

    def test_error_carries_trade_id(self):
        with pytest.raises(TradeValidationError) as exc_info:
            validate_trade(make_trade(10, qty=0, trade_id="abc"))
        assert exc_info.value.trade_id == "abc"

    def test_aware_exit_with_naive_entry(self):
        t = make_trade(10, hold_minutes=30)
        aware_exit = datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)
        mixed = Trade(**{**t.__dict__, "exit_time": aware_exit})
        validate_trade(mixed)  # Should not raise
        assert mixed.exit_time == datetime(2024, 1, 2, 10, 0)
        assert mixed.exit_time.tzinfo is None

    def test_non_datetime_exit_time(self):
        t = make_trade(10)
        bad = Trade(**{**t.__dict__, "exit_time": "2024-01-02T10:00:00"})
        with pytest.raises(TradeValidationError, match="exit_time must be a datetime"):
            validate_trade(bad)


class TestPartitionTrades:
    def test_excludes_malformed_without_raising(self):
        good = make_trade(10, trade_id="good")
        bad = make_trade(10, qty=-1, trade_id="bad")
        valid, rejected = partition_trades([good, bad, "not a trade"])
        assert valid == [good]
        assert len(rejected) == 2
        assert rejected[0].trade is bad

    def test_logs_exclusion(self, caplog):
        with caplog.at_level("WARNING"):
            partition_trades([make_trade(10, qty=0, trade_id="zero")])
        assert "zero" in caplog.text


class TestChronological:
    def test_orders_by_exit_time(self):
        late = make_trade(1, trade_id="late", entry_time=T0, hold_minutes=120)
        early = make_trade(1, trade_id="early", entry_time=T0 + timedelta(minutes=10), hold_minutes=5)
        assert [t.trade_id for t in chronological([late, early])] == ["early", "late"]

    def test_ties_keep_input_order(self):
        a = make_trade(1, trade_id="a")
        b = make_trade(1, trade_id="b")
        assert [t.trade_id for t in chronological([a, b])] == ["a", "b"]

    def test_mixed_aware_and_naive_collection(self):
        plus_one = timezone(timedelta(hours=1))
        naive = make_trade(1, trade_id="naive", entry_time=T0 + timedelta(hours=2))
        aware = make_trade(1, trade_id="aware", entry_time=datetime(2024, 1, 2, 10, 30, tzinfo=plus_one))
        assert aware.entry_time == T0
        assert [t.trade_id for t in chronological([naive, aware])] == ["aware", "naive"]

    def test_path_and_partial_timestamps_normalised(self):
        ts = datetime(2024, 1, 2, 9, 45, tzinfo=timezone.utc)
        partial = PartialExit(price=Decimal("105"), quantity=Decimal("0.5"), timestamp=ts)
        point = PricePoint(timestamp=ts, price=Decimal("104"))
        assert partial.timestamp == datetime(2024, 1, 2, 9, 45)
        assert point.timestamp.tzinfo is None


class TestFromDict:
    def test_parses_full_record(self):
        t = Trade.from_dict({
            "trade_id": "x1",
            "symbol": "ESZ4",
            "direction": "short",
            "market_type": "FUTURES",
            "entry_price": "4500.25",
            "exit_price": 4490,
            "quantity": 2,
            "entry_time": "2024-03-01T14:30:00",
            "exit_time": "2024-03-01T15:00:00",
            "commission": "4.5",
            "stop_loss": "4510",
            "exit_reason": "TAKE_PROFIT",
            "partial_exits": [{"price": "4495", "quantity": 1, "timestamp": "2024-03-01T14:45:00"}],
            "price_path": [{"timestamp": "2024-03-01T14:40:00", "price": "4505"}],
        })
        assert t.direction == Direction.SELL
        assert t.market_type == MarketType.FUTURES
        assert t.entry_price == Decimal("4500.25")
        assert t.exit_price == Decimal("4490")
        assert t.exit_reason == ExitReason.TAKE_PROFIT
        assert t.partial_exits[0].quantity == Decimal("1")
        assert t.price_path[0].price == Decimal("4505")
        validate_trade(t)

    def test_timezone_normalised_to_utc(self):
        t = Trade.from_dict({
            "symbol": "AAPL", "direction": "buy", "entry_price": 1, "quantity": 1,
            "entry_time": "2024-03-01T10:00:00+02:00",
        })
        assert t.entry_time == datetime(2024, 3, 1, 8, 0)
        assert t.entry_time.tzinfo is None

    def test_unknown_market_kept_as_string(self):
        t = Trade.from_dict({
            "symbol": "X", "direction": "buy", "entry_price": 1, "quantity": 1,
            "entry_time": "2024-03-01T10:00:00", "market_type": "bonds",
        })
        assert t.market_type == "bonds"

    def test_bad_number_raises(self):
        with pytest.raises(TradeValidationError, match="entry_price"):
            Trade.from_dict({"direction": "buy", "entry_price": "abc", "quantity": 1})

    def test_bad_direction_raises(self):
        with pytest.raises(TradeValidationError, match="direction"):
            Trade.from_dict({"direction": "sideways", "entry_price": 1, "quantity": 1})

    def test_non_object_partial_exit_raises(self):
        with pytest.raises(TradeValidationError, match="partial_exits entries must be objects"):
            Trade.from_dict({"direction": "buy", "entry_price": 1, "quantity": 1, "partial_exits": [5]})

    def test_non_list_price_path_raises(self):
        with pytest.raises(TradeValidationError, match="price_path must be a list"):
            Trade.from_dict({"direction": "buy", "entry_price": 1, "quantity": 1, "price_path": "flat"})

    def test_parse_error_chains_cause(self):
        with pytest.raises(TradeValidationError) as exc_info:
            Trade.from_dict({"direction": "buy", "entry_price": 1, "quantity": 1, "exit_reason": "bored"})
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_missing_entry_price_parses_but_fails_validation(self):
        t = Trade.from_dict({"direction": "buy", "quantity": 1, "entry_time": "2024-01-01T00:00:00"})
        assert t.entry_price is None
        _, rejected = partition_trades([t])
        assert rejected[0].reason == "missing entry_price"

    def test_to_dict_round_trips_key_fields(self):
        original = make_trade(10, trade_id="rt", stop_loss=Decimal("95"))
        parsed = Trade.from_dict(original.to_dict())
        assert parsed == original
