"""Tests for the market P&L resolver."""

from decimal import Decimal

import pytest

from volt_analytics.core.config import MarketConfig
from volt_analytics.core.enums import Direction, MarketType
from volt_analytics.market.resolver import MarketPnLResolver, resolve_pnl

from tests.factories import make_partial, make_trade


class TestBasePnL:
    def test_long_profit(self, resolver):
        t = make_trade(entry=100, exit=110, qty=3)
        assert resolver.resolve_pnl(t) == Decimal("30")

    def test_short_profit(self, resolver):
        t = make_trade(direction=Direction.SELL, entry=100, exit=90, qty=2)
        assert resolver.resolve_pnl(t) == Decimal("20")

    def test_short_loss(self, resolver):
        t = make_trade(direction=Direction.SELL, entry=100, exit=105, qty=1)
        assert resolver.resolve_pnl(t) == Decimal("-5")

    def test_open_trade_is_none(self, resolver):
        assert resolver.resolve_pnl(make_trade(open_=True)) is None

    def test_commission_not_subtracted(self, resolver):
        t = make_trade(entry=100, exit=110, qty=1, commission=2)
        assert resolver.resolve_pnl(t) == Decimal("10")
        assert resolver.net_pnl(t) == Decimal("8")

    def test_partial_commission_included_in_net(self, resolver):
        t = make_trade(entry=100, exit=110, qty=2, commission=1, partial_exits=(make_partial(105, 1, commission=0.5),))
        assert resolver.total_commission(t) == Decimal("1.5")
        assert resolver.net_pnl(t) == Decimal("18.5")


class TestMarketConventions:
    def test_options_multiplied_by_100(self, resolver):
        t = make_trade(entry=2.5, exit=3.0, qty=2, market_type=MarketType.OPTIONS)
        assert resolver.resolve_pnl(t) == Decimal("100")

    @pytest.mark.parametrize("symbol,expected", [
        ("ES", Decimal("50")),
        ("/NQ", Decimal("20")),
        ("ESZ4", Decimal("50")),
        ("6EH5", Decimal("125000")),
        ("ZNM4", Decimal("1000")),
        ("UNKNOWN", Decimal("1")),
    ])
    def test_futures_multiplier_lookup(self, resolver, symbol, expected):
        assert resolver.futures_multiplier(symbol) == expected

    def test_futures_pnl(self, resolver):
        t = make_trade(symbol="ES", entry=4500, exit=4510, qty=2, market_type=MarketType.FUTURES)
        assert resolver.resolve_pnl(t) == Decimal("1000")

    def test_unknown_futures_symbol_defaults_to_one(self, resolver):
        t = make_trade(symbol="XYZ", entry=10, exit=12, qty=1, market_type=MarketType.FUTURES)
        assert resolver.resolve_pnl(t) == Decimal("2")

    @pytest.mark.parametrize("market", [MarketType.STOCKS, MarketType.FOREX, MarketType.CRYPTO])
    def test_unmodified_markets(self, resolver, market):
        t = make_trade(entry=1.1, exit=1.2, qty=1000, market_type=market)
        assert resolver.resolve_pnl(t) == Decimal("100")

    def test_unknown_market_falls_back_to_base(self, resolver):
        t = make_trade(entry=10, exit=11, qty=5, market_type="bonds")
        assert resolver.resolve_pnl(t) == Decimal("5")

    def test_market_type_argument_overrides_trade(self, resolver):
        t = make_trade(entry=1, exit=2, qty=1, market_type=MarketType.STOCKS)
        assert resolver.resolve_pnl(t, MarketType.OPTIONS) == Decimal("100")

    def test_configured_lot_size(self):
        resolver = MarketPnLResolver(MarketConfig(lot_sizes={MarketType.FOREX: 100_000}))
        t = make_trade(entry=1.1000, exit=1.1010, qty=1, market_type=MarketType.FOREX)
        assert resolver.resolve_pnl(t) == Decimal("100.0")

    def test_module_level_shortcut(self):
        t = make_trade(entry=10, exit=12, qty=1)
        assert resolve_pnl(t) == Decimal("2")
        custom = MarketConfig(options_multiplier=10)
        assert resolve_pnl(t, MarketType.OPTIONS, config=custom) == Decimal("20")


class TestResolveClosed:
    def test_skips_open_and_orders_chronologically(self, resolver):
        from datetime import timedelta
        from tests.factories import T0

        later = make_trade(5, trade_id="later", entry_time=T0 + timedelta(hours=2))
        earlier = make_trade(-5, trade_id="earlier", entry_time=T0)
        still_open = make_trade(open_=True, trade_id="open")
        resolved = resolver.resolve_closed([later, still_open, earlier])
        assert [r.trade.trade_id for r in resolved] == ["earlier", "later"]
        assert resolved[0].is_loss
        assert resolved[1].is_win
