import pytest

from volt_analytics.core.enums import MarketType
from volt_analytics.execution.commission import analyze_commission

from tests.factories import make_partial, make_trade


class TestCommission:
    def test_share_of_pnl_and_volume(self, resolver):
        resolved = resolver.resolve_closed([
            make_trade(100, commission=5),
            make_trade(-50, commission=5),
        ])
        c = analyze_commission(resolved, resolver)
        assert c.total_commission == pytest.approx(10.0)
        assert c.avg_commission == pytest.approx(5.0)
        assert c.total_gross_pnl == pytest.approx(50.0)
        assert c.pct_of_pnl.value == pytest.approx(20.0)
        assert c.pct_of_volume == pytest.approx(5.0)
        assert c.break_even_move_pct == pytest.approx(5.0)

    def test_flat_book_with_commission_is_infinite(self, resolver):
        c = analyze_commission(resolver.resolve_closed([make_trade(0, commission=2)]), resolver)
        assert c.pct_of_pnl.is_infinite
        assert c.to_dict()["pct_of_pnl"] == "inf"

    def test_flat_book_without_commission_is_undefined(self, resolver):
        c = analyze_commission(resolver.resolve_closed([make_trade(0)]), resolver)
        assert c.pct_of_pnl.is_undefined

    def test_partial_exit_commission_included(self, resolver):
        t = make_trade(10, qty=2, commission=1, partial_exits=(make_partial(104, 1, commission=2),))
        c = analyze_commission(resolver.resolve_closed([t]), resolver)
        assert c.total_commission == pytest.approx(3.0)

    def test_by_market_break_even(self, resolver):
        resolved = resolver.resolve_closed([
            make_trade(50, symbol="ES", entry=4000, market_type=MarketType.FUTURES, commission=10),
            make_trade(1, commission=1),
        ])
        c = analyze_commission(resolved, resolver)
        assert list(c.by_market) == ["futures", "stocks"]
        assert c.by_market["futures"].total_notional == pytest.approx(200_000)
        assert c.by_market["futures"].break_even_move_pct == pytest.approx(0.005)
        assert c.by_market["stocks"].break_even_move_pct == pytest.approx(1.0)

    def test_empty(self, resolver):
        c = analyze_commission([], resolver)
        assert c.trades == 0
        assert c.avg_commission == 0.0
