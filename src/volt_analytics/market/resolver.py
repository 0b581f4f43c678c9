"""Market P&L resolver.

Turns a trade into a signed gross P&L using the contract conventions of
its market.  Commission is deliberately left out here (see ``net_pnl``)
so gross and net P&L stay distinguishable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..core.config import MarketConfig
from ..core.enums import MarketType
from ..core.models import Trade, chronological

logger = logging.getLogger(__name__)

_ONE = Decimal("1")


@dataclass(frozen=True)
class ResolvedTrade:
    """A closed trade paired with its resolved P&L."""

    trade: Trade
    gross_pnl: Decimal
    commission: Decimal

    @property
    def net_pnl(self) -> Decimal:
        return self.gross_pnl - self.commission

    @property
    def net(self) -> float:
        return float(self.net_pnl)

    @property
    def is_win(self) -> bool:
        return self.net_pnl > 0

    @property
    def is_loss(self) -> bool:
        return self.net_pnl < 0


class MarketPnLResolver:
    """Resolve signed P&L for trades across markets.

    Parameters
    ----------
    config : MarketConfig | None
        Contract multipliers and lot conventions.  Defaults apply when
        omitted.
    """

    def __init__(self, config: MarketConfig | None = None) -> None:
        self._config = config or MarketConfig()
        self._futures = {
            k: Decimal(str(v)) for k, v in self._config.futures_multipliers.items()
        }
        # Longest roots first so "ZN" wins over "Z"-style prefixes
        self._roots = sorted(self._futures, key=len, reverse=True)

    # ------------------------------------------------------------------ #
    # Multipliers                                                        #
    # ------------------------------------------------------------------ #

    def futures_multiplier(self, symbol: str) -> Decimal:
        """Contract multiplier for a futures symbol, 1 if unknown.

        Accepts bare roots (``ES``), continuous notation (``/ES``) and
        dated contracts (``ESZ4``).
        """
        key = symbol.strip().upper().lstrip("/")
        if key in self._futures:
            return self._futures[key]
        for root in self._roots:
            if key.startswith(root):
                return self._futures[root]
        logger.debug("No futures multiplier for %s, using 1", symbol)
        return _ONE

    def contract_multiplier(
        self, trade: Trade, market_type: MarketType | str | None = None,
    ) -> Decimal:
        """Multiplier converting a price move x quantity into currency."""
        market = _as_market(market_type if market_type is not None else trade.market_type)
        if market is None:
            logger.debug(
                "Unknown market type %r for trade %s, using base P&L",
                market_type if market_type is not None else trade.market_type,
                trade.trade_id,
            )
            return _ONE
        if market == MarketType.OPTIONS:
            return Decimal(str(self._config.options_multiplier))
        if market == MarketType.FUTURES:
            return self.futures_multiplier(trade.symbol)
        lot = self._config.lot_sizes.get(market)
        return Decimal(str(lot)) if lot else _ONE

    # ------------------------------------------------------------------ #
    # P&L                                                                #
    # ------------------------------------------------------------------ #

    def resolve_pnl(
        self, trade: Trade, market_type: MarketType | str | None = None,
    ) -> Decimal | None:
        """Signed gross P&L, or ``None`` while the trade is open.

        ``market_type`` overrides the trade's own market when given.
        Unknown markets fall back to the unmultiplied base calculation.
        """
        if trade.exit_price is None or trade.entry_price is None or trade.quantity is None:
            return None
        base = (trade.exit_price - trade.entry_price) * trade.direction.sign * trade.quantity
        return base * self.contract_multiplier(trade, market_type)

    def total_commission(self, trade: Trade) -> Decimal:
        """Trade commission plus commission charged on partial exits."""
        return trade.commission + sum(
            (p.commission for p in trade.partial_exits), Decimal("0"),
        )

    def net_pnl(self, trade: Trade) -> Decimal | None:
        """Gross P&L minus all commission, ``None`` while open."""
        gross = self.resolve_pnl(trade)
        if gross is None:
            return None
        return gross - self.total_commission(trade)

    def notional(self, trade: Trade) -> Decimal:
        """Entry notional in currency units (price x quantity x multiplier)."""
        return trade.notional * self.contract_multiplier(trade)

    def resolve_closed(self, trades: Iterable[Trade]) -> list[ResolvedTrade]:
        """Closed trades with resolved P&L, in chronological order."""
        resolved: list[ResolvedTrade] = []
        for trade in chronological(trades):
            gross = self.resolve_pnl(trade)
            if gross is None:
                continue
            resolved.append(
                ResolvedTrade(
                    trade=trade,
                    gross_pnl=gross,
                    commission=self.total_commission(trade),
                )
            )
        return resolved


def _as_market(value: MarketType | str | None) -> MarketType | None:
    if isinstance(value, MarketType):
        return value
    if value is None:
        return None
    try:
        return MarketType(str(value).lower())
    except ValueError:
        return None


_default_resolver: MarketPnLResolver | None = None


def resolve_pnl(
    trade: Trade,
    market_type: MarketType | str | None = None,
    config: MarketConfig | None = None,
) -> Decimal | None:
    """Module-level shortcut for ``MarketPnLResolver(config).resolve_pnl``."""
    global _default_resolver
    if config is not None:
        return MarketPnLResolver(config).resolve_pnl(trade, market_type)
    if _default_resolver is None:
        _default_resolver = MarketPnLResolver()
    return _default_resolver.resolve_pnl(trade, market_type)
