from .resolver import MarketPnLResolver, ResolvedTrade, resolve_pnl

__all__ = ["MarketPnLResolver", "ResolvedTrade", "resolve_pnl"]
