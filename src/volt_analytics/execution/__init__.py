from .analyzer import ExecutionAnalyzer, ExecutionReport
from .commission import CommissionAnalysis, analyze_commission
from .hit_rates import HitRateAnalysis, analyze_hit_rates
from .partial_exits import PartialExitAnalysis, analyze_partial_exits
from .slippage import SlippageSummary, TradeSlippage, analyze_slippage

__all__ = [
    "CommissionAnalysis",
    "ExecutionAnalyzer",
    "ExecutionReport",
    "HitRateAnalysis",
    "PartialExitAnalysis",
    "SlippageSummary",
    "TradeSlippage",
    "analyze_commission",
    "analyze_hit_rates",
    "analyze_partial_exits",
    "analyze_slippage",
]
