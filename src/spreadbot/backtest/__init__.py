"""
Backtest Module

Sequential trade-lifecycle simulator and performance accounting.
"""

from spreadbot.backtest.metrics import annualized_return, compute_results, profit_factor, sharpe_ratio
from spreadbot.backtest.models import BacktestResult, ExitReason, TradeResult, TradeState
from spreadbot.backtest.simulator import Backtester, BacktestRun, OpenPosition, monthly_sample_indices

__all__ = [
    "BacktestResult",
    "BacktestRun",
    "Backtester",
    "ExitReason",
    "OpenPosition",
    "TradeResult",
    "TradeState",
    "annualized_return",
    "compute_results",
    "monthly_sample_indices",
    "profit_factor",
    "sharpe_ratio",
]
