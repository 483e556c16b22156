"""
spreadbot - Signal & Strategy Backtesting Engine

Evaluates daily market conditions for a single underlying, recommends a
defined-risk options spread sized to an account's risk budget, and replays
the same decision pipeline over history in a backtest simulator.

Pipeline:
    raw series -> indicators -> bias/volatility -> strategy/pricing
    -> sizing -> simulated trade -> aggregate results
"""

__version__ = "1.0.0"
