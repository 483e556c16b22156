"""
Core Module

Immutable market data models, boundary validation and the error taxonomy.
"""

from spreadbot.core.errors import (
    BacktestError,
    DataError,
    InsufficientDataError,
    MarketDataError,
    StrategyError,
    TradingBotError,
    ValidationError,
)
from spreadbot.core.models import MarketSnapshot, OptionChainSlice, OptionQuote, OptionRight

__all__ = [
    "BacktestError",
    "DataError",
    "InsufficientDataError",
    "MarketDataError",
    "MarketSnapshot",
    "OptionChainSlice",
    "OptionQuote",
    "OptionRight",
    "StrategyError",
    "TradingBotError",
    "ValidationError",
]
