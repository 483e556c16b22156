"""
Strategies Module

Strategy vocabulary, rule-based selection, parameter construction and the
daily recommendation service.
"""

from spreadbot.strategies.models import StrategyParameters, StrategyRecommendation, StrategyType
from spreadbot.strategies.selector import StrategySelector, expected_win_rate, nearest_strike

__all__ = [
    "StrategyParameters",
    "StrategyRecommendation",
    "StrategySelector",
    "StrategyType",
    "expected_win_rate",
    "nearest_strike",
]
