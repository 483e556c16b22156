"""
Decisions Module

Market bias, signal strength and volatility regime classification.
"""

from spreadbot.decisions.signals import (
    MAX_SIGNAL_STRENGTH,
    MarketBias,
    SignalBreakdown,
    SignalClassifier,
    TechnicalSignal,
)
from spreadbot.decisions.volatility import (
    PercentileFlag,
    VolatilityAssessment,
    VolatilityClassifier,
    VolatilityRegime,
)

__all__ = [
    "MAX_SIGNAL_STRENGTH",
    "MarketBias",
    "PercentileFlag",
    "SignalBreakdown",
    "SignalClassifier",
    "TechnicalSignal",
    "VolatilityAssessment",
    "VolatilityClassifier",
    "VolatilityRegime",
]
