"""
Indicators Module

Pure technical-indicator functions over daily price series.
"""

from spreadbot.indicators.technical import (
    ADXResult,
    TrendStrength,
    adx,
    ema,
    interpret_adx,
    iv_percentile,
    macd,
    macd_signal,
    rsi,
    sma,
    wilder_smooth,
)

__all__ = [
    "ADXResult",
    "TrendStrength",
    "adx",
    "ema",
    "interpret_adx",
    "iv_percentile",
    "macd",
    "macd_signal",
    "rsi",
    "sma",
    "wilder_smooth",
]
