"""
Technical Indicator Library

Pure functions converting raw price series into moving averages, momentum
oscillators and trend-strength measures. No state, no side effects.

Key patterns:
- Inputs are any float sequence; numpy arrays are used internally
- SMA fails loudly (InsufficientDataError) when the window is too long
- RSI and ADX degrade to neutral (50) / zero values instead of failing
- EMA is seeded with the first raw value, not an SMA seed
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np

from spreadbot.core.errors import InsufficientDataError


class TrendStrength(str, Enum):
    """ADX trend-strength bucket."""

    VERY_WEAK = "very_weak"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


@dataclass(frozen=True, slots=True)
class ADXResult:
    """ADX with its directional indicators (last bar)."""
    adx: float
    plus_di: float
    minus_di: float


def sma(series: Sequence[float], period: int) -> List[float]:
    """
    Simple moving average over every full window.

    Args:
        series: Price series, oldest first
        period: Window length

    Returns:
        List of len(series) - period + 1 averages; the last element is the
        average of the most recent `period` values

    Raises:
        InsufficientDataError: If len(series) < period
    """
    if period < 1:
        raise ValueError(f"period must be >= 1: {period}")
    values = np.asarray(series, dtype=float)
    if len(values) < period:
        raise InsufficientDataError(
            f"SMA({period}) needs {period} points, got {len(values)}",
            required=period,
            available=len(values),
        )
    cumsum = np.cumsum(np.insert(values, 0, 0.0))
    return ((cumsum[period:] - cumsum[:-period]) / period).tolist()


def ema(series: Sequence[float], period: int) -> List[float]:
    """
    Exponential moving average seeded with the first value.

    Smoothing constant k = 2 / (period + 1). Output has the same length as
    the input (empty in, empty out).
    """
    values = np.asarray(series, dtype=float)
    if len(values) == 0:
        return []
    k = 2.0 / (period + 1)
    out = np.empty_like(values)
    out[0] = values[0]
    for i in range(1, len(values)):
        out[i] = values[i] * k + out[i - 1] * (1 - k)
    return out.tolist()


def macd(series: Sequence[float], fast_period: int = 12, slow_period: int = 26) -> List[float]:
    """MACD line: EMA(fast) - EMA(slow), pointwise."""
    fast = np.asarray(ema(series, fast_period))
    slow = np.asarray(ema(series, slow_period))
    return (fast - slow).tolist()


def macd_signal(
    series: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> Tuple[List[float], List[float], List[float]]:
    """
    MACD line, signal line and histogram.

    Returns:
        (macd, signal, histogram) where signal = EMA(macd, signal_period) and
        histogram = macd - signal
    """
    line = macd(series, fast_period, slow_period)
    signal = ema(line, signal_period)
    histogram = (np.asarray(line) - np.asarray(signal)).tolist()
    return line, signal, histogram


def rsi(series: Sequence[float], period: int = 14) -> float:
    """
    Relative strength index over the last `period` price changes.

    Returns 50.0 when fewer than period + 1 points are available and 100.0
    when the window has no losses.
    """
    values = np.asarray(series, dtype=float)
    if len(values) < period + 1:
        return 50.0

    deltas = np.diff(values[-(period + 1):])
    avg_gain = deltas[deltas > 0].sum() / period
    avg_loss = -deltas[deltas < 0].sum() / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100.0 - 100.0 / (1.0 + rs))


def wilder_smooth(values: Sequence[float], period: int) -> List[float]:
    """
    Wilder smoothing.

    First value is the simple average of the first `period` elements, then
    smoothed = (prev * (period - 1) + new) / period.
    """
    data = np.asarray(values, dtype=float)
    if len(data) < period:
        return []
    out = [float(data[:period].mean())]
    for x in data[period:]:
        out.append((out[-1] * (period - 1) + x) / period)
    return out


def adx(
    high: Sequence[float],
    low: Sequence[float],
    close: Sequence[float],
    period: int = 14,
) -> ADXResult:
    """
    Average directional index with +DI / -DI for the last bar.

    Args:
        high: High prices, oldest first
        low: Low prices
        close: Close prices
        period: Smoothing period

    Returns:
        ADXResult; all zeros when fewer than period + 1 bars are supplied
    """
    h = np.asarray(high, dtype=float)
    lo = np.asarray(low, dtype=float)
    c = np.asarray(close, dtype=float)
    n = min(len(h), len(lo), len(c))
    if n < period + 1:
        return ADXResult(0.0, 0.0, 0.0)
    h, lo, c = h[-n:], lo[-n:], c[-n:]

    prev_close = c[:-1]
    true_range = np.maximum.reduce([
        h[1:] - lo[1:],
        np.abs(h[1:] - prev_close),
        np.abs(lo[1:] - prev_close),
    ])

    up_move = h[1:] - h[:-1]
    down_move = lo[:-1] - lo[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)

    smoothed_tr = np.asarray(wilder_smooth(true_range, period))
    smoothed_plus = np.asarray(wilder_smooth(plus_dm, period))
    smoothed_minus = np.asarray(wilder_smooth(minus_dm, period))

    with np.errstate(divide="ignore", invalid="ignore"):
        plus_di = np.where(smoothed_tr > 0, smoothed_plus / smoothed_tr * 100, 0.0)
        minus_di = np.where(smoothed_tr > 0, smoothed_minus / smoothed_tr * 100, 0.0)
        di_sum = plus_di + minus_di
        dx = np.where(di_sum > 0, np.abs(plus_di - minus_di) / di_sum * 100, 0.0)

    # Not enough DX values for a full Wilder seed: fall back to their mean.
    if len(dx) >= period:
        adx_value = wilder_smooth(dx, period)[-1]
    else:
        adx_value = float(dx.mean())

    return ADXResult(
        adx=float(adx_value),
        plus_di=float(plus_di[-1]),
        minus_di=float(minus_di[-1]),
    )


def interpret_adx(value: float) -> TrendStrength:
    """Bucket an ADX value: <20, <25, <50, <75, else very strong."""
    if value < 20:
        return TrendStrength.VERY_WEAK
    if value < 25:
        return TrendStrength.WEAK
    if value < 50:
        return TrendStrength.MODERATE
    if value < 75:
        return TrendStrength.STRONG
    return TrendStrength.VERY_STRONG


def iv_percentile(current: float, history: Sequence[float]) -> float:
    """
    Rank of the current volatility level within its trailing history.

    Returns 50.0 for an empty history and 100.0 when current exceeds every
    historical value; otherwise the fraction of history strictly below the
    current level, as a percentage.
    """
    values = np.sort(np.asarray(history, dtype=float))
    if len(values) == 0:
        return 50.0
    index = int(np.searchsorted(values, current, side="left"))
    if index >= len(values):
        return 100.0
    return float(index / len(values) * 100)
