"""
Historical Data Loader

Loads daily OHLCV + VIX history with polars and turns it into the
MarketSnapshot series the backtester replays.

Expected columns (case-insensitive): date, high, low, close, volume, vix.
Rows before the longest indicator window (the 200-day SMA by default) are
warm-up and produce no snapshot.
"""

from datetime import date, datetime, time
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import polars as pl
from loguru import logger

from spreadbot.config.trading_config import TechnicalConfig
from spreadbot.core.errors import DataError, InsufficientDataError
from spreadbot.core.models import MarketSnapshot
from spreadbot.indicators.technical import adx, ema, iv_percentile, rsi, sma

REQUIRED_COLUMNS = ["date", "high", "low", "close", "volume", "vix"]

# Trailing window for the VIX percentile rank (one trading year)
IV_PERCENTILE_WINDOW = 252
# ADX is computed over this many periods of trailing bars
ADX_LOOKBACK_PERIODS = 10


def load_price_history(path: Union[str, Path]) -> pl.DataFrame:
    """
    Read a daily history CSV.

    Args:
        path: CSV file with at least the REQUIRED_COLUMNS

    Returns:
        DataFrame sorted by date with REQUIRED_COLUMNS, nulls dropped

    Raises:
        DataError: If the file is missing or lacks required columns
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise DataError(f"History file not found: {csv_path}")

    frame = pl.read_csv(csv_path, try_parse_dates=True)
    frame = frame.rename({c: c.strip().lower() for c in frame.columns})
    return prepare_history(frame)


def prepare_history(frame: pl.DataFrame) -> pl.DataFrame:
    """Validate columns, cast types, sort by date and drop incomplete rows."""
    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise DataError(f"History is missing columns: {missing}", context={"columns": frame.columns})

    before = frame.height
    frame = (
        frame.select(REQUIRED_COLUMNS)
        .with_columns([pl.col(c).cast(pl.Float64) for c in REQUIRED_COLUMNS if c != "date"])
        .drop_nulls()
        .sort("date")
    )
    if frame.height < before:
        logger.warning(f"Dropped {before - frame.height} incomplete history rows")
    return frame


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    return datetime.fromisoformat(str(value))


def build_snapshots(frame: pl.DataFrame, technical: Optional[TechnicalConfig] = None) -> List[MarketSnapshot]:
    """
    Compute indicators per day and emit one snapshot per post-warm-up row.

    Args:
        frame: History as returned by load_price_history / prepare_history
        technical: Indicator periods

    Returns:
        Snapshots in chronological order

    Raises:
        InsufficientDataError: If the history is shorter than the warm-up window
    """
    technical = technical or TechnicalConfig()
    short_period, long_period = technical.sma_periods
    warmup = max(long_period, technical.macd_slow_period, technical.rsi_period + 1, technical.adx_period + 1)

    if frame.height < warmup:
        raise InsufficientDataError(
            f"History has {frame.height} rows, indicators need {warmup}",
            required=warmup,
            available=frame.height,
        )

    dates = frame["date"].to_list()
    high = frame["high"].to_numpy()
    low = frame["low"].to_numpy()
    close = frame["close"].to_numpy()
    volume = frame["volume"].to_numpy()
    vix = frame["vix"].to_numpy()

    # sma_short[j] averages the window ending at row j + short_period - 1
    sma_short = sma(close, short_period)
    sma_long = sma(close, long_period)
    macd_line = np.asarray(ema(close, technical.macd_fast_period)) - np.asarray(ema(close, technical.macd_slow_period))
    adx_window = technical.adx_period * ADX_LOOKBACK_PERIODS

    snapshots = []
    for i in range(warmup - 1, frame.height):
        start = max(0, i + 1 - adx_window)
        trend = adx(high[start:i + 1], low[start:i + 1], close[start:i + 1], technical.adx_period)
        snapshots.append(MarketSnapshot(
            price=float(close[i]),
            sma50=sma_short[i + 1 - short_period],
            sma200=sma_long[i + 1 - long_period],
            macd=float(macd_line[i]),
            rsi=rsi(close[:i + 1], technical.rsi_period),
            adx=trend.adx,
            plus_di=trend.plus_di,
            minus_di=trend.minus_di,
            vix=float(vix[i]),
            iv_percentile=iv_percentile(vix[i], vix[max(0, i - IV_PERCENTILE_WINDOW):i]),
            volume=float(volume[i]),
            timestamp=_as_datetime(dates[i]),
        ))

    logger.info(f"✓ Built {len(snapshots)} snapshots ({frame.height - len(snapshots)} warm-up rows)")
    return snapshots
