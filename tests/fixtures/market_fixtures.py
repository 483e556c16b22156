"""
Market data fixtures for testing the strategy engine.

Provides market snapshots in each regime, option chains (model-priced and
hand-quoted), and deterministic daily histories for indicator and backtest
tests.

Usage:
    def test_bias(bullish_snapshot):
        assert bullish_snapshot.price > bullish_snapshot.sma50

    def test_custom():
        snapshot = make_snapshot(vix=40.0, iv_percentile=80.0)
"""

import math
from datetime import date, datetime, timedelta
from typing import List

import numpy as np
import polars as pl
import pytest

from spreadbot.core.models import MarketSnapshot, OptionChainSlice, OptionQuote
from spreadbot.pricing.synthetic_chain import build_synthetic_chain

SNAPSHOT_DEFAULTS = dict(
    price=603.75,
    sma50=590.0,
    sma200=560.0,
    macd=12.0,
    rsi=55.0,
    adx=28.0,
    plus_di=30.0,
    minus_di=15.0,
    vix=18.0,
    iv_percentile=50.0,
    volume=80_000_000.0,
    timestamp=datetime(2025, 1, 15, 16, 0),
)


def make_snapshot(**overrides) -> MarketSnapshot:
    """
    Build a MarketSnapshot from bullish defaults.

    Defaults score a signal strength of 3.25 with a BULLISH bias in a
    MEDIUM volatility regime.
    """
    values = dict(SNAPSHOT_DEFAULTS)
    values.update(overrides)
    return MarketSnapshot(**values)


def make_price_frame(rows: int = 300, start_price: float = 450.0, seed: int = 7) -> pl.DataFrame:
    """
    Deterministic daily OHLCV + VIX history on business days.

    Returns:
        pl.DataFrame with date, high, low, close, volume, vix columns
    """
    rng = np.random.default_rng(seed)
    returns = rng.normal(0.0004, 0.009, rows)
    close = start_price * np.exp(np.cumsum(returns))
    spread = np.abs(rng.normal(0.0, 0.004, rows)) + 0.002
    vix = 18.0 + 4.0 * np.sin(np.arange(rows) / 15.0) + rng.normal(0.0, 0.5, rows)

    dates: List[date] = []
    day = date(2023, 1, 2)
    while len(dates) < rows:
        if day.weekday() < 5:
            dates.append(day)
        day += timedelta(days=1)

    return pl.DataFrame({
        "date": dates,
        "high": close * (1 + spread),
        "low": close * (1 - spread),
        "close": close,
        "volume": np.full(rows, 80_000_000.0),
        "vix": vix,
    })


@pytest.fixture
def bullish_snapshot():
    """
    Bullish trend in medium volatility.

    price > SMA50 > SMA200, strong positive MACD, +DI above -DI with ADX 28.
    """
    return make_snapshot()


@pytest.fixture
def bearish_snapshot():
    """Mirror image of the bullish snapshot."""
    return make_snapshot(
        price=560.0,
        sma50=580.0,
        sma200=600.0,
        macd=-12.0,
        rsi=45.0,
        plus_di=12.0,
        minus_di=30.0,
    )


@pytest.fixture
def neutral_snapshot():
    """
    Tied bias vote in low volatility with a low IV percentile.

    Signal strength 2.0; the decision table resolves to NO_TRADE.
    """
    return make_snapshot(
        price=600.0,
        sma50=590.0,
        sma200=610.0,
        macd=12.0,
        rsi=50.0,
        adx=22.0,
        plus_di=15.0,
        minus_di=25.0,
        vix=12.0,
        iv_percentile=20.0,
    )


@pytest.fixture
def weak_snapshot():
    """Price on its 200-day average, flat MACD and weak trend: signal strength 0."""
    return make_snapshot(
        price=590.0,
        sma50=595.0,
        sma200=590.0,
        macd=0.0,
        rsi=50.0,
        adx=22.0,
        vix=20.0,
    )


@pytest.fixture
def option_chain(bullish_snapshot):
    """Model-priced chain 25 days out around the bullish snapshot."""
    return build_synthetic_chain(bullish_snapshot, 25)


@pytest.fixture
def quoted_put_chain():
    """
    Two-strike put chain with live quotes.

    592 put: 5.00 / 5.10, 580 put: 2.80 / 2.90, 28 days to expiration.
    A bull put spread on it collects 5.00 - 2.90 = 2.10.
    """
    def quote(strike, bid, ask, iv):
        return OptionQuote(
            strike=strike,
            bid=bid,
            ask=ask,
            last=(bid + ask) / 2,
            volume=1200,
            open_interest=15000,
            implied_volatility=iv,
        )

    return OptionChainSlice(
        expiration=date(2025, 2, 12),
        underlying_price=603.75,
        puts={
            592.0: quote(592.0, 5.00, 5.10, 0.17329),
            580.0: quote(580.0, 2.80, 2.90, 0.19307),
        },
        iv_percentile=80.0,
        days_to_expiration=28,
    )


@pytest.fixture
def price_frame():
    """300 business days of synthetic history (101 post-warm-up snapshots)."""
    return make_price_frame()


@pytest.fixture
def snapshot_history():
    """
    90 consecutive daily snapshots oscillating around 600.

    Indicators stay at the bullish defaults so every candidate day scores
    above the backtest threshold; only the price moves.
    """
    start = datetime(2024, 1, 1, 16, 0)
    return [
        make_snapshot(
            price=600.0 * (1 + 0.03 * math.sin(i / 5.0)),
            timestamp=start + timedelta(days=i),
        )
        for i in range(90)
    ]
