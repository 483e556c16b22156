"""
Data models shared across the engine.

This module contains the immutable market observations every component
consumes read-only. They are produced by a data collaborator (see
spreadbot.core.boundary for validation of raw payloads) and never mutated.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional


class OptionRight(str, Enum):
    """Option type."""

    CALL = "CALL"
    PUT = "PUT"


@dataclass(frozen=True, slots=True)
class MarketSnapshot:
    """
    One daily observation of the underlying with its indicators.

    Attributes:
        price: Last price of the underlying
        sma50: 50-period simple moving average
        sma200: 200-period simple moving average
        macd: MACD value (fast EMA - slow EMA)
        rsi: Relative strength index (0-100)
        adx: Average directional index
        plus_di: +DI directional indicator
        minus_di: -DI directional indicator
        vix: Volatility index level
        iv_percentile: Rank of vix in its trailing year (0-100)
        volume: Traded volume
        timestamp: Observation time
    """
    price: float
    sma50: float
    sma200: float
    macd: float
    rsi: float
    adx: float
    plus_di: float
    minus_di: float
    vix: float
    iv_percentile: float
    volume: float
    timestamp: datetime

    @property
    def trade_date(self) -> date:
        return self.timestamp.date()


@dataclass(frozen=True, slots=True)
class OptionQuote:
    """
    Quote for one option contract.

    Attributes:
        strike: Strike price
        bid: Best bid price
        ask: Best ask price
        last: Last trade price
        volume: Trading volume
        open_interest: Open interest
        implied_volatility: Implied volatility (annualized, decimal)
        delta: Option delta (if available)
        gamma: Option gamma (if available)
        theta: Option theta (if available)
        vega: Option vega (if available)
    """
    strike: float
    bid: float
    ask: float
    last: float
    volume: int
    open_interest: int
    implied_volatility: float
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None

    @property
    def mid(self) -> float:
        if self.bid > 0 and self.ask > 0:
            return (self.bid + self.ask) / 2
        return self.last

    @property
    def has_market(self) -> bool:
        """True when both sides of the market are quoted."""
        return self.bid > 0 and self.ask > 0


@dataclass(frozen=True, slots=True)
class OptionChainSlice:
    """
    All quotes for one expiration, keyed by strike per option type.

    Attributes:
        expiration: Expiration date
        underlying_price: Underlying price at fetch time
        calls: Call quotes keyed by strike
        puts: Put quotes keyed by strike
        iv_percentile: IV percentile of the underlying (0-100)
        put_call_ratio: Put volume / call volume
        days_to_expiration: Calendar days until expiration
    """
    expiration: date
    underlying_price: float
    calls: Dict[float, OptionQuote] = field(default_factory=dict)
    puts: Dict[float, OptionQuote] = field(default_factory=dict)
    iv_percentile: float = 50.0
    put_call_ratio: float = 1.0
    days_to_expiration: int = 0

    def quotes(self, right: OptionRight) -> Dict[float, OptionQuote]:
        return self.calls if right == OptionRight.CALL else self.puts

    def strikes(self, right: OptionRight) -> List[float]:
        """Sorted strikes available for one option type."""
        return sorted(self.quotes(right))

    def quote(self, right: OptionRight, strike: float) -> Optional[OptionQuote]:
        return self.quotes(right).get(strike)

    def is_empty(self) -> bool:
        return not self.calls and not self.puts
