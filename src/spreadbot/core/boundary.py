"""
Pydantic Models for Collaborator Payload Validation

Raw market snapshots and option chains come from outside the process (web
scraping, HTTP APIs, CSV exports) and can be malformed. These models validate
them once at the boundary and convert to the frozen dataclasses in
spreadbot.core.models; the rest of the engine never sees a raw payload.

Key patterns:
- Field constraints: ge/le for ranges, gt for prices
- Aliases: accepts provider camelCase keys (plusDI, ivPercentile) and snake_case
- Conversion: to_domain() returns the immutable dataclass
- Failures are re-raised as DataError so callers catch one taxonomy

Decision tree:
    Does this data come from outside my process?
    ├─ Yes → Use Pydantic (validation critical) ← WE ARE HERE
    └─ No → Use dataclass (performance matters)
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator, model_validator

from spreadbot.core.errors import DataError
from spreadbot.core.models import MarketSnapshot, OptionChainSlice, OptionQuote


class SnapshotInput(BaseModel):
    """
    Raw market snapshot from the data collaborator.

    Attributes:
        price: Last price (must be positive)
        sma50: 50-period SMA
        sma200: 200-period SMA
        macd: MACD value
        rsi: RSI (0-100)
        adx: ADX (0-100)
        plus_di: +DI (0-100)
        minus_di: -DI (0-100)
        vix: Volatility index level (must be positive)
        iv_percentile: IV percentile (0-100)
        volume: Traded volume
        timestamp: Observation time
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    price: float = Field(..., gt=0)
    sma50: float = Field(..., gt=0)
    sma200: float = Field(..., gt=0)
    macd: float
    rsi: float = Field(..., ge=0, le=100)
    adx: float = Field(0.0, ge=0, le=100)
    plus_di: float = Field(0.0, ge=0, le=100, alias="plusDI")
    minus_di: float = Field(0.0, ge=0, le=100, alias="minusDI")
    vix: float = Field(..., gt=0)
    iv_percentile: float = Field(50.0, ge=0, le=100, alias="ivPercentile")
    volume: float = Field(0.0, ge=0)
    timestamp: datetime

    def to_domain(self) -> MarketSnapshot:
        return MarketSnapshot(
            price=self.price,
            sma50=self.sma50,
            sma200=self.sma200,
            macd=self.macd,
            rsi=self.rsi,
            adx=self.adx,
            plus_di=self.plus_di,
            minus_di=self.minus_di,
            vix=self.vix,
            iv_percentile=self.iv_percentile,
            volume=self.volume,
            timestamp=self.timestamp,
        )


class QuoteInput(BaseModel):
    """Raw option quote. Missing numeric fields default to zero."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    strike: float = Field(..., gt=0)
    bid: float = Field(0.0, ge=0)
    ask: float = Field(0.0, ge=0)
    last: float = Field(0.0, ge=0, alias="lastPrice")
    volume: int = Field(0, ge=0)
    open_interest: int = Field(0, ge=0, alias="openInterest")
    implied_volatility: float = Field(0.0, ge=0, le=10, alias="impliedVolatility")
    delta: Optional[float] = Field(None, ge=-1, le=1)
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None

    @field_validator("volume", "open_interest", mode="before")
    @classmethod
    def coerce_missing(cls, v):
        """Providers send null for untraded contracts."""
        return 0 if v is None else v

    @model_validator(mode="after")
    def check_crossed_market(self):
        if self.bid > 0 and self.ask > 0 and self.bid > self.ask:
            raise ValueError(f"Crossed market at strike {self.strike}: bid {self.bid} > ask {self.ask}")
        return self

    def to_domain(self) -> OptionQuote:
        return OptionQuote(
            strike=self.strike,
            bid=self.bid,
            ask=self.ask,
            last=self.last,
            volume=self.volume,
            open_interest=self.open_interest,
            implied_volatility=self.implied_volatility,
            delta=self.delta,
            gamma=self.gamma,
            theta=self.theta,
            vega=self.vega,
        )


class ChainInput(BaseModel):
    """
    Raw option chain for one expiration.

    Strikes must be unique per option type; duplicates are rejected rather
    than silently overwritten.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    expiration: date
    underlying_price: float = Field(..., gt=0, alias="underlyingPrice")
    calls: List[QuoteInput] = Field(default_factory=list)
    puts: List[QuoteInput] = Field(default_factory=list)
    iv_percentile: float = Field(50.0, ge=0, le=100, alias="ivPercentile")

    @field_validator("calls", "puts")
    @classmethod
    def unique_strikes(cls, v: List[QuoteInput]) -> List[QuoteInput]:
        strikes = [q.strike for q in v]
        if len(strikes) != len(set(strikes)):
            raise ValueError("Duplicate strikes in option chain")
        return v

    def to_domain(self, as_of: date) -> OptionChainSlice:
        return OptionChainSlice(
            expiration=self.expiration,
            underlying_price=self.underlying_price,
            calls={q.strike: q.to_domain() for q in self.calls},
            puts={q.strike: q.to_domain() for q in self.puts},
            iv_percentile=self.iv_percentile,
            put_call_ratio=calculate_put_call_ratio(self.puts, self.calls),
            days_to_expiration=(self.expiration - as_of).days,
        )


def calculate_put_call_ratio(puts: List[QuoteInput], calls: List[QuoteInput]) -> float:
    """
    Put/call volume ratio.

    Returns 1.0 when nothing traded, 2.0 when only puts traded, 0.5 when only
    calls traded, otherwise the ratio rounded to two decimals.
    """
    put_volume = sum(q.volume for q in puts)
    call_volume = sum(q.volume for q in calls)

    if put_volume == 0 and call_volume == 0:
        return 1.0
    if call_volume == 0:
        return 2.0
    if put_volume == 0:
        return 0.5
    return round(put_volume / call_volume, 2)


def parse_snapshot(payload: Dict[str, Any]) -> MarketSnapshot:
    """
    Validate a raw snapshot payload.

    Raises:
        DataError: If the payload is missing fields or out of range
    """
    try:
        return SnapshotInput.model_validate(payload).to_domain()
    except PydanticValidationError as e:
        raise DataError(f"Malformed market snapshot: {e.error_count()} error(s)", context={"errors": e.errors()}) from e


def parse_option_chain(payload: Dict[str, Any], as_of: date) -> OptionChainSlice:
    """
    Validate a raw option-chain payload.

    Raises:
        DataError: If the payload is malformed or has no quotes at all
    """
    try:
        chain = ChainInput.model_validate(payload)
    except PydanticValidationError as e:
        raise DataError(f"Malformed option chain: {e.error_count()} error(s)", context={"errors": e.errors()}) from e

    if not chain.calls and not chain.puts:
        raise DataError(f"Option chain for {chain.expiration} has no quotes")

    return chain.to_domain(as_of)
