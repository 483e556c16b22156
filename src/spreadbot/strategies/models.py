"""
Strategy Data Models

This module provides data models for options-spread strategies and the
recommendations built from them.
Uses dataclasses with slots=True (internal data, validated on entry).

Key patterns:
- dataclass(frozen=True, slots=True) for computed parameters
- __post_init__ validation raises ValidationError on invariant violations
- StrategyType is a closed enumeration; selection is exhaustive over it

Decision tree:
    Is this data internal to my process?
    ├─ Yes → Use dataclass (performance matters) ← WE ARE HERE
    └─ No → Use Pydantic (validation critical)
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from spreadbot.core.errors import ValidationError
from spreadbot.core.models import OptionRight
from spreadbot.decisions.signals import MarketBias
from spreadbot.decisions.volatility import VolatilityAssessment
from spreadbot.risk_manager.models import RiskLevel, RiskMetrics

# Tolerance for float comparisons on strikes and premiums
EPSILON = 1e-9


class StrategyType(str, Enum):
    """
    Strategy vocabulary.

    Credit strategies collect premium (favored in high volatility), debit
    strategies pay premium (favored in low volatility).
    """

    BULL_PUT_SPREAD = "bull_put_spread"
    BEAR_CALL_SPREAD = "bear_call_spread"
    BULL_CALL_SPREAD = "bull_call_spread"
    BEAR_PUT_SPREAD = "bear_put_spread"
    IRON_CONDOR = "iron_condor"
    IRON_BUTTERFLY = "iron_butterfly"
    CALENDAR_SPREAD = "calendar_spread"
    NO_TRADE = "no_trade"

    @property
    def is_credit(self) -> bool:
        return self in (
            StrategyType.BULL_PUT_SPREAD,
            StrategyType.BEAR_CALL_SPREAD,
            StrategyType.IRON_CONDOR,
            StrategyType.IRON_BUTTERFLY,
        )

    @property
    def is_debit(self) -> bool:
        return self in (
            StrategyType.BULL_CALL_SPREAD,
            StrategyType.BEAR_PUT_SPREAD,
            StrategyType.CALENDAR_SPREAD,
        )

    @property
    def direction(self) -> MarketBias:
        if self in (StrategyType.BULL_PUT_SPREAD, StrategyType.BULL_CALL_SPREAD):
            return MarketBias.BULLISH
        if self in (StrategyType.BEAR_CALL_SPREAD, StrategyType.BEAR_PUT_SPREAD):
            return MarketBias.BEARISH
        return MarketBias.NEUTRAL

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass(frozen=True, slots=True)
class StrategyParameters:
    """
    Strikes and economics of one strategy.

    Premiums are per share. For four-leg structures the primary pair holds
    the put wing and the call_* fields hold the call wing.

    Attributes:
        strategy: Strategy identifier
        sell_strike: Short strike of the primary pair
        buy_strike: Long strike of the primary pair
        option_right: Option type of the primary pair
        call_sell_strike: Short call strike (condor/butterfly)
        call_buy_strike: Long call strike (condor/butterfly)
        target_credit: Net premium received (credit strategies)
        net_debit: Net premium paid (debit strategies)
        max_loss: Maximum loss per share (>= 0)
        max_profit: Maximum profit per share (>= 0)
        return_on_risk: max_profit / max_loss
        days_to_expiration: Calendar days to expiration
        expiry_date: Expiration date
        breakeven_price: Breakeven (lower breakeven for neutral structures)
        upper_breakeven_price: Upper breakeven for neutral structures
        probability_of_profit: Probability of profit (0-1)
    """
    strategy: StrategyType
    sell_strike: Optional[float] = None
    buy_strike: Optional[float] = None
    option_right: Optional[OptionRight] = None
    call_sell_strike: Optional[float] = None
    call_buy_strike: Optional[float] = None
    target_credit: float = 0.0
    net_debit: float = 0.0
    max_loss: float = 0.0
    max_profit: float = 0.0
    return_on_risk: float = 0.0
    days_to_expiration: int = 0
    expiry_date: Optional[date] = None
    breakeven_price: float = 0.0
    upper_breakeven_price: Optional[float] = None
    probability_of_profit: float = 0.0

    def __post_init__(self):
        """Validate invariants of the computed parameters."""
        if self.max_loss < 0:
            raise ValidationError(f"max_loss must be >= 0, got {self.max_loss:.4f}")
        if self.max_profit < 0:
            raise ValidationError(f"max_profit must be >= 0, got {self.max_profit:.4f}")
        if self.target_credit < 0 or self.net_debit < 0:
            raise ValidationError("Premiums must be non-negative")
        if not (0.0 <= self.probability_of_profit <= 1.0):
            raise ValidationError(f"probability_of_profit must be in [0, 1], got {self.probability_of_profit}")

        if self.strategy in (StrategyType.BULL_PUT_SPREAD, StrategyType.BEAR_CALL_SPREAD):
            if self.sell_strike is None or self.buy_strike is None:
                raise ValidationError(f"{self.strategy.label} needs both strikes")
            width = abs(self.sell_strike - self.buy_strike)
            if self.target_credit > width + EPSILON:
                raise ValidationError(
                    f"Credit {self.target_credit:.2f} exceeds spread width {width:.2f}",
                    context={"strategy": self.strategy.value},
                )

        if self.strategy == StrategyType.BULL_PUT_SPREAD and self.breakeven_price >= self.sell_strike:
            raise ValidationError(
                f"Bull put breakeven {self.breakeven_price:.2f} must be below short strike {self.sell_strike}"
            )
        if self.strategy == StrategyType.BEAR_CALL_SPREAD and self.breakeven_price <= self.sell_strike:
            raise ValidationError(
                f"Bear call breakeven {self.breakeven_price:.2f} must be above short strike {self.sell_strike}"
            )

    @property
    def spread_width(self) -> float:
        if self.sell_strike is None or self.buy_strike is None:
            return 0.0
        return abs(self.sell_strike - self.buy_strike)

    def validate_against(self, spot: float) -> "StrategyParameters":
        """
        Check breakeven direction against the current price.

        Bullish credit spreads must break even below spot and bearish ones
        above it.

        Raises:
            ValidationError: If the breakeven sits on the wrong side of spot
        """
        if self.strategy == StrategyType.BULL_PUT_SPREAD and self.breakeven_price >= spot:
            raise ValidationError(
                f"Bull put breakeven {self.breakeven_price:.2f} not below price {spot:.2f}"
            )
        if self.strategy == StrategyType.BEAR_CALL_SPREAD and self.breakeven_price <= spot:
            raise ValidationError(
                f"Bear call breakeven {self.breakeven_price:.2f} not above price {spot:.2f}"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "strategy": self.strategy.value,
            "sell_strike": self.sell_strike,
            "buy_strike": self.buy_strike,
            "option_right": self.option_right.value if self.option_right else None,
            "call_sell_strike": self.call_sell_strike,
            "call_buy_strike": self.call_buy_strike,
            "target_credit": self.target_credit,
            "net_debit": self.net_debit,
            "max_loss": self.max_loss,
            "max_profit": self.max_profit,
            "return_on_risk": self.return_on_risk,
            "days_to_expiration": self.days_to_expiration,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "breakeven_price": self.breakeven_price,
            "upper_breakeven_price": self.upper_breakeven_price,
            "probability_of_profit": self.probability_of_profit,
        }


@dataclass(slots=True)
class StrategyRecommendation:
    """
    Daily strategy recommendation.

    Attributes:
        strategy: Recommended strategy (NO_TRADE when skipped)
        position_size: Capital allocated (currency)
        position_size_pct: Capital allocated as a fraction of balance
        risk_level: LOW / MEDIUM / HIGH
        expected_win_rate: Expected win rate (percent)
        signal_strength: Signal strength (0-5)
        max_risk: Maximum risk (currency)
        reasoning: Human-readable explanation
        strategy_parameters: Strikes and economics
        market_bias: Voted market bias
        volatility: Volatility assessment
        confidence: Confidence score (percent)
        risk_metrics: Risk metrics (None for NO_TRADE)
        timestamp: Snapshot time the recommendation is based on
    """
    strategy: StrategyType
    position_size: float
    position_size_pct: float
    risk_level: RiskLevel
    expected_win_rate: float
    signal_strength: float
    max_risk: float
    reasoning: str
    strategy_parameters: StrategyParameters
    market_bias: MarketBias
    volatility: VolatilityAssessment
    confidence: float
    risk_metrics: Optional[RiskMetrics] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_trade(self) -> bool:
        return self.strategy != StrategyType.NO_TRADE

    def __str__(self) -> str:
        return (
            f"{self.strategy.label}: size ${self.position_size:,.2f} "
            f"({self.position_size_pct:.1%}), risk {self.risk_level.value}, "
            f"signal {self.signal_strength:.2f}/5, win rate {self.expected_win_rate:.0f}%"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "strategy": self.strategy.value,
            "position_size": self.position_size,
            "position_size_pct": self.position_size_pct,
            "risk_level": self.risk_level.value,
            "expected_win_rate": self.expected_win_rate,
            "signal_strength": self.signal_strength,
            "max_risk": self.max_risk,
            "reasoning": self.reasoning,
            "strategy_parameters": self.strategy_parameters.to_dict(),
            "market_bias": self.market_bias.value,
            "volatility": self.volatility.to_dict(),
            "confidence": self.confidence,
            "risk_metrics": self.risk_metrics.to_dict() if self.risk_metrics else None,
            "timestamp": self.timestamp.isoformat(),
        }
