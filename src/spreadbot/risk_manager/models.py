"""
Risk Management Models

This module provides data models for account state, position sizing and
per-recommendation risk metrics.

Key patterns:
- dataclass(slots=True) for performance (internal data, validated on entry)
- RiskMetrics is frozen: recomputed fresh per recommendation, never mutated
- __post_init__ validation raises ValidationError

Decision tree:
    Is this data internal to my process?
    ├─ Yes → Use dataclass (performance matters) ← WE ARE HERE
    └─ No → Use Pydantic (validation critical)
"""

from dataclasses import asdict, dataclass
from enum import Enum

from spreadbot.core.errors import ValidationError


class RiskLevel(str, Enum):
    """Recommendation risk level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(slots=True)
class AccountInfo:
    """
    Account state used for sizing.

    Attributes:
        account_type: Key into the configured account bands (small, medium, large, stressed)
        balance: Account balance (currency)
        current_drawdown: Drawdown from peak as a fraction (0.15 = 15%)
        open_positions: Positions currently open

    Example:
        >>> account = AccountInfo(account_type="medium", balance=40_000, current_drawdown=0.03)
    """

    account_type: str
    balance: float
    current_drawdown: float = 0.0
    open_positions: int = 0

    def __post_init__(self):
        if self.balance <= 0:
            raise ValidationError(f"Account balance must be positive, got {self.balance}")
        if not (0.0 <= self.current_drawdown <= 1.0):
            raise ValidationError(f"current_drawdown must be a fraction in [0, 1], got {self.current_drawdown}")
        if self.open_positions < 0:
            raise ValidationError(f"open_positions must be >= 0, got {self.open_positions}")


@dataclass(frozen=True, slots=True)
class PositionSizing:
    """
    Result of position sizing.

    Attributes:
        fraction: Position size as a fraction of balance (inside the account band)
        amount: Position size (currency)
        max_risk: Maximum risk (currency), never above amount
    """

    fraction: float
    amount: float
    max_risk: float

    def __post_init__(self):
        if self.max_risk > self.amount + 1e-9:
            raise ValidationError(f"max_risk {self.max_risk:.2f} exceeds position size {self.amount:.2f}")


@dataclass(frozen=True, slots=True)
class RiskMetrics:
    """
    Risk metrics in effect for one recommendation or simulated trade.

    Attributes:
        max_position_size: Maximum position size (currency)
        suggested_stop_loss: Default stop 2% from entry
        risk_reward_ratio: Reward per unit of risk (> 1)
        max_drawdown: Drawdown ceiling (<= 0.25)
        volatility_adjustment: VIX-based factor in [0.5, 1.5]
        correlation_risk: Distance-from-trend risk score (>= 0)
        max_risk: Maximum risk (currency)
        stop_loss: Effective stop-loss price
        profit_target: Profit-target price (above entry for bullish framing,
            below for bearish)
    """

    max_position_size: float
    suggested_stop_loss: float
    risk_reward_ratio: float
    max_drawdown: float
    volatility_adjustment: float
    correlation_risk: float
    max_risk: float
    stop_loss: float
    profit_target: float

    def __post_init__(self):
        if self.risk_reward_ratio <= 1.0:
            raise ValidationError(f"risk_reward_ratio must be > 1, got {self.risk_reward_ratio:.3f}")
        if not (0.0 <= self.max_drawdown <= 0.25):
            raise ValidationError(f"max_drawdown must be in [0, 0.25], got {self.max_drawdown:.3f}")
        if not (0.5 <= self.volatility_adjustment <= 1.5):
            raise ValidationError(f"volatility_adjustment must be in [0.5, 1.5], got {self.volatility_adjustment:.3f}")
        if self.correlation_risk < 0:
            raise ValidationError(f"correlation_risk must be >= 0, got {self.correlation_risk:.3f}")
        if self.max_risk > self.max_position_size + 1e-9:
            raise ValidationError("max_risk exceeds max_position_size")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def __repr__(self) -> str:
        """Return string representation of risk metrics."""
        return (
            f"RiskMetrics("
            f"size=${self.max_position_size:,.2f}, "
            f"max_risk=${self.max_risk:,.2f}, "
            f"stop={self.stop_loss:.2f}, "
            f"target={self.profit_target:.2f}, "
            f"rr={self.risk_reward_ratio:.2f})"
        )
