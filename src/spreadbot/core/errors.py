"""
Error taxonomy for the engine.

Every failure surfaced by the core derives from TradingBotError so hosts can
catch one base class. The core never retries; retries belong to the data
collaborator.

Hierarchy:
    TradingBotError
    ├── DataError
    │   └── MarketDataError
    ├── InsufficientDataError
    ├── StrategyError
    ├── ValidationError
    └── BacktestError
"""

from typing import Any, Dict, Optional


class TradingBotError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        context: Optional structured details for logging
    """

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        """Return string representation of exception."""
        if self.context:
            return f"{type(self).__name__}({self.message!r}, context={self.context!r})"
        return f"{type(self).__name__}({self.message!r})"

    def __str__(self) -> str:
        """Return user-friendly string representation."""
        return self.message


class DataError(TradingBotError):
    """Upstream snapshot or option chain is missing or malformed."""


class MarketDataError(DataError):
    """A market-data or option-chain fetch failed."""


class InsufficientDataError(TradingBotError):
    """
    Indicator window is larger than the available series.

    Attributes:
        required: Number of points the computation needs
        available: Number of points supplied
    """

    def __init__(self, message: str, *, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(message, context={"required": required, "available": available})

    def __repr__(self) -> str:
        return f"InsufficientDataError(required={self.required}, available={self.available})"


class StrategyError(TradingBotError):
    """No valid strikes, or an unsupported strategy reached the parameter builder."""


class ValidationError(TradingBotError):
    """Computed parameters violate an invariant."""


class BacktestError(TradingBotError):
    """The backtest cannot run at all (empty history, bad initial balance)."""
