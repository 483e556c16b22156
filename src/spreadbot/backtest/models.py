"""
Backtest Data Models

TradeResult is created by the simulator for every simulated trade and never
changes afterwards. BacktestResult is derived from a trade log and the
balance trajectory; it is not stored independently.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

import polars as pl

from spreadbot.risk_manager.models import RiskMetrics
from spreadbot.strategies.models import StrategyParameters, StrategyType


class TradeState(str, Enum):
    """Lifecycle of one simulated day."""

    IDLE = "idle"
    CANDIDATE = "candidate"
    OPEN = "open"
    CLOSED = "closed"


class ExitReason(str, Enum):
    """Why a simulated position was closed."""

    STOP_LOSS = "stop_loss"
    PROFIT_TARGET = "profit_target"
    TIME_EXIT = "time_exit"
    EXPIRATION = "expiration"
    END_OF_DATA = "end_of_data"


@dataclass(frozen=True, slots=True)
class TradeResult:
    """
    One simulated trade.

    Attributes:
        entry_date: Entry snapshot time
        exit_date: Exit snapshot time
        strategy: Strategy traded
        entry_price: Underlying price at entry
        exit_price: Underlying price at exit
        pnl: Realized P&L (currency)
        risk_metrics: Risk metrics in effect at entry
        position_value: Capital allocated (currency)
        return_pct: pnl / balance before the trade
        exit_reason: Exit condition that fired
        signal_strength: Signal strength at entry
        parameters: Strategy parameters at entry
    """
    entry_date: datetime
    exit_date: datetime
    strategy: StrategyType
    entry_price: float
    exit_price: float
    pnl: float
    risk_metrics: RiskMetrics
    position_value: float
    return_pct: float
    exit_reason: ExitReason
    signal_strength: float
    parameters: StrategyParameters

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def holding_days(self) -> int:
        return (self.exit_date - self.entry_date).days


@dataclass(frozen=True, slots=True)
class BacktestResult:
    """
    Aggregate statistics over one backtest run.

    Attributes:
        total_trades: Number of trades
        winning_trades: Trades with positive P&L
        losing_trades: Trades with zero or negative P&L
        win_rate: winning_trades / total_trades (0-1)
        average_return: Annualized mean per-trade return, (1 + mean)^252 - 1
        max_drawdown: Maximum drawdown fraction (0-1)
        sharpe_ratio: mean / std * sqrt(252) of per-trade returns
        profit_factor: gross profit / gross loss (0 when no losses)
        trades: Full trade log
        initial_balance: Starting balance
        final_balance: Ending balance
        total_return: final / initial - 1
        average_win: Mean P&L of winning trades
        average_loss: Mean P&L of losing trades
        largest_win: Best trade P&L
        largest_loss: Worst trade P&L
        skipped_days: Candidate days that did not open a trade
    """
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    average_return: float
    max_drawdown: float
    sharpe_ratio: float
    profit_factor: float
    trades: List[TradeResult] = field(default_factory=list)
    initial_balance: float = 0.0
    final_balance: float = 0.0
    total_return: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    skipped_days: int = 0

    def to_polars(self) -> pl.DataFrame:
        """Trade log as a polars DataFrame (one row per trade)."""
        return pl.DataFrame(
            {
                "entry_date": [t.entry_date for t in self.trades],
                "exit_date": [t.exit_date for t in self.trades],
                "strategy": [t.strategy.value for t in self.trades],
                "entry_price": [t.entry_price for t in self.trades],
                "exit_price": [t.exit_price for t in self.trades],
                "position_value": [t.position_value for t in self.trades],
                "pnl": [t.pnl for t in self.trades],
                "return_pct": [t.return_pct for t in self.trades],
                "exit_reason": [t.exit_reason.value for t in self.trades],
                "signal_strength": [t.signal_strength for t in self.trades],
            },
            schema={
                "entry_date": pl.Datetime,
                "exit_date": pl.Datetime,
                "strategy": pl.Utf8,
                "entry_price": pl.Float64,
                "exit_price": pl.Float64,
                "position_value": pl.Float64,
                "pnl": pl.Float64,
                "return_pct": pl.Float64,
                "exit_reason": pl.Utf8,
                "signal_strength": pl.Float64,
            },
        )

    def summary(self) -> str:
        """Multi-line human-readable summary."""
        return "\n".join([
            f"Trades:         {self.total_trades} ({self.winning_trades} won, {self.losing_trades} lost)",
            f"Win rate:       {self.win_rate:.1%}",
            f"Total return:   {self.total_return:.2%} (${self.initial_balance:,.2f} -> ${self.final_balance:,.2f})",
            f"Avg return:     {self.average_return:.2%} annualized",
            f"Max drawdown:   {self.max_drawdown:.2%}",
            f"Sharpe ratio:   {self.sharpe_ratio:.2f}",
            f"Profit factor:  {self.profit_factor:.2f}",
        ])
