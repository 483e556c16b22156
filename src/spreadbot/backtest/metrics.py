"""
Backtest performance metrics.

Pure functions over a trade log; BacktestResult is a function of the trades
plus the balance trajectory and nothing else.
"""

import math
from typing import Sequence

import numpy as np

from spreadbot.backtest.models import BacktestResult, TradeResult

TRADING_DAYS = 252


def sharpe_ratio(returns: Sequence[float]) -> float:
    """mean / sample std * sqrt(252); 0 with fewer than 2 returns or zero std."""
    if len(returns) < 2:
        return 0.0
    values = np.asarray(returns, dtype=float)
    std = float(values.std(ddof=1))
    if std == 0 or math.isnan(std):
        return 0.0
    return float(values.mean() / std * math.sqrt(TRADING_DAYS))


def annualized_return(returns: Sequence[float]) -> float:
    """(1 + mean per-trade return)^252 - 1; 0 for an empty log."""
    if len(returns) == 0:
        return 0.0
    mean = float(np.mean(returns))
    # A mean loss of 100% or more cannot compound
    if mean <= -1.0:
        return -1.0
    try:
        return (1.0 + mean) ** TRADING_DAYS - 1.0
    except OverflowError:
        return math.inf


def profit_factor(trades: Sequence[TradeResult]) -> float:
    """Gross profit / gross loss; 0 when no losses were recorded."""
    gross_profit = sum(t.pnl for t in trades if t.pnl > 0)
    gross_loss = abs(sum(t.pnl for t in trades if t.pnl < 0))
    if gross_loss == 0:
        return 0.0
    return gross_profit / gross_loss


def compute_results(
    trades: Sequence[TradeResult],
    initial_balance: float,
    final_balance: float,
    max_drawdown: float,
    skipped_days: int = 0,
) -> BacktestResult:
    """
    Aggregate a trade log into a BacktestResult.

    Args:
        trades: Trade log in chronological order
        initial_balance: Starting balance
        final_balance: Ending balance
        max_drawdown: Running maximum drawdown of the run
        skipped_days: Candidate days that did not open a trade

    Returns:
        BacktestResult
    """
    wins = [t.pnl for t in trades if t.pnl > 0]
    losses = [t.pnl for t in trades if t.pnl <= 0]
    returns = [t.return_pct for t in trades]
    pnls = [t.pnl for t in trades]
    total = len(trades)

    return BacktestResult(
        total_trades=total,
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / total if total else 0.0,
        average_return=annualized_return(returns),
        max_drawdown=min(1.0, max(0.0, max_drawdown)),
        sharpe_ratio=sharpe_ratio(returns),
        profit_factor=profit_factor(trades),
        trades=list(trades),
        initial_balance=initial_balance,
        final_balance=final_balance,
        total_return=final_balance / initial_balance - 1.0 if initial_balance else 0.0,
        average_win=float(np.mean(wins)) if wins else 0.0,
        average_loss=float(np.mean(losses)) if losses else 0.0,
        largest_win=max(pnls) if pnls else 0.0,
        largest_loss=min(pnls) if pnls else 0.0,
        skipped_days=skipped_days,
    )
