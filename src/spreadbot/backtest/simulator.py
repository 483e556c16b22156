"""
Backtest Simulator

Replays historical daily snapshots through the decision pipeline:

    signal strength → (Idle if weak) → strategy + parameters (Candidate)
    → sizing + risk metrics → simulated position (Open) → exit search (Closed)

Exit search scans forward up to the position's days to expiration and takes
the first of, in priority order:
    (a) price crossing the stop-loss
    (b) the strategy's profit-target move
    (c) half the holding period elapsed while still unprofitable
otherwise the position is force-closed at min(entry + max days, last day).

Days are processed strictly in order: sizing depends on the balance and
drawdown left by earlier trades. At most one position is open at a time. All
mutable state lives in a BacktestRun created per call, so a Backtester can be
reused but a run is never shared.

Usage:
    backtester = Backtester(config)
    result = backtester.run_backtest(snapshots, initial_balance=40_000)
    print(result.summary())
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from spreadbot.backtest.metrics import compute_results
from spreadbot.backtest.models import BacktestResult, ExitReason, TradeResult, TradeState
from spreadbot.config.trading_config import TradingConfig
from spreadbot.core.errors import BacktestError, StrategyError, ValidationError
from spreadbot.core.models import MarketSnapshot
from spreadbot.decisions.signals import MarketBias, SignalClassifier
from spreadbot.decisions.volatility import VolatilityClassifier
from spreadbot.pricing.synthetic_chain import SyntheticChainBuilder
from spreadbot.risk_manager.models import AccountInfo, PositionSizing, RiskMetrics
from spreadbot.risk_manager.position_sizing import PositionSizer, RiskManager
from spreadbot.strategies.models import StrategyParameters, StrategyType
from spreadbot.strategies.selector import StrategySelector

# Favorable underlying move that closes a position at its profit target
PROFIT_TARGET_MOVES = {
    StrategyType.BULL_PUT_SPREAD: 0.01,
    StrategyType.BEAR_CALL_SPREAD: 0.01,
    StrategyType.BULL_CALL_SPREAD: 0.02,
    StrategyType.BEAR_PUT_SPREAD: 0.02,
}


@dataclass(slots=True)
class OpenPosition:
    """A simulated position between entry and exit."""
    entry_index: int
    snapshot: MarketSnapshot
    strategy: StrategyType
    parameters: StrategyParameters
    sizing: PositionSizing
    risk_metrics: RiskMetrics
    signal_strength: float
    max_days: int
    state: TradeState = TradeState.OPEN

    @property
    def entry_price(self) -> float:
        return self.snapshot.price

    @property
    def direction(self) -> MarketBias:
        return self.strategy.direction


@dataclass(slots=True)
class BacktestRun:
    """
    Mutable state of one backtest run.

    Attributes:
        initial_balance: Starting balance
        balance: Running balance
        peak_balance: Highest balance seen (non-decreasing)
        current_drawdown: (peak - balance) / peak, clamped to [0, 1]
        max_drawdown: Running maximum of current_drawdown
        trades: Trade log owned by this run
        skipped_days: Candidate days that did not open a trade
        last_exit_index: Index of the last exit (no new entry before it)
        state: Lifecycle state reached by the most recent day
    """
    initial_balance: float
    balance: float = 0.0
    peak_balance: float = 0.0
    current_drawdown: float = 0.0
    max_drawdown: float = 0.0
    trades: List[TradeResult] = field(default_factory=list)
    skipped_days: int = 0
    last_exit_index: int = -1
    state: TradeState = TradeState.IDLE

    def __post_init__(self):
        self.balance = self.initial_balance
        self.peak_balance = self.initial_balance

    def record_trade(self, trade: TradeResult, exit_index: int) -> None:
        self.trades.append(trade)
        self.balance += trade.pnl
        self.last_exit_index = exit_index
        self.update_drawdown()

    def update_drawdown(self) -> None:
        self.peak_balance = max(self.peak_balance, self.balance)
        if self.peak_balance > 0:
            drawdown = (self.peak_balance - self.balance) / self.peak_balance
        else:
            drawdown = 1.0
        self.current_drawdown = min(1.0, max(0.0, drawdown))
        self.max_drawdown = max(self.max_drawdown, self.current_drawdown)


def monthly_sample_indices(history: Sequence[MarketSnapshot], mid_day: int = 15) -> List[int]:
    """Index of the trading day closest to mid-month, one per calendar month."""
    best = OrderedDict()
    for i, snapshot in enumerate(history):
        key = (snapshot.timestamp.year, snapshot.timestamp.month)
        distance = abs(snapshot.timestamp.day - mid_day)
        if key not in best or distance < best[key][0]:
            best[key] = (distance, i)
    return [i for _, i in best.values()]


class Backtester:
    """
    Sequential trade-lifecycle simulator.

    Args:
        config: Trading configuration (backtest section drives the simulator)
        chain_builder: Source of model-priced option chains per day
        log: Optional logger handle
    """

    def __init__(
        self,
        config: Optional[TradingConfig] = None,
        chain_builder: Optional[SyntheticChainBuilder] = None,
        log=None,
    ):
        self.config = config or TradingConfig()
        self.log = log or logger.bind(component="Backtester")
        self.signals = SignalClassifier(self.config.signals, self.config.volatility, log=self.log)
        self.volatility = VolatilityClassifier(self.config.volatility)
        self.selector = StrategySelector(self.config, log=self.log)
        self.sizer = PositionSizer(self.config, log=self.log)
        self.risk = RiskManager(self.config, log=self.log)
        self.chain_builder = chain_builder or SyntheticChainBuilder(rate=self.config.strategy.risk_free_rate)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def candidate_indices(self, history: Sequence[MarketSnapshot]) -> List[int]:
        if self.config.backtest.sampling == "monthly":
            return monthly_sample_indices(history)
        return list(range(len(history)))

    def run_backtest(self, history: Sequence[MarketSnapshot], initial_balance: float) -> BacktestResult:
        """
        Replay history and aggregate the resulting trades.

        Args:
            history: Daily snapshots in chronological order
            initial_balance: Starting account balance

        Returns:
            BacktestResult

        Raises:
            BacktestError: If history is empty or unordered, or the balance is not positive
        """
        if not history:
            raise BacktestError("Cannot backtest an empty history")
        if initial_balance <= 0:
            raise BacktestError(f"Initial balance must be positive, got {initial_balance}")
        for earlier, later in zip(history, history[1:]):
            if later.timestamp <= earlier.timestamp:
                raise BacktestError(
                    f"History is not in chronological order at {later.timestamp.date()}",
                    context={"previous": earlier.timestamp.isoformat()},
                )

        run = BacktestRun(initial_balance=initial_balance)
        last_index = len(history) - 1

        self.log.info(
            f"Starting backtest: {len(history)} days "
            f"({history[0].trade_date} to {history[-1].trade_date}), "
            f"balance ${initial_balance:,.2f}, sampling={self.config.backtest.sampling}"
        )

        for i in self.candidate_indices(history):
            if i <= run.last_exit_index or i >= last_index:
                continue

            position = self._open_position(run, history[i], i)
            if position is None:
                run.skipped_days += 1
                continue

            exit_index, reason = self.find_exit(history, position)
            trade = self._close_position(run, position, history[exit_index], reason)
            run.record_trade(trade, exit_index)

            self.log.debug(
                f"{trade.entry_date.date()} {trade.strategy.value}: "
                f"{trade.entry_price:.2f} -> {trade.exit_price:.2f} ({reason.value}), "
                f"P&L ${trade.pnl:,.2f}, balance ${run.balance:,.2f}, drawdown {run.current_drawdown:.2%}"
            )

            if run.balance <= 0:
                self.log.warning(f"Account depleted on {trade.exit_date.date()}, stopping backtest")
                break

        result = compute_results(
            run.trades,
            initial_balance=initial_balance,
            final_balance=run.balance,
            max_drawdown=run.max_drawdown,
            skipped_days=run.skipped_days,
        )
        self.log.info(
            f"✓ Backtest complete: {result.total_trades} trades, win rate {result.win_rate:.1%}, "
            f"max drawdown {result.max_drawdown:.2%}, Sharpe {result.sharpe_ratio:.2f}"
        )
        return result

    # ------------------------------------------------------------------
    # Trade lifecycle
    # ------------------------------------------------------------------

    def _open_position(self, run: BacktestRun, snapshot: MarketSnapshot, index: int) -> Optional[OpenPosition]:
        """Idle → Candidate → Open; None when the day ends Idle or Candidate."""
        run.state = TradeState.IDLE
        strength = self.signals.signal_strength(snapshot)
        if strength < self.config.backtest.min_signal_strength:
            return None

        run.state = TradeState.CANDIDATE
        bias = self.signals.market_bias(snapshot)
        volatility = self.volatility.classify(snapshot.vix, snapshot.iv_percentile)
        strategy = self.selector.select_strategy(snapshot, bias, volatility)
        if strategy == StrategyType.NO_TRADE:
            return None

        days = self.config.backtest.days_to_expiration
        try:
            chain = self.chain_builder.build(snapshot, days)
            params = self.selector.build_parameters(strategy, snapshot, chain)

            account = AccountInfo(
                account_type=self.config.backtest.account_type,
                balance=run.balance,
                current_drawdown=run.current_drawdown,
            )
            sizing = self.sizer.size_position(account, strength, snapshot.vix)
            breakeven = params.breakeven_price if strategy.is_credit and strategy.direction != MarketBias.NEUTRAL else None
            metrics = self.risk.calculate_risk_metrics(snapshot, sizing, strategy.direction, breakeven)
        except (StrategyError, ValidationError) as e:
            self.log.debug(f"{snapshot.trade_date}: skipping {strategy.value} ({run.state.value}): {e}")
            return None

        run.state = TradeState.OPEN
        self.log.debug(f"{snapshot.trade_date}: {run.state.value} {strategy.value} at {snapshot.price:.2f}")
        return OpenPosition(
            entry_index=index,
            snapshot=snapshot,
            strategy=strategy,
            parameters=params,
            sizing=sizing,
            risk_metrics=metrics,
            signal_strength=strength,
            max_days=params.days_to_expiration or days,
        )

    def _stop_hit(self, position: OpenPosition, price: float) -> bool:
        stop = position.risk_metrics.stop_loss
        entry = position.entry_price
        if position.direction == MarketBias.BEARISH:
            return price >= stop
        if position.direction == MarketBias.NEUTRAL:
            return price <= stop or price >= entry + (entry - stop)
        return price <= stop

    def _profit_target_hit(self, position: OpenPosition, price: float, days_held: int) -> bool:
        change = (price - position.entry_price) / position.entry_price
        if position.direction == MarketBias.BULLISH:
            return change >= PROFIT_TARGET_MOVES[position.strategy]
        if position.direction == MarketBias.BEARISH:
            return change <= -PROFIT_TARGET_MOVES[position.strategy]
        # Neutral structures: price pinned while time decay accrues
        band = self.config.backtest.neutral_band
        return days_held >= position.max_days / 4 and abs(change) < band / 2

    def is_favorable(self, position: OpenPosition, exit_price: float) -> bool:
        """Whether the move from entry to exit_price favors the strategy."""
        entry = position.entry_price
        if position.direction == MarketBias.BULLISH:
            return exit_price > entry
        if position.direction == MarketBias.BEARISH:
            return exit_price < entry
        return abs(exit_price - entry) / entry < self.config.backtest.neutral_band

    def find_exit(self, history: Sequence[MarketSnapshot], position: OpenPosition) -> Tuple[int, ExitReason]:
        """
        Scan forward for the exit day.

        Returns:
            (exit index, exit reason)
        """
        entry = position.entry_index
        last = min(entry + position.max_days, len(history) - 1)
        half_period = position.max_days / 2

        for j in range(entry + 1, last + 1):
            price = history[j].price
            days_held = j - entry
            if self._stop_hit(position, price):
                return j, ExitReason.STOP_LOSS
            if self._profit_target_hit(position, price, days_held):
                return j, ExitReason.PROFIT_TARGET
            if days_held >= half_period and not self.is_favorable(position, price):
                return j, ExitReason.TIME_EXIT

        if entry + position.max_days > len(history) - 1:
            return last, ExitReason.END_OF_DATA
        return last, ExitReason.EXPIRATION

    def calculate_pnl(self, position: OpenPosition, exit_price: float) -> float:
        """
        P&L of a closed position.

        The allocated capital is the amount at risk. A favorable exit earns
        return_on_risk scaled by the profit-take fraction; an unfavorable one
        loses the loss-take fraction of the allocation.
        """
        params = position.parameters
        position_value = position.sizing.amount
        if params.max_loss <= 0:
            return 0.0
        if self.is_favorable(position, exit_price):
            return position_value * (params.max_profit / params.max_loss) * self.config.backtest.profit_take_fraction
        return -position_value * self.config.backtest.loss_take_fraction

    def _close_position(
        self,
        run: BacktestRun,
        position: OpenPosition,
        exit_snapshot: MarketSnapshot,
        reason: ExitReason,
    ) -> TradeResult:
        pnl = self.calculate_pnl(position, exit_snapshot.price)
        position.state = TradeState.CLOSED
        run.state = TradeState.CLOSED
        return TradeResult(
            entry_date=position.snapshot.timestamp,
            exit_date=exit_snapshot.timestamp,
            strategy=position.strategy,
            entry_price=position.entry_price,
            exit_price=exit_snapshot.price,
            pnl=pnl,
            risk_metrics=position.risk_metrics,
            position_value=position.sizing.amount,
            return_pct=pnl / run.balance,
            exit_reason=reason,
            signal_strength=position.signal_strength,
            parameters=position.parameters,
        )
