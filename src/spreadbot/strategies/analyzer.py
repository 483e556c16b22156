"""
Options Strategy Analyzer

Host-facing service: fetches today's snapshot and option chain through a
MarketDataSource, runs the decision pipeline and returns one
StrategyRecommendation. Also exposes the backtest simulator over the same
configuration.

Pipeline:
    snapshot → signal strength / bias / volatility → strategy
    → option chain → parameters → sizing → risk metrics → recommendation

Data-source failures (MarketDataError) and strategy failures
(StrategyError) propagate to the caller; nothing is retried here.

Usage:
    analyzer = OptionsStrategyAnalyzer(data_source, config)
    recommendation = await analyzer.get_recommendation(
        AccountInfo(account_type="medium", balance=40_000)
    )
    print(recommendation.reasoning)
"""

from typing import List, Optional, Sequence

from loguru import logger

from spreadbot.backtest.models import BacktestResult
from spreadbot.backtest.simulator import Backtester
from spreadbot.config.trading_config import TradingConfig
from spreadbot.core.errors import MarketDataError
from spreadbot.core.models import MarketSnapshot
from spreadbot.data.sources import MarketDataSource
from spreadbot.decisions.signals import MarketBias, SignalClassifier
from spreadbot.decisions.volatility import VolatilityAssessment, VolatilityClassifier
from spreadbot.risk_manager.models import AccountInfo, RiskLevel
from spreadbot.risk_manager.position_sizing import PositionSizer, RiskManager, determine_risk_level
from spreadbot.strategies.models import StrategyParameters, StrategyRecommendation, StrategyType
from spreadbot.strategies.selector import StrategySelector, expected_win_rate, skip_parameters


def confidence_score(signal_strength: float) -> float:
    """Confidence in percent: signal * 18, clamped to [20, 95]."""
    return min(95.0, max(20.0, signal_strength * 18.0))


class OptionsStrategyAnalyzer:
    """
    Daily recommendation service.

    Args:
        data_source: Market data collaborator
        config: Trading configuration
        log: Optional logger handle
    """

    def __init__(
        self,
        data_source: MarketDataSource,
        config: Optional[TradingConfig] = None,
        log=None,
    ):
        self.data_source = data_source
        self.config = config or TradingConfig()
        self.log = log or logger.bind(component="OptionsStrategyAnalyzer")
        self.signals = SignalClassifier(self.config.signals, self.config.volatility, log=self.log)
        self.volatility = VolatilityClassifier(self.config.volatility)
        self.selector = StrategySelector(self.config, log=self.log)
        self.sizer = PositionSizer(self.config, log=self.log)
        self.risk = RiskManager(self.config, log=self.log)

    async def get_recommendation(self, account: AccountInfo) -> StrategyRecommendation:
        """
        Recommend today's strategy for an account.

        Args:
            account: Account type, balance and drawdown

        Returns:
            StrategyRecommendation (NO_TRADE with zero size when skipped)

        Raises:
            MarketDataError: If the snapshot or option chain cannot be fetched, or
                the chain expires outside the configured DTE window
            StrategyError: If the chosen strategy cannot be built from the chain
            ValueError: If the account type is not configured
        """
        band = self.config.account_band(account.account_type)
        snapshot = await self.data_source.fetch_market_snapshot()

        strength = self.signals.signal_strength(snapshot)
        bias = self.signals.market_bias(snapshot)
        volatility = self.volatility.classify(snapshot.vix, snapshot.iv_percentile)

        self.log.info(
            f"Market: price {snapshot.price:.2f}, bias {bias.value}, signal {strength:.2f}/5, {volatility}"
        )

        if account.open_positions >= band.max_open_positions:
            return self._no_trade(
                snapshot, strength, bias, volatility,
                f"Maximum open positions reached ({account.open_positions}/{band.max_open_positions})",
            )
        if strength < self.config.signals.min_signal_strength:
            return self._no_trade(
                snapshot, strength, bias, volatility,
                f"Signal strength {strength:.2f} below minimum {self.config.signals.min_signal_strength:.2f}",
            )

        strategy = self.selector.select_strategy(snapshot, bias, volatility)
        if strategy == StrategyType.NO_TRADE:
            return self._no_trade(
                snapshot, strength, bias, volatility,
                "Low volatility with no directional edge",
            )

        strategy_config = self.config.strategy
        chain = await self.data_source.fetch_option_chain(
            strategy_config.target_days_to_expiration, strategy_config.expiry_tolerance_days
        )
        min_days = strategy_config.min_days_to_expiration
        max_days = strategy_config.max_days_to_expiration
        if not (min_days <= chain.days_to_expiration <= max_days):
            raise MarketDataError(
                f"Option chain expires in {chain.days_to_expiration} days, outside {min_days}-{max_days} DTE",
                context={"expiration": chain.expiration.isoformat()},
            )
        params = self.selector.build_parameters(strategy, snapshot, chain)

        sizing = self.sizer.size_position(account, strength, snapshot.vix)
        breakeven = params.breakeven_price if strategy.is_credit and strategy.direction != MarketBias.NEUTRAL else None
        metrics = self.risk.calculate_risk_metrics(snapshot, sizing, strategy.direction, breakeven)
        win_rate = expected_win_rate(strategy, strength, snapshot, self.config.volatility)

        recommendation = StrategyRecommendation(
            strategy=strategy,
            position_size=sizing.amount,
            position_size_pct=sizing.fraction,
            risk_level=determine_risk_level(sizing.fraction),
            expected_win_rate=win_rate,
            signal_strength=strength,
            max_risk=sizing.max_risk,
            reasoning=self.build_reasoning(snapshot, strategy, strength, bias, volatility, params),
            strategy_parameters=params,
            market_bias=bias,
            volatility=volatility,
            confidence=confidence_score(strength),
            risk_metrics=metrics,
            timestamp=snapshot.timestamp,
        )
        self.log.info(f"✓ Recommendation: {recommendation}")
        return recommendation

    def _no_trade(
        self,
        snapshot: MarketSnapshot,
        strength: float,
        bias: MarketBias,
        volatility: VolatilityAssessment,
        reason: str,
    ) -> StrategyRecommendation:
        self.log.info(f"No trade: {reason}")
        reasoning = self.build_reasoning(
            snapshot, StrategyType.NO_TRADE, strength, bias, volatility, None, skip_reason=reason
        )
        return StrategyRecommendation(
            strategy=StrategyType.NO_TRADE,
            position_size=0.0,
            position_size_pct=0.0,
            risk_level=RiskLevel.LOW,
            expected_win_rate=0.0,
            signal_strength=strength,
            max_risk=0.0,
            reasoning=reasoning,
            strategy_parameters=skip_parameters(snapshot),
            market_bias=bias,
            volatility=volatility,
            confidence=confidence_score(strength),
            risk_metrics=None,
            timestamp=snapshot.timestamp,
        )

    def build_reasoning(
        self,
        snapshot: MarketSnapshot,
        strategy: StrategyType,
        strength: float,
        bias: MarketBias,
        volatility: VolatilityAssessment,
        params: Optional[StrategyParameters],
        skip_reason: Optional[str] = None,
    ) -> str:
        """Human-readable explanation of the recommendation."""
        lines: List[str] = []
        if skip_reason:
            lines.append(f"No trade: {skip_reason}.")
        else:
            lines.append(
                f"{strategy.label} selected for a {bias.value} market in a "
                f"{volatility.regime.value} volatility regime (signal {strength:.2f}/5)."
            )

        for signal in self.signals.analyze_signals(snapshot):
            lines.append(f"- {signal.indicator}: {signal.description}")
        lines.append(
            f"- IV percentile: {snapshot.iv_percentile:.0f} ({volatility.percentile_flag.value})"
        )

        if params is not None and strategy != StrategyType.NO_TRADE:
            premium = (
                f"credit {params.target_credit:.2f}" if strategy.is_credit
                else f"debit {params.net_debit:.2f}"
            )
            lines.append(
                f"Sell {params.sell_strike} / buy {params.buy_strike} "
                f"{params.option_right.value.lower() if params.option_right else ''} "
                f"expiring {params.expiry_date} ({params.days_to_expiration} DTE): "
                f"{premium}, max loss {params.max_loss:.2f}, breakeven {params.breakeven_price:.2f}, "
                f"probability of profit {params.probability_of_profit:.0%}."
            )
        return "\n".join(lines)

    def run_backtest(self, history: Sequence[MarketSnapshot], initial_balance: float) -> BacktestResult:
        """Replay history through the same configuration."""
        return Backtester(self.config, log=self.log).run_backtest(history, initial_balance)
