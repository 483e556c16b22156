"""
Tests for the daily recommendation service.

Tests the full pipeline against a mocked MarketDataSource: strategy choice,
sizing, risk metrics, skip conditions and error propagation.
"""

from unittest.mock import AsyncMock

import pytest

from spreadbot.backtest.simulator import Backtester
from spreadbot.config.trading_config import TradingConfig
from spreadbot.core.errors import MarketDataError
from spreadbot.pricing.synthetic_chain import build_synthetic_chain
from spreadbot.risk_manager.models import AccountInfo, RiskLevel
from spreadbot.strategies.analyzer import OptionsStrategyAnalyzer, confidence_score
from spreadbot.strategies.models import StrategyType
from tests.fixtures.market_fixtures import make_snapshot


def mock_source(snapshot):
    """AsyncMock data source serving one snapshot and a 25-day chain around it."""
    source = AsyncMock()
    source.fetch_market_snapshot.return_value = snapshot
    source.fetch_option_chain.return_value = build_synthetic_chain(snapshot, 25)
    return source


@pytest.fixture
def account():
    return AccountInfo(account_type="medium", balance=40_000.0)


class TestConfidenceScore:
    """Test confidence clamping."""

    def test_scaled(self):
        assert confidence_score(3.25) == pytest.approx(58.5)

    def test_clamped(self):
        assert confidence_score(0.0) == 20.0
        assert confidence_score(5.0) == 90.0
        assert confidence_score(6.0) == 95.0


class TestGetRecommendation:
    """Test recommendations end to end through the pipeline."""

    @pytest.mark.asyncio
    async def test_bullish_medium_volatility(self, bullish_snapshot, account):
        source = mock_source(bullish_snapshot)
        recommendation = await OptionsStrategyAnalyzer(source).get_recommendation(account)

        assert recommendation.strategy == StrategyType.BULL_CALL_SPREAD
        assert recommendation.is_trade
        assert recommendation.signal_strength == pytest.approx(3.25)
        assert recommendation.position_size_pct == pytest.approx(0.085)
        assert recommendation.position_size == pytest.approx(3_400.0)
        assert recommendation.max_risk == pytest.approx(3_400.0)
        assert recommendation.risk_level == RiskLevel.MEDIUM
        assert recommendation.expected_win_rate == pytest.approx(56.25)
        assert recommendation.confidence == pytest.approx(58.5)
        assert recommendation.timestamp == bullish_snapshot.timestamp
        assert recommendation.risk_metrics.stop_loss == pytest.approx(603.75 * 0.98)
        assert recommendation.reasoning.startswith("Bull Call Spread selected")

        source.fetch_option_chain.assert_awaited_once_with(25, 5)

    @pytest.mark.asyncio
    async def test_high_volatility_sells_premium(self, account):
        snapshot = make_snapshot(vix=40.0, iv_percentile=80.0)
        recommendation = await OptionsStrategyAnalyzer(mock_source(snapshot)).get_recommendation(account)
        params = recommendation.strategy_parameters

        assert recommendation.strategy == StrategyType.BULL_PUT_SPREAD
        assert params.target_credit > 0
        assert params.breakeven_price < snapshot.price
        assert recommendation.risk_metrics.stop_loss == pytest.approx(params.breakeven_price)
        assert recommendation.max_risk <= recommendation.position_size

    @pytest.mark.asyncio
    async def test_position_within_account_band(self, bearish_snapshot):
        account = AccountInfo(account_type="small", balance=25_000.0, current_drawdown=0.12)
        recommendation = await OptionsStrategyAnalyzer(mock_source(bearish_snapshot)).get_recommendation(account)

        assert recommendation.strategy.direction.value == "bearish"
        assert 0.04 <= recommendation.position_size_pct <= 0.10
        assert recommendation.position_size == pytest.approx(25_000.0 * recommendation.position_size_pct)

    @pytest.mark.asyncio
    async def test_weak_signal_skips_chain_fetch(self, weak_snapshot, account):
        source = mock_source(weak_snapshot)
        recommendation = await OptionsStrategyAnalyzer(source).get_recommendation(account)

        assert recommendation.strategy == StrategyType.NO_TRADE
        assert recommendation.position_size == 0.0
        assert recommendation.expected_win_rate == 0.0
        assert recommendation.risk_level == RiskLevel.LOW
        assert recommendation.risk_metrics is None
        assert recommendation.reasoning.startswith("No trade: Signal strength")
        source.fetch_option_chain.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_neutral_low_volatility(self, neutral_snapshot, account):
        source = mock_source(neutral_snapshot)
        recommendation = await OptionsStrategyAnalyzer(source).get_recommendation(account)

        assert recommendation.strategy == StrategyType.NO_TRADE
        assert recommendation.signal_strength >= 1.5
        assert recommendation.strategy_parameters.max_loss == 0.0
        source.fetch_option_chain.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_max_open_positions(self, bullish_snapshot):
        account = AccountInfo(account_type="medium", balance=40_000.0, open_positions=3)
        source = mock_source(bullish_snapshot)
        recommendation = await OptionsStrategyAnalyzer(source).get_recommendation(account)

        assert recommendation.strategy == StrategyType.NO_TRADE
        assert "Maximum open positions" in recommendation.reasoning
        source.fetch_option_chain.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_configured_signal_threshold(self, bullish_snapshot, account):
        config = TradingConfig()
        config.signals.min_signal_strength = 4.0
        recommendation = await OptionsStrategyAnalyzer(mock_source(bullish_snapshot), config).get_recommendation(account)

        assert recommendation.strategy == StrategyType.NO_TRADE

    @pytest.mark.asyncio
    async def test_unknown_account_type(self, bullish_snapshot):
        account = AccountInfo(account_type="whale", balance=40_000.0)

        with pytest.raises(ValueError):
            await OptionsStrategyAnalyzer(mock_source(bullish_snapshot)).get_recommendation(account)


class TestErrorPropagation:
    """Test that data-source failures reach the caller unchanged."""

    @pytest.mark.asyncio
    async def test_snapshot_failure(self, bullish_snapshot, account):
        source = mock_source(bullish_snapshot)
        source.fetch_market_snapshot.side_effect = MarketDataError("snapshot unavailable")

        with pytest.raises(MarketDataError, match="snapshot unavailable"):
            await OptionsStrategyAnalyzer(source).get_recommendation(account)

    @pytest.mark.asyncio
    async def test_chain_failure(self, bullish_snapshot, account):
        source = mock_source(bullish_snapshot)
        source.fetch_option_chain.side_effect = MarketDataError("no expiration in range")

        with pytest.raises(MarketDataError):
            await OptionsStrategyAnalyzer(source).get_recommendation(account)

    @pytest.mark.asyncio
    async def test_chain_outside_dte_window(self, bullish_snapshot, account):
        """A 45-day chain is rejected against the default 20-30 day window."""
        source = mock_source(bullish_snapshot)
        source.fetch_option_chain.return_value = build_synthetic_chain(bullish_snapshot, 45)

        with pytest.raises(MarketDataError, match="outside 20-30 DTE"):
            await OptionsStrategyAnalyzer(source).get_recommendation(account)

    @pytest.mark.asyncio
    async def test_dte_window_configurable(self, bullish_snapshot, account):
        config = TradingConfig()
        config.strategy.max_days_to_expiration = 45
        source = mock_source(bullish_snapshot)
        source.fetch_option_chain.return_value = build_synthetic_chain(bullish_snapshot, 45)

        recommendation = await OptionsStrategyAnalyzer(source, config).get_recommendation(account)

        assert recommendation.strategy_parameters.days_to_expiration == 45


class TestRunBacktest:
    """Test backtest delegation."""

    def test_same_result_as_backtester(self, bullish_snapshot, snapshot_history):
        analyzer = OptionsStrategyAnalyzer(mock_source(bullish_snapshot))

        result = analyzer.run_backtest(snapshot_history, 40_000.0)
        expected = Backtester(analyzer.config).run_backtest(snapshot_history, 40_000.0)

        assert result.total_trades == expected.total_trades
        assert result.final_balance == pytest.approx(expected.final_balance)
