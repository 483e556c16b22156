"""
Unit tests for position sizing and per-trade risk metrics.

Tests account-band clamping across signal extremes, volatility and
drawdown penalties, max-risk bounds, stop/target placement and the
RiskMetrics invariants.
"""

import pytest

from spreadbot.config.trading_config import TradingConfig
from spreadbot.core.errors import ValidationError
from spreadbot.decisions.signals import MarketBias
from spreadbot.risk_manager.models import AccountInfo, PositionSizing, RiskLevel, RiskMetrics
from spreadbot.risk_manager.position_sizing import PositionSizer, RiskManager, determine_risk_level
from tests.fixtures.market_fixtures import make_snapshot

ACCOUNT_TYPES = ["small", "medium", "large", "stressed"]


@pytest.fixture
def sizer():
    return PositionSizer()


@pytest.fixture
def manager():
    return RiskManager()


class TestAccountInfo:
    """Test account validation."""

    def test_non_positive_balance(self):
        with pytest.raises(ValidationError):
            AccountInfo(account_type="medium", balance=0.0)

    def test_drawdown_must_be_fraction(self):
        with pytest.raises(ValidationError):
            AccountInfo(account_type="medium", balance=10_000.0, current_drawdown=15.0)


class TestPositionSizer:
    """Test bounded position sizing."""

    @pytest.mark.parametrize("account_type", ACCOUNT_TYPES)
    @pytest.mark.parametrize("signal", [0.0, 5.0])
    @pytest.mark.parametrize("vix", [12.0, 27.0, 45.0])
    @pytest.mark.parametrize("drawdown", [0.0, 0.07, 0.2])
    def test_fraction_within_band(self, sizer, account_type, signal, vix, drawdown):
        band = TradingConfig().account_band(account_type)
        fraction = sizer.position_fraction(signal, vix, drawdown, account_type)

        assert band.min_position_pct <= fraction <= band.max_position_pct

    def test_strong_signal_takes_band_maximum(self, sizer):
        assert sizer.position_fraction(5.0, 18.0, 0.0, "medium") == pytest.approx(0.12)

    def test_moderate_signal_takes_midpoint(self, sizer):
        assert sizer.position_fraction(3.0, 18.0, 0.0, "medium") == pytest.approx(0.085)

    def test_weak_signal_takes_band_minimum(self, sizer):
        assert sizer.position_fraction(0.5, 18.0, 0.0, "small") == pytest.approx(0.04)

    def test_signal_buckets_configurable(self):
        """A higher strong bucket demotes a 4.5 signal to the midpoint."""
        config = TradingConfig()
        config.signals.strong_signal = 4.8
        sizer = PositionSizer(config)

        assert sizer.position_fraction(4.5, 18.0, 0.0, "medium") == pytest.approx(0.085)
        assert PositionSizer().position_fraction(4.5, 18.0, 0.0, "medium") == pytest.approx(0.12)

    def test_volatility_penalty(self, sizer):
        assert sizer.position_fraction(5.0, 32.0, 0.0, "medium") == pytest.approx(0.12 * 0.6)
        assert sizer.position_fraction(5.0, 27.0, 0.0, "medium") == pytest.approx(0.12 * 0.8)

    def test_drawdown_penalty(self, sizer):
        assert sizer.position_fraction(5.0, 18.0, 0.20, "large") == pytest.approx(0.075)
        assert sizer.position_fraction(5.0, 18.0, 0.12, "large") == pytest.approx(0.09)
        assert sizer.position_fraction(5.0, 18.0, 0.07, "large") == pytest.approx(0.1125)

    def test_penalties_clamped_to_band_minimum(self, sizer):
        assert sizer.position_fraction(5.0, 40.0, 0.2, "medium") == pytest.approx(0.05)

    def test_unknown_account_type(self, sizer):
        with pytest.raises(ValueError):
            sizer.position_fraction(3.0, 18.0, 0.0, "whale")

    @pytest.mark.parametrize("account_type", ACCOUNT_TYPES)
    def test_max_risk_never_exceeds_position(self, sizer, account_type):
        account = AccountInfo(account_type=account_type, balance=40_000.0)
        sizing = sizer.size_position(account, 5.0, 18.0)

        assert sizing.max_risk <= sizing.amount
        assert sizing.amount == pytest.approx(40_000.0 * sizing.fraction)
        assert sizer.validate_position_size(sizing.amount, account)

    def test_validate_position_size_outside_band(self, sizer):
        account = AccountInfo(account_type="stressed", balance=10_000.0)
        assert not sizer.validate_position_size(1_000.0, account)

    def test_risk_adjusted_position_size(self, sizer):
        account = AccountInfo(account_type="medium", balance=40_000.0)
        assert sizer.risk_adjusted_position_size(account, 5.0, 18.0) == pytest.approx(4_800.0)


class TestRiskManager:
    """Test stop-loss, profit target and risk ratios."""

    SIZING = PositionSizing(fraction=0.085, amount=3_400.0, max_risk=3_400.0)

    def test_bullish_levels(self, manager, bullish_snapshot):
        metrics = manager.calculate_risk_metrics(bullish_snapshot, self.SIZING, MarketBias.BULLISH)

        assert metrics.stop_loss == pytest.approx(603.75 * 0.98)
        assert metrics.suggested_stop_loss == metrics.stop_loss
        assert metrics.stop_loss < bullish_snapshot.price < metrics.profit_target
        assert metrics.risk_reward_ratio > 1.0
        assert 0.5 <= metrics.volatility_adjustment <= 1.5
        assert 0.0 <= metrics.max_drawdown <= 0.25
        assert metrics.max_risk <= metrics.max_position_size

    def test_bearish_levels(self, manager, bearish_snapshot):
        metrics = manager.calculate_risk_metrics(bearish_snapshot, self.SIZING, MarketBias.BEARISH)

        assert metrics.stop_loss == pytest.approx(560.0 * 1.02)
        assert metrics.profit_target < bearish_snapshot.price < metrics.stop_loss

    def test_reference_values(self, manager):
        """VIX 20 and ADX 25 give unit adjustments and a 2:1 reward."""
        snapshot = make_snapshot(vix=20.0, adx=25.0)
        metrics = manager.calculate_risk_metrics(snapshot, self.SIZING, MarketBias.BULLISH)

        assert metrics.volatility_adjustment == pytest.approx(1.0)
        assert metrics.risk_reward_ratio == pytest.approx(2.0)
        assert metrics.max_drawdown == pytest.approx(0.2)
        stop_distance = snapshot.price - metrics.stop_loss
        assert metrics.profit_target == pytest.approx(snapshot.price + 2.0 * stop_distance)

    def test_extreme_volatility_bounds(self, manager):
        metrics = manager.calculate_risk_metrics(make_snapshot(vix=80.0, adx=60.0), self.SIZING, MarketBias.BULLISH)

        assert metrics.volatility_adjustment == 0.5
        assert metrics.max_drawdown == 0.25
        assert metrics.correlation_risk <= 1.0

    def test_breakeven_overrides_stop(self, manager, bullish_snapshot):
        """A credit spread breakeven below entry becomes the stop."""
        metrics = manager.calculate_risk_metrics(bullish_snapshot, self.SIZING, MarketBias.BULLISH, 589.84)

        assert metrics.stop_loss == pytest.approx(589.84)
        assert metrics.suggested_stop_loss == pytest.approx(603.75 * 0.98)

    def test_breakeven_on_profit_side_ignored(self, manager, bullish_snapshot):
        metrics = manager.calculate_risk_metrics(bullish_snapshot, self.SIZING, MarketBias.BULLISH, 610.0)
        assert metrics.stop_loss == pytest.approx(603.75 * 0.98)

    def test_invalid_risk_reward(self):
        with pytest.raises(ValidationError):
            RiskMetrics(
                max_position_size=1_000.0,
                suggested_stop_loss=98.0,
                risk_reward_ratio=1.0,
                max_drawdown=0.1,
                volatility_adjustment=1.0,
                correlation_risk=0.0,
                max_risk=500.0,
                stop_loss=98.0,
                profit_target=104.0,
            )

    def test_max_risk_above_position_rejected(self):
        with pytest.raises(ValidationError):
            PositionSizing(fraction=0.05, amount=1_000.0, max_risk=1_500.0)


class TestRiskLevel:
    """Test risk level buckets."""

    @pytest.mark.parametrize("fraction,expected", [
        (0.04, RiskLevel.LOW),
        (0.085, RiskLevel.MEDIUM),
        (0.10, RiskLevel.HIGH),
        (0.15, RiskLevel.HIGH),
    ])
    def test_determine_risk_level(self, fraction, expected):
        assert determine_risk_level(fraction) == expected
