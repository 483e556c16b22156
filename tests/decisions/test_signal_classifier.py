"""
Unit tests for market bias and signal strength classification.

Tests component scores, clamping to [0, 5], direction-agnostic conviction,
the majority vote with ADX-weighted DI and the reasoning signals.
"""

import pytest

from spreadbot.config.trading_config import SignalConfig
from spreadbot.decisions.signals import MAX_SIGNAL_STRENGTH, MarketBias, SignalClassifier
from tests.fixtures.market_fixtures import make_snapshot


@pytest.fixture
def classifier():
    return SignalClassifier()


class TestSignalStrength:
    """Test the weighted evidence sum."""

    def test_bullish_breakdown(self, classifier, bullish_snapshot):
        """Full MA stack, strong MACD, neutral RSI, normal VIX, moderate ADX."""
        parts = classifier.breakdown(bullish_snapshot)

        assert parts.moving_averages == 1.5
        assert parts.macd == 1.0
        assert parts.rsi == 0.0
        assert parts.vix == 0.25
        assert parts.adx == 0.5
        assert classifier.signal_strength(bullish_snapshot) == pytest.approx(3.25)

    def test_component_maxima_sum_to_five(self, classifier):
        """Every component at its maximum scores exactly 5.0."""
        snapshot = make_snapshot(macd=15.0, rsi=25.0, vix=40.0, adx=80.0)

        assert classifier.signal_strength(snapshot) == pytest.approx(MAX_SIGNAL_STRENGTH)

    def test_clamped_at_zero(self, classifier, weak_snapshot):
        """Penalties cannot drive the score below zero."""
        snapshot = make_snapshot(
            price=600.0, sma50=580.0, sma200=590.0, macd=0.0, rsi=75.0, adx=10.0, vix=20.0
        )

        assert classifier.breakdown(snapshot).raw_total < 0
        assert classifier.signal_strength(snapshot) == 0.0
        assert classifier.signal_strength(weak_snapshot) == 0.0

    def test_direction_agnostic(self, classifier, bullish_snapshot, bearish_snapshot):
        """A clean bearish alignment scores the same as its bullish mirror."""
        assert classifier.signal_strength(bearish_snapshot) == pytest.approx(
            classifier.signal_strength(bullish_snapshot)
        )

    def test_partial_ma_alignment(self, classifier):
        """Price above SMA200 without the full stack earns partial credit."""
        snapshot = make_snapshot(price=585.0, sma50=590.0, sma200=560.0)
        assert classifier.breakdown(snapshot).moving_averages == 0.75

    @pytest.mark.parametrize("price,sma50,sma200", [
        (615.0, 600.0, 610.0),
        (605.0, 620.0, 610.0),
    ])
    def test_price_vs_200_day_alone(self, classifier, price, sma50, sma200):
        """The 50-day on the other side of the 200-day does not cancel the credit."""
        snapshot = make_snapshot(price=price, sma50=sma50, sma200=sma200)
        assert classifier.breakdown(snapshot).moving_averages == 0.75

    def test_ma_score_matches_reasoning(self, classifier):
        """A snapshot described as above the 200-day scores MA credit."""
        snapshot = make_snapshot(price=615.0, sma50=600.0, sma200=610.0)
        descriptions = [s.description for s in classifier.analyze_signals(snapshot) if s.indicator == "MA"]

        assert descriptions == ["Price above 200 day average"]
        assert classifier.breakdown(snapshot).moving_averages > 0

    def test_price_on_200_day_scores_nothing(self, classifier, weak_snapshot):
        assert classifier.breakdown(weak_snapshot).moving_averages == 0.0

    def test_vix_is_non_monotonic(self, classifier):
        """Complacency and fear both add evidence."""
        calm = classifier.breakdown(make_snapshot(vix=12.0)).vix
        normal = classifier.breakdown(make_snapshot(vix=20.0)).vix
        elevated = classifier.breakdown(make_snapshot(vix=28.0)).vix
        fear = classifier.breakdown(make_snapshot(vix=40.0)).vix

        assert calm > normal
        assert elevated > normal
        assert fear > elevated

    def test_overbought_rsi_penalty(self, classifier):
        assert classifier.breakdown(make_snapshot(rsi=75.0)).rsi == -0.75
        assert classifier.breakdown(make_snapshot(rsi=65.0)).rsi == 0.25

    def test_strong_macd_threshold_configurable(self):
        """A higher strong-MACD threshold demotes the same reading."""
        classifier = SignalClassifier(SignalConfig(strong_macd=20.0))
        assert classifier.breakdown(make_snapshot(macd=12.0)).macd == 0.5


class TestMarketBias:
    """Test the majority vote."""

    def test_bullish(self, classifier, bullish_snapshot):
        assert classifier.market_bias(bullish_snapshot) == MarketBias.BULLISH

    def test_bearish(self, classifier, bearish_snapshot):
        assert classifier.market_bias(bearish_snapshot) == MarketBias.BEARISH

    def test_tie_is_neutral(self, classifier, neutral_snapshot):
        assert classifier.market_bias(neutral_snapshot) == MarketBias.NEUTRAL

    def test_strong_trend_doubles_di_vote(self, classifier):
        """With ADX >= 25 the DI vote breaks an otherwise tied count."""
        mixed = dict(price=600.0, sma50=590.0, sma200=610.0, macd=-2.0, rsi=50.0, plus_di=30.0, minus_di=10.0)

        assert classifier.market_bias(make_snapshot(adx=30.0, **mixed)) == MarketBias.BULLISH
        assert classifier.market_bias(make_snapshot(adx=20.0, **mixed)) == MarketBias.NEUTRAL

    def test_oversold_votes_bullish(self, classifier):
        snapshot = make_snapshot(
            price=600.0, sma50=590.0, sma200=610.0, macd=0.0, rsi=25.0, plus_di=20.0, minus_di=20.0
        )
        assert classifier.market_bias(snapshot) == MarketBias.BULLISH


class TestAnalyzeSignals:
    """Test reasoning signals."""

    def test_one_reading_per_indicator(self, classifier, bullish_snapshot):
        signals = classifier.analyze_signals(bullish_snapshot)

        assert [s.indicator for s in signals] == ["MA", "MACD", "RSI", "ADX", "VIX"]
        assert signals[0].bias == MarketBias.BULLISH
        assert "golden" in signals[0].description

    def test_bearish_readings(self, classifier, bearish_snapshot):
        signals = {s.indicator: s for s in classifier.analyze_signals(bearish_snapshot)}

        assert signals["MA"].bias == MarketBias.BEARISH
        assert signals["MACD"].bias == MarketBias.BEARISH
        assert signals["ADX"].bias == MarketBias.BEARISH
