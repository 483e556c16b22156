"""Unit tests for the volatility regime classifier."""

import pytest

from spreadbot.config.trading_config import VolatilityThresholds
from spreadbot.decisions.volatility import PercentileFlag, VolatilityClassifier, VolatilityRegime


@pytest.fixture
def classifier():
    return VolatilityClassifier()


class TestVolatilityClassifier:
    """Test regime buckets, percentile flags and adjustment multipliers."""

    @pytest.mark.parametrize("vix,expected", [
        (12.0, VolatilityRegime.LOW),
        (14.99, VolatilityRegime.LOW),
        (15.0, VolatilityRegime.MEDIUM),
        (25.0, VolatilityRegime.MEDIUM),
        (25.01, VolatilityRegime.HIGH),
        (40.0, VolatilityRegime.HIGH),
    ])
    def test_regime(self, classifier, vix, expected):
        assert classifier.regime(vix) == expected

    @pytest.mark.parametrize("percentile,expected", [
        (80.0, PercentileFlag.HIGH),
        (70.0, PercentileFlag.HIGH),
        (50.0, PercentileFlag.NORMAL),
        (30.0, PercentileFlag.LOW),
        (10.0, PercentileFlag.LOW),
    ])
    def test_percentile_flag(self, classifier, percentile, expected):
        assert classifier.percentile_flag(percentile) == expected

    @pytest.mark.parametrize("vix,expected", [(12.0, 0.8), (20.0, 1.0), (30.0, 1.0), (31.0, 1.2)])
    def test_vix_adjustment(self, classifier, vix, expected):
        assert classifier.vix_adjustment(vix) == expected

    @pytest.mark.parametrize("percentile,expected", [(20.0, 0.8), (30.0, 1.0), (70.0, 1.0), (80.0, 1.2)])
    def test_percentile_adjustment(self, classifier, percentile, expected):
        assert classifier.percentile_adjustment(percentile) == expected

    def test_classify(self, classifier):
        assessment = classifier.classify(vix=40.0, iv_percentile=80.0)

        assert assessment.regime == VolatilityRegime.HIGH
        assert assessment.percentile_flag == PercentileFlag.HIGH
        assert assessment.vix_adjustment == 1.2
        assert assessment.percentile_adjustment == 1.2
        assert assessment.to_dict()["regime"] == "high"
        assert "high" in str(assessment).lower()

    def test_custom_thresholds(self):
        classifier = VolatilityClassifier(VolatilityThresholds(low=12.0, high=22.0))

        assert classifier.regime(13.0) == VolatilityRegime.MEDIUM
        assert classifier.regime(23.0) == VolatilityRegime.HIGH
