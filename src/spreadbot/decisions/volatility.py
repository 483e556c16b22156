"""
Volatility Regime Classification

Buckets the volatility index into LOW / MEDIUM / HIGH and, independently,
flags its percentile rank as HIGH / NORMAL / LOW. Also produces the bounded
adjustment multipliers used by sizing and reporting.

Usage:
    classifier = VolatilityClassifier(config.volatility)
    assessment = classifier.classify(vix=27.5, iv_percentile=82.0)

    print(assessment.regime)           # VolatilityRegime.HIGH
    print(assessment.percentile_flag)  # PercentileFlag.HIGH
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from spreadbot.config.trading_config import VolatilityThresholds


class VolatilityRegime(str, Enum):
    """Volatility-index regime."""

    LOW = "low"        # VIX < 15: cheap options, favor buying premium
    MEDIUM = "medium"
    HIGH = "high"      # VIX > 25: expensive options, favor selling premium


class PercentileFlag(str, Enum):
    """IV percentile classification."""

    LOW = "low"        # <= 30
    NORMAL = "normal"
    HIGH = "high"      # >= 70


@dataclass(frozen=True, slots=True)
class VolatilityAssessment:
    """
    Volatility classification for one snapshot.

    Attributes:
        vix: Volatility index level
        iv_percentile: Percentile rank (0-100)
        regime: Regime from the VIX level
        percentile_flag: Flag from the percentile rank
        vix_adjustment: 0.8 / 1.0 / 1.2 multiplier from VIX
        percentile_adjustment: 0.8 / 1.0 / 1.2 multiplier from percentile
    """
    vix: float
    iv_percentile: float
    regime: VolatilityRegime
    percentile_flag: PercentileFlag
    vix_adjustment: float
    percentile_adjustment: float

    def __str__(self) -> str:
        return (
            f"{self.regime.value.upper()} vol "
            f"(VIX: {self.vix:.2f}, IV percentile: {self.iv_percentile:.0f}, "
            f"{self.percentile_flag.value})"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "vix": self.vix,
            "iv_percentile": self.iv_percentile,
            "regime": self.regime.value,
            "percentile_flag": self.percentile_flag.value,
            "vix_adjustment": self.vix_adjustment,
            "percentile_adjustment": self.percentile_adjustment,
        }


class VolatilityClassifier:
    """
    Classify volatility regime from VIX and its percentile.

    **Regime:** VIX < low → LOW, VIX > high → HIGH, else MEDIUM.

    **Percentile flag:** >= percentile_high → HIGH, <= percentile_low → LOW.

    **Multipliers:**
    - VIX < low → 0.8, VIX > extreme → 1.2, else 1.0
    - percentile < percentile_low → 0.8, > percentile_high → 1.2, else 1.0
    """

    def __init__(self, thresholds: Optional[VolatilityThresholds] = None):
        self.thresholds = thresholds or VolatilityThresholds()

    def regime(self, vix: float) -> VolatilityRegime:
        if vix < self.thresholds.low:
            return VolatilityRegime.LOW
        if vix > self.thresholds.high:
            return VolatilityRegime.HIGH
        return VolatilityRegime.MEDIUM

    def percentile_flag(self, iv_percentile: float) -> PercentileFlag:
        if iv_percentile >= self.thresholds.percentile_high:
            return PercentileFlag.HIGH
        if iv_percentile <= self.thresholds.percentile_low:
            return PercentileFlag.LOW
        return PercentileFlag.NORMAL

    def vix_adjustment(self, vix: float) -> float:
        if vix < self.thresholds.low:
            return 0.8
        if vix > self.thresholds.extreme:
            return 1.2
        return 1.0

    def percentile_adjustment(self, iv_percentile: float) -> float:
        if iv_percentile < self.thresholds.percentile_low:
            return 0.8
        if iv_percentile > self.thresholds.percentile_high:
            return 1.2
        return 1.0

    def classify(self, vix: float, iv_percentile: float) -> VolatilityAssessment:
        return VolatilityAssessment(
            vix=vix,
            iv_percentile=iv_percentile,
            regime=self.regime(vix),
            percentile_flag=self.percentile_flag(iv_percentile),
            vix_adjustment=self.vix_adjustment(vix),
            percentile_adjustment=self.percentile_adjustment(iv_percentile),
        )
