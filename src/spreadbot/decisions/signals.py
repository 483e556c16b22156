"""
Market Bias & Signal Strength Classification

Consumes one MarketSnapshot and produces:
1. Market bias (BULLISH / BEARISH / NEUTRAL) by majority vote
2. Signal strength (0-5), a weighted sum of bounded evidence components
3. A list of TechnicalSignal readings used for human-readable reasoning

Signal strength is conviction, not direction: a clean bearish alignment
scores as high as a clean bullish one.

Component maxima (sum to exactly 5.0, total is clamped as well):
- Moving-average alignment: 1.5 (0.75 for price vs the 200-day alone)
- MACD magnitude: 1.0
- RSI extremes: 0.75 (overbought contributes a penalty)
- VIX level: 0.75 (non-monotonic: complacency and fear both count)
- ADX trend strength: 1.0 (weak trends contribute a penalty)
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from loguru import logger

from spreadbot.config.trading_config import SignalConfig, VolatilityThresholds
from spreadbot.core.models import MarketSnapshot
from spreadbot.indicators.technical import TrendStrength, interpret_adx

MAX_SIGNAL_STRENGTH = 5.0

ADX_SCORES = {
    TrendStrength.VERY_STRONG: 1.0,
    TrendStrength.STRONG: 0.75,
    TrendStrength.MODERATE: 0.5,
    TrendStrength.WEAK: -0.25,
    TrendStrength.VERY_WEAK: -0.5,
}


class MarketBias(str, Enum):
    """Directional market bias."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class TechnicalSignal:
    """One indicator reading with its directional meaning."""
    indicator: str
    bias: MarketBias
    description: str


@dataclass(frozen=True, slots=True)
class SignalBreakdown:
    """Per-component contributions to signal strength."""
    moving_averages: float
    macd: float
    rsi: float
    vix: float
    adx: float

    @property
    def raw_total(self) -> float:
        return self.moving_averages + self.macd + self.rsi + self.vix + self.adx

    @property
    def total(self) -> float:
        return min(MAX_SIGNAL_STRENGTH, max(0.0, self.raw_total))


class SignalClassifier:
    """
    Score signal strength and vote market bias from a snapshot.

    Args:
        config: Signal thresholds (strong MACD, RSI bands, ADX trend)
        volatility: VIX thresholds used by the VIX component
        log: Optional logger handle (defaults to a bound loguru logger)
    """

    def __init__(
        self,
        config: Optional[SignalConfig] = None,
        volatility: Optional[VolatilityThresholds] = None,
        log=None,
    ):
        self.config = config or SignalConfig()
        self.volatility = volatility or VolatilityThresholds()
        self.log = log or logger.bind(component="SignalClassifier")

    def _ma_score(self, s: MarketSnapshot) -> float:
        bullish_stack = s.price > s.sma50 > s.sma200
        bearish_stack = s.price < s.sma50 < s.sma200
        if bullish_stack or bearish_stack:
            return 1.5
        # Price on either side of the 200-day without the full stack
        if s.price > s.sma200 or s.price < s.sma200:
            return 0.75
        return 0.0

    def _macd_score(self, s: MarketSnapshot) -> float:
        if abs(s.macd) > self.config.strong_macd:
            return 1.0
        if s.macd != 0:
            return 0.5
        return 0.0

    def _rsi_score(self, s: MarketSnapshot) -> float:
        cfg = self.config
        if s.rsi < cfg.rsi_oversold:
            return 0.75
        if s.rsi > cfg.rsi_overbought:
            return -0.75
        if cfg.rsi_neutral_low <= s.rsi <= cfg.rsi_neutral_high:
            return 0.0
        return 0.25

    def _vix_score(self, s: MarketSnapshot) -> float:
        vol = self.volatility
        if s.vix > vol.fear:
            return 0.75
        if s.vix > vol.high or s.vix < vol.low:
            return 0.5
        return 0.25

    def breakdown(self, snapshot: MarketSnapshot) -> SignalBreakdown:
        return SignalBreakdown(
            moving_averages=self._ma_score(snapshot),
            macd=self._macd_score(snapshot),
            rsi=self._rsi_score(snapshot),
            vix=self._vix_score(snapshot),
            adx=ADX_SCORES[interpret_adx(snapshot.adx)],
        )

    def signal_strength(self, snapshot: MarketSnapshot) -> float:
        """
        Signal strength in [0, 5].

        Args:
            snapshot: Market snapshot with indicators

        Returns:
            Clamped weighted sum of the evidence components
        """
        parts = self.breakdown(snapshot)
        self.log.debug(
            f"Signal strength {parts.total:.2f} "
            f"(MA={parts.moving_averages}, MACD={parts.macd}, RSI={parts.rsi}, "
            f"VIX={parts.vix}, ADX={parts.adx})"
        )
        return parts.total

    def market_bias(self, snapshot: MarketSnapshot) -> MarketBias:
        """
        Majority vote across discrete signals; ties resolve to NEUTRAL.

        Votes: price vs SMA50, price vs SMA200, MACD sign, RSI extreme, and
        +DI vs -DI (counted twice when ADX shows a strong trend).
        """
        s = snapshot
        bullish = 0
        bearish = 0

        for average in (s.sma50, s.sma200):
            if s.price > average:
                bullish += 1
            elif s.price < average:
                bearish += 1

        if s.macd > 0:
            bullish += 1
        elif s.macd < 0:
            bearish += 1

        if s.rsi < self.config.rsi_oversold:
            bullish += 1
        elif s.rsi > self.config.rsi_overbought:
            bearish += 1

        di_weight = 2 if s.adx >= self.config.adx_strong_trend else 1
        if s.plus_di > s.minus_di:
            bullish += di_weight
        elif s.minus_di > s.plus_di:
            bearish += di_weight

        if bullish > bearish:
            return MarketBias.BULLISH
        if bearish > bullish:
            return MarketBias.BEARISH
        return MarketBias.NEUTRAL

    def analyze_signals(self, snapshot: MarketSnapshot) -> List[TechnicalSignal]:
        """Describe each indicator reading for reasoning output."""
        s = snapshot
        cfg = self.config
        signals = []

        if s.price > s.sma50 > s.sma200:
            signals.append(TechnicalSignal("MA", MarketBias.BULLISH, "Price above 50 and 200 day averages (golden alignment)"))
        elif s.price < s.sma50 < s.sma200:
            signals.append(TechnicalSignal("MA", MarketBias.BEARISH, "Price below 50 and 200 day averages (bearish alignment)"))
        elif s.price > s.sma200:
            signals.append(TechnicalSignal("MA", MarketBias.BULLISH, "Price above 200 day average"))
        elif s.price < s.sma200:
            signals.append(TechnicalSignal("MA", MarketBias.BEARISH, "Price below 200 day average"))
        else:
            signals.append(TechnicalSignal("MA", MarketBias.NEUTRAL, "Price at 200 day average"))

        strength = "strong" if abs(s.macd) > cfg.strong_macd else "weak"
        if s.macd > 0:
            signals.append(TechnicalSignal("MACD", MarketBias.BULLISH, f"MACD positive ({strength}, {s.macd:.2f})"))
        elif s.macd < 0:
            signals.append(TechnicalSignal("MACD", MarketBias.BEARISH, f"MACD negative ({strength}, {s.macd:.2f})"))
        else:
            signals.append(TechnicalSignal("MACD", MarketBias.NEUTRAL, "MACD flat"))

        if s.rsi < cfg.rsi_oversold:
            signals.append(TechnicalSignal("RSI", MarketBias.BULLISH, f"RSI oversold ({s.rsi:.1f})"))
        elif s.rsi > cfg.rsi_overbought:
            signals.append(TechnicalSignal("RSI", MarketBias.BEARISH, f"RSI overbought ({s.rsi:.1f})"))
        else:
            signals.append(TechnicalSignal("RSI", MarketBias.NEUTRAL, f"RSI neutral ({s.rsi:.1f})"))

        trend = interpret_adx(s.adx)
        if s.plus_di > s.minus_di:
            di_bias = MarketBias.BULLISH
        elif s.minus_di > s.plus_di:
            di_bias = MarketBias.BEARISH
        else:
            di_bias = MarketBias.NEUTRAL
        signals.append(TechnicalSignal(
            "ADX",
            di_bias,
            f"ADX {s.adx:.1f} ({trend.value.replace('_', ' ')} trend), +DI {s.plus_di:.1f} / -DI {s.minus_di:.1f}",
        ))

        if s.vix > self.volatility.high:
            signals.append(TechnicalSignal("VIX", MarketBias.NEUTRAL, f"Elevated volatility (VIX {s.vix:.2f})"))
        elif s.vix < self.volatility.low:
            signals.append(TechnicalSignal("VIX", MarketBias.NEUTRAL, f"Low volatility (VIX {s.vix:.2f})"))
        else:
            signals.append(TechnicalSignal("VIX", MarketBias.NEUTRAL, f"Normal volatility (VIX {s.vix:.2f})"))

        return signals
