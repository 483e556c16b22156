"""
Position Sizing & Risk Metrics

Converts signal strength, volatility and account drawdown into a bounded
position size, and derives stop-loss / profit-target levels for a trade.

Sizing steps:
1. Base fraction from the signal-strength bucket, placed inside the
   account-type band [min%, max%]
2. Volatility penalty: VIX > extreme → x0.6, VIX > high → x0.8
3. Drawdown penalty: > 15% → x0.5, > 10% → x0.6, > 5% → x0.75
4. Clamp back into the account band

Usage:
    sizer = PositionSizer(config)
    sizing = sizer.size_position(account, signal_strength=3.2, vix=18.0)

    manager = RiskManager(config)
    metrics = manager.calculate_risk_metrics(snapshot, sizing, MarketBias.BULLISH)
"""

from typing import Optional

from loguru import logger

from spreadbot.config.trading_config import TradingConfig
from spreadbot.core.models import MarketSnapshot
from spreadbot.decisions.signals import MarketBias
from spreadbot.risk_manager.models import AccountInfo, PositionSizing, RiskLevel, RiskMetrics

# VIX level treated as "normal" when scaling risk
REFERENCE_VIX = 20.0
# ADX level treated as a "normal" trend when scaling risk
REFERENCE_ADX = 25.0


class PositionSizer:
    """
    Position sizing within account-type bands.

    Args:
        config: Trading configuration (account bands, signal buckets, VIX thresholds)
        log: Optional logger handle
    """

    def __init__(self, config: Optional[TradingConfig] = None, log=None):
        self.config = config or TradingConfig()
        self.log = log or logger.bind(component="PositionSizer")

    def _base_fraction(self, signal_strength: float, min_pct: float, max_pct: float) -> float:
        signals = self.config.signals
        if signal_strength >= signals.strong_signal:
            return max_pct
        if signal_strength >= signals.moderate_signal:
            return (min_pct + max_pct) / 2
        if signal_strength >= signals.weak_signal:
            return min_pct + 0.25 * (max_pct - min_pct)
        return min_pct

    def volatility_multiplier(self, vix: float) -> float:
        if vix > self.config.volatility.extreme:
            return 0.6
        if vix > self.config.volatility.high:
            return 0.8
        return 1.0

    def drawdown_multiplier(self, drawdown: float) -> float:
        if drawdown > 0.15:
            return 0.5
        if drawdown > 0.10:
            return 0.6
        if drawdown > 0.05:
            return 0.75
        return 1.0

    def position_fraction(
        self,
        signal_strength: float,
        vix: float,
        drawdown: float,
        account_type: str,
    ) -> float:
        """
        Position size as a fraction of balance.

        Args:
            signal_strength: Signal strength (0-5)
            vix: Volatility index level
            drawdown: Current drawdown fraction
            account_type: Account band key

        Returns:
            Fraction within the account band [min_position_pct, max_position_pct]

        Raises:
            ValueError: If the account type is not configured
        """
        band = self.config.account_band(account_type)
        fraction = self._base_fraction(signal_strength, band.min_position_pct, band.max_position_pct)
        fraction *= self.volatility_multiplier(vix)
        fraction *= self.drawdown_multiplier(drawdown)
        return min(band.max_position_pct, max(band.min_position_pct, fraction))

    def size_position(self, account: AccountInfo, signal_strength: float, vix: float) -> PositionSizing:
        """Size a position for an account; max risk never exceeds the position."""
        band = self.config.account_band(account.account_type)
        fraction = self.position_fraction(
            signal_strength, vix, account.current_drawdown, account.account_type
        )
        amount = account.balance * fraction
        max_risk = min(amount, account.balance * band.max_risk_per_trade)

        self.log.debug(
            f"Sized {account.account_type} account: {fraction:.2%} of ${account.balance:,.2f} "
            f"= ${amount:,.2f} (signal {signal_strength:.2f}, VIX {vix:.2f}, "
            f"drawdown {account.current_drawdown:.1%})"
        )
        return PositionSizing(fraction=fraction, amount=amount, max_risk=max_risk)

    def risk_adjusted_position_size(self, account: AccountInfo, signal_strength: float, vix: float) -> float:
        """Position size in currency."""
        return self.size_position(account, signal_strength, vix).amount

    def validate_position_size(self, amount: float, account: AccountInfo) -> bool:
        """Check a currency position size against the account band."""
        band = self.config.account_band(account.account_type)
        fraction = amount / account.balance
        valid = band.min_position_pct - 1e-9 <= fraction <= band.max_position_pct + 1e-9
        if not valid:
            self.log.warning(
                f"Position ${amount:,.2f} ({fraction:.2%}) outside {account.account_type} band "
                f"[{band.min_position_pct:.0%}, {band.max_position_pct:.0%}]"
            )
        return valid


class RiskManager:
    """
    Per-trade risk metrics: stop-loss, profit target, risk/reward, drawdown ceiling.

    **Rules:**
    - Volatility adjustment = clamp(20 / VIX, 0.5, 1.5)
    - Correlation risk = min(1, |price - SMA50| / SMA50 * VIX / 20)
    - Trend factor = clamp(ADX / 25, 0.5, 2.0)
    - Risk/reward = clamp(2 * volatility adjustment * trend factor, 1.1, 3.0)
    - Max drawdown = min(0.25, VIX / 100 * trend factor)
    - Stop defaults to stop_loss_pct from entry (below for bullish, above for
      bearish), replaced by the strategy breakeven when it sits on the loss side
    - Profit target = entry +/- stop distance * risk/reward

    Args:
        config: Trading configuration
        log: Optional logger handle
    """

    def __init__(self, config: Optional[TradingConfig] = None, log=None):
        self.config = config or TradingConfig()
        self.log = log or logger.bind(component="RiskManager")

    def calculate_risk_metrics(
        self,
        snapshot: MarketSnapshot,
        sizing: PositionSizing,
        direction: MarketBias,
        breakeven_price: Optional[float] = None,
    ) -> RiskMetrics:
        """
        Compute risk metrics for a position opened at the snapshot price.

        Args:
            snapshot: Entry snapshot
            sizing: Position sizing result
            direction: Trade direction; NEUTRAL uses bullish framing
            breakeven_price: Strategy breakeven overriding the default stop

        Returns:
            RiskMetrics
        """
        price = snapshot.price
        vix = max(snapshot.vix, 1e-6)
        stop_pct = self.config.backtest.stop_loss_pct
        bearish = direction == MarketBias.BEARISH

        volatility_adjustment = min(1.5, max(0.5, REFERENCE_VIX / vix))
        trend_factor = min(2.0, max(0.5, snapshot.adx / REFERENCE_ADX)) if snapshot.adx > 0 else 1.0
        correlation_risk = 0.0
        if snapshot.sma50 > 0:
            correlation_risk = min(1.0, abs(price - snapshot.sma50) / snapshot.sma50 * vix / REFERENCE_VIX)
        risk_reward = min(3.0, max(1.1, 2.0 * volatility_adjustment * trend_factor))
        max_drawdown = min(0.25, vix / 100.0 * trend_factor)

        if bearish:
            suggested_stop = price * (1 + stop_pct)
        else:
            suggested_stop = price * (1 - stop_pct)

        stop = suggested_stop
        if breakeven_price is not None:
            if bearish and breakeven_price > price:
                stop = breakeven_price
            elif not bearish and 0 < breakeven_price < price:
                stop = breakeven_price

        if bearish:
            profit_target = price - (stop - price) * risk_reward
        else:
            profit_target = price + (price - stop) * risk_reward

        metrics = RiskMetrics(
            max_position_size=sizing.amount,
            suggested_stop_loss=suggested_stop,
            risk_reward_ratio=risk_reward,
            max_drawdown=max_drawdown,
            volatility_adjustment=volatility_adjustment,
            correlation_risk=correlation_risk,
            max_risk=sizing.max_risk,
            stop_loss=stop,
            profit_target=profit_target,
        )
        self.log.debug(f"Risk metrics: {metrics!r}")
        return metrics


def determine_risk_level(position_fraction: float) -> RiskLevel:
    """Risk level from position size: < 6% LOW, < 10% MEDIUM, else HIGH."""
    if position_fraction < 0.06:
        return RiskLevel.LOW
    if position_fraction < 0.10:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH
