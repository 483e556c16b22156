"""
Strategy Selector

Maps {market bias, volatility regime, RSI extremes} to one strategy from the
closed StrategyType vocabulary, then computes strikes and economics against
an option chain.

Decision table (HIGH vol favors selling premium, LOW vol favors buying):

    Bias \\ Vol   HIGH               MEDIUM                            LOW
    BULLISH      BULL_PUT_SPREAD    BULL_PUT (RSI >= 60) / BULL_CALL   BULL_CALL_SPREAD
    BEARISH      BEAR_CALL_SPREAD   BEAR_CALL (RSI <= 40) / BEAR_PUT   BEAR_PUT_SPREAD
    NEUTRAL      IRON_CONDOR        IRON_CONDOR (IV pct > 40) /        IRON_BUTTERFLY /
                                    CALENDAR_SPREAD                    NO_TRADE (IV pct low)

RSI override (checked first, every regime): RSI >= overbought forces
BEAR_CALL_SPREAD, RSI <= oversold forces BULL_PUT_SPREAD.

Strike selection walks the available strikes and picks the one nearest a
strategy-specific target (2-4% out of the money). Credit/debit comes from
bid/ask quotes when both legs are quoted, otherwise from a fixed fraction of
the spread width.
"""

import math
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from spreadbot.config.trading_config import TradingConfig, VolatilityThresholds
from spreadbot.core.errors import StrategyError
from spreadbot.core.models import MarketSnapshot, OptionChainSlice, OptionRight
from spreadbot.decisions.signals import MarketBias
from spreadbot.decisions.volatility import PercentileFlag, VolatilityAssessment, VolatilityRegime
from spreadbot.pricing.black_scholes import (
    call_price,
    debit_spread_probability,
    probability_of_profit,
    range_probability,
    years_to_expiry,
)
from spreadbot.strategies.models import StrategyParameters, StrategyType

# Strike targets as fractions of spot: (right, short target, long target)
VERTICAL_TARGETS: Dict[StrategyType, Tuple[OptionRight, float, float]] = {
    StrategyType.BULL_PUT_SPREAD: (OptionRight.PUT, 0.98, 0.96),
    StrategyType.BEAR_CALL_SPREAD: (OptionRight.CALL, 1.02, 1.04),
    StrategyType.BULL_CALL_SPREAD: (OptionRight.CALL, 1.03, 1.00),
    StrategyType.BEAR_PUT_SPREAD: (OptionRight.PUT, 0.97, 1.00),
}
BUTTERFLY_WING = 0.03

BASE_WIN_RATES = {
    StrategyType.BULL_PUT_SPREAD: 63.0,
    StrategyType.BEAR_CALL_SPREAD: 58.0,
    StrategyType.IRON_BUTTERFLY: 55.0,
}


def nearest_strike(strikes: List[float], target: float) -> float:
    """
    Strike closest to target (lower strike wins ties).

    Raises:
        StrategyError: If no strikes are available
    """
    if not strikes:
        raise StrategyError("No strikes available in option chain")
    return min(strikes, key=lambda k: (abs(k - target), k))


def _next_strike(strikes: List[float], strike: float, lower: bool) -> Optional[float]:
    ordered = sorted(strikes)
    if lower:
        candidates = [k for k in ordered if k < strike]
        return candidates[-1] if candidates else None
    candidates = [k for k in ordered if k > strike]
    return candidates[0] if candidates else None


def expected_win_rate(
    strategy: StrategyType,
    signal_strength: float,
    snapshot: MarketSnapshot,
    volatility: Optional[VolatilityThresholds] = None,
) -> float:
    """
    Expected win rate in percent.

    Base rate by strategy, +/-5 per signal point around 3, -5 when VIX is
    above the high threshold and +5 when below the medium one, clamped to
    [35, 85]. Iron condors earn the higher base only when IV percentile is
    above percentile_condor.
    """
    vol = volatility or VolatilityThresholds()
    if strategy == StrategyType.NO_TRADE:
        return 0.0
    if strategy == StrategyType.IRON_CONDOR:
        base = 65.0 if snapshot.iv_percentile > vol.percentile_condor else 52.0
    else:
        base = BASE_WIN_RATES.get(strategy, 50.0)

    rate = base + (signal_strength - 3.0) * 5.0
    if snapshot.vix > vol.high:
        rate -= 5.0
    elif snapshot.vix < vol.medium:
        rate += 5.0
    return min(85.0, max(35.0, rate))


class StrategySelector:
    """
    Rule-based strategy selection and parameter construction.

    Args:
        config: Trading configuration (signal thresholds, credit fallbacks)
        log: Optional logger handle
    """

    def __init__(self, config: Optional[TradingConfig] = None, log=None):
        self.config = config or TradingConfig()
        self.log = log or logger.bind(component="StrategySelector")

        self._table: Dict[Tuple[MarketBias, VolatilityRegime], Callable[[MarketSnapshot, VolatilityAssessment], StrategyType]] = {
            (MarketBias.BULLISH, VolatilityRegime.HIGH): lambda s, v: StrategyType.BULL_PUT_SPREAD,
            (MarketBias.BULLISH, VolatilityRegime.MEDIUM): self._bullish_medium,
            (MarketBias.BULLISH, VolatilityRegime.LOW): lambda s, v: StrategyType.BULL_CALL_SPREAD,
            (MarketBias.BEARISH, VolatilityRegime.HIGH): lambda s, v: StrategyType.BEAR_CALL_SPREAD,
            (MarketBias.BEARISH, VolatilityRegime.MEDIUM): self._bearish_medium,
            (MarketBias.BEARISH, VolatilityRegime.LOW): lambda s, v: StrategyType.BEAR_PUT_SPREAD,
            (MarketBias.NEUTRAL, VolatilityRegime.HIGH): lambda s, v: StrategyType.IRON_CONDOR,
            (MarketBias.NEUTRAL, VolatilityRegime.MEDIUM): self._neutral_medium,
            (MarketBias.NEUTRAL, VolatilityRegime.LOW): self._neutral_low,
        }

        self._builders: Dict[StrategyType, Callable[..., StrategyParameters]] = {
            StrategyType.BULL_PUT_SPREAD: self._build_credit_vertical,
            StrategyType.BEAR_CALL_SPREAD: self._build_credit_vertical,
            StrategyType.BULL_CALL_SPREAD: self._build_debit_vertical,
            StrategyType.BEAR_PUT_SPREAD: self._build_debit_vertical,
            StrategyType.IRON_CONDOR: self._build_iron_condor,
            StrategyType.IRON_BUTTERFLY: self._build_iron_butterfly,
            StrategyType.CALENDAR_SPREAD: self._build_calendar,
            StrategyType.NO_TRADE: self._build_no_trade,
        }

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _bullish_medium(self, snapshot: MarketSnapshot, vol: VolatilityAssessment) -> StrategyType:
        if snapshot.rsi >= self.config.signals.rsi_neutral_high:
            return StrategyType.BULL_PUT_SPREAD
        return StrategyType.BULL_CALL_SPREAD

    def _bearish_medium(self, snapshot: MarketSnapshot, vol: VolatilityAssessment) -> StrategyType:
        if snapshot.rsi <= self.config.signals.rsi_neutral_low:
            return StrategyType.BEAR_CALL_SPREAD
        return StrategyType.BEAR_PUT_SPREAD

    def _neutral_medium(self, snapshot: MarketSnapshot, vol: VolatilityAssessment) -> StrategyType:
        if vol.iv_percentile > self.config.volatility.percentile_condor:
            return StrategyType.IRON_CONDOR
        return StrategyType.CALENDAR_SPREAD

    def _neutral_low(self, snapshot: MarketSnapshot, vol: VolatilityAssessment) -> StrategyType:
        if vol.percentile_flag == PercentileFlag.LOW:
            return StrategyType.NO_TRADE
        return StrategyType.IRON_BUTTERFLY

    def select_strategy(
        self,
        snapshot: MarketSnapshot,
        bias: MarketBias,
        volatility: VolatilityAssessment,
    ) -> StrategyType:
        """
        Pick a strategy for one snapshot.

        Args:
            snapshot: Market snapshot
            bias: Voted market bias
            volatility: Volatility assessment

        Returns:
            StrategyType
        """
        signals = self.config.signals
        if snapshot.rsi >= signals.rsi_overbought:
            self.log.debug(f"RSI {snapshot.rsi:.1f} overbought: forcing bear call spread")
            return StrategyType.BEAR_CALL_SPREAD
        if snapshot.rsi <= signals.rsi_oversold:
            self.log.debug(f"RSI {snapshot.rsi:.1f} oversold: forcing bull put spread")
            return StrategyType.BULL_PUT_SPREAD

        strategy = self._table[(bias, volatility.regime)](snapshot, volatility)
        self.log.debug(f"{bias.value} / {volatility.regime.value} vol -> {strategy.value}")
        return strategy

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def build_parameters(
        self,
        strategy: StrategyType,
        snapshot: MarketSnapshot,
        chain: OptionChainSlice,
    ) -> StrategyParameters:
        """
        Compute strikes, premium, max loss/profit, breakeven and PoP.

        Args:
            strategy: Strategy to build
            snapshot: Market snapshot (spot and VIX)
            chain: Option chain for the target expiration

        Returns:
            StrategyParameters

        Raises:
            StrategyError: If no valid strikes exist or the strategy is unsupported
            ValidationError: If the computed parameters violate an invariant
        """
        builder = self._builders.get(strategy)
        if builder is None:
            raise StrategyError(f"Unsupported strategy: {strategy}")
        if strategy != StrategyType.NO_TRADE and chain.is_empty():
            raise StrategyError(f"Option chain for {chain.expiration} has no strikes")

        params = builder(strategy, snapshot, chain)
        params.validate_against(snapshot.price)

        self.log.debug(
            f"{strategy.label}: sell {params.sell_strike} / buy {params.buy_strike}, "
            f"credit {params.target_credit:.2f}, debit {params.net_debit:.2f}, "
            f"max loss {params.max_loss:.2f}, BE {params.breakeven_price:.2f}, "
            f"PoP {params.probability_of_profit:.1%}"
        )
        return params

    def _iv(self, chain: OptionChainSlice, right: OptionRight, strike: float, snapshot: MarketSnapshot) -> float:
        quote = chain.quote(right, strike)
        if quote is not None and quote.implied_volatility > 0:
            return quote.implied_volatility
        return snapshot.vix / 100.0

    def _pick_pair(
        self,
        chain: OptionChainSlice,
        right: OptionRight,
        spot: float,
        short_target: float,
        long_target: float,
    ) -> Tuple[float, float]:
        """Snap both legs to available strikes, keeping them distinct."""
        strikes = chain.strikes(right)
        if not strikes:
            raise StrategyError(f"No {right.value.lower()} strikes available for {chain.expiration}")

        short = nearest_strike(strikes, spot * short_target)
        long = nearest_strike(strikes, spot * long_target)
        if long == short:
            long = _next_strike(strikes, short, lower=long_target < short_target)
            if long is None:
                raise StrategyError(
                    f"Cannot form a spread around {short} with available {right.value.lower()} strikes"
                )
        return short, long

    def _credit(
        self,
        chain: OptionChainSlice,
        right: OptionRight,
        short: float,
        long: float,
    ) -> float:
        width = abs(short - long)
        short_q = chain.quote(right, short)
        long_q = chain.quote(right, long)
        if short_q and long_q and short_q.has_market and long_q.has_market:
            credit = short_q.bid - long_q.ask
            if 0 < credit < width:
                return credit
        return width * self.config.strategy.credit_width_fraction

    def _debit(
        self,
        chain: OptionChainSlice,
        right: OptionRight,
        long: float,
        short: float,
    ) -> float:
        width = abs(short - long)
        long_q = chain.quote(right, long)
        short_q = chain.quote(right, short)
        if short_q and long_q and short_q.has_market and long_q.has_market:
            debit = long_q.ask - short_q.bid
            if 0 < debit < width:
                return debit
        return width * self.config.strategy.debit_width_fraction

    def _build_credit_vertical(
        self, strategy: StrategyType, snapshot: MarketSnapshot, chain: OptionChainSlice
    ) -> StrategyParameters:
        right, short_target, long_target = VERTICAL_TARGETS[strategy]
        spot = snapshot.price
        sell, buy = self._pick_pair(chain, right, spot, short_target, long_target)
        width = abs(sell - buy)
        credit = self._credit(chain, right, sell, buy)
        max_loss = width - credit
        breakeven = sell - credit if right == OptionRight.PUT else sell + credit

        pop = probability_of_profit(
            spot, sell, buy,
            self._iv(chain, right, sell, snapshot),
            self._iv(chain, right, buy, snapshot),
            chain.days_to_expiration,
            right=right,
            net_credit=credit,
            rate=self.config.strategy.risk_free_rate,
        )

        return StrategyParameters(
            strategy=strategy,
            sell_strike=sell,
            buy_strike=buy,
            option_right=right,
            target_credit=credit,
            max_loss=max_loss,
            max_profit=credit,
            return_on_risk=credit / max_loss if max_loss > 0 else 0.0,
            days_to_expiration=chain.days_to_expiration,
            expiry_date=chain.expiration,
            breakeven_price=breakeven,
            probability_of_profit=pop / 100.0,
        )

    def _build_debit_vertical(
        self, strategy: StrategyType, snapshot: MarketSnapshot, chain: OptionChainSlice
    ) -> StrategyParameters:
        right, short_target, long_target = VERTICAL_TARGETS[strategy]
        spot = snapshot.price
        sell, buy = self._pick_pair(chain, right, spot, short_target, long_target)
        width = abs(sell - buy)
        debit = self._debit(chain, right, buy, sell)
        breakeven = buy + debit if right == OptionRight.CALL else buy - debit

        pop = debit_spread_probability(
            spot, buy, sell,
            self._iv(chain, right, buy, snapshot),
            self._iv(chain, right, sell, snapshot),
            chain.days_to_expiration,
            right=right,
            net_debit=debit,
            rate=self.config.strategy.risk_free_rate,
        )

        return StrategyParameters(
            strategy=strategy,
            sell_strike=sell,
            buy_strike=buy,
            option_right=right,
            net_debit=debit,
            max_loss=debit,
            max_profit=width - debit,
            return_on_risk=(width - debit) / debit,
            days_to_expiration=chain.days_to_expiration,
            expiry_date=chain.expiration,
            breakeven_price=breakeven,
            probability_of_profit=pop / 100.0,
        )

    def _four_leg(
        self,
        strategy: StrategyType,
        snapshot: MarketSnapshot,
        chain: OptionChainSlice,
        put_pair: Tuple[float, float],
        call_pair: Tuple[float, float],
    ) -> StrategyParameters:
        put_sell, put_buy = put_pair
        call_sell, call_buy = call_pair
        width = max(put_sell - put_buy, call_buy - call_sell)

        credit = (
            self._credit(chain, OptionRight.PUT, put_sell, put_buy)
            + self._credit(chain, OptionRight.CALL, call_sell, call_buy)
        )
        if credit >= width:
            credit = width * self.config.strategy.credit_width_fraction
        max_loss = width - credit
        lower_breakeven = put_sell - credit
        upper_breakeven = call_sell + credit

        avg_iv = sum((
            self._iv(chain, OptionRight.PUT, put_sell, snapshot),
            self._iv(chain, OptionRight.PUT, put_buy, snapshot),
            self._iv(chain, OptionRight.CALL, call_sell, snapshot),
            self._iv(chain, OptionRight.CALL, call_buy, snapshot),
        )) / 4
        pop = range_probability(
            snapshot.price, lower_breakeven, upper_breakeven, put_buy, call_buy,
            avg_iv, chain.days_to_expiration,
        )

        return StrategyParameters(
            strategy=strategy,
            sell_strike=put_sell,
            buy_strike=put_buy,
            option_right=OptionRight.PUT,
            call_sell_strike=call_sell,
            call_buy_strike=call_buy,
            target_credit=credit,
            max_loss=max_loss,
            max_profit=credit,
            return_on_risk=credit / max_loss if max_loss > 0 else 0.0,
            days_to_expiration=chain.days_to_expiration,
            expiry_date=chain.expiration,
            breakeven_price=lower_breakeven,
            upper_breakeven_price=upper_breakeven,
            probability_of_profit=pop / 100.0,
        )

    def _build_iron_condor(
        self, strategy: StrategyType, snapshot: MarketSnapshot, chain: OptionChainSlice
    ) -> StrategyParameters:
        spot = snapshot.price
        put_pair = self._pick_pair(chain, OptionRight.PUT, spot, 0.98, 0.96)
        call_pair = self._pick_pair(chain, OptionRight.CALL, spot, 1.02, 1.04)
        return self._four_leg(strategy, snapshot, chain, put_pair, call_pair)

    def _build_iron_butterfly(
        self, strategy: StrategyType, snapshot: MarketSnapshot, chain: OptionChainSlice
    ) -> StrategyParameters:
        spot = snapshot.price
        put_pair = self._pick_pair(chain, OptionRight.PUT, spot, 1.0, 1.0 - BUTTERFLY_WING)
        call_pair = self._pick_pair(chain, OptionRight.CALL, spot, 1.0, 1.0 + BUTTERFLY_WING)
        return self._four_leg(strategy, snapshot, chain, put_pair, call_pair)

    def _build_calendar(
        self, strategy: StrategyType, snapshot: MarketSnapshot, chain: OptionChainSlice
    ) -> StrategyParameters:
        """
        ATM call calendar: sell this expiration, buy one twice as far out.

        Only one expiration is available, so the debit is model-priced at the
        ATM implied volatility and the profit zone is approximated as half an
        expected move either side of the strike.
        """
        spot = snapshot.price
        strikes = chain.strikes(OptionRight.CALL)
        if not strikes:
            raise StrategyError(f"No call strikes available for {chain.expiration}")
        strike = nearest_strike(strikes, spot)
        iv = self._iv(chain, OptionRight.CALL, strike, snapshot)
        days = max(chain.days_to_expiration, 1)
        rate = self.config.strategy.risk_free_rate

        debit = (
            call_price(spot, strike, iv, years_to_expiry(2 * days), rate)
            - call_price(spot, strike, iv, years_to_expiry(days), rate)
        )
        if debit <= 0:
            raise StrategyError(f"Calendar at {strike} has no time value to trade")

        expected_move = spot * iv * math.sqrt(years_to_expiry(days))
        pop = range_probability(
            spot,
            strike - 0.5 * expected_move, strike + 0.5 * expected_move,
            strike - expected_move, strike + expected_move,
            iv, days,
        )

        return StrategyParameters(
            strategy=strategy,
            sell_strike=strike,
            buy_strike=strike,
            option_right=OptionRight.CALL,
            net_debit=debit,
            max_loss=debit,
            max_profit=debit,
            return_on_risk=1.0,
            days_to_expiration=chain.days_to_expiration,
            expiry_date=chain.expiration,
            breakeven_price=strike - 0.5 * expected_move,
            upper_breakeven_price=strike + 0.5 * expected_move,
            probability_of_profit=pop / 100.0,
        )

    def _build_no_trade(
        self, strategy: StrategyType, snapshot: MarketSnapshot, chain: OptionChainSlice
    ) -> StrategyParameters:
        return StrategyParameters(strategy=StrategyType.NO_TRADE, breakeven_price=snapshot.price)


def skip_parameters(snapshot: MarketSnapshot, as_of: Optional[date] = None) -> StrategyParameters:
    """Parameters attached to a NO_TRADE recommendation."""
    return StrategyParameters(strategy=StrategyType.NO_TRADE, breakeven_price=snapshot.price, expiry_date=as_of)
