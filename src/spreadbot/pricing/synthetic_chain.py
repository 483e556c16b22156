"""
Synthetic Option Chain

Builds a model-priced OptionChainSlice from one MarketSnapshot. Used where no
historical chain exists (backtests, offline runs): strikes on a regular grid
around spot, implied volatility from the VIX level with a put skew, and a
bid/ask around model value.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from spreadbot.core.models import MarketSnapshot, OptionChainSlice, OptionQuote, OptionRight
from spreadbot.pricing.black_scholes import (
    DEFAULT_RISK_FREE_RATE,
    option_delta,
    option_price,
    years_to_expiry,
)


def estimate_strike_interval(underlying_price: float) -> float:
    """Estimate strike price interval from underlying price."""
    if underlying_price < 25:
        interval = 0.5
    elif underlying_price < 1000:
        interval = 1.0
    else:
        interval = 5.0
    return interval


@dataclass(slots=True)
class SyntheticChainBuilder:
    """
    Model-priced chain generator.

    Attributes:
        strike_range_pct: Strikes span spot * (1 +/- strike_range_pct)
        skew_slope: Put IV rises by skew_slope * moneyness below spot
        call_skew_slope: Call IV falls by call_skew_slope * moneyness above spot
        half_spread_pct: Half bid/ask spread as a fraction of model value
        min_half_spread: Floor for the half spread
        rate: Risk-free rate
    """
    strike_range_pct: float = 0.15
    skew_slope: float = 2.5
    call_skew_slope: float = 1.0
    half_spread_pct: float = 0.02
    min_half_spread: float = 0.01
    rate: float = DEFAULT_RISK_FREE_RATE

    def implied_volatility(self, right: OptionRight, spot: float, strike: float, base_iv: float) -> float:
        moneyness = (spot - strike) / spot
        if right == OptionRight.PUT and moneyness > 0:
            return base_iv * (1 + self.skew_slope * moneyness)
        if right == OptionRight.CALL and moneyness < 0:
            return max(base_iv * 0.5, base_iv * (1 + self.call_skew_slope * moneyness))
        return base_iv

    def _quote(self, right: OptionRight, spot: float, strike: float, iv: float, t_years: float) -> OptionQuote:
        value = option_price(right, spot, strike, iv, t_years, self.rate)
        half_spread = max(self.min_half_spread, value * self.half_spread_pct)
        return OptionQuote(
            strike=strike,
            bid=round(max(0.0, value - half_spread), 2),
            ask=round(value + half_spread, 2),
            last=round(value, 2),
            volume=0,
            open_interest=0,
            implied_volatility=iv,
            delta=option_delta(right, spot, strike, iv, t_years, self.rate),
        )

    def build(
        self,
        snapshot: MarketSnapshot,
        days_to_expiration: int,
        as_of: Optional[date] = None,
    ) -> OptionChainSlice:
        """
        Price a full chain for one expiration.

        Args:
            snapshot: Snapshot supplying spot, VIX and IV percentile
            days_to_expiration: Calendar days to the synthetic expiration
            as_of: Pricing date (defaults to the snapshot date)

        Returns:
            OptionChainSlice with calls and puts on a regular strike grid
        """
        spot = snapshot.price
        as_of = as_of or snapshot.trade_date
        base_iv = snapshot.vix / 100.0
        t_years = years_to_expiry(days_to_expiration)

        interval = estimate_strike_interval(spot)
        low = int((spot * (1 - self.strike_range_pct)) // interval)
        high = int((spot * (1 + self.strike_range_pct)) // interval) + 1

        calls = {}
        puts = {}
        for step in range(low, high + 1):
            strike = round(step * interval, 2)
            if strike <= 0:
                continue
            puts[strike] = self._quote(
                OptionRight.PUT, spot, strike,
                self.implied_volatility(OptionRight.PUT, spot, strike, base_iv), t_years,
            )
            calls[strike] = self._quote(
                OptionRight.CALL, spot, strike,
                self.implied_volatility(OptionRight.CALL, spot, strike, base_iv), t_years,
            )

        return OptionChainSlice(
            expiration=as_of + timedelta(days=days_to_expiration),
            underlying_price=spot,
            calls=calls,
            puts=puts,
            iv_percentile=snapshot.iv_percentile,
            put_call_ratio=1.0,
            days_to_expiration=days_to_expiration,
        )


def build_synthetic_chain(
    snapshot: MarketSnapshot,
    days_to_expiration: int,
    as_of: Optional[date] = None,
    rate: float = DEFAULT_RISK_FREE_RATE,
) -> OptionChainSlice:
    """Convenience wrapper around SyntheticChainBuilder with default skew."""
    return SyntheticChainBuilder(rate=rate).build(snapshot, days_to_expiration, as_of)
