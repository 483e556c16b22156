"""
Options Pricing & Probability Model

Simplified lognormal (Black-Scholes style) pricing and probability-of-profit
for defined-risk spreads. This is intentionally an approximation, not a
calibrated derivatives engine: no dividends, a single flat rate.

Probability-of-profit convention:
    The breakeven comes from the net credit (or debit). Distances from spot
    are standardized with the AVERAGE implied volatility of the legs and
    sigma * sqrt(T). Outcomes beyond the breakeven count as wins; outcomes
    in the partial-loss zone between the breakeven and the max-loss (long)
    strike count at half weight:

        PoP = 50 * (P(beyond breakeven) + P(beyond long strike))

    When no quoted credit is supplied it is modelled by pricing both legs at
    the average IV, so the result depends on the legs' IVs only through
    their mean.
"""

import math
from typing import Optional

from scipy.stats import norm

from spreadbot.core.models import OptionRight

DAYS_PER_YEAR = 365.0
DEFAULT_RISK_FREE_RATE = 0.04


def years_to_expiry(days: float) -> float:
    return max(days, 0.0) / DAYS_PER_YEAR


def _d1_d2(spot: float, strike: float, vol: float, t_years: float, rate: float):
    sqrt_t = math.sqrt(t_years)
    d1 = (math.log(spot / strike) + (rate + 0.5 * vol ** 2) * t_years) / (vol * sqrt_t)
    return d1, d1 - vol * sqrt_t


def put_price(
    spot: float,
    strike: float,
    vol: float,
    t_years: float,
    rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    European put value.

    Args:
        spot: Underlying price
        strike: Strike price
        vol: Annualized volatility (decimal)
        t_years: Time to expiry in years
        rate: Risk-free rate

    Returns:
        Put price (intrinsic value at or past expiry, or with zero vol)
    """
    if t_years <= 0 or vol <= 0:
        return max(strike - spot, 0.0)
    d1, d2 = _d1_d2(spot, strike, vol, t_years, rate)
    return float(strike * math.exp(-rate * t_years) * norm.cdf(-d2) - spot * norm.cdf(-d1))


def call_price(
    spot: float,
    strike: float,
    vol: float,
    t_years: float,
    rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """European call value (intrinsic at or past expiry, or with zero vol)."""
    if t_years <= 0 or vol <= 0:
        return max(spot - strike, 0.0)
    d1, d2 = _d1_d2(spot, strike, vol, t_years, rate)
    return float(spot * norm.cdf(d1) - strike * math.exp(-rate * t_years) * norm.cdf(d2))


def option_price(right: OptionRight, spot: float, strike: float, vol: float, t_years: float,
                 rate: float = DEFAULT_RISK_FREE_RATE) -> float:
    if right == OptionRight.PUT:
        return put_price(spot, strike, vol, t_years, rate)
    return call_price(spot, strike, vol, t_years, rate)


def option_delta(right: OptionRight, spot: float, strike: float, vol: float, t_years: float,
                 rate: float = DEFAULT_RISK_FREE_RATE) -> float:
    if t_years <= 0 or vol <= 0:
        itm = spot > strike if right == OptionRight.CALL else spot < strike
        return (1.0 if right == OptionRight.CALL else -1.0) if itm else 0.0
    d1, _ = _d1_d2(spot, strike, vol, t_years, rate)
    if right == OptionRight.CALL:
        return float(norm.cdf(d1))
    return float(norm.cdf(d1) - 1.0)


def standardized_distance(spot: float, level: float, vol: float, t_years: float) -> float:
    """ln(spot / level) in units of sigma * sqrt(T)."""
    return math.log(spot / level) / (vol * math.sqrt(t_years))


def probability_beyond(spot: float, level: float, vol: float, t_years: float, above: bool) -> float:
    """
    Probability that the price at expiry finishes above (or below) a level.

    Degenerates to 0/1 when there is no time or no volatility left.
    """
    if t_years <= 0 or vol <= 0:
        return 1.0 if (spot > level if above else spot < level) else 0.0
    z = standardized_distance(spot, level, vol, t_years)
    return float(norm.cdf(z if above else -z))


def _clamp_percent(value: float) -> float:
    return min(100.0, max(0.0, value))


def probability_of_profit(
    spot: float,
    sell_strike: float,
    buy_strike: float,
    sell_iv: float,
    buy_iv: float,
    days_to_expiry: float,
    right: OptionRight = OptionRight.PUT,
    net_credit: Optional[float] = None,
    rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    Probability of profit for a credit vertical, in percent [0, 100].

    A put credit spread (sell higher strike, buy lower) profits above its
    breakeven; a call credit spread (sell lower, buy higher) profits below.

    Args:
        spot: Underlying price
        sell_strike: Short strike
        buy_strike: Long (protective) strike
        sell_iv: Implied volatility of the short leg
        buy_iv: Implied volatility of the long leg
        days_to_expiry: Calendar days to expiry
        right: PUT for bull put spreads, CALL for bear call spreads
        net_credit: Quoted net credit; modelled from the average IV when None
        rate: Risk-free rate used for the modelled credit

    Returns:
        Probability of profit as a percentage
    """
    avg_iv = (sell_iv + buy_iv) / 2
    t_years = years_to_expiry(days_to_expiry)

    if net_credit is None:
        net_credit = (
            option_price(right, spot, sell_strike, avg_iv, t_years, rate)
            - option_price(right, spot, buy_strike, avg_iv, t_years, rate)
        )

    bullish = right == OptionRight.PUT
    breakeven = sell_strike - net_credit if bullish else sell_strike + net_credit

    p_breakeven = probability_beyond(spot, breakeven, avg_iv, t_years, above=bullish)
    p_protected = probability_beyond(spot, buy_strike, avg_iv, t_years, above=bullish)
    return _clamp_percent(50.0 * (p_breakeven + p_protected))


def debit_spread_probability(
    spot: float,
    buy_strike: float,
    sell_strike: float,
    buy_iv: float,
    sell_iv: float,
    days_to_expiry: float,
    right: OptionRight = OptionRight.CALL,
    net_debit: Optional[float] = None,
    rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    Probability of profit for a debit vertical, in percent [0, 100].

    A call debit spread (buy lower, sell higher) profits above long strike +
    debit; a put debit spread (buy higher, sell lower) profits below long
    strike - debit. Same half-weight convention as probability_of_profit.
    """
    avg_iv = (buy_iv + sell_iv) / 2
    t_years = years_to_expiry(days_to_expiry)

    if net_debit is None:
        net_debit = (
            option_price(right, spot, buy_strike, avg_iv, t_years, rate)
            - option_price(right, spot, sell_strike, avg_iv, t_years, rate)
        )

    bullish = right == OptionRight.CALL
    breakeven = buy_strike + net_debit if bullish else buy_strike - net_debit

    p_breakeven = probability_beyond(spot, breakeven, avg_iv, t_years, above=bullish)
    p_long = probability_beyond(spot, buy_strike, avg_iv, t_years, above=bullish)
    return _clamp_percent(50.0 * (p_breakeven + p_long))


def range_probability(
    spot: float,
    lower_breakeven: float,
    upper_breakeven: float,
    lower_long_strike: float,
    upper_long_strike: float,
    vol: float,
    days_to_expiry: float,
) -> float:
    """
    Probability of profit for a neutral structure (condor, butterfly), in percent.

    Profits between the two breakevens; partial-loss zones out to the long
    wings count at half weight.
    """
    t_years = years_to_expiry(days_to_expiry)

    def inside(lower: float, upper: float) -> float:
        below_upper = probability_beyond(spot, upper, vol, t_years, above=False)
        above_lower = probability_beyond(spot, lower, vol, t_years, above=True)
        return max(0.0, below_upper + above_lower - 1.0)

    return _clamp_percent(50.0 * (
        inside(lower_breakeven, upper_breakeven)
        + inside(lower_long_strike, upper_long_strike)
    ))
