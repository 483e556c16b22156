"""
Pricing Module

Lognormal option pricing, probability-of-profit and synthetic chains.
"""

from spreadbot.pricing.black_scholes import (
    call_price,
    debit_spread_probability,
    option_price,
    probability_beyond,
    probability_of_profit,
    put_price,
    range_probability,
    standardized_distance,
    years_to_expiry,
)
from spreadbot.pricing.synthetic_chain import (
    SyntheticChainBuilder,
    build_synthetic_chain,
    estimate_strike_interval,
)

__all__ = [
    "SyntheticChainBuilder",
    "build_synthetic_chain",
    "call_price",
    "debit_spread_probability",
    "estimate_strike_interval",
    "option_price",
    "probability_beyond",
    "probability_of_profit",
    "put_price",
    "range_probability",
    "standardized_distance",
    "years_to_expiry",
]
