"""Test fixtures for spreadbot.

This package provides reusable test fixtures for:
- Market snapshots (bullish, bearish, neutral, weak-signal)
- Option chains (synthetic and hand-quoted)
- Daily price histories and snapshot series for backtests

Fixtures are auto-discovered by pytest through conftest.py.
"""

from tests.fixtures.market_fixtures import (
    bearish_snapshot,
    bullish_snapshot,
    make_price_frame,
    make_snapshot,
    neutral_snapshot,
    option_chain,
    price_frame,
    quoted_put_chain,
    snapshot_history,
    weak_snapshot,
)

__all__ = [
    "bearish_snapshot",
    "bullish_snapshot",
    "make_price_frame",
    "make_snapshot",
    "neutral_snapshot",
    "option_chain",
    "price_frame",
    "quoted_put_chain",
    "snapshot_history",
    "weak_snapshot",
]
