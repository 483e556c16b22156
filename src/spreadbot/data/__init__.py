"""
Data Module

Market data collaborators: the source protocol, an offline historical
source, a TTL cache, and the CSV history loader.
"""

from spreadbot.data.history import build_snapshots, load_price_history, prepare_history
from spreadbot.data.sources import (
    CachedMarketDataSource,
    HistoricalMarketDataSource,
    MarketDataSource,
    select_expiration,
    weekly_expirations,
)

__all__ = [
    "CachedMarketDataSource",
    "HistoricalMarketDataSource",
    "MarketDataSource",
    "build_snapshots",
    "load_price_history",
    "prepare_history",
    "select_expiration",
    "weekly_expirations",
]
