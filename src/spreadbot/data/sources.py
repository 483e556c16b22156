"""
Market Data Sources

The engine consumes market data through the MarketDataSource protocol: two
async calls returning validated, immutable models. Anything that can satisfy
it (web scraper, HTTP API, CSV history) plugs into the recommendation
service.

Implementations here:
- HistoricalMarketDataSource: serves the latest snapshot of a precomputed
  history and a model-priced option chain (offline runs, tests)
- CachedMarketDataSource: TTL cache in front of any other source

Failures raise MarketDataError; no source substitutes default values.
"""

import time
from datetime import date, timedelta
from typing import Dict, Iterable, Optional, Protocol, Sequence, Tuple

from loguru import logger

from spreadbot.core.errors import MarketDataError
from spreadbot.core.models import MarketSnapshot, OptionChainSlice
from spreadbot.pricing.synthetic_chain import SyntheticChainBuilder


class MarketDataSource(Protocol):
    """
    Market data collaborator protocol.

    All data sources must implement this protocol.
    """

    async def fetch_market_snapshot(self) -> MarketSnapshot:
        """
        Fetch the current market snapshot.

        Raises:
            MarketDataError: If the snapshot cannot be fetched
        """
        ...

    async def fetch_option_chain(self, target_days_to_expiry: int, tolerance_days: int = 5) -> OptionChainSlice:
        """
        Fetch the option chain for the expiration nearest the target.

        Args:
            target_days_to_expiry: Desired days to expiration
            tolerance_days: Maximum distance from the target

        Raises:
            MarketDataError: If no expiration lies within tolerance
        """
        ...


def select_expiration(
    expirations: Iterable[date],
    today: date,
    target_days: int,
    tolerance_days: int = 5,
    min_days: Optional[int] = None,
    max_days: Optional[int] = None,
) -> date:
    """
    Pick the expiration closest to today + target_days.

    Ties resolve to the earlier expiration. When min_days / max_days are
    given, expirations outside that DTE window are never picked, whatever
    the tolerance.

    Raises:
        MarketDataError: If no expiration is within tolerance_days of the
            target and inside the DTE window
    """
    candidates = [
        (abs((exp - today).days - target_days), exp)
        for exp in expirations
        if exp > today
    ]
    within = [
        (distance, exp)
        for distance, exp in candidates
        if distance <= tolerance_days
        and (min_days is None or (exp - today).days >= min_days)
        and (max_days is None or (exp - today).days <= max_days)
    ]
    if not within:
        raise MarketDataError(
            f"No expiration within {tolerance_days} days of {target_days} DTE",
            context={
                "target_days": target_days,
                "min_days": min_days,
                "max_days": max_days,
                "available": sorted(exp.isoformat() for _, exp in candidates),
            },
        )
    return min(within)[1]


def weekly_expirations(today: date, weeks: int = 12) -> Sequence[date]:
    """Friday expirations for the coming weeks."""
    first_friday = today + timedelta(days=(4 - today.weekday()) % 7 or 7)
    return [first_friday + timedelta(weeks=w) for w in range(weeks)]


class HistoricalMarketDataSource:
    """
    Offline data source over a precomputed snapshot history.

    The most recent snapshot is "now"; option chains are model-priced on
    weekly expirations.

    Args:
        snapshots: Snapshots in chronological order
        chain_builder: Pricing for synthetic chains
        min_days: Shortest expiration ever served (DTE)
        max_days: Longest expiration ever served (DTE)
    """

    def __init__(
        self,
        snapshots: Sequence[MarketSnapshot],
        chain_builder: Optional[SyntheticChainBuilder] = None,
        min_days: Optional[int] = None,
        max_days: Optional[int] = None,
    ):
        self.snapshots = list(snapshots)
        self.chain_builder = chain_builder or SyntheticChainBuilder()
        self.min_days = min_days
        self.max_days = max_days

    def _latest(self) -> MarketSnapshot:
        if not self.snapshots:
            raise MarketDataError("No historical snapshots loaded")
        return self.snapshots[-1]

    async def fetch_market_snapshot(self) -> MarketSnapshot:
        return self._latest()

    async def fetch_option_chain(self, target_days_to_expiry: int, tolerance_days: int = 5) -> OptionChainSlice:
        snapshot = self._latest()
        today = snapshot.trade_date
        expiration = select_expiration(
            weekly_expirations(today), today, target_days_to_expiry, tolerance_days,
            min_days=self.min_days, max_days=self.max_days,
        )
        return self.chain_builder.build(snapshot, (expiration - today).days, as_of=today)


class CachedMarketDataSource:
    """
    TTL cache in front of another MarketDataSource.

    Entries are keyed by request (snapshot, or chain target + tolerance) and
    expire ttl_seconds after they were stored. Failures are never cached.

    Args:
        source: Underlying data source
        ttl_seconds: Time to live for cached responses
        clock: Monotonic clock (injectable for tests)
    """

    def __init__(self, source: MarketDataSource, ttl_seconds: float = 60.0, clock=time.monotonic):
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[Tuple, Tuple[float, object]] = {}

    def _get(self, key: Tuple):
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        logger.debug(f"Cache hit: {key}")
        return value

    def _put(self, key: Tuple, value) -> None:
        self._entries[key] = (self.clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    async def fetch_market_snapshot(self) -> MarketSnapshot:
        key = ("snapshot",)
        cached = self._get(key)
        if cached is not None:
            return cached
        snapshot = await self.source.fetch_market_snapshot()
        self._put(key, snapshot)
        return snapshot

    async def fetch_option_chain(self, target_days_to_expiry: int, tolerance_days: int = 5) -> OptionChainSlice:
        key = ("chain", target_days_to_expiry, tolerance_days)
        cached = self._get(key)
        if cached is not None:
            return cached
        chain = await self.source.fetch_option_chain(target_days_to_expiry, tolerance_days)
        self._put(key, chain)
        return chain
