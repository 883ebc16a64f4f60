"""Cached access to row snapshots for the API layer.

Wraps RowFetcher with a QueryCache so repeated requests within the cache
max age reuse one snapshot of each materialized view.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from screener.data.cache import QueryCache
from screener.data.fetcher import RowFetcher
from screener.logging import get_logger
from screener.models import ArbOpportunity, ExchangeColumn, FundingRow, TokenRow

logger = get_logger(__name__)

T = TypeVar("T")


class CachedRowSource:
    """Row snapshots keyed by query, fetched on a cache miss."""

    def __init__(self, fetcher: RowFetcher, cache: QueryCache) -> None:
        self._fetcher = fetcher
        self._cache = cache

    @property
    def fetcher(self) -> RowFetcher:
        return self._fetcher

    @property
    def cache(self) -> QueryCache:
        return self._cache

    async def funding_rows(self) -> list[FundingRow]:
        return await self._cached("funding", self._fetcher.fetch_funding_rows)

    async def arbitrage_rows(self) -> list[ArbOpportunity]:
        return await self._cached("arbitrage", self._fetcher.fetch_arbitrage_rows)

    async def arb_opportunities(self, window_days: int) -> list[ArbOpportunity]:
        return await self._cached(
            f"arb_opportunities:{window_days}",
            lambda: self._fetcher.fetch_arb_opportunities(window_days),
        )

    async def screener_data(self) -> tuple[list[ExchangeColumn], list[TokenRow]]:
        return await self._cached("screener", self._fetcher.fetch_screener_data)

    def invalidate(self, key: str | None = None) -> None:
        self._cache.invalidate(key)

    async def _cached(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache_hit", key=key)
            return cached

        generation = self._cache.begin(key)
        data = await loader()
        if not self._cache.commit(key, generation, data):
            # Superseded by a newer fetch; prefer its result once it has landed
            newer: Any = self._cache.get(key)
            if newer is not None:
                return newer
        return data
