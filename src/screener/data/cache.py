"""In-memory query cache with generation tokens.

Entries are keyed by query parameters (e.g. ``"arb_opportunities:7"``) and
expire after ``max_age_seconds``. Each fetch takes a generation token from
begin(); commit() only stores the result if no newer fetch for the same key
has started since, so a slow, superseded response can never overwrite a
newer one (last writer wins).

Methods never await, so a single event loop needs no locking.
"""

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from screener.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _CacheEntry:
    data: Any
    stored_at: float
    generation: int


class QueryCache:
    """Keyed cache with max-age expiry and per-key generation tokens."""

    def __init__(
        self,
        max_age_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_age = max_age_seconds
        self._clock = clock
        self._entries: dict[Hashable, _CacheEntry] = {}
        self._generations: dict[Hashable, int] = {}

    def get(self, key: Hashable) -> Any | None:
        """Return cached data if present and fresh, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self._max_age:
            del self._entries[key]
            logger.debug("cache_entry_expired", key=key)
            return None
        return entry.data

    def begin(self, key: Hashable) -> int:
        """Start a fetch for ``key`` and return its generation token."""
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        return generation

    def is_current(self, key: Hashable, generation: int) -> bool:
        return self._generations.get(key, 0) == generation

    def commit(self, key: Hashable, generation: int, data: Any) -> bool:
        """Store a fetch result unless a newer fetch for ``key`` has begun.

        Returns True if stored, False if the result was stale and discarded.
        """
        if not self.is_current(key, generation):
            logger.info(
                "stale_result_discarded",
                key=key,
                generation=generation,
                current=self._generations.get(key, 0),
            )
            return False
        self._entries[key] = _CacheEntry(data=data, stored_at=self._clock(), generation=generation)
        return True

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one key (or everything) and supersede any in-flight fetches."""
        keys = list(self._generations) if key is None else [key]
        for k in keys:
            self._entries.pop(k, None)
            self._generations[k] = self._generations.get(k, 0) + 1
        if key is None:
            self._entries.clear()
        logger.info("cache_invalidated", key=key if key is not None else "*")

    def __len__(self) -> int:
        return len(self._entries)
