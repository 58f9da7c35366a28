"""In-memory query cache with prefix invalidation.

Keys are tuples that start with the API path and the organization id, e.g.
``("/api/mail-items", "org-1", (("status", "pending"),))``, so invalidating
``("/api/mail-items", "org-1")`` drops every filtered list of one tenant.
Writes are last-write-wins; there is no locking.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

CacheKey = tuple


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float
    invalidated: bool = False


class QueryCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._clock = clock

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, key: CacheKey) -> CacheEntry | None:
        return self._entries.get(key)

    def get(self, key: CacheKey, default: Any = None) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry is not None else default

    def set(self, key: CacheKey, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())

    def remove(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def keys(self, prefix: CacheKey = ()) -> list[CacheKey]:
        return [k for k in self._entries if k[: len(prefix)] == prefix]

    def is_fresh(self, key: CacheKey, stale_time: float) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.invalidated:
            return False
        return self._clock() - entry.fetched_at < stale_time

    def invalidate(self, prefix: CacheKey) -> int:
        """Mark every entry under *prefix* stale. Returns the number marked."""
        count = 0
        for key in self.keys(prefix):
            self._entries[key].invalidated = True
            count += 1
        if count:
            logger.debug("Invalidated %d cache entries under %s", count, prefix)
        return count

    def clear(self) -> None:
        self._entries.clear()

    async def fetch(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[Any]],
        stale_time: float = 0.0,
    ) -> Any:
        """Return cached data if still fresh, otherwise await *loader* and store it.

        With ``stale_time=0`` every call refetches; the cached copy is still
        kept so optimistic edits and readers see the latest known state.
        """
        if self.is_fresh(key, stale_time):
            return self._entries[key].data
        data = await loader()
        self.set(key, data)
        return data
