"""Two-phase optimistic edits of cached query data."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, TypeVar

from mailroom.cache.query_cache import CacheEntry, CacheKey, QueryCache
from mailroom.errors.exceptions import MutationStateError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MutationState(StrEnum):
    CREATED = "created"
    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class PendingMutation:
    """A local cache edit awaiting server confirmation.

    ``apply`` snapshots the affected entries and rewrites them with *update*;
    ``confirm`` keeps the edit; ``rollback`` restores the snapshot. Each
    mutation resolves exactly once.
    """

    def __init__(
        self,
        cache: QueryCache,
        keys: list[CacheKey],
        update: Callable[[Any], Any],
        description: str = "",
    ) -> None:
        self._cache = cache
        self._keys = list(keys)
        self._update = update
        self._snapshot: dict[CacheKey, CacheEntry | None] = {}
        self.description = description
        self.state = MutationState.CREATED

    @property
    def keys(self) -> list[CacheKey]:
        return list(self._keys)

    def apply(self) -> None:
        if self.state != MutationState.CREATED:
            raise MutationStateError(f"Cannot apply a mutation that is {self.state}")
        for key in self._keys:
            entry = self._cache.entry(key)
            self._snapshot[key] = (
                CacheEntry(entry.data, entry.fetched_at, entry.invalidated) if entry else None
            )
            if entry is not None:
                entry.data = self._update(entry.data)
        self.state = MutationState.TENTATIVE
        logger.debug("Applied optimistic mutation %s to %d entries", self.description, len(self._keys))

    def confirm(self) -> None:
        self._resolve(MutationState.CONFIRMED)
        self._snapshot.clear()

    def rollback(self) -> None:
        self._resolve(MutationState.ROLLED_BACK)
        for key, saved in self._snapshot.items():
            if saved is None:
                self._cache.remove(key)
                continue
            entry = self._cache.entry(key)
            if entry is None:
                continue
            entry.data = saved.data
            # The server state is unknown after a failure; let the next read refetch.
            entry.invalidated = True
        self._snapshot.clear()
        logger.info("Rolled back optimistic mutation %s", self.description)

    async def run(self, request: Callable[[], Awaitable[T]]) -> T:
        """Apply, await *request*, then confirm on success or roll back and re-raise."""
        self.apply()
        try:
            result = await request()
        except BaseException:
            self.rollback()
            raise
        self.confirm()
        return result

    def _resolve(self, target: MutationState) -> None:
        if self.state != MutationState.TENTATIVE:
            raise MutationStateError(f"Cannot mark a {self.state} mutation as {target}")
        self.state = target
