"""Derived read views: dashboard counters and the recent activity feed."""

from __future__ import annotations

from mailroom.api_client import MailroomAPIClient
from mailroom.cache import keys
from mailroom.cache.query_cache import QueryCache
from mailroom.models.dashboard import DashboardStats
from mailroom.models.mail_item import MailItem
from mailroom.session import TenantSession

DEFAULT_STALE_TIME = 30.0


class DashboardService:
    def __init__(self, client: MailroomAPIClient, cache: QueryCache) -> None:
        self._client = client
        self._cache = cache

    async def stats(self, session: TenantSession, stale_time: float = DEFAULT_STALE_TIME) -> DashboardStats:
        return await self._cache.fetch(
            keys.dashboard_stats(session),
            lambda: self._client.dashboard_stats(session),
            stale_time=stale_time,
        )

    async def recent_activity(
        self,
        session: TenantSession,
        limit: int = 10,
        stale_time: float = DEFAULT_STALE_TIME,
    ) -> list[MailItem]:
        return await self._cache.fetch(
            keys.recent_activity(session, limit),
            lambda: self._client.recent_activity(session, limit),
            stale_time=stale_time,
        )
