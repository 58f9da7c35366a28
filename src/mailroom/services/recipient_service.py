"""Recipient directory for one organization."""

from __future__ import annotations

import logging

from mailroom.api_client import MailroomAPIClient
from mailroom.cache import keys
from mailroom.cache.query_cache import QueryCache
from mailroom.models.recipient import Recipient, RecipientCreate, RecipientUpdate
from mailroom.session import TenantSession

logger = logging.getLogger(__name__)

DEFAULT_STALE_TIME = 60.0


class RecipientService:
    def __init__(self, client: MailroomAPIClient, cache: QueryCache) -> None:
        self._client = client
        self._cache = cache

    async def list(
        self,
        session: TenantSession,
        active_only: bool = False,
        stale_time: float = DEFAULT_STALE_TIME,
    ) -> list[Recipient]:
        recipients = await self._cache.fetch(
            keys.recipients(session),
            lambda: self._client.list_recipients(session),
            stale_time=stale_time,
        )
        if active_only:
            return [r for r in recipients if r.is_active]
        return recipients

    async def search(self, session: TenantSession, term: str) -> list[Recipient]:
        """Case-insensitive match on name, email, unit or department."""
        needle = term.strip().lower()
        recipients = await self.list(session, active_only=True)
        if not needle:
            return recipients
        return [
            r
            for r in recipients
            if any(
                needle in (value or "").lower()
                for value in (r.full_name, r.email, r.unit, r.department)
            )
        ]

    async def create(self, session: TenantSession, body: RecipientCreate) -> Recipient:
        recipient = await self._client.create_recipient(session, body)
        logger.info("Added recipient %s (%s)", recipient.id, recipient.full_name)
        self._invalidate(session)
        return recipient

    async def update(self, session: TenantSession, recipient_id: str, body: RecipientUpdate) -> Recipient:
        recipient = await self._client.update_recipient(session, recipient_id, body)
        self._invalidate(session)
        return recipient

    async def delete(self, session: TenantSession, recipient_id: str) -> None:
        await self._client.delete_recipient(session, recipient_id)
        logger.info("Deleted recipient %s", recipient_id)
        self._invalidate(session)

    def _invalidate(self, session: TenantSession) -> None:
        self._cache.invalidate(keys.recipients(session))
        self._cache.invalidate(keys.dashboard_stats(session))
