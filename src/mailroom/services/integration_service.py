"""Email/SMS/webhook/API notification channels of one organization."""

from __future__ import annotations

import logging

from mailroom.api_client import MailroomAPIClient
from mailroom.cache import keys
from mailroom.cache.query_cache import QueryCache
from mailroom.models.enums import IntegrationType
from mailroom.models.integration import Integration, IntegrationCreate, IntegrationUpdate
from mailroom.session import TenantSession

logger = logging.getLogger(__name__)


class IntegrationService:
    def __init__(self, client: MailroomAPIClient, cache: QueryCache) -> None:
        self._client = client
        self._cache = cache

    async def list(self, session: TenantSession, stale_time: float = 0.0) -> list[Integration]:
        return await self._cache.fetch(
            keys.integrations(session),
            lambda: self._client.list_integrations(session),
            stale_time=stale_time,
        )

    async def active_channels(self, session: TenantSession) -> set[IntegrationType]:
        return {i.type for i in await self.list(session) if i.is_active}

    async def create(self, session: TenantSession, body: IntegrationCreate) -> Integration:
        integration = await self._client.create_integration(session, body)
        logger.info("Configured %s integration %s", integration.type, integration.id)
        self._cache.invalidate(keys.integrations(session))
        return integration

    async def update(self, session: TenantSession, integration_id: str, body: IntegrationUpdate) -> Integration:
        integration = await self._client.update_integration(session, integration_id, body)
        self._cache.invalidate(keys.integrations(session))
        return integration

    async def toggle(self, session: TenantSession, integration_id: str, is_active: bool) -> Integration:
        """Enable or disable a channel. Its configuration is left untouched."""
        return await self.update(session, integration_id, IntegrationUpdate(is_active=is_active))

    async def delete(self, session: TenantSession, integration_id: str) -> None:
        await self._client.delete_integration(session, integration_id)
        logger.info("Removed integration %s", integration_id)
        self._cache.invalidate(keys.integrations(session))
