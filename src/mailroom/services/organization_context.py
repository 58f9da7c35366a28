"""Resolves which organization (tenant) the signed-in user is working in.

The context loads the user's memberships, restores or picks a selection,
persists it, and hands out :class:`~mailroom.session.TenantSession` objects
for tenant-scoped calls. A background task can keep the list fresh so plan
changes applied by billing webhooks show up without a restart.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from mailroom.api_client import MailroomAPIClient
from mailroom.cache import keys
from mailroom.cache.query_cache import QueryCache
from mailroom.errors.exceptions import MailroomError, NoOrganizationSelectedError
from mailroom.logging_config import bind_session_context, clear_session_context
from mailroom.models.organization import OrganizationMembership
from mailroom.selection_store import SelectionStore
from mailroom.session import TenantSession

logger = logging.getLogger(__name__)

DEFAULT_REFETCH_INTERVAL = 10.0


def dedupe_organizations(organizations: list[OrganizationMembership]) -> list[OrganizationMembership]:
    """Keep the first occurrence of each organization id.

    Duplicates point at a fan-out in the membership query upstream, so they
    are logged rather than silently dropped.
    """
    counts = Counter(org.id for org in organizations)
    duplicated = sorted(org_id for org_id, n in counts.items() if n > 1)
    if duplicated:
        logger.warning(
            "Organization list contained duplicate rows: %s (%d extra)",
            ", ".join(duplicated),
            sum(counts[org_id] - 1 for org_id in duplicated),
        )

    seen: set[str] = set()
    unique = []
    for org in organizations:
        if org.id in seen:
            continue
        seen.add(org.id)
        unique.append(org)
    return unique


def select_initial_organization(
    organizations: list[OrganizationMembership],
    saved_id: str | None,
) -> OrganizationMembership | None:
    """Restore *saved_id* if it is still a membership, else the first organization."""
    if not organizations:
        return None
    if saved_id:
        for org in organizations:
            if org.id == saved_id:
                return org
        logger.info("Saved organization %s is no longer available; using %s", saved_id, organizations[0].id)
    return organizations[0]


class OrganizationContext:
    def __init__(
        self,
        client: MailroomAPIClient,
        store: SelectionStore,
        cache: QueryCache | None = None,
        refetch_interval: float = DEFAULT_REFETCH_INTERVAL,
    ) -> None:
        self._client = client
        self._store = store
        self._cache = cache if cache is not None else QueryCache()
        self._refetch_interval = refetch_interval
        self._organizations: list[OrganizationMembership] = []
        self._current: OrganizationMembership | None = None
        self._is_loading = True
        self._refresh_task: asyncio.Task | None = None

    @property
    def organizations(self) -> list[OrganizationMembership]:
        return list(self._organizations)

    @property
    def current(self) -> OrganizationMembership | None:
        return self._current

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def client(self) -> MailroomAPIClient:
        return self._client

    @property
    def cache(self) -> QueryCache:
        return self._cache

    async def load(self) -> list[OrganizationMembership]:
        """Fetch memberships and auto-select. A failed fetch yields an empty list."""
        try:
            self._organizations = await self._fetch_organizations()
        except MailroomError as exc:
            logger.warning("Could not load organizations: %s", exc)
            self._organizations = []
        finally:
            self._is_loading = False

        if not self._organizations:
            logger.info("User has no organizations; onboarding required")
        self._auto_select()
        return self.organizations

    def switch_organization(self, organization_id: str) -> bool:
        """Select *organization_id* if it is one of the user's organizations.

        Unknown ids are ignored and the current selection is kept.
        """
        for org in self._organizations:
            if org.id == organization_id:
                self._set_current(org)
                return True
        logger.debug("Ignoring switch to unknown organization %s", organization_id)
        return False

    async def refresh(self) -> None:
        """Refetch the list and the selected organization's detail.

        Used after billing-changing actions. On failure the previous state is
        kept and the next refresh tries again.
        """
        self._cache.invalidate(keys.ORGANIZATIONS)
        if self._current is not None:
            self._cache.invalidate(keys.organization(self._current.id))

        try:
            self._organizations = await self._fetch_organizations()
        except MailroomError as exc:
            logger.warning("Organization refresh failed: %s", exc)
            return

        if self._current is None:
            self._auto_select()
            return

        fresh = next((org for org in self._organizations if org.id == self._current.id), None)
        if fresh is None:
            logger.warning("Selected organization %s is no longer available", self._current.id)
            self._current = None
            self._auto_select()
            return
        self._current = await self._with_detail(fresh)

    def session(self) -> TenantSession:
        """Tenant handle for the current selection."""
        if self._current is None:
            raise NoOrganizationSelectedError()
        return TenantSession(organization_id=self._current.id, role=str(self._current.role))

    # --- Background refetch ---

    def start_auto_refresh(self, interval: float | None = None) -> asyncio.Task:
        """Refresh on a fixed interval until :meth:`stop_auto_refresh`."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(
                self._auto_refresh_loop(interval or self._refetch_interval)
            )
        return self._refresh_task

    async def stop_auto_refresh(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def on_focus(self) -> None:
        """Hook for the host application regaining focus."""
        await self.refresh()

    async def _auto_refresh_loop(self, interval: float) -> None:
        logger.info("Organization auto-refresh started (interval=%.1fs)", interval)
        while True:
            try:
                await asyncio.sleep(interval)
                await self.refresh()
            except asyncio.CancelledError:
                logger.info("Organization auto-refresh stopped")
                raise
            except Exception as exc:
                logger.exception("Organization auto-refresh error: %s", exc)

    # --- Internals ---

    async def _fetch_organizations(self) -> list[OrganizationMembership]:
        rows = await self._cache.fetch(keys.ORGANIZATIONS, self._client.list_organizations, stale_time=0)
        return dedupe_organizations(rows)

    async def _with_detail(self, org: OrganizationMembership) -> OrganizationMembership:
        session = TenantSession(organization_id=org.id, role=str(org.role))
        try:
            detail = await self._cache.fetch(
                keys.organization(org.id),
                lambda: self._client.get_organization(session),
                stale_time=0,
            )
        except MailroomError as exc:
            logger.warning("Could not refresh organization %s: %s", org.id, exc)
            return org
        return OrganizationMembership.model_validate({**detail.model_dump(), "role": org.role})

    def _auto_select(self) -> None:
        # Only once the list has resolved, and never over an explicit selection.
        if self._is_loading or self._current is not None:
            return
        chosen = select_initial_organization(self._organizations, self._store.get())
        if chosen is not None:
            self._set_current(chosen)

    def _set_current(self, org: OrganizationMembership) -> None:
        self._current = org
        self._store.set(org.id)
        clear_session_context()
        bind_session_context(org.id)
        logger.info("Selected organization %s (%s)", org.id, org.name)
