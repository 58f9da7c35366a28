"""Mail item intake and status lifecycle.

Status only moves forward::

     (none) --create--> pending
    pending  --notify-->  notified
    pending  --deliver--> delivered
    notified --deliver--> delivered

Disallowed transitions are rejected locally with
:class:`~mailroom.errors.exceptions.InvalidTransitionError` before any request
is sent. Every successful write invalidates the tenant's cached mail item
lists, dashboard stats and recent activity, which are derived from item state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from mailroom.api_client import MailroomAPIClient
from mailroom.cache import keys
from mailroom.cache.optimistic import PendingMutation
from mailroom.cache.query_cache import QueryCache
from mailroom.errors.exceptions import InvalidTransitionError, MailroomError, ValidationError
from mailroom.models.enums import MailItemAction, MailItemStatus
from mailroom.models.mail_item import (
    MailItem,
    MailItemCreate,
    MailItemFilters,
    MailItemHistoryEntry,
    MailItemUpdate,
)
from mailroom.session import TenantSession

logger = logging.getLogger(__name__)

DEFAULT_STALE_TIME = 30.0

# Re-applying the action that produced the current status is a no-op.
_TRANSITIONS: dict[tuple[MailItemStatus, MailItemAction], MailItemStatus] = {
    (MailItemStatus.PENDING, MailItemAction.NOTIFY): MailItemStatus.NOTIFIED,
    (MailItemStatus.PENDING, MailItemAction.DELIVER): MailItemStatus.DELIVERED,
    (MailItemStatus.NOTIFIED, MailItemAction.NOTIFY): MailItemStatus.NOTIFIED,
    (MailItemStatus.NOTIFIED, MailItemAction.DELIVER): MailItemStatus.DELIVERED,
    (MailItemStatus.DELIVERED, MailItemAction.DELIVER): MailItemStatus.DELIVERED,
}


def next_status(current: MailItemStatus, action: MailItemAction) -> MailItemStatus:
    """Target status of *action* from *current*; raises for backward moves."""
    try:
        return _TRANSITIONS[(MailItemStatus(current), MailItemAction(action))]
    except KeyError:
        raise InvalidTransitionError(str(current), str(action)) from None


def allowed_actions(current: MailItemStatus) -> list[MailItemAction]:
    """Actions that would change the status of an item in *current*."""
    return [
        action
        for (status, action), target in _TRANSITIONS.items()
        if status == current and target != current
    ]


_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _arrival_key(item: MailItem) -> datetime:
    # Naive timestamps are UTC; rows without one sort first.
    arrived = item.arrived_at
    if arrived is None:
        return _EARLIEST
    if arrived.tzinfo is None:
        return arrived.replace(tzinfo=timezone.utc)
    return arrived


class MailItemLifecycle:
    def __init__(
        self,
        client: MailroomAPIClient,
        cache: QueryCache,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._client = client
        self._cache = cache
        self._clock = clock

    # --- Reads ---

    async def list(
        self,
        session: TenantSession,
        filters: MailItemFilters | None = None,
        stale_time: float = DEFAULT_STALE_TIME,
    ) -> list[MailItem]:
        filters = filters or MailItemFilters()
        return await self._cache.fetch(
            keys.mail_items(session, filters.cache_key()),
            lambda: self._client.list_mail_items(session, filters),
            stale_time=stale_time,
        )

    async def pending_pickups(self, session: TenantSession) -> list[MailItem]:
        """Items still waiting for pickup: pending or notified, oldest first."""
        items = await self.list(session)
        waiting = [i for i in items if i.status != MailItemStatus.DELIVERED]
        return sorted(waiting, key=_arrival_key)

    async def get(self, session: TenantSession, item_id: str) -> MailItem:
        return await self._client.get_mail_item(session, item_id)

    async def history(self, session: TenantSession, item_id: str) -> list[MailItemHistoryEntry]:
        return await self._client.mail_item_history(session, item_id)

    # --- Writes ---

    async def create(self, session: TenantSession, body: MailItemCreate) -> MailItem:
        item = await self._client.create_mail_item(session, body)
        logger.info("Logged %s %s (status=%s)", item.type, item.id, item.status)
        self._invalidate(session)
        return item

    async def notify(self, session: TenantSession, item: MailItem) -> MailItem:
        return await self.transition(session, item, MailItemAction.NOTIFY)

    async def deliver(self, session: TenantSession, item: MailItem) -> MailItem:
        return await self.transition(session, item, MailItemAction.DELIVER)

    async def transition(self, session: TenantSession, item: MailItem, action: MailItemAction) -> MailItem:
        target = next_status(item.status, action)
        if target == item.status:
            logger.debug("Mail item %s already %s; %s skipped", item.id, item.status, action)
            return item

        now = self._clock()
        if target == MailItemStatus.NOTIFIED:
            body = MailItemUpdate(status=target, notified_at=now)
        else:
            body = MailItemUpdate(status=target, delivered_at=now)

        updated = await self._client.update_mail_item(session, item.id, body)
        logger.info("Mail item %s: %s -> %s", item.id, item.status, updated.status)
        self._invalidate(session)
        return updated

    async def update(self, session: TenantSession, item_id: str, body: MailItemUpdate) -> MailItem:
        """Edit descriptive fields. Status changes must go through notify/deliver."""
        if "status" in body.model_fields_set or body.notified_at or body.delivered_at:
            raise ValidationError("Use notify() or deliver() to change a mail item's status", status_code=None)
        updated = await self._client.update_mail_item(session, item_id, body)
        self._invalidate(session)
        return updated

    async def delete(self, session: TenantSession, item_id: str) -> None:
        """Delete an item, removing it from cached lists before the server answers.

        On failure the cached lists are restored and the error is re-raised.
        On success the lists are refetched to reconcile with the server.
        """
        list_keys = self._cache.keys(keys.mail_items_prefix(session)) + self._cache.keys(
            keys.recent_activity(session)
        )
        mutation = PendingMutation(
            self._cache,
            list_keys,
            lambda rows: [row for row in rows if row.id != item_id],
            description=f"delete mail item {item_id}",
        )
        await mutation.run(lambda: self._client.delete_mail_item(session, item_id))
        logger.info("Deleted mail item %s", item_id)
        self._invalidate(session)
        await self._reconcile_lists(session)

    # --- Internals ---

    def _invalidate(self, session: TenantSession) -> None:
        self._cache.invalidate(keys.mail_items_prefix(session))
        self._cache.invalidate(keys.dashboard_stats(session))
        self._cache.invalidate(keys.recent_activity(session))

    async def _reconcile_lists(self, session: TenantSession) -> None:
        for key in self._cache.keys(keys.mail_items_prefix(session)):
            filters = MailItemFilters.model_validate(dict(key[2]))
            try:
                await self.list(session, filters, stale_time=0)
            except MailroomError as exc:
                # The delete itself succeeded; the next read will retry the refetch.
                logger.warning("Refetch after delete failed: %s", exc)
