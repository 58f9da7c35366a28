"""Tests for mail item intake, status transitions and cache effects."""

from datetime import datetime, timezone

import pytest

from mailroom.cache import keys
from mailroom.errors.exceptions import InvalidTransitionError, NotFoundError, ServerError, ValidationError
from mailroom.models.enums import MailItemAction, MailItemStatus, MailItemType
from mailroom.models.mail_item import MailItem, MailItemCreate, MailItemFilters, MailItemUpdate
from mailroom.services.dashboard_service import DashboardService
from mailroom.services.mail_lifecycle import MailItemLifecycle, allowed_actions, next_status

NOW = datetime(2026, 3, 2, 14, 30, tzinfo=timezone.utc)

P, N, D = MailItemStatus.PENDING, MailItemStatus.NOTIFIED, MailItemStatus.DELIVERED


@pytest.fixture
def lifecycle(api_client, cache):
    return MailItemLifecycle(api_client, cache, clock=lambda: NOW)


def _item(**fields):
    return MailItem.model_validate({"id": "mail-x", "organizationId": "org-a", "type": "package", **fields})


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "current,action,expected",
    [
        (P, MailItemAction.NOTIFY, N),
        (P, MailItemAction.DELIVER, D),
        (N, MailItemAction.DELIVER, D),
        (N, MailItemAction.NOTIFY, N),
        (D, MailItemAction.DELIVER, D),
    ],
)
def test_next_status(current, action, expected):
    assert next_status(current, action) == expected


def test_notify_after_delivery_is_rejected():
    with pytest.raises(InvalidTransitionError) as exc_info:
        next_status(D, MailItemAction.NOTIFY)
    assert exc_info.value.current == "delivered"
    assert exc_info.value.action == "notify"


def test_next_status_accepts_plain_strings():
    assert next_status("pending", "notify") == N


def test_allowed_actions():
    assert allowed_actions(P) == [MailItemAction.NOTIFY, MailItemAction.DELIVER]
    assert allowed_actions(N) == [MailItemAction.DELIVER]
    assert allowed_actions(D) == []


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_defaults_to_pending_and_injects_tenant(fake_api, lifecycle, session):
    item = await lifecycle.create(
        session,
        MailItemCreate(type=MailItemType.PACKAGE, tracking_number="1Z999AA10123456784", sender=""),
    )
    assert item.status == MailItemStatus.PENDING
    assert item.organization_id == "org-a"

    body = fake_api.last_json("POST", "/api/mail-items")
    assert body["organizationId"] == "org-a"
    assert body["status"] == "pending"
    assert body["trackingNumber"] == "1Z999AA10123456784"
    assert "sender" not in body


@pytest.mark.asyncio
async def test_list_is_tenant_scoped(fake_api, lifecycle, session):
    fake_api.add_mail_item("org-a", id="mine")
    fake_api.add_mail_item("org-b", id="theirs")
    items = await lifecycle.list(session)
    assert [i.id for i in items] == ["mine"]


@pytest.mark.asyncio
async def test_list_with_filters_uses_separate_cache_entries(fake_api, lifecycle, session, cache):
    fake_api.add_mail_item("org-a", id="m1", status="pending")
    fake_api.add_mail_item("org-a", id="m2", status="delivered")

    pending = await lifecycle.list(session, MailItemFilters(status="pending"))
    everything = await lifecycle.list(session)

    assert [i.id for i in pending] == ["m1"]
    assert [i.id for i in everything] == ["m1", "m2"]
    assert len(cache.keys(keys.mail_items_prefix(session))) == 2


@pytest.mark.asyncio
async def test_list_is_served_from_cache_while_fresh(fake_api, lifecycle, session):
    await lifecycle.list(session)
    await lifecycle.list(session)
    assert len(fake_api.requests_to("GET", "/api/mail-items")) == 1


@pytest.mark.asyncio
async def test_pending_pickups_oldest_first(fake_api, lifecycle, session):
    fake_api.add_mail_item("org-a", id="late", arrivedAt="2026-03-02T12:00:00+00:00")
    fake_api.add_mail_item("org-a", id="done", status="delivered", arrivedAt="2026-03-01T08:00:00+00:00")
    fake_api.add_mail_item("org-a", id="early", status="notified", arrivedAt="2026-03-01T09:00:00+00:00")
    waiting = await lifecycle.pending_pickups(session)
    assert [i.id for i in waiting] == ["early", "late"]


@pytest.mark.asyncio
async def test_pending_pickups_mixes_naive_and_missing_arrival(fake_api, lifecycle, session):
    fake_api.add_mail_item("org-a", id="naive", arrivedAt="2026-03-02T09:00:00")
    fake_api.add_mail_item("org-a", id="unknown", arrivedAt=None)
    fake_api.add_mail_item("org-a", id="aware", arrivedAt="2026-03-02T08:00:00+00:00")
    waiting = await lifecycle.pending_pickups(session)
    assert [i.id for i in waiting] == ["unknown", "aware", "naive"]


# ---------------------------------------------------------------------------
# Notify and deliver
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_notify_sets_status_and_timestamp(fake_api, lifecycle, session):
    fake_api.add_mail_item("org-a", id="m1")
    item = await lifecycle.get(session, "m1")

    updated = await lifecycle.notify(session, item)

    assert updated.status == MailItemStatus.NOTIFIED
    assert updated.notified_at == NOW
    body = fake_api.last_json("PUT", "/api/mail-items/m1")
    assert body["status"] == "notified"
    assert "notifiedAt" in body


@pytest.mark.asyncio
async def test_notify_twice_is_a_noop(fake_api, lifecycle, session):
    """A second notify keeps the first timestamp and sends nothing."""
    item = _item(status="notified", notifiedAt="2026-03-01T10:00:00+00:00")
    result = await lifecycle.notify(session, item)
    assert result is item
    assert result.notified_at == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert fake_api.requests == []


@pytest.mark.parametrize("start", ["pending", "notified"])
@pytest.mark.asyncio
async def test_deliver_from_pending_or_notified(fake_api, lifecycle, session, start):
    fake_api.add_mail_item("org-a", id="m1", status=start)
    item = await lifecycle.get(session, "m1")

    delivered = await lifecycle.deliver(session, item)

    assert delivered.status == MailItemStatus.DELIVERED
    assert delivered.delivered_at == NOW


@pytest.mark.asyncio
async def test_deliver_twice_is_a_noop(fake_api, lifecycle, session):
    item = _item(status="delivered")
    assert await lifecycle.deliver(session, item) is item
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_notify_delivered_item_fails_before_request(fake_api, lifecycle, session):
    with pytest.raises(InvalidTransitionError):
        await lifecycle.notify(session, _item(status="delivered"))
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_transition_on_missing_item(lifecycle, session):
    with pytest.raises(NotFoundError):
        await lifecycle.deliver(session, _item(id="nope"))


@pytest.mark.asyncio
async def test_writes_invalidate_derived_views(fake_api, api_client, lifecycle, session, cache):
    """Stats and recent activity are stale after any mail item write."""
    dashboard = DashboardService(api_client, cache)
    await dashboard.stats(session)
    await dashboard.recent_activity(session, limit=5)
    await lifecycle.list(session)

    await lifecycle.create(session, MailItemCreate(type="letter"))

    assert cache.entry(keys.dashboard_stats(session)).invalidated
    assert cache.entry(keys.recent_activity(session, 5)).invalidated
    assert cache.entry(keys.mail_items(session)).invalidated

    stats = await dashboard.stats(session)
    assert stats.todays_mail == 1


@pytest.mark.asyncio
async def test_update_rejects_status_changes(fake_api, lifecycle, session):
    with pytest.raises(ValidationError):
        await lifecycle.update(session, "m1", MailItemUpdate(status=MailItemStatus.DELIVERED))
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_update_descriptive_fields(fake_api, lifecycle, session):
    fake_api.add_mail_item("org-a", id="m1")
    updated = await lifecycle.update(session, "m1", MailItemUpdate(notes="Left at front desk"))
    assert updated.notes == "Left at front desk"
    assert fake_api.last_json("PUT", "/api/mail-items/m1") == {"notes": "Left at front desk"}


# ---------------------------------------------------------------------------
# Optimistic delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_removes_item_from_cache_before_response(fake_api, lifecycle, session, cache):
    fake_api.add_mail_item("org-a", id="m1")
    fake_api.add_mail_item("org-a", id="m2")
    await lifecycle.list(session)

    seen_during_request = []

    def observe(request):
        if request.method == "DELETE":
            seen_during_request.extend(i.id for i in cache.get(keys.mail_items(session)))

    fake_api.on_request = observe
    await lifecycle.delete(session, "m1")

    assert seen_during_request == ["m2"]
    assert [i.id for i in cache.get(keys.mail_items(session))] == ["m2"]
    assert "m1" not in fake_api.mail_items


@pytest.mark.asyncio
async def test_delete_refetches_cached_lists(fake_api, lifecycle, session):
    fake_api.add_mail_item("org-a", id="m1")
    await lifecycle.list(session)
    before = len(fake_api.requests_to("GET", "/api/mail-items"))
    await lifecycle.delete(session, "m1")
    assert len(fake_api.requests_to("GET", "/api/mail-items")) == before + 1


@pytest.mark.asyncio
async def test_delete_failure_restores_cache(fake_api, lifecycle, session, cache):
    fake_api.add_mail_item("org-a", id="m1")
    fake_api.add_mail_item("org-a", id="m2")
    await lifecycle.list(session)
    fake_api.fail("DELETE", "/api/mail-items/m1", 500)

    with pytest.raises(ServerError):
        await lifecycle.delete(session, "m1")

    entry = cache.entry(keys.mail_items(session))
    assert [i.id for i in entry.data] == ["m1", "m2"]
    assert entry.invalidated


@pytest.mark.asyncio
async def test_delete_without_cached_lists(fake_api, lifecycle, session):
    fake_api.add_mail_item("org-a", id="m1")
    await lifecycle.delete(session, "m1")
    assert fake_api.mail_items == {}
