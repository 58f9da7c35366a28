"""Shared test fixtures.

The mailroom API is replaced by an in-memory fake served through
``httpx.MockTransport``, so the real client, error mapping and tenant header
handling are exercised without a network.
"""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from mailroom.api_client import MailroomAPIClient
from mailroom.cache.query_cache import QueryCache
from mailroom.selection_store import MemorySelectionStore
from mailroom.services.organization_context import OrganizationContext
from mailroom.session import ORGANIZATION_HEADER, TenantSession

BASE_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeMailroomAPI:
    """Just enough of the mailroom REST API for client-side tests.

    ``fail(method, path, status)`` makes one route return an error.
    ``on_request`` is called with every request before it is answered.
    """

    def __init__(self):
        self.organizations: list[dict] = []
        self.mail_items: dict[str, dict] = {}
        self.recipients: dict[str, dict] = {}
        self.integrations: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], tuple[int, dict | None]] = {}
        self.on_request = None
        self._counter = 0

    # --- Seeding ---

    def add_org(self, org_id, name=None, role="admin", **fields):
        org = {
            "id": org_id,
            "name": name or f"Org {org_id}",
            "role": role,
            "planType": "trial",
            "subscriptionStatus": "trial",
            "maxPackagesPerMonth": 500,
            "currentMonthPackages": 0,
            **fields,
        }
        self.organizations.append(org)
        return org

    def add_mail_item(self, org_id, **fields):
        item_id = fields.pop("id", None) or self._next_id("mail")
        item = {
            "id": item_id,
            "organizationId": org_id,
            "type": "package",
            "status": "pending",
            "arrivedAt": (BASE_TIME + timedelta(minutes=self._counter)).isoformat(),
            **fields,
        }
        self.mail_items[item_id] = item
        return item

    def add_recipient(self, org_id, first_name, last_name, **fields):
        rid = fields.pop("id", None) or self._next_id("rcpt")
        recipient = {
            "id": rid,
            "organizationId": org_id,
            "firstName": first_name,
            "lastName": last_name,
            "recipientType": "employee",
            "isActive": True,
            **fields,
        }
        self.recipients[rid] = recipient
        return recipient

    def add_integration(self, org_id, name, type_, **fields):
        iid = fields.pop("id", None) or self._next_id("intg")
        integration = {
            "id": iid,
            "organizationId": org_id,
            "name": name,
            "type": type_,
            "config": {},
            "isActive": True,
            **fields,
        }
        self.integrations[iid] = integration
        return integration

    def fail(self, method, path, status=500, body=None):
        self.failures[(method, path)] = (status, body if body is not None else {"message": "Internal server error"})

    # --- Introspection ---

    def requests_to(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def last_json(self, method, path):
        return json.loads(self.requests_to(method, path)[-1].content)

    # --- Transport handler ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        failure = self.failures.get((request.method, request.url.path))
        if failure is not None:
            status, body = failure
            return httpx.Response(status, json=body)

        parts = request.url.path.strip("/").split("/")[1:]
        body = json.loads(request.content) if request.content else None
        resource, rest = parts[0], parts[1:]

        if resource == "organizations":
            return self._organizations(request, rest)

        org_id = request.headers.get(ORGANIZATION_HEADER)
        if not org_id or org_id not in {o["id"] for o in self.organizations}:
            return httpx.Response(403, json={"message": "Access denied to organization"})

        if resource == "mail-items":
            return self._mail_items(request, org_id, rest, body)
        if resource == "recipients":
            return self._crud(self.recipients, "rcpt", request, org_id, rest, body)
        if resource == "integrations":
            return self._crud(self.integrations, "intg", request, org_id, rest, body)
        if resource == "dashboard":
            return self._dashboard(request, org_id, rest)
        if resource == "billing":
            return self._billing(request, org_id, rest)
        return httpx.Response(404, json={"message": "Not found"})

    def _organizations(self, request, rest):
        if not rest and request.method == "POST":
            org = self.add_org(self._next_id("org"), **json.loads(request.content))
            return httpx.Response(201, json={k: v for k, v in org.items() if k != "role"})
        if not rest:
            return httpx.Response(200, json=self.organizations)
        org_id = rest[0]
        if request.headers.get(ORGANIZATION_HEADER) != org_id:
            return httpx.Response(403, json={"message": "Access denied to organization"})
        for org in self.organizations:
            if org["id"] == org_id:
                return httpx.Response(200, json={k: v for k, v in org.items() if k != "role"})
        return httpx.Response(404, json={"message": "Organization not found"})

    def _mail_items(self, request, org_id, rest, body):
        if not rest:
            if request.method == "POST":
                item = self.add_mail_item(body["organizationId"], **{k: v for k, v in body.items() if k != "organizationId"})
                return httpx.Response(201, json=item)
            items = [i for i in self.mail_items.values() if i["organizationId"] == org_id]
            for param in ("status", "type", "recipientId"):
                if param in request.url.params:
                    items = [i for i in items if i.get(param) == request.url.params[param]]
            return httpx.Response(200, json=items)

        item = self.mail_items.get(rest[0])
        if item is None or item["organizationId"] != org_id:
            return httpx.Response(404, json={"message": "Mail item not found"})
        if len(rest) == 2 and rest[1] == "history":
            return httpx.Response(200, json=[])
        if request.method == "GET":
            return httpx.Response(200, json=item)
        if request.method == "PUT":
            item.update(body)
            return httpx.Response(200, json=item)
        if request.method == "DELETE":
            del self.mail_items[rest[0]]
            return httpx.Response(200, json={"message": "Mail item deleted"})
        return httpx.Response(405)

    def _crud(self, store, prefix, request, org_id, rest, body):
        if not rest:
            if request.method == "POST":
                row = {"id": self._next_id(prefix), **body}
                store[row["id"]] = row
                return httpx.Response(201, json=row)
            return httpx.Response(200, json=[r for r in store.values() if r["organizationId"] == org_id])

        row = store.get(rest[0])
        if row is None or row["organizationId"] != org_id:
            return httpx.Response(404, json={"message": "Not found"})
        if request.method == "PUT":
            row.update(body)
            return httpx.Response(200, json=row)
        if request.method == "DELETE":
            del store[rest[0]]
            return httpx.Response(200, json={"message": "Deleted"})
        return httpx.Response(200, json=row)

    def _dashboard(self, request, org_id, rest):
        items = [i for i in self.mail_items.values() if i["organizationId"] == org_id]
        if rest == ["stats"]:
            delivered = sum(1 for i in items if i["status"] == "delivered")
            return httpx.Response(
                200,
                json={
                    "todaysMail": len(items),
                    "pendingPickups": len(items) - delivered,
                    "activeRecipients": sum(
                        1 for r in self.recipients.values() if r["organizationId"] == org_id and r["isActive"]
                    ),
                    "deliveryRate": round(delivered / len(items) * 100) if items else 0,
                },
            )
        limit = int(request.url.params.get("limit", 10))
        recent = sorted(items, key=lambda i: i["arrivedAt"], reverse=True)
        return httpx.Response(200, json=recent[:limit])

    def _billing(self, request, org_id, rest):
        if rest == ["create-checkout-session"]:
            return httpx.Response(200, json={"sessionId": "cs_test_1", "url": "https://pay.example/cs_test_1"})
        if rest == ["create-portal-session"]:
            return httpx.Response(200, json={"url": "https://pay.example/portal"})
        org = next(o for o in self.organizations if o["id"] == org_id)
        return httpx.Response(200, json={k: v for k, v in org.items() if k in ("planType", "subscriptionStatus")})

    def _next_id(self, prefix):
        self._counter += 1
        return f"{prefix}-{self._counter}"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_api():
    """Fake API with two organizations: org-a (admin) and org-b (member)."""
    api = FakeMailroomAPI()
    api.add_org("org-a", "Acme Offices", role="admin")
    api.add_org("org-b", "Beta Labs", role="member")
    return api


@pytest.fixture
async def api_client(fake_api):
    """Real API client talking to the fake through a mock transport."""
    async with MailroomAPIClient("http://test", transport=httpx.MockTransport(fake_api.handler)) as client:
        yield client


@pytest.fixture
def cache():
    return QueryCache()


@pytest.fixture
def store():
    return MemorySelectionStore()


@pytest.fixture
def context(api_client, store, cache):
    return OrganizationContext(api_client, store, cache)


@pytest.fixture
def session():
    return TenantSession(organization_id="org-a", role="admin")
