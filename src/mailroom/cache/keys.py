"""Cache keys for API queries.

Organization keys mirror the request path. Tenant keys are
``(path, organization_id, *params)`` so one tenant's entries can be
invalidated by prefix without touching another tenant's.
"""

from mailroom.session import TenantSession

ORGANIZATIONS = ("/api/organizations",)


def organization(organization_id: str) -> tuple:
    return (f"/api/organizations/{organization_id}",)


def mail_items(session: TenantSession, params: tuple = ()) -> tuple:
    return ("/api/mail-items", session.organization_id, params)


def mail_items_prefix(session: TenantSession) -> tuple:
    return ("/api/mail-items", session.organization_id)


def recipients(session: TenantSession) -> tuple:
    return ("/api/recipients", session.organization_id)


def integrations(session: TenantSession) -> tuple:
    return ("/api/integrations", session.organization_id)


def dashboard_stats(session: TenantSession) -> tuple:
    return ("/api/dashboard/stats", session.organization_id)


def recent_activity(session: TenantSession, limit: int | None = None) -> tuple:
    if limit is None:
        return ("/api/dashboard/recent-activity", session.organization_id)
    return ("/api/dashboard/recent-activity", session.organization_id, limit)
