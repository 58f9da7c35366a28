"""Async HTTP client for the mailroom API.

Every organization-scoped call takes a :class:`~mailroom.session.TenantSession`
and sends its ``X-Organization-Id`` header. Non-2xx responses raise the typed
errors from :mod:`mailroom.errors.exceptions`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from mailroom.errors.exceptions import RequestError, ServerError
from mailroom.errors.handlers import raise_for_response
from mailroom.models.auth import LoginRequest, RegisterRequest, ResetPasswordRequest, User
from mailroom.models.billing import BillingInfo, CheckoutSession, CheckoutSessionRequest, PortalSession
from mailroom.models.common import MessageResponse
from mailroom.models.dashboard import DashboardStats
from mailroom.models.integration import Integration, IntegrationCreate, IntegrationUpdate
from mailroom.models.location import Mailroom, MailroomLocation
from mailroom.models.mail_item import (
    MailItem,
    MailItemCreate,
    MailItemFilters,
    MailItemHistoryEntry,
    MailItemUpdate,
)
from mailroom.models.org_settings import OrganizationSettings, OrganizationSettingsUpdate
from mailroom.models.organization import (
    Organization,
    OrganizationCreate,
    OrganizationMember,
    OrganizationMembership,
    OrganizationUpdate,
)
from mailroom.models.recipient import Recipient, RecipientCreate, RecipientUpdate
from mailroom.session import TenantSession

logger = logging.getLogger(__name__)


class MailroomAPIClient:
    """Thin async wrapper over ``httpx.AsyncClient``; one method per endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> MailroomAPIClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        session: TenantSession | None = None,
        json: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (None when empty)."""
        headers = session.headers if session is not None else None
        try:
            response = await self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Request %s %s failed: %s", method, path, exc)
            raise RequestError(f"{method} {path} failed: {exc}") from exc

        raise_for_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Non-JSON body from %s %s (%s)", method, path, response.headers.get("content-type"))
            raise ServerError(
                f"{method} {path} returned an unreadable response", status_code=response.status_code
            ) from exc

    # --- Authentication ---

    async def login(self, body: LoginRequest) -> User:
        return User.model_validate(await self._request("POST", "/api/login", json=body.to_api()))

    async def register(self, body: RegisterRequest) -> User:
        return User.model_validate(await self._request("POST", "/api/register", json=body.to_api()))

    async def logout(self) -> None:
        await self._request("POST", "/api/logout")

    async def current_user(self) -> User:
        return User.model_validate(await self._request("GET", "/api/auth/user"))

    async def forgot_password(self, email: str) -> MessageResponse:
        data = await self._request("POST", "/api/forgot-password", json={"email": email})
        return MessageResponse.model_validate(data or {})

    async def reset_password(self, body: ResetPasswordRequest) -> MessageResponse:
        data = await self._request("POST", "/api/reset-password", json=body.to_api())
        return MessageResponse.model_validate(data or {})

    # --- Organizations ---

    async def list_organizations(self) -> list[OrganizationMembership]:
        data = await self._request("GET", "/api/organizations")
        try:
            return [OrganizationMembership.model_validate(row) for row in data or []]
        except (PydanticValidationError, TypeError) as exc:
            logger.warning("Malformed organization list: %s", exc)
            raise ServerError("Organization list could not be read", status_code=200) from exc

    async def create_organization(self, body: OrganizationCreate) -> Organization:
        data = await self._request("POST", "/api/organizations", json=body.to_api(partial=False))
        return Organization.model_validate(data)

    async def get_organization(self, session: TenantSession) -> Organization:
        data = await self._request("GET", f"/api/organizations/{session.organization_id}", session=session)
        return Organization.model_validate(data)

    async def update_organization(self, session: TenantSession, body: OrganizationUpdate) -> Organization:
        data = await self._request(
            "PUT", f"/api/organizations/{session.organization_id}", session=session, json=body.to_api()
        )
        return Organization.model_validate(data)

    async def list_members(self, session: TenantSession) -> list[OrganizationMember]:
        data = await self._request("GET", f"/api/organizations/{session.organization_id}/members", session=session)
        return [OrganizationMember.model_validate(row) for row in data or []]

    async def get_organization_settings(self, session: TenantSession) -> OrganizationSettings:
        data = await self._request("GET", "/api/organization-settings", session=session)
        return OrganizationSettings.model_validate(data or {})

    async def update_organization_settings(
        self, session: TenantSession, body: OrganizationSettingsUpdate
    ) -> OrganizationSettings:
        data = await self._request("PATCH", "/api/organization-settings", session=session, json=body.to_api())
        return OrganizationSettings.model_validate(data)

    # --- Mail items ---

    async def list_mail_items(self, session: TenantSession, filters: MailItemFilters | None = None) -> list[MailItem]:
        params = filters.to_params() if filters else None
        data = await self._request("GET", "/api/mail-items", session=session, params=params)
        return [MailItem.model_validate(row) for row in data or []]

    async def get_mail_item(self, session: TenantSession, item_id: str) -> MailItem:
        return MailItem.model_validate(await self._request("GET", f"/api/mail-items/{item_id}", session=session))

    async def create_mail_item(self, session: TenantSession, body: MailItemCreate) -> MailItem:
        payload = body.to_api(partial=False)
        payload["organizationId"] = session.organization_id
        return MailItem.model_validate(await self._request("POST", "/api/mail-items", session=session, json=payload))

    async def update_mail_item(self, session: TenantSession, item_id: str, body: MailItemUpdate) -> MailItem:
        data = await self._request("PUT", f"/api/mail-items/{item_id}", session=session, json=body.to_api())
        return MailItem.model_validate(data)

    async def delete_mail_item(self, session: TenantSession, item_id: str) -> None:
        await self._request("DELETE", f"/api/mail-items/{item_id}", session=session)

    async def mail_item_history(self, session: TenantSession, item_id: str) -> list[MailItemHistoryEntry]:
        data = await self._request("GET", f"/api/mail-items/{item_id}/history", session=session)
        return [MailItemHistoryEntry.model_validate(row) for row in data or []]

    # --- Recipients ---

    async def list_recipients(self, session: TenantSession) -> list[Recipient]:
        data = await self._request("GET", "/api/recipients", session=session)
        return [Recipient.model_validate(row) for row in data or []]

    async def create_recipient(self, session: TenantSession, body: RecipientCreate) -> Recipient:
        payload = body.to_api(partial=False)
        payload["organizationId"] = session.organization_id
        return Recipient.model_validate(await self._request("POST", "/api/recipients", session=session, json=payload))

    async def update_recipient(self, session: TenantSession, recipient_id: str, body: RecipientUpdate) -> Recipient:
        data = await self._request("PUT", f"/api/recipients/{recipient_id}", session=session, json=body.to_api())
        return Recipient.model_validate(data)

    async def delete_recipient(self, session: TenantSession, recipient_id: str) -> None:
        await self._request("DELETE", f"/api/recipients/{recipient_id}", session=session)

    # --- Integrations ---

    async def list_integrations(self, session: TenantSession) -> list[Integration]:
        data = await self._request("GET", "/api/integrations", session=session)
        return [Integration.model_validate(row) for row in data or []]

    async def create_integration(self, session: TenantSession, body: IntegrationCreate) -> Integration:
        payload = body.to_api(partial=False)
        payload["organizationId"] = session.organization_id
        data = await self._request("POST", "/api/integrations", session=session, json=payload)
        return Integration.model_validate(data)

    async def update_integration(
        self, session: TenantSession, integration_id: str, body: IntegrationUpdate
    ) -> Integration:
        data = await self._request("PUT", f"/api/integrations/{integration_id}", session=session, json=body.to_api())
        return Integration.model_validate(data)

    async def delete_integration(self, session: TenantSession, integration_id: str) -> None:
        await self._request("DELETE", f"/api/integrations/{integration_id}", session=session)

    # --- Mailrooms and storage locations ---

    async def list_mailrooms(self, session: TenantSession) -> list[Mailroom]:
        data = await self._request("GET", "/api/mailrooms", session=session)
        return [Mailroom.model_validate(row) for row in data or []]

    async def list_locations(self, session: TenantSession) -> list[MailroomLocation]:
        data = await self._request("GET", "/api/mailroom-locations", session=session)
        return [MailroomLocation.model_validate(row) for row in data or []]

    # --- Dashboard ---

    async def dashboard_stats(self, session: TenantSession) -> DashboardStats:
        data = await self._request("GET", "/api/dashboard/stats", session=session)
        return DashboardStats.model_validate(data or {})

    async def recent_activity(self, session: TenantSession, limit: int = 10) -> list[MailItem]:
        data = await self._request(
            "GET", "/api/dashboard/recent-activity", session=session, params={"limit": limit}
        )
        return [MailItem.model_validate(row) for row in data or []]

    # --- Billing ---

    async def billing_info(self, session: TenantSession) -> BillingInfo:
        return BillingInfo.model_validate(await self._request("GET", "/api/billing/info", session=session))

    async def create_checkout_session(
        self, session: TenantSession, body: CheckoutSessionRequest
    ) -> CheckoutSession:
        data = await self._request(
            "POST", "/api/billing/create-checkout-session", session=session, json=body.to_api(partial=False)
        )
        return CheckoutSession.model_validate(data)

    async def create_portal_session(self, session: TenantSession) -> PortalSession:
        data = await self._request("POST", "/api/billing/create-portal-session", session=session, json={})
        return PortalSession.model_validate(data)
