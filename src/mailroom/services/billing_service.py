"""Payment-provider session creation for plan upgrades and self-service billing."""

from __future__ import annotations

import logging

from mailroom.api_client import MailroomAPIClient
from mailroom.errors.exceptions import AuthorizationError
from mailroom.models.billing import BillingInfo, CheckoutSession, CheckoutSessionRequest, PortalSession
from mailroom.models.enums import BillingCycle, MemberRole, PlanType
from mailroom.session import TenantSession

logger = logging.getLogger(__name__)


class BillingService:
    """Creates checkout and portal sessions.

    Plan changes land asynchronously through the provider's webhooks; callers
    refresh the organization context afterwards to pick them up.
    """

    def __init__(self, client: MailroomAPIClient) -> None:
        self._client = client

    async def info(self, session: TenantSession) -> BillingInfo:
        return await self._client.billing_info(session)

    async def start_checkout(
        self,
        session: TenantSession,
        plan_type: PlanType,
        billing_cycle: BillingCycle = BillingCycle.MONTHLY,
        price_id: str | None = None,
    ) -> CheckoutSession:
        self._require_admin(session)
        if plan_type == PlanType.TRIAL:
            raise ValueError("Cannot check out the trial plan")
        checkout = await self._client.create_checkout_session(
            session,
            CheckoutSessionRequest(plan_type=plan_type, billing_cycle=billing_cycle, price_id=price_id),
        )
        logger.info("Checkout session created for %s (%s/%s)", session.organization_id, plan_type, billing_cycle)
        return checkout

    async def open_portal(self, session: TenantSession) -> PortalSession:
        self._require_admin(session)
        return await self._client.create_portal_session(session)

    @staticmethod
    def _require_admin(session: TenantSession) -> None:
        # Sessions built without a role defer the check to the server.
        if session.role is not None and session.role != MemberRole.ADMIN:
            raise AuthorizationError("Only organization admins can manage billing")
