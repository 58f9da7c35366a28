"""Pydantic models for organizations (tenants) and memberships."""

from datetime import datetime

from pydantic import Field

from mailroom.models.common import ApiModel
from mailroom.models.enums import BillingCycle, MemberRole, PlanType, SubscriptionStatus


class Organization(ApiModel):
    """Tenant record. Billing fields are updated server-side by payment webhooks."""

    id: str
    name: str
    email_domain: str | None = None
    address: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    logo_url: str | None = None

    plan_type: PlanType = PlanType.TRIAL
    subscription_status: SubscriptionStatus = SubscriptionStatus.TRIAL
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    billing_email: str | None = None
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    next_billing_date: datetime | None = None

    trial_start_date: datetime | None = None
    trial_end_date: datetime | None = None

    max_users: int = 5
    max_packages_per_month: int = 500
    current_month_packages: int = 0

    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrganizationMembership(Organization):
    """An organization as seen by one user: the record plus the user's role."""

    role: MemberRole = MemberRole.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN


class OrganizationMember(ApiModel):
    """A user's membership row, as listed on the members endpoint."""

    id: str
    organization_id: str
    user_id: str
    role: MemberRole = MemberRole.MEMBER
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None


class OrganizationCreate(ApiModel):
    """Request body for the organization-setup flow."""

    name: str = Field(..., min_length=1, max_length=255)
    email_domain: str | None = None
    address: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None


class OrganizationUpdate(ApiModel):
    """Partial update from admin settings."""

    name: str | None = Field(None, min_length=1, max_length=255)
    address: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    logo_url: str | None = None
    billing_email: str | None = None
