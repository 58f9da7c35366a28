"""Pydantic models for payment-provider session creation and billing info."""

from datetime import datetime

from mailroom.models.common import ApiModel
from mailroom.models.enums import BillingCycle, PlanType, SubscriptionStatus


class CheckoutSessionRequest(ApiModel):
    plan_type: PlanType
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    price_id: str | None = None


class CheckoutSession(ApiModel):
    session_id: str | None = None
    url: str


class PortalSession(ApiModel):
    url: str


class BillingInfo(ApiModel):
    plan_type: PlanType = PlanType.TRIAL
    subscription_status: SubscriptionStatus = SubscriptionStatus.TRIAL
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    next_billing_date: datetime | None = None
    last_payment_date: datetime | None = None
    last_payment_amount: int | None = None
    max_users: int = 5
    max_packages_per_month: int = 500
    current_month_packages: int = 0
