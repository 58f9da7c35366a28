"""Pydantic models for the derived dashboard views."""

from mailroom.models.common import ApiModel


class DashboardStats(ApiModel):
    todays_mail: int = 0
    pending_pickups: int = 0
    active_recipients: int = 0
    delivery_rate: float = 0.0
