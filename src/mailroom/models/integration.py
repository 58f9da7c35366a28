"""Pydantic models for per-organization notification integrations."""

from datetime import datetime
from typing import Any

from pydantic import Field

from mailroom.models.common import ApiModel
from mailroom.models.enums import IntegrationType


class Integration(ApiModel):
    """One configured channel. ``config`` is specific to ``type``."""

    id: str
    organization_id: str
    name: str
    type: IntegrationType
    config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class IntegrationCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: IntegrationType
    config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class IntegrationUpdate(ApiModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    config: dict[str, Any] | None = None
    is_active: bool | None = None
