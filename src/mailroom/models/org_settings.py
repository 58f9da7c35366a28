"""Pydantic models for per-organization customization settings."""

from pydantic import Field

from mailroom.models.common import ApiModel


class OrganizationSettings(ApiModel):
    organization_id: str | None = None
    package_types: list[str] = Field(
        default_factory=lambda: ["package", "letter", "certified_mail", "express", "fragile"]
    )
    package_sizes: list[str] = Field(default_factory=lambda: ["small", "medium", "large", "extra_large"])
    courier_companies: list[str] = Field(
        default_factory=lambda: ["FedEx", "UPS", "DHL", "USPS", "Amazon", "Other"]
    )
    allow_edit_after_delivery: bool = False
    require_photo_upload: bool = False
    auto_notify_recipients: bool = True


class OrganizationSettingsUpdate(ApiModel):
    package_types: list[str] | None = None
    package_sizes: list[str] | None = None
    courier_companies: list[str] | None = None
    allow_edit_after_delivery: bool | None = None
    require_photo_upload: bool | None = None
    auto_notify_recipients: bool | None = None
