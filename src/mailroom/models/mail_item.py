"""Pydantic models for mail items and their audit history."""

from datetime import datetime
from typing import Any

from pydantic import field_validator

from mailroom.models.common import ApiModel, empty_to_none
from mailroom.models.enums import MailItemStatus, MailItemType
from mailroom.models.recipient import Recipient

_OPTIONAL_TEXT_FIELDS = (
    "recipient_id",
    "location_id",
    "mailroom_id",
    "tracking_number",
    "sender",
    "courier_company",
    "sender_address",
    "description",
    "size",
    "weight",
    "notes",
    "photo_data",
)


class MailItem(ApiModel):
    """A tracked physical delivery. Status only ever moves forward."""

    id: str
    organization_id: str
    type: MailItemType
    status: MailItemStatus = MailItemStatus.PENDING
    recipient_id: str | None = None
    recipient: Recipient | None = None
    location_id: str | None = None
    mailroom_id: str | None = None
    tracking_number: str | None = None
    sender: str | None = None
    courier_company: str | None = None
    sender_address: str | None = None
    description: str | None = None
    size: str | None = None
    weight: str | None = None
    notes: str | None = None
    photo_data: str | None = None
    arrived_at: datetime | None = None
    notified_at: datetime | None = None
    delivered_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MailItemCreate(ApiModel):
    """Intake payload.

    ``organization_id`` is filled in from the tenant session at send time and
    is never taken from user input.
    """

    type: MailItemType
    status: MailItemStatus = MailItemStatus.PENDING
    recipient_id: str | None = None
    location_id: str | None = None
    mailroom_id: str | None = None
    tracking_number: str | None = None
    sender: str | None = None
    courier_company: str | None = None
    sender_address: str | None = None
    description: str | None = None
    size: str | None = None
    weight: str | None = None
    notes: str | None = None
    photo_data: str | None = None

    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        return empty_to_none(value)


class MailItemUpdate(ApiModel):
    """Partial update. Status changes go through the lifecycle, not here."""

    type: MailItemType | None = None
    status: MailItemStatus | None = None
    recipient_id: str | None = None
    location_id: str | None = None
    mailroom_id: str | None = None
    tracking_number: str | None = None
    sender: str | None = None
    courier_company: str | None = None
    sender_address: str | None = None
    description: str | None = None
    size: str | None = None
    weight: str | None = None
    notes: str | None = None
    photo_data: str | None = None
    notified_at: datetime | None = None
    delivered_at: datetime | None = None

    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        return empty_to_none(value)


class MailItemFilters(ApiModel):
    """Query filters accepted by the mail item list endpoint."""

    type: MailItemType | None = None
    status: MailItemStatus | None = None
    recipient_id: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def cache_key(self) -> tuple:
        return tuple(sorted(self.to_params().items()))


class MailItemHistoryEntry(ApiModel):
    id: str
    mail_item_id: str
    action: str
    previous_status: MailItemStatus | None = None
    new_status: MailItemStatus | None = None
    notes: str | None = None
    performed_by: str | None = None
    created_at: datetime | None = None
