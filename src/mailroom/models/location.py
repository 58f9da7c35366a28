"""Pydantic models for mailrooms and their storage locations."""

from datetime import datetime

from mailroom.models.common import ApiModel
from mailroom.models.enums import LocationType


class Mailroom(ApiModel):
    id: str
    organization_id: str
    name: str
    description: str | None = None
    is_active: bool = True
    created_at: datetime | None = None


class MailroomLocation(ApiModel):
    """A bin, shelf or locker a mail item can be stored in."""

    id: str
    organization_id: str
    mailroom_id: str | None = None
    mailroom_name: str | None = None
    name: str
    type: LocationType = LocationType.BIN
    capacity: int = 20
    current_count: int = 0
    is_active: bool = True
    notes: str | None = None

    @property
    def is_full(self) -> bool:
        return self.current_count >= self.capacity
