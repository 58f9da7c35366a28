"""Pydantic models for mail recipients."""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from mailroom.models.common import ApiModel, empty_to_none
from mailroom.models.enums import RecipientType


class Recipient(ApiModel):
    id: str
    organization_id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    unit: str | None = None
    department: str | None = None
    recipient_type: RecipientType = RecipientType.GUEST
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class RecipientCreate(ApiModel):
    """Request body for adding a recipient. Blank contact fields are sent as no value."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = None
    unit: str | None = None
    department: str | None = None
    recipient_type: RecipientType = RecipientType.GUEST
    is_active: bool = True

    @field_validator("email", "phone", "unit", "department", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        return empty_to_none(value)


class RecipientUpdate(ApiModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = None
    unit: str | None = None
    department: str | None = None
    recipient_type: RecipientType | None = None
    is_active: bool | None = None

    @field_validator("email", "phone", "unit", "department", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        return empty_to_none(value)
