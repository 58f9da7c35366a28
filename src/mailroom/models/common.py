"""Shared pydantic base and error payload models."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for API payloads: snake_case attributes, camelCase on the wire.

    Unknown server fields are ignored so new columns never break the client.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api(self, *, partial: bool = True) -> dict[str, Any]:
        """Serialize for a request body in camelCase.

        Partial bodies (updates) keep only fields that were explicitly set, so an
        explicit None clears a value. Full bodies (creates) drop None fields.
        """
        if partial:
            return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ErrorResponse(BaseModel):
    """Error body returned by the API: ``{"message": "..."}``."""

    model_config = ConfigDict(extra="allow")

    message: str | None = None


class MessageResponse(BaseModel):
    """Plain acknowledgement body, e.g. after delete or logout."""

    model_config = ConfigDict(extra="allow")

    message: str = ""


def empty_to_none(value: Any) -> Any:
    """Normalize empty or whitespace-only strings to None."""
    if isinstance(value, str) and not value.strip():
        return None
    return value
