"""Translate HTTP responses from the mailroom API into typed exceptions."""

import logging

import httpx

from mailroom.errors.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    MailroomError,
    NotFoundError,
    ServerError,
    TrialLimitError,
    ValidationError,
)
from mailroom.models.common import ErrorResponse

logger = logging.getLogger(__name__)

_FALLBACK_MESSAGES = {
    400: "Invalid request",
    401: "Authentication required",
    402: "Plan limit reached",
    403: "Access denied to organization",
    404: "Resource not found",
    409: "Conflict",
    422: "Invalid request",
}


def error_message(response: httpx.Response) -> str:
    """Server-provided message, or a generic fallback for the status code."""
    try:
        body = ErrorResponse.model_validate(response.json())
        if body.message:
            return body.message
    except ValueError:
        pass
    return _FALLBACK_MESSAGES.get(response.status_code, f"Request failed with status {response.status_code}")


def raise_for_response(response: httpx.Response) -> None:
    """Raise the MailroomError matching a non-2xx response. No-op on success."""
    status = response.status_code
    if status < 400:
        return

    message = error_message(response)
    logger.warning(
        "API request failed: %s %s -> %s (%s)",
        response.request.method,
        response.request.url.path,
        status,
        message,
    )

    if status in (400, 422):
        details = None
        try:
            details = response.json().get("errors")
        except (ValueError, AttributeError):
            pass
        raise ValidationError(message, details=details, status_code=status)
    if status == 401:
        raise AuthenticationError(message)
    if status == 402:
        raise TrialLimitError(message)
    if status == 403:
        raise AuthorizationError(message)
    if status == 404:
        raise NotFoundError(message)
    if status == 409:
        raise ConflictError(message)
    if status >= 500:
        raise ServerError(message, status_code=status)
    raise MailroomError("HTTP_ERROR", message, status_code=status)
