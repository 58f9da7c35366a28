"""Custom exception classes for the mailroom client."""


class MailroomError(Exception):
    """Base exception for the mailroom client."""

    def __init__(self, code: str, message: str, details=None, status_code: int | None = None):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


# --- Request failures (server or transport) ---


class ValidationError(MailroomError):
    """Server rejected the request payload."""

    def __init__(self, message: str = "Invalid request", details=None, status_code: int | None = 400):
        super().__init__("VALIDATION_ERROR", message, details, status_code=status_code)


class AuthenticationError(MailroomError):
    """Authentication required or session expired."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class TrialLimitError(MailroomError):
    """Trial expired or a plan usage limit was reached."""

    def __init__(self, message: str = "Plan limit reached", details=None):
        super().__init__("TRIAL_LIMIT", message, details, status_code=402)


class AuthorizationError(MailroomError):
    """Caller is not a member of the requested organization."""

    def __init__(self, message: str = "Access denied to organization"):
        super().__init__("AUTHORIZATION_ERROR", message, status_code=403)


class NotFoundError(MailroomError):
    """Resource not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__("NOT_FOUND", message, status_code=404)


class ConflictError(MailroomError):
    """Resource state conflict."""

    def __init__(self, message: str):
        super().__init__("CONFLICT", message, status_code=409)


class ServerError(MailroomError):
    """Server returned a 5xx response."""

    def __init__(self, message: str = "Server error", status_code: int = 500):
        super().__init__("SERVER_ERROR", message, status_code=status_code)


class RequestError(MailroomError):
    """The request never produced a response (network, DNS, timeout)."""

    def __init__(self, message: str):
        super().__init__("REQUEST_ERROR", message)


# --- Client-side state errors ---


class NoOrganizationSelectedError(MailroomError):
    """A tenant-scoped call was made before an organization was selected."""

    def __init__(self, message: str = "No organization selected"):
        super().__init__("NO_ORGANIZATION", message)


class InvalidTransitionError(MailroomError):
    """A mail item status transition not allowed by the lifecycle."""

    def __init__(self, current: str, action: str):
        self.current = current
        self.action = action
        super().__init__(
            "INVALID_TRANSITION",
            f"Cannot {action} a mail item that is {current}",
            details={"current": current, "action": action},
        )


class MutationStateError(MailroomError):
    """An optimistic mutation was resolved twice or before being applied."""

    def __init__(self, message: str):
        super().__init__("MUTATION_STATE", message)


# --- Photo processing ---


class InvalidImageTypeError(MailroomError):
    """File type is not an accepted image type."""

    def __init__(self, mime_type: str):
        super().__init__(
            "INVALID_IMAGE_TYPE",
            f"Unsupported image type '{mime_type}'",
            details={"mime_type": mime_type},
        )


class ImageProcessingError(MailroomError):
    """Image could not be decoded or re-encoded."""

    def __init__(self, message: str):
        super().__init__("IMAGE_PROCESSING_ERROR", message)
