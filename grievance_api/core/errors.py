"""Domain error taxonomy.

Services raise these; main.py maps them to HTTP responses. The message is
user-visible, so it must never include internals.
"""


class PortalError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(PortalError):
    status_code = 401
    default_message = "Not authenticated"


class NotAuthorized(PortalError):
    """Read access denied."""

    status_code = 401
    default_message = "User not authorized for this grievance"


class Forbidden(PortalError):
    """Write access denied."""

    status_code = 403
    default_message = "You are not authorized to perform this action"


class NotFound(PortalError):
    status_code = 404
    default_message = "Not found"


class ValidationError(PortalError):
    status_code = 400
    default_message = "Invalid request"


class NoOpTransition(ValidationError):
    default_message = "Grievance already has this status"


class MissingReason(ValidationError):
    default_message = "A reason is required for this status"


class InvalidTransition(ValidationError):
    default_message = "This status change is not allowed"


class InvalidCategory(ValidationError):
    default_message = "Unknown grievance category"


class InvalidAttachment(ValidationError):
    default_message = "You can only upload allowed file types (Images, PDF, Word)"


class Conflict(PortalError):
    status_code = 409
    default_message = "Already exists"
