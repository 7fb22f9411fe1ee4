"""Service-level exceptions and their HTTP status mapping."""


class FormdeskError(Exception):
    """Base exception for service errors."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(FormdeskError):
    """Missing required field or malformed input."""

    status_code = 400


class UnsupportedMediaType(FormdeskError):
    """Uploaded part has a media type outside the allowlist."""

    status_code = 400


class PayloadTooLarge(FormdeskError):
    """Uploaded part exceeds the per-file size ceiling."""

    status_code = 413


class Unauthorized(FormdeskError):
    """Missing or invalid bearer token."""

    status_code = 401


class Forbidden(FormdeskError):
    """Caller lacks the role or ownership for this resource."""

    status_code = 403


class Conflict(FormdeskError):
    """Submission rejected by the duplicate-submission policy."""

    status_code = 403


class NotFound(FormdeskError):
    """Form or question does not exist."""

    status_code = 404
