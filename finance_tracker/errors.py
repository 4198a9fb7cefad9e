"""
Error Taxonomy

Every error that can reach a client is one of these classes.
Each carries the HTTP status the edge should answer with and a short
message that is safe to show to the user.

Internal details (stack traces, storage messages) never go into
`message`; they are logged server-side instead.
"""

from typing import Optional


class FinanceTrackerError(Exception):
    """Base exception for errors the HTTP edge knows how to answer."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FinanceTrackerError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid input"


class AuthenticationError(FinanceTrackerError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(FinanceTrackerError):
    """Referenced resource does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(FinanceTrackerError):
    """Resource already exists (e.g. duplicate email)."""

    status_code = 409
    default_message = "Conflict"


class InternalError(FinanceTrackerError):
    """Unexpected failure, usually storage."""

    status_code = 500
