"""Custom exception classes for the QuizHub backend.

Every application error carries the HTTP status it maps to, a user-facing
message and a generic hint. The app-level exception handlers render them into
the standard response envelope.
"""

from typing import Any, Optional


class QuizHubError(Exception):
    """Base exception for all QuizHub errors."""

    status_code: int = 500
    hint: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        """Initialize the exception.

        Args:
            message: User-facing error message.
            data: Optional structured details returned alongside the error.
        """
        self.message = message or self.hint
        self.data = data
        super().__init__(self.message)


class ValidationError(QuizHubError):
    """Raised when input data fails validation."""

    status_code = 400
    hint = "Please check the submitted data"


class BadRequestError(QuizHubError):
    """Raised when a request is well-formed but cannot be honored."""

    status_code = 400
    hint = "The request could not be processed"


class AuthenticationError(QuizHubError):
    """Raised when credentials or tokens are missing, invalid or expired.

    ``reason`` records the internal classification of a token failure. It is
    logged by the exception handler and never returned to the client.
    """

    status_code = 401
    hint = "Please login again to continue"

    def __init__(self, message: Optional[str] = None, reason: Any = None):
        super().__init__(message)
        self.reason = reason


class AuthorizationError(QuizHubError):
    """Raised when the principal lacks the role required for a resource."""

    status_code = 403
    hint = "You do not have permission to access this resource"


class NotFoundError(QuizHubError):
    """Raised when a requested resource cannot be found."""

    status_code = 404
    hint = "The requested resource does not exist"


class ConflictError(QuizHubError):
    """Raised when a resource would violate a uniqueness constraint."""

    status_code = 409
    hint = "The resource already exists"


class TooManyRequestsError(QuizHubError):
    """Raised when a client exceeds its allowance of failed attempts."""

    status_code = 429
    hint = "Please try again later"


class ConfigurationError(QuizHubError):
    """Raised when there is a configuration error."""

    pass
