"""
Application error taxonomy.

Services raise these; the API layer renders every one of them as
``{"error": message}`` with the matching HTTP status.
"""


class AppError(Exception):
    """Base class for errors that are safe to report to the caller."""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = 400
    default_message = "Bad request"


class InvalidQuestion(BadRequest):
    """A question in a quiz payload has an invalid shape."""

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid question at index {index}: {reason}")


class Unauthorized(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Unavailable(AppError):
    """Raised when submitting against a quiz that is not published."""
    status_code = 403
    default_message = "Quiz not available"


class Internal(AppError):
    status_code = 500
    default_message = "Internal server error"
