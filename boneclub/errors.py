"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class PermissionDeniedError(AppError):
    """Raised when the acting user may not perform an action."""

    def __init__(self, message="You do not have permission to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class InvalidTransitionError(AppError):
    """Raised when a record is not in a state that allows the requested change."""

    def __init__(self, message="That action is not allowed in the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


class RateLimitError(AppError):
    """Raised when the backend keeps throttling after retries are exhausted."""

    def __init__(self, message="Too many requests. Please try again shortly."):
        """Initialize the error."""
        super().__init__(message, 429)


class RemoteError(AppError):
    """Raised when a call to the backend store fails."""

    def __init__(self, message="The backend request failed."):
        """Initialize the error."""
        super().__init__(message, 502)
