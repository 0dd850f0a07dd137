"""
Domain errors raised by the service and repository layers.

Each error carries the HTTP status the API boundary maps it to; the
handlers in ``tasktrack.main`` turn them into the standard error body.
"""
from typing import Optional


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, http_status: int = 500) -> None:
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class UserNotFoundError(AppError):
    """No user exists for the given id, username or email."""

    def __init__(self, value, field: str = "id") -> None:
        self.field = field
        self.value = value
        super().__init__(f"User not found with {field}: {value}", 404)


class DuplicateUserError(AppError):
    """A username or email is already taken by another user."""

    _LABELS = {"user_name": "Username", "email": "Email"}

    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        label = self._LABELS.get(field, field)
        super().__init__(f"{label} already exists: {value}", 409)


class ValidationFailedError(AppError):
    """Input rejected before reaching storage."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[dict[str, str]] = None,
    ) -> None:
        self.field_errors = field_errors or {}
        super().__init__(message, 400)
