"""
Domain exceptions raised by the services and mapped to HTTP statuses by the routes.
"""

from typing import Optional


class NotFoundError(ValueError):
    """Raised when a requested record does not exist (or is not visible to the caller)."""


class ConflictError(ValueError):
    """Raised when a record would duplicate an existing one."""


class InvalidTransitionError(ValueError):
    """Raised when a booking status change is not allowed."""


class AccountLockedError(PermissionError):
    """Raised when login is attempted on a temporarily locked account."""

    def __init__(self, message: str, locked_until: Optional[str] = None):
        super().__init__(message)
        self.locked_until = locked_until


class InvalidCredentialsError(PermissionError):
    """Raised when an email/password pair does not match an account."""
