from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class NotFoundError(DomainError):
    """Raised when the remote row an action targets does not exist."""


class DuplicateCheckInError(DomainError):
    """Raised when an active record already exists for the same shift."""


class CheckInInProgressError(DomainError):
    """Raised when the same crew member already has a check-in being processed."""


class ConnectivityError(DomainError):
    """Raised when the remote store cannot be reached."""


class LocationError(DomainError):
    """Raised when no GPS fix could be obtained."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code
