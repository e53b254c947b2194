from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is malformed (bad id, unknown status, empty map)."""


class BusinessError(DomainError):
    """Raised when well-formed input violates a domain rule."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ConcurrencyError(DomainError):
    """Raised when an optimistic version check or a row lock wait fails."""


class ConflictError(DomainError):
    """Raised when creating a record for a (session, player) pair that already exists."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class PhotoStorageError(DomainError):
    """Raised when a photo could not be stored."""
