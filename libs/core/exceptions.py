"""Base exceptions for the domain layer."""

from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base class for all domain level exceptions."""


class NotFoundError(DomainError):
    """Raised when an entity cannot be located."""


class ValidationError(DomainError):
    """Raised when data fails domain validation rules."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class AuthError(DomainError):
    """Raised when the caller identity is missing or cannot be verified."""


class ForbiddenError(DomainError):
    """Raised when an authenticated caller does not own the resource."""


class FetchError(DomainError):
    """Raised when a URL cannot be retrieved."""


class GatewayError(DomainError):
    """Raised when a call to the AI model fails."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class RenderError(DomainError):
    """Raised when an export document cannot be produced."""


# Alias to keep a generic name for error type hints
Error = DomainError

__all__ = [
    "DomainError",
    "NotFoundError",
    "ValidationError",
    "AuthError",
    "ForbiddenError",
    "FetchError",
    "GatewayError",
    "RenderError",
    "Error",
]
