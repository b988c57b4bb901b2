from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when no principal can be resolved for the request."""


class AuthorizationError(DomainError):
    """Raised when a resolved user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when a write would break a uniqueness rule (e.g. email taken)."""


class StoreError(DomainError):
    """Raised when the underlying store fails."""


class DuplicateKeyError(StoreError):
    """Unique constraint violation reported by the store."""

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class ResolutionError(DomainError):
    """Raised when a principal cannot be mapped to a user record."""


class IdentityProviderError(ResolutionError):
    """Raised when the identity provider cannot be reached or answers with an error."""
