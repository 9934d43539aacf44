class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when the session lacks admin capability for an action."""


class PersistenceError(DomainError):
    """Raised when a storage backend call fails (I/O, driver, corrupt data)."""
