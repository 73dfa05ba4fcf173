class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class MalformedPayload(ValidationError):
    """Raised when a scanned QR payload cannot be parsed."""


class MissingSessionId(ValidationError):
    """Raised when a scanned QR payload carries no session identifier."""


class AuthorizationError(DomainError):
    """Raised when a principal lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a session, record or principal does not exist."""


class SessionNotFound(NotFoundError):
    pass


class StateError(DomainError):
    """Raised when the session exists but cannot accept the operation."""


class SessionInactive(StateError):
    pass


class SessionExpired(StateError):
    pass


class ConflictError(DomainError):
    """A write lost a uniqueness race at the storage layer.

    Resolved inside the services; never surfaced to callers.
    """


class TransientError(DomainError):
    """Storage timed out or is unavailable. Safe to retry."""
