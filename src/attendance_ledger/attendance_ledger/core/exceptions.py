class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AlreadyCheckedIn(ValidationError):
    """Raised when a user checks in while today's session is still open."""

    def __init__(self, message: str = "You are already checked in. Please check out first."):
        super().__init__(message)


class AuthenticationError(DomainError):
    """Raised when credentials or identity tokens are invalid."""

    status_code = 401


class InvalidToken(AuthenticationError):
    """Raised when a signed token fails verification (bad signature, malformed, expired)."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Raised when an entity with the same unique key already exists."""

    status_code = 409


class StorageConflict(ConflictError):
    """Raised by storage when two concurrent admissions race for the same open session."""


class NotificationDeliveryError(Exception):
    """Raised by notifiers when a message could not be delivered."""
