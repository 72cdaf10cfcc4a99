"""Domain-level exceptions.

Services raise these errors to express business rule violations.
The API layer catches them and maps them to HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class ConflictError(DomainError):
    """Entity with the same unique identity already exists."""


class AuthenticationError(DomainError):
    """Credentials did not match. Message stays generic."""


class UpstreamProviderError(DomainError):
    """An identity provider's discovery or verification step failed."""


class UpstreamServiceError(DomainError):
    """A platform data API (Steam, Xbox, PSN, GOG) failed or answered garbage."""


class PersistenceError(DomainError):
    """The backing store failed."""


class UniqueViolationError(PersistenceError):
    """The store rejected a write because a unique field already exists."""

    def __init__(self, message: str = "", field_name: str | None = None):
        super().__init__(message)
        self.field_name = field_name


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class PermissionDeniedError(DomainError):
    """Caller lacks permission for the requested action."""
