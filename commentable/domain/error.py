"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found in its scope."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class ConflictError(DomainError):
    """Raised when the store reports a conflicting concurrent mutation.

    The mutation has been rolled back and may be retried by the caller.
    """

    pass


class ConsistencyError(DomainError):
    """Raised when a forest violates the nested-set invariants.

    Indicates a bug. Never repaired automatically.
    """

    pass


class StorageError(DomainError):
    """Raised when the comment store is unavailable or fails unexpectedly."""

    pass


class CacheUnavailableError(DomainError):
    """Raised by cache clients when the cache backend cannot be reached."""

    pass
