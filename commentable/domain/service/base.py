"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Services own the comment workflows that span the repository, the cache
    and the commentable registry. They receive collaborators through their
    constructor and keep no global state.
    """

    pass
