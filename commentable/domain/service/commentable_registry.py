"""Registry of entity types that may own comment forests."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

import logfire

from commentable.domain.error import NotFoundError, ValidationError
from commentable.domain.value import CommentableRef
from commentable.domain.value.types import TYPE_TAG_PATTERN


class CommentableResolver(ABC):
    """Existence check for the owners of one commentable type.

    Registered per type tag by the application that owns the entities.
    """

    @abstractmethod
    async def exists(self, commentable_id: str) -> bool:
        """Whether the owner with this id exists.

        Args:
            commentable_id: Owner id as stored on comments

        Returns:
            True if the owner exists
        """
        pass


class CommentableRegistry:
    """Type tags allowed to own comments, with optional existence resolvers.

    A type registered without a resolver accepts any well-formed id.
    """

    def __init__(self, types: Iterable[str] = ()) -> None:
        self._resolvers: dict[str, Optional[CommentableResolver]] = {}
        for type_tag in types:
            self.register(type_tag)

    def register(
        self, type_tag: str, resolver: Optional[CommentableResolver] = None
    ) -> None:
        """Register a commentable type.

        Args:
            type_tag: Type tag used in commentable references
            resolver: Optional existence check for owners of this type

        Raises:
            ValidationError: If the type tag is malformed
        """
        if not TYPE_TAG_PATTERN.match(type_tag):
            raise ValidationError(f"Invalid commentable type: {type_tag!r}")
        self._resolvers[type_tag] = resolver

    def is_registered(self, type_tag: str) -> bool:
        return type_tag in self._resolvers

    @property
    def registered_types(self) -> list[str]:
        return sorted(self._resolvers)

    def ensure_registered(self, scope: CommentableRef) -> None:
        """Raise NotFoundError unless the scope's type is registered."""
        if not self.is_registered(scope.type_tag):
            logfire.warn("Unknown commentable type", type_tag=scope.type_tag)
            raise NotFoundError("Commentable type", scope.type_tag)

    async def ensure_exists(self, scope: CommentableRef) -> None:
        """Raise NotFoundError unless the scope's owner exists.

        Args:
            scope: Commentable reference

        Raises:
            NotFoundError: If the type is unknown or its resolver rejects the id
        """
        self.ensure_registered(scope)
        resolver = self._resolvers[scope.type_tag]
        if resolver is not None and not await resolver.exists(scope.id):
            logfire.warn("Commentable not found", commentable=str(scope))
            raise NotFoundError("Commentable", str(scope))
