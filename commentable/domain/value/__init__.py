"""Domain value objects for threaded comments."""

from commentable.domain.value.identifiers import CommentId, UserId
from commentable.domain.value.types import CommentableRef, CommentOrder

__all__ = [
    # Identifiers
    "CommentId",
    "UserId",
    # Types
    "CommentableRef",
    "CommentOrder",
]
