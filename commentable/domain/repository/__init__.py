"""Repository interfaces for threaded comments.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the infrastructure layer.
"""

from commentable.domain.repository.comment import CommentRepository

__all__ = [
    "CommentRepository",
]
