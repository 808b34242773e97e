"""PostgreSQL repository implementations."""

from commentable.persistence.repository.comment import PostgresCommentRepository

__all__ = ["PostgresCommentRepository"]
