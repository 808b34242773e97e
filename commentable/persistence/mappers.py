"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's ORM mapping.
"""

from typing import Any, Dict
from uuid import UUID

from commentable.domain.model import Comment
from commentable.domain.value import CommentId, UserId


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def row_to_comment(row: Dict[str, Any]) -> Comment:
    """Convert database row to Comment domain model.

    Args:
        row: Database row as dict

    Returns:
        Comment domain model
    """
    return Comment(
        id=CommentId(_uuid(row["id"])),
        commentable_type=row["commentable_type"],
        commentable_id=row["commentable_id"],
        author_id=UserId(_uuid(row["author_id"])),
        body=row["body"],
        parent_id=CommentId(_uuid(row["parent_id"])) if row["parent_id"] else None,
        left_bound=row["left_bound"],
        right_bound=row["right_bound"],
        created_at=row["created_at"],
    )


def comment_to_dict(comment: Comment) -> Dict[str, Any]:
    """Convert Comment domain model to database dict.

    Args:
        comment: Comment domain model

    Returns:
        Dict suitable for database insertion
    """
    return {
        "id": comment.id,
        "commentable_type": comment.commentable_type,
        "commentable_id": comment.commentable_id,
        "author_id": comment.author_id,
        "body": comment.body,
        "parent_id": comment.parent_id,
        "left_bound": comment.left_bound,
        "right_bound": comment.right_bound,
        "created_at": comment.created_at,
    }
