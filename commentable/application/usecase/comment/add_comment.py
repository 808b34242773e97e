"""Add comment use case."""

from typing import Optional
from uuid import UUID

import logfire
from pydantic import BaseModel

from commentable.application.usecase.base import CommentableUseCase
from commentable.domain.value import CommentId, UserId

from .common import CommentItem


class AddCommentRequest(BaseModel):
    """Add comment request."""

    commentable_type: str
    commentable_id: str
    body: str
    author_id: UUID
    parent_id: Optional[UUID] = None  # None for a root comment


class AddCommentResponse(BaseModel):
    """Add comment response."""

    comment: CommentItem


class AddCommentUseCase(CommentableUseCase):
    """Use case for adding a root comment or a reply to a commentable."""

    async def execute(self, request: AddCommentRequest) -> AddCommentResponse:
        """Execute add comment flow.

        Args:
            request: Commentable, body, author and optional parent

        Returns:
            Created comment

        Raises:
            ValidationError: If the body or commentable reference is invalid
            NotFoundError: If the commentable or parent does not exist
            ConflictError: If the commentable could not be locked in time
        """
        threads = self.threads(request.commentable_type, request.commentable_id)
        comment = await threads.add_comment(
            body=request.body,
            author_id=UserId(request.author_id),
            parent_id=CommentId(request.parent_id) if request.parent_id else None,
        )
        logfire.info(
            "Comment submitted",
            comment_id=str(comment.id),
            commentable=str(threads.commentable),
            is_reply=comment.parent_id is not None,
        )
        return AddCommentResponse(comment=CommentItem.from_comment(comment))
