"""Delete comment use case."""

from uuid import UUID

from pydantic import BaseModel

from commentable.application.usecase.base import CommentableUseCase
from commentable.domain.value import CommentId


class DeleteCommentRequest(BaseModel):
    """Delete comment request."""

    commentable_type: str
    commentable_id: str
    comment_id: UUID


class DeleteCommentResponse(BaseModel):
    """Delete comment response."""

    comment_id: str
    deleted: int  # The comment plus every reply below it


class DeleteCommentUseCase(CommentableUseCase):
    """Use case for deleting a comment together with its replies."""

    async def execute(self, request: DeleteCommentRequest) -> DeleteCommentResponse:
        threads = self.threads(request.commentable_type, request.commentable_id)
        deleted = await threads.delete_comment(CommentId(request.comment_id))
        return DeleteCommentResponse(
            comment_id=str(request.comment_id), deleted=deleted
        )
