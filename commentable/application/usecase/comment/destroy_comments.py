"""Destroy comments use case."""

import logfire
from pydantic import BaseModel

from commentable.application.usecase.base import CommentableUseCase


class DestroyCommentsRequest(BaseModel):
    """Destroy comments request."""

    commentable_type: str
    commentable_id: str


class DestroyCommentsResponse(BaseModel):
    """Destroy comments response."""

    deleted: int


class DestroyCommentsUseCase(CommentableUseCase):
    """Use case for removing every comment of a commentable.

    Called by the owning application when the commentable itself is deleted.
    """

    async def execute(self, request: DestroyCommentsRequest) -> DestroyCommentsResponse:
        threads = self.threads(request.commentable_type, request.commentable_id)
        deleted = await threads.destroy()
        logfire.info(
            "Commentable comments destroyed",
            commentable=str(threads.commentable),
            deleted=deleted,
        )
        return DestroyCommentsResponse(deleted=deleted)
