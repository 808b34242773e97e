"""Has comments use case."""

from pydantic import BaseModel

from commentable.application.usecase.base import CommentableUseCase


class HasCommentsRequest(BaseModel):
    """Has comments request."""

    commentable_type: str
    commentable_id: str


class HasCommentsResponse(BaseModel):
    """Has comments response."""

    has_comments: bool


class HasCommentsUseCase(CommentableUseCase):
    """Use case for checking whether a commentable has any comment."""

    async def execute(self, request: HasCommentsRequest) -> HasCommentsResponse:
        threads = self.threads(request.commentable_type, request.commentable_id)
        return HasCommentsResponse(has_comments=await threads.has_comments())
