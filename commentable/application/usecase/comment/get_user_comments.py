"""Get user comments use case."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from commentable.domain.service import CommentQueryService
from commentable.domain.value import UserId

from .common import CommentItem, PageInfo


class GetUserCommentsRequest(BaseModel):
    """Get user comments request."""

    user_id: UUID
    commentable_type: Optional[str] = None
    page: int = 1
    items: int = 20


class GetUserCommentsResponse(BaseModel):
    """Get user comments response."""

    user_id: str
    meta: PageInfo
    comments: list[CommentItem]


class GetUserCommentsUseCase:
    """Use case for listing a user's comments across commentables."""

    def __init__(self, query_service: CommentQueryService) -> None:
        self.query_service = query_service

    async def execute(self, request: GetUserCommentsRequest) -> GetUserCommentsResponse:
        page = await self.query_service.comments_by_user(
            UserId(request.user_id),
            page=request.page,
            items=request.items,
            commentable_type=request.commentable_type,
        )
        return GetUserCommentsResponse(
            user_id=str(request.user_id),
            meta=PageInfo.from_meta(page.meta),
            comments=[CommentItem.from_comment(c) for c in page.results],
        )
