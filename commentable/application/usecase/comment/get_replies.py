"""Get replies use case."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from commentable.domain.service import CommentQueryService
from commentable.domain.value import CommentId

from .common import CommentItem, PageInfo


class GetRepliesRequest(BaseModel):
    """Get replies request.

    Without a page, every reply is returned.
    """

    comment_id: UUID
    page: Optional[int] = None
    items: int = 20


class GetRepliesResponse(BaseModel):
    """Get replies response."""

    comment: CommentItem
    depth: int
    ancestors: list[CommentItem]
    meta: Optional[PageInfo]
    replies: list[CommentItem]


class GetRepliesUseCase:
    """Use case for reading one comment with its context and replies."""

    def __init__(self, query_service: CommentQueryService) -> None:
        self.query_service = query_service

    async def execute(self, request: GetRepliesRequest) -> GetRepliesResponse:
        """Execute get replies flow.

        Args:
            request: Comment ID and optional pagination

        Returns:
            The comment, its ancestors root first and its replies in pre-order

        Raises:
            NotFoundError: If the comment does not exist
        """
        comment_id = CommentId(request.comment_id)
        comment = await self.query_service.get_comment(comment_id)
        ancestors = await self.query_service.ancestors(comment_id)

        meta = None
        if request.page is None:
            replies = await self.query_service.all_replies(comment_id)
        else:
            page = await self.query_service.paginated_replies(
                comment_id, page=request.page, items=request.items
            )
            meta = PageInfo.from_meta(page.meta)
            replies = page.results

        return GetRepliesResponse(
            comment=CommentItem.from_comment(comment),
            depth=len(ancestors),
            ancestors=[CommentItem.from_comment(c) for c in ancestors],
            meta=meta,
            replies=[CommentItem.from_comment(c) for c in replies],
        )
