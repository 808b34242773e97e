"""Comment operations bound to a single commentable."""

from typing import Optional

from commentable.domain.model import Comment, CommentNode, Page
from commentable.domain.value import CommentableRef, CommentId, UserId

from .comment_query_service import CommentQueryService
from .comment_service import CommentService


class CommentThreads:
    """The comment forest of one commentable.

    Thin binding of the comment services to a CommentableRef so callers
    holding an owner can work with "its" comments.
    """

    def __init__(
        self,
        commentable: CommentableRef,
        comment_service: CommentService,
        query_service: CommentQueryService,
    ) -> None:
        self.commentable = commentable
        self.comment_service = comment_service
        self.query_service = query_service

    async def root_comments(self, page: int = 1, items: int = 20) -> Page[Comment]:
        return await self.query_service.root_comments(
            self.commentable, page=page, items=items
        )

    async def nested_comments(
        self, depth: Optional[int] = None, page: int = 1, items: int = 20
    ) -> Page[CommentNode]:
        return await self.query_service.nested_comments(
            self.commentable, depth=depth, page=page, items=items
        )

    async def comments_ordered_by_submission(
        self, page: int = 1, items: int = 20
    ) -> Page[Comment]:
        return await self.query_service.comments_ordered_by_submission(
            self.commentable, page=page, items=items
        )

    async def has_comments(self) -> bool:
        return await self.query_service.has_comments(self.commentable)

    async def add_comment(
        self,
        body: str,
        author_id: Optional[UserId],
        parent_id: Optional[CommentId] = None,
    ) -> Comment:
        return await self.comment_service.add_comment(
            self.commentable, body=body, author_id=author_id, parent_id=parent_id
        )

    async def delete_comment(self, comment_id: CommentId) -> int:
        return await self.comment_service.delete_comment(self.commentable, comment_id)

    async def destroy(self) -> int:
        """Remove the whole forest, used when the owner is destroyed."""
        return await self.comment_service.destroy_forest(self.commentable)
