"""List comments use case."""

from typing import Literal, Optional

from pydantic import BaseModel

from commentable.application.usecase.base import CommentableUseCase

from .common import CommentItem, PageInfo, ThreadItem

CommentView = Literal["roots", "nested", "submitted"]


class ListCommentsRequest(BaseModel):
    """List comments request."""

    commentable_type: str
    commentable_id: str
    view: CommentView = "nested"
    depth: Optional[int] = None  # Only used by the nested view
    page: int = 1
    items: int = 20


class ListCommentsResponse(BaseModel):
    """List comments response.

    Flat views fill `comments`, the nested view fills `threads`.
    """

    commentable_type: str
    commentable_id: str
    view: CommentView
    meta: PageInfo
    comments: list[CommentItem] = []
    threads: list[ThreadItem] = []


class ListCommentsUseCase(CommentableUseCase):
    """Use case for reading one page of a commentable's comments.

    Views:
    - roots: root comments, newest first
    - nested: root comments with replies down to `depth` levels
    - submitted: every comment, newest first
    """

    async def execute(self, request: ListCommentsRequest) -> ListCommentsResponse:
        threads = self.threads(request.commentable_type, request.commentable_id)
        comments: list[CommentItem] = []
        thread_items: list[ThreadItem] = []

        if request.view == "nested":
            nested = await threads.nested_comments(
                depth=request.depth, page=request.page, items=request.items
            )
            meta = nested.meta
            thread_items = [ThreadItem.from_node(node) for node in nested.results]
        else:
            if request.view == "roots":
                flat = await threads.root_comments(
                    page=request.page, items=request.items
                )
            else:
                flat = await threads.comments_ordered_by_submission(
                    page=request.page, items=request.items
                )
            meta = flat.meta
            comments = [CommentItem.from_comment(c) for c in flat.results]

        return ListCommentsResponse(
            commentable_type=threads.commentable.type_tag,
            commentable_id=threads.commentable.id,
            view=request.view,
            meta=PageInfo.from_meta(meta),
            comments=comments,
            threads=thread_items,
        )
