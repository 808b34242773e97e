"""Comment routes.

The service has no notion of sessions: callers (the owning application)
pass the author explicitly and are responsible for authorization.
"""

from typing import Optional
from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from commentable.application.usecase.comment import (
    AddCommentRequest,
    AddCommentResponse,
    AddCommentUseCase,
    DeleteCommentRequest,
    DeleteCommentResponse,
    DeleteCommentUseCase,
    DestroyCommentsRequest,
    DestroyCommentsResponse,
    DestroyCommentsUseCase,
    GetRepliesRequest,
    GetRepliesResponse,
    GetRepliesUseCase,
    GetUserCommentsRequest,
    GetUserCommentsResponse,
    GetUserCommentsUseCase,
    HasCommentsRequest,
    HasCommentsResponse,
    HasCommentsUseCase,
    ListCommentsRequest,
    ListCommentsResponse,
    ListCommentsUseCase,
)
from commentable.application.usecase.comment.list_comments import CommentView
from commentable.config import PaginationSettings

router = APIRouter(tags=["comments"], route_class=DishkaRoute)


class AddCommentAPIRequest(BaseModel):
    """API request for adding a comment."""

    body: str = Field(min_length=1, max_length=10000)
    author_id: UUID
    parent_id: Optional[UUID] = None  # Parent comment ID for replies


@router.post(
    "/commentables/{commentable_type}/{commentable_id}/comments",
    response_model=AddCommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    commentable_type: str,
    commentable_id: str,
    request: AddCommentAPIRequest,
    add_comment_use_case: FromDishka[AddCommentUseCase],
) -> AddCommentResponse:
    """Add a root comment to a commentable or reply to one of its comments."""
    return await add_comment_use_case.execute(
        AddCommentRequest(
            commentable_type=commentable_type,
            commentable_id=commentable_id,
            body=request.body,
            author_id=request.author_id,
            parent_id=request.parent_id,
        )
    )


@router.get(
    "/commentables/{commentable_type}/{commentable_id}/comments",
    response_model=ListCommentsResponse,
)
async def list_comments(
    commentable_type: str,
    commentable_id: str,
    list_comments_use_case: FromDishka[ListCommentsUseCase],
    pagination: FromDishka[PaginationSettings],
    view: CommentView = "nested",
    depth: Optional[int] = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    items: Optional[int] = Query(default=None, ge=1),
) -> ListCommentsResponse:
    """Get one page of a commentable's comments.

    Args:
        commentable_type: Registered commentable type
        commentable_id: Owner ID
        view: "roots", "nested" (threads) or "submitted" (flat, newest first)
        depth: Reply levels below each root for the nested view (all if omitted)
        page: Page number
        items: Page size (roots for the nested view)
    """
    return await list_comments_use_case.execute(
        ListCommentsRequest(
            commentable_type=commentable_type,
            commentable_id=commentable_id,
            view=view,
            depth=depth,
            page=page,
            items=items or pagination.default_items,
        )
    )


@router.get(
    "/commentables/{commentable_type}/{commentable_id}/comments/exists",
    response_model=HasCommentsResponse,
)
async def has_comments(
    commentable_type: str,
    commentable_id: str,
    has_comments_use_case: FromDishka[HasCommentsUseCase],
) -> HasCommentsResponse:
    """Whether a commentable has any comment."""
    return await has_comments_use_case.execute(
        HasCommentsRequest(
            commentable_type=commentable_type, commentable_id=commentable_id
        )
    )


@router.delete(
    "/commentables/{commentable_type}/{commentable_id}/comments/{comment_id}",
    response_model=DeleteCommentResponse,
)
async def delete_comment(
    commentable_type: str,
    commentable_id: str,
    comment_id: UUID,
    delete_comment_use_case: FromDishka[DeleteCommentUseCase],
) -> DeleteCommentResponse:
    """Delete a comment and every reply below it."""
    return await delete_comment_use_case.execute(
        DeleteCommentRequest(
            commentable_type=commentable_type,
            commentable_id=commentable_id,
            comment_id=comment_id,
        )
    )


@router.delete(
    "/commentables/{commentable_type}/{commentable_id}/comments",
    response_model=DestroyCommentsResponse,
)
async def destroy_comments(
    commentable_type: str,
    commentable_id: str,
    destroy_comments_use_case: FromDishka[DestroyCommentsUseCase],
) -> DestroyCommentsResponse:
    """Delete every comment of a commentable (the owner was deleted)."""
    return await destroy_comments_use_case.execute(
        DestroyCommentsRequest(
            commentable_type=commentable_type, commentable_id=commentable_id
        )
    )


@router.get("/comments/{comment_id}/replies", response_model=GetRepliesResponse)
async def get_replies(
    comment_id: UUID,
    get_replies_use_case: FromDishka[GetRepliesUseCase],
    page: Optional[int] = Query(default=None, ge=1),
    items: int = Query(default=20, ge=1),
) -> GetRepliesResponse:
    """Get a comment with its ancestors and replies (all replies without a page)."""
    return await get_replies_use_case.execute(
        GetRepliesRequest(comment_id=comment_id, page=page, items=items)
    )


@router.get("/users/{user_id}/comments", response_model=GetUserCommentsResponse)
async def get_user_comments(
    user_id: UUID,
    get_user_comments_use_case: FromDishka[GetUserCommentsUseCase],
    pagination: FromDishka[PaginationSettings],
    commentable_type: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    items: Optional[int] = Query(default=None, ge=1),
) -> GetUserCommentsResponse:
    """Get one page of a user's comments, newest first."""
    return await get_user_comments_use_case.execute(
        GetUserCommentsRequest(
            user_id=user_id,
            commentable_type=commentable_type,
            page=page,
            items=items or pagination.default_items,
        )
    )
