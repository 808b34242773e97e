"""Comment use cases."""

from .add_comment import AddCommentRequest, AddCommentResponse, AddCommentUseCase
from .common import CommentItem, PageInfo, ThreadItem
from .delete_comment import (
    DeleteCommentRequest,
    DeleteCommentResponse,
    DeleteCommentUseCase,
)
from .destroy_comments import (
    DestroyCommentsRequest,
    DestroyCommentsResponse,
    DestroyCommentsUseCase,
)
from .get_replies import GetRepliesRequest, GetRepliesResponse, GetRepliesUseCase
from .get_user_comments import (
    GetUserCommentsRequest,
    GetUserCommentsResponse,
    GetUserCommentsUseCase,
)
from .has_comments import HasCommentsRequest, HasCommentsResponse, HasCommentsUseCase
from .list_comments import (
    ListCommentsRequest,
    ListCommentsResponse,
    ListCommentsUseCase,
)

__all__ = [
    "AddCommentRequest",
    "AddCommentResponse",
    "AddCommentUseCase",
    "CommentItem",
    "DeleteCommentRequest",
    "DeleteCommentResponse",
    "DeleteCommentUseCase",
    "DestroyCommentsRequest",
    "DestroyCommentsResponse",
    "DestroyCommentsUseCase",
    "GetRepliesRequest",
    "GetRepliesResponse",
    "GetRepliesUseCase",
    "GetUserCommentsRequest",
    "GetUserCommentsResponse",
    "GetUserCommentsUseCase",
    "HasCommentsRequest",
    "HasCommentsResponse",
    "HasCommentsUseCase",
    "ListCommentsRequest",
    "ListCommentsResponse",
    "ListCommentsUseCase",
    "PageInfo",
    "ThreadItem",
]
