"""Application layer DI providers."""

from dishka import Scope, provide

from commentable.application.usecase.comment import (
    AddCommentUseCase,
    DeleteCommentUseCase,
    DestroyCommentsUseCase,
    GetRepliesUseCase,
    GetUserCommentsUseCase,
    HasCommentsUseCase,
    ListCommentsUseCase,
)
from commentable.domain.service import CommentQueryService, CommentService
from commentable.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    # Per-commentable use cases
    @provide(scope=Scope.REQUEST)
    def get_add_comment_use_case(
        self, comment_service: CommentService, query_service: CommentQueryService
    ) -> AddCommentUseCase:
        """Provide add comment use case."""
        return AddCommentUseCase(
            comment_service=comment_service, query_service=query_service
        )

    @provide(scope=Scope.REQUEST)
    def get_list_comments_use_case(
        self, comment_service: CommentService, query_service: CommentQueryService
    ) -> ListCommentsUseCase:
        """Provide list comments use case."""
        return ListCommentsUseCase(
            comment_service=comment_service, query_service=query_service
        )

    @provide(scope=Scope.REQUEST)
    def get_has_comments_use_case(
        self, comment_service: CommentService, query_service: CommentQueryService
    ) -> HasCommentsUseCase:
        """Provide has comments use case."""
        return HasCommentsUseCase(
            comment_service=comment_service, query_service=query_service
        )

    @provide(scope=Scope.REQUEST)
    def get_delete_comment_use_case(
        self, comment_service: CommentService, query_service: CommentQueryService
    ) -> DeleteCommentUseCase:
        """Provide delete comment use case."""
        return DeleteCommentUseCase(
            comment_service=comment_service, query_service=query_service
        )

    @provide(scope=Scope.REQUEST)
    def get_destroy_comments_use_case(
        self, comment_service: CommentService, query_service: CommentQueryService
    ) -> DestroyCommentsUseCase:
        """Provide destroy comments use case."""
        return DestroyCommentsUseCase(
            comment_service=comment_service, query_service=query_service
        )

    # Per-comment and per-author use cases
    @provide(scope=Scope.REQUEST)
    def get_replies_use_case(
        self, query_service: CommentQueryService
    ) -> GetRepliesUseCase:
        """Provide get replies use case."""
        return GetRepliesUseCase(query_service=query_service)

    @provide(scope=Scope.REQUEST)
    def get_user_comments_use_case(
        self, query_service: CommentQueryService
    ) -> GetUserCommentsUseCase:
        """Provide get user comments use case."""
        return GetUserCommentsUseCase(query_service=query_service)
