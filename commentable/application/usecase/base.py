"""Base use cases."""

from abc import ABC, abstractmethod
from typing import Any

from commentable.domain.service import (
    CommentQueryService,
    CommentService,
    CommentThreads,
)
from commentable.domain.value import CommentableRef


class BaseUseCase(ABC):
    """Base use case for orchestrating domain services."""

    @abstractmethod
    async def execute(self, request: Any) -> Any:
        pass


class CommentableUseCase(BaseUseCase):
    """Base for use cases that work on the comments of one commentable."""

    def __init__(
        self, comment_service: CommentService, query_service: CommentQueryService
    ) -> None:
        """Initialize use case.

        Args:
            comment_service: Comment mutation service
            query_service: Comment query service
        """
        self.comment_service = comment_service
        self.query_service = query_service

    def threads(self, commentable_type: str, commentable_id: str) -> CommentThreads:
        """Bind the services to one commentable.

        Raises:
            ValidationError: If the commentable reference is malformed
        """
        return CommentThreads(
            CommentableRef.of(commentable_type, commentable_id),
            comment_service=self.comment_service,
            query_service=self.query_service,
        )
