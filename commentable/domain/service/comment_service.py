"""Comment domain service: the hierarchy mutation protocol."""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import logfire

from commentable.domain.error import ConsistencyError, NotFoundError, ValidationError
from commentable.domain.model import Comment
from commentable.domain.repository import CommentRepository
from commentable.domain.value import CommentableRef, CommentId, UserId

from . import tree
from .base import Service
from .cache_service import CommentCacheService
from .commentable_registry import CommentableRegistry

MAX_BODY_LENGTH = 10000


class CommentService(Service):
    """Domain service for comment mutations.

    Every mutation runs inside one repository transaction that serializes
    writers of the same forest, so bounds are never computed from a stale
    tree. Cache entries of the forest are invalidated once it committed.
    """

    def __init__(
        self,
        comment_repository: CommentRepository,
        cache_service: CommentCacheService,
        registry: CommentableRegistry,
        verify_mutations: bool = False,
    ) -> None:
        """Initialize comment service.

        Args:
            comment_repository: Comment repository
            cache_service: Cache layer to invalidate after commits
            registry: Registered commentable types
            verify_mutations: Check the forest invariants before committing
        """
        self.comment_repository = comment_repository
        self.cache_service = cache_service
        self.registry = registry
        self.verify_mutations = verify_mutations

    async def add_comment(
        self,
        scope: CommentableRef,
        body: str,
        author_id: Optional[UserId],
        parent_id: Optional[CommentId] = None,
    ) -> Comment:
        """Add a comment as a new root or as the last reply of a parent.

        Args:
            scope: Commentable receiving the comment
            body: Comment text
            author_id: Author user ID
            parent_id: Parent comment ID for replies (None for roots)

        Returns:
            The created comment with its reserved interval

        Raises:
            ValidationError: If the body is empty or the author is missing
            NotFoundError: If the commentable or the parent is not found
            ConflictError: If the forest could not be locked
        """
        with logfire.span(
            "comment_service.add_comment",
            commentable=str(scope),
            author_id=str(author_id) if author_id else None,
            parent_id=str(parent_id) if parent_id else None,
        ):
            self._validate_submission(body, author_id)
            await self.registry.ensure_exists(scope)

            async with self.comment_repository.transaction(scope):
                parent = None
                max_right_bound = 0
                if parent_id is not None:
                    parent = await self.comment_repository.find_in_scope(
                        scope, parent_id
                    )
                    if parent is None:
                        logfire.warn(
                            "Parent comment not found in commentable",
                            parent_id=str(parent_id),
                            commentable=str(scope),
                        )
                        raise NotFoundError("Comment", str(parent_id))
                else:
                    max_right_bound = await self.comment_repository.max_right_bound(
                        scope
                    )

                left_bound = tree.insertion_point(parent, max_right_bound)
                if parent is not None:
                    # Open a gap of two at the parent's right bound
                    await self.comment_repository.shift_bounds(
                        scope, at=left_bound, delta=2
                    )

                comment = Comment(
                    id=CommentId(uuid4()),
                    commentable_type=scope.type_tag,
                    commentable_id=scope.id,
                    author_id=author_id,
                    body=body,
                    parent_id=parent_id,
                    left_bound=left_bound,
                    right_bound=left_bound + 1,
                    created_at=datetime.now(timezone.utc),
                )
                saved = await self.comment_repository.insert(comment)

                if self.verify_mutations:
                    await self._verify(scope)

            await self.cache_service.invalidate(scope)
            logfire.info(
                "Comment added",
                comment_id=str(saved.id),
                commentable=str(scope),
                left_bound=saved.left_bound,
                right_bound=saved.right_bound,
            )
            return saved

    async def delete_comment(self, scope: CommentableRef, comment_id: CommentId) -> int:
        """Delete a comment together with all of its replies.

        Args:
            scope: Commentable owning the comment
            comment_id: Root of the subtree to delete

        Returns:
            Number of deleted comments

        Raises:
            NotFoundError: If the comment is not in the commentable
        """
        with logfire.span(
            "comment_service.delete_comment",
            commentable=str(scope),
            comment_id=str(comment_id),
        ):
            async with self.comment_repository.transaction(scope):
                # Re-read under the lock, bounds may have moved
                comment = await self.comment_repository.find_in_scope(
                    scope, comment_id
                )
                if comment is None:
                    logfire.warn(
                        "Comment not found in commentable",
                        comment_id=str(comment_id),
                        commentable=str(scope),
                    )
                    raise NotFoundError("Comment", str(comment_id))

                deleted = await self.comment_repository.delete_subtree(comment)

                if self.verify_mutations:
                    await self._verify(scope)

            await self.cache_service.invalidate(scope)
            logfire.info(
                "Comment subtree deleted",
                comment_id=str(comment_id),
                commentable=str(scope),
                deleted=deleted,
            )
            return deleted

    async def destroy_forest(self, scope: CommentableRef) -> int:
        """Delete every comment of a commentable (the owner is being destroyed).

        Returns:
            Number of deleted comments
        """
        with logfire.span("comment_service.destroy_forest", commentable=str(scope)):
            async with self.comment_repository.transaction(scope):
                deleted = await self.comment_repository.delete_scope(scope)

            await self.cache_service.invalidate(scope)
            logfire.info(
                "Comment forest destroyed", commentable=str(scope), deleted=deleted
            )
            return deleted

    async def verify_forest(self, scope: CommentableRef) -> int:
        """Check the nested-set invariants of a commentable's forest.

        Returns:
            Number of comments checked

        Raises:
            ConsistencyError: If an invariant is violated
        """
        with logfire.span("comment_service.verify_forest", commentable=str(scope)):
            return await self._verify(scope)

    async def _verify(self, scope: CommentableRef) -> int:
        forest = await self.comment_repository.find_forest(scope)
        try:
            tree.verify_forest(forest)
        except ConsistencyError as e:
            logfire.error(
                "Comment forest is inconsistent", commentable=str(scope), error=str(e)
            )
            raise
        return len(forest)

    @staticmethod
    def _validate_submission(body: str, author_id: Optional[UserId]) -> None:
        if not body or not body.strip():
            raise ValidationError("Comment body must not be empty")
        if len(body) > MAX_BODY_LENGTH:
            raise ValidationError(
                f"Comment body must be at most {MAX_BODY_LENGTH} characters"
            )
        if author_id is None:
            raise ValidationError("Comment author is required")
