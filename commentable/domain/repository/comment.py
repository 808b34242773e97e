"""Comment repository interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import List, Optional, Sequence

from commentable.domain.model.comment import Comment
from commentable.domain.value import CommentableRef, CommentId, CommentOrder, UserId


class CommentRepository(ABC):
    """Repository for Comment entity.

    Defines the contract for comment persistence operations. Every query is
    scoped to one forest (commentable_type, commentable_id) except the
    by-id and by-author lookups. Tree queries are range comparisons on the
    stored bounds.

    Implementations live in the infrastructure layer.
    """

    @abstractmethod
    def transaction(self, scope: CommentableRef) -> AbstractAsyncContextManager[None]:
        """Open an atomic, scope-serialized unit of work.

        Mutations of the same scope never interleave while the context is
        held. The work is committed when the context exits normally and
        rolled back when it raises.

        Args:
            scope: Forest scope being mutated

        Raises:
            ConflictError: If the scope could not be locked in time or the
                store detected a conflicting transaction
            StorageError: If the store failed
        """
        pass

    @abstractmethod
    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID.

        Args:
            comment_id: The comment's unique identifier

        Returns:
            The comment if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_in_scope(
        self, scope: CommentableRef, comment_id: CommentId
    ) -> Optional[Comment]:
        """Find a comment by ID only if it belongs to the given forest."""
        pass

    @abstractmethod
    async def find_roots(
        self,
        scope: CommentableRef,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Comment]:
        """Find root comments of a forest.

        Args:
            scope: Forest scope
            order: Creation-time order
            limit: Maximum number of comments to return
            offset: Number of comments to skip

        Returns:
            Root comments in the requested order
        """
        pass

    @abstractmethod
    async def count_roots(self, scope: CommentableRef) -> int:
        """Count root comments of a forest."""
        pass

    @abstractmethod
    async def find_by_scope(
        self,
        scope: CommentableRef,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Comment]:
        """Find every comment of a forest ordered by submission time."""
        pass

    @abstractmethod
    async def count_by_scope(self, scope: CommentableRef) -> int:
        """Count every comment of a forest."""
        pass

    @abstractmethod
    async def exists_in_scope(self, scope: CommentableRef) -> bool:
        """Whether the forest has at least one comment."""
        pass

    @abstractmethod
    async def find_by_author(
        self,
        author_id: UserId,
        commentable_type: Optional[str] = None,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Comment]:
        """Find comments written by a user.

        Args:
            author_id: The author's user ID
            commentable_type: Restrict to one commentable type (None for all)
            order: Creation-time order
            limit: Maximum number of comments to return
            offset: Number of comments to skip

        Returns:
            Comments by the author
        """
        pass

    @abstractmethod
    async def count_by_author(
        self, author_id: UserId, commentable_type: Optional[str] = None
    ) -> int:
        """Count comments written by a user."""
        pass

    @abstractmethod
    async def find_ancestors(self, comment: Comment) -> List[Comment]:
        """Find comments whose interval strictly contains the comment's.

        Returns:
            Ancestors ordered root to leaf (left_bound ascending)
        """
        pass

    @abstractmethod
    async def find_descendants(
        self, comment: Comment, limit: Optional[int] = None, offset: int = 0
    ) -> List[Comment]:
        """Find comments whose interval lies strictly inside the comment's.

        Returns:
            Descendants in pre-order (left_bound ascending)
        """
        pass

    @abstractmethod
    async def find_subtrees(
        self, scope: CommentableRef, roots: Sequence[Comment]
    ) -> List[Comment]:
        """Find the descendants of several comments of one forest at once.

        Returns:
            Descendants of all given comments in pre-order
        """
        pass

    @abstractmethod
    async def find_forest(self, scope: CommentableRef) -> List[Comment]:
        """Find the whole forest in pre-order."""
        pass

    @abstractmethod
    async def max_right_bound(self, scope: CommentableRef) -> int:
        """Largest right bound in the forest, 0 when it is empty."""
        pass

    @abstractmethod
    async def shift_bounds(self, scope: CommentableRef, at: int, delta: int) -> None:
        """Shift every bound >= at by delta within the forest.

        Must run inside transaction(scope).
        """
        pass

    @abstractmethod
    async def insert(self, comment: Comment) -> Comment:
        """Persist a new comment with already reserved bounds.

        Must run inside transaction(comment.scope).
        """
        pass

    @abstractmethod
    async def delete_subtree(self, comment: Comment) -> int:
        """Delete a comment with its descendants and close the gap.

        Every bound greater than the comment's right bound is shifted left
        by the subtree width. Must run inside transaction(comment.scope).

        Returns:
            Number of deleted comments
        """
        pass

    @abstractmethod
    async def delete_scope(self, scope: CommentableRef) -> int:
        """Delete the whole forest of a commentable.

        Returns:
            Number of deleted comments
        """
        pass
