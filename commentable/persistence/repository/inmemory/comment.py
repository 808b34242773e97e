"""In-memory comment repository for testing."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional, Sequence

from commentable.domain.error import ConflictError
from commentable.domain.model.comment import Comment
from commentable.domain.repository.comment import CommentRepository
from commentable.domain.value import CommentableRef, CommentId, CommentOrder, UserId


class InMemoryCommentRepository(CommentRepository):
    """In-memory implementation of CommentRepository for testing.

    Transactions hold a per-commentable asyncio lock and restore the
    forest's previous comments when the block raises.
    """

    def __init__(self, lock_timeout_seconds: float = 5.0) -> None:
        self._comments: dict[CommentId, Comment] = {}
        self._locks: dict[CommentableRef, asyncio.Lock] = {}
        self._lock_users: dict[CommentableRef, int] = {}
        self.lock_timeout_seconds = lock_timeout_seconds

    def _in_scope(self, scope: CommentableRef) -> list[Comment]:
        return [c for c in self._comments.values() if c.scope == scope]

    @staticmethod
    def _sorted(comments: list[Comment], order: CommentOrder) -> list[Comment]:
        return sorted(
            comments,
            key=lambda c: (c.created_at, c.left_bound),
            reverse=order == CommentOrder.NEWEST,
        )

    @asynccontextmanager
    async def transaction(self, scope: CommentableRef) -> AsyncIterator[None]:
        """Serialize mutations of one forest."""
        lock = self._locks.setdefault(scope, asyncio.Lock())
        self._lock_users[scope] = self._lock_users.get(scope, 0) + 1
        try:
            try:
                await asyncio.wait_for(
                    lock.acquire(), timeout=self.lock_timeout_seconds
                )
            except asyncio.TimeoutError as e:
                raise ConflictError(
                    f"Timed out waiting for the lock on {scope}"
                ) from e

            snapshot = {c.id: c for c in self._in_scope(scope)}
            try:
                yield
            except Exception:
                for comment in self._in_scope(scope):
                    del self._comments[comment.id]
                self._comments.update(snapshot)
                raise
            finally:
                lock.release()
        finally:
            self._forget_lock(scope)

    def _forget_lock(self, scope: CommentableRef) -> None:
        """Drop the scope's lock once no transaction holds or awaits it."""
        self._lock_users[scope] -= 1
        if self._lock_users[scope] == 0:
            del self._lock_users[scope]
            del self._locks[scope]

    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID."""
        return self._comments.get(comment_id)

    async def find_in_scope(
        self, scope: CommentableRef, comment_id: CommentId
    ) -> Optional[Comment]:
        """Find a comment by ID within a forest."""
        comment = self._comments.get(comment_id)
        if comment is None or comment.scope != scope:
            return None
        return comment

    async def find_roots(
        self,
        scope: CommentableRef,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Comment]:
        """Find root comments of a forest."""
        roots = [c for c in self._in_scope(scope) if c.parent_id is None]
        return self._sorted(roots, order)[offset : offset + limit]

    async def count_roots(self, scope: CommentableRef) -> int:
        """Count root comments of a forest."""
        return sum(1 for c in self._in_scope(scope) if c.parent_id is None)

    async def find_by_scope(
        self,
        scope: CommentableRef,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Comment]:
        """Find every comment of a forest ordered by submission time."""
        return self._sorted(self._in_scope(scope), order)[offset : offset + limit]

    async def count_by_scope(self, scope: CommentableRef) -> int:
        """Count every comment of a forest."""
        return len(self._in_scope(scope))

    async def exists_in_scope(self, scope: CommentableRef) -> bool:
        """Whether the forest has at least one comment."""
        return any(c.scope == scope for c in self._comments.values())

    async def find_by_author(
        self,
        author_id: UserId,
        commentable_type: Optional[str] = None,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Comment]:
        """Find comments by a specific author."""
        comments = [
            c
            for c in self._comments.values()
            if c.author_id == author_id
            and (commentable_type is None or c.commentable_type == commentable_type)
        ]
        return self._sorted(comments, order)[offset : offset + limit]

    async def count_by_author(
        self, author_id: UserId, commentable_type: Optional[str] = None
    ) -> int:
        """Count comments by a specific author."""
        return len(
            await self.find_by_author(
                author_id, commentable_type, limit=len(self._comments)
            )
        )

    async def find_ancestors(self, comment: Comment) -> list[Comment]:
        """Find ancestors root first."""
        ancestors = [c for c in self._in_scope(comment.scope) if c.contains(comment)]
        return sorted(ancestors, key=lambda c: c.left_bound)

    async def find_descendants(
        self, comment: Comment, limit: Optional[int] = None, offset: int = 0
    ) -> list[Comment]:
        """Find descendants in pre-order."""
        descendants = sorted(
            (c for c in self._in_scope(comment.scope) if comment.contains(c)),
            key=lambda c: c.left_bound,
        )
        end = None if limit is None else offset + limit
        return descendants[offset:end]

    async def find_subtrees(
        self, scope: CommentableRef, roots: Sequence[Comment]
    ) -> list[Comment]:
        """Find descendants of several comments at once."""
        found = [
            c
            for c in self._in_scope(scope)
            if any(root.contains(c) for root in roots)
        ]
        return sorted(found, key=lambda c: c.left_bound)

    async def find_forest(self, scope: CommentableRef) -> list[Comment]:
        """Find the whole forest in pre-order."""
        return sorted(self._in_scope(scope), key=lambda c: c.left_bound)

    async def max_right_bound(self, scope: CommentableRef) -> int:
        """Largest right bound in the forest, 0 when empty."""
        return max((c.right_bound for c in self._in_scope(scope)), default=0)

    async def shift_bounds(self, scope: CommentableRef, at: int, delta: int) -> None:
        """Shift every bound >= at by delta."""
        for comment in self._in_scope(scope):
            update = {}
            if comment.left_bound >= at:
                update["left_bound"] = comment.left_bound + delta
            if comment.right_bound >= at:
                update["right_bound"] = comment.right_bound + delta
            if update:
                self._comments[comment.id] = comment.model_copy(update=update)

    async def insert(self, comment: Comment) -> Comment:
        """Insert a comment with reserved bounds."""
        self._comments[comment.id] = comment
        return comment

    async def delete_subtree(self, comment: Comment) -> int:
        """Delete a subtree and close the gap it leaves."""
        doomed = [
            c
            for c in self._in_scope(comment.scope)
            if c.left_bound >= comment.left_bound
            and c.right_bound <= comment.right_bound
        ]
        for c in doomed:
            del self._comments[c.id]
        width = comment.right_bound - comment.left_bound + 1
        await self.shift_bounds(comment.scope, at=comment.right_bound + 1, delta=-width)
        return len(doomed)

    async def delete_scope(self, scope: CommentableRef) -> int:
        """Delete the whole forest."""
        doomed = self._in_scope(scope)
        for c in doomed:
            del self._comments[c.id]
        return len(doomed)
