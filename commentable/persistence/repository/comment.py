"""PostgreSQL implementation of Comment repository."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, List, Optional, Sequence

import logfire
from sqlalchemy import and_, asc, desc, func, or_, select, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commentable.domain.error import ConflictError, DomainError, StorageError
from commentable.domain.model import Comment
from commentable.domain.repository import CommentRepository
from commentable.domain.value import CommentableRef, CommentId, CommentOrder, UserId
from commentable.persistence.mappers import comment_to_dict, row_to_comment
from commentable.persistence.tables import comments_table

# serialization_failure, deadlock_detected, lock_not_available
CONFLICT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    return getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)


def _store_error(exc: SQLAlchemyError) -> DomainError:
    """Domain error for a failed statement or commit."""
    if isinstance(exc, DBAPIError):
        if _sqlstate(exc) in CONFLICT_SQLSTATES:
            return ConflictError(f"Comment store conflict: {exc.orig}")
        return StorageError(f"Comment store failure: {exc.orig}")
    return StorageError(f"Comment store failure: {exc}")


class PostgresCommentRepository(CommentRepository):
    """PostgreSQL implementation of CommentRepository.

    Writers of one forest are serialized with a transaction-level advisory
    lock keyed on the commentable, so concurrent inserts into different
    forests never wait on each other.
    """

    def __init__(self, session: AsyncSession, lock_timeout_seconds: float = 5.0):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            lock_timeout_seconds: Longest wait for the forest lock
        """
        self.session = session
        self.lock_timeout_seconds = lock_timeout_seconds

    def _scoped(self, stmt: Any, scope: CommentableRef) -> Any:
        return stmt.where(
            comments_table.c.commentable_type == scope.type_tag,
            comments_table.c.commentable_id == scope.id,
        )

    @staticmethod
    def _ordered(stmt: Any, order: CommentOrder) -> Any:
        # left_bound breaks created_at ties in insertion order
        direction = desc if order == CommentOrder.NEWEST else asc
        return stmt.order_by(
            direction(comments_table.c.created_at),
            direction(comments_table.c.left_bound),
        )

    async def _execute(self, stmt: Any, params: Optional[dict] = None) -> Any:
        try:
            return await self.session.execute(stmt, params)
        except SQLAlchemyError as e:
            raise _store_error(e) from e

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise _store_error(e) from e

    async def _fetch_all(self, stmt: Any) -> List[Comment]:
        result = await self._execute(stmt)
        return [row_to_comment(row._asdict()) for row in result.fetchall()]

    async def _fetch_count(self, stmt: Any) -> int:
        result = await self._execute(stmt)
        return result.scalar() or 0

    @asynccontextmanager
    async def transaction(self, scope: CommentableRef) -> AsyncIterator[None]:
        """Lock the forest for the rest of the session transaction.

        The session is committed when the block exits so the lock is released
        before caches are invalidated.
        """
        timeout_ms = int(self.lock_timeout_seconds * 1000)
        try:
            await self._execute(
                text("SELECT set_config('lock_timeout', :timeout, true)"),
                {"timeout": f"{timeout_ms}ms"},
            )
            await self._execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                {"key": f"comments:{scope}"},
            )
            yield
            await self._commit()
        except ConflictError:
            logfire.warn("Comment forest lock conflict", commentable=str(scope))
            await self.session.rollback()
            raise
        except Exception:
            await self.session.rollback()
            raise

    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID."""
        stmt = select(comments_table).where(comments_table.c.id == comment_id)
        result = await self._execute(stmt)
        row = result.fetchone()
        return row_to_comment(row._asdict()) if row else None

    async def find_in_scope(
        self, scope: CommentableRef, comment_id: CommentId
    ) -> Optional[Comment]:
        """Find a comment by ID within a forest."""
        stmt = self._scoped(
            select(comments_table).where(comments_table.c.id == comment_id), scope
        )
        result = await self._execute(stmt)
        row = result.fetchone()
        return row_to_comment(row._asdict()) if row else None

    async def find_roots(
        self,
        scope: CommentableRef,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Comment]:
        """Find root comments of a forest."""
        stmt = self._scoped(
            select(comments_table).where(comments_table.c.parent_id.is_(None)), scope
        )
        stmt = self._ordered(stmt, order).limit(limit).offset(offset)
        return await self._fetch_all(stmt)

    async def count_roots(self, scope: CommentableRef) -> int:
        """Count root comments of a forest."""
        stmt = self._scoped(
            select(func.count())
            .select_from(comments_table)
            .where(comments_table.c.parent_id.is_(None)),
            scope,
        )
        return await self._fetch_count(stmt)

    async def find_by_scope(
        self,
        scope: CommentableRef,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Comment]:
        """Find every comment of a forest ordered by submission time."""
        stmt = self._scoped(select(comments_table), scope)
        stmt = self._ordered(stmt, order).limit(limit).offset(offset)
        return await self._fetch_all(stmt)

    async def count_by_scope(self, scope: CommentableRef) -> int:
        """Count every comment of a forest."""
        stmt = self._scoped(select(func.count()).select_from(comments_table), scope)
        return await self._fetch_count(stmt)

    async def exists_in_scope(self, scope: CommentableRef) -> bool:
        """Whether the forest has at least one comment."""
        stmt = select(self._scoped(select(comments_table.c.id), scope).exists())
        result = await self._execute(stmt)
        return bool(result.scalar())

    async def find_by_author(
        self,
        author_id: UserId,
        commentable_type: Optional[str] = None,
        order: CommentOrder = CommentOrder.NEWEST,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Comment]:
        """Find comments by a specific author."""
        stmt = select(comments_table).where(comments_table.c.author_id == author_id)
        if commentable_type is not None:
            stmt = stmt.where(comments_table.c.commentable_type == commentable_type)
        stmt = self._ordered(stmt, order).limit(limit).offset(offset)
        return await self._fetch_all(stmt)

    async def count_by_author(
        self, author_id: UserId, commentable_type: Optional[str] = None
    ) -> int:
        """Count comments by a specific author."""
        stmt = (
            select(func.count())
            .select_from(comments_table)
            .where(comments_table.c.author_id == author_id)
        )
        if commentable_type is not None:
            stmt = stmt.where(comments_table.c.commentable_type == commentable_type)
        return await self._fetch_count(stmt)

    async def find_ancestors(self, comment: Comment) -> List[Comment]:
        """Find ancestors root first."""
        stmt = self._scoped(
            select(comments_table).where(
                comments_table.c.left_bound < comment.left_bound,
                comments_table.c.right_bound > comment.right_bound,
            ),
            comment.scope,
        ).order_by(comments_table.c.left_bound)
        return await self._fetch_all(stmt)

    async def find_descendants(
        self, comment: Comment, limit: Optional[int] = None, offset: int = 0
    ) -> List[Comment]:
        """Find descendants in pre-order."""
        stmt = self._scoped(
            select(comments_table).where(
                comments_table.c.left_bound > comment.left_bound,
                comments_table.c.right_bound < comment.right_bound,
            ),
            comment.scope,
        ).order_by(comments_table.c.left_bound)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return await self._fetch_all(stmt)

    async def find_subtrees(
        self, scope: CommentableRef, roots: Sequence[Comment]
    ) -> List[Comment]:
        """Find descendants of several comments in one query."""
        if not roots:
            return []
        ranges = [
            and_(
                comments_table.c.left_bound > root.left_bound,
                comments_table.c.right_bound < root.right_bound,
            )
            for root in roots
            if not root.is_leaf
        ]
        if not ranges:
            return []
        stmt = self._scoped(
            select(comments_table).where(or_(*ranges)), scope
        ).order_by(comments_table.c.left_bound)
        return await self._fetch_all(stmt)

    async def find_forest(self, scope: CommentableRef) -> List[Comment]:
        """Find the whole forest in pre-order."""
        stmt = self._scoped(select(comments_table), scope).order_by(
            comments_table.c.left_bound
        )
        return await self._fetch_all(stmt)

    async def max_right_bound(self, scope: CommentableRef) -> int:
        """Largest right bound in the forest, 0 when empty."""
        stmt = self._scoped(select(func.max(comments_table.c.right_bound)), scope)
        return await self._fetch_count(stmt)

    async def shift_bounds(self, scope: CommentableRef, at: int, delta: int) -> None:
        """Shift every bound >= at by delta.

        Right bounds move first when growing and left bounds first when
        shrinking so that left_bound < right_bound holds after each statement.
        """
        if delta == 0:
            return
        shift_right = self._scoped(
            comments_table.update()
            .where(comments_table.c.right_bound >= at)
            .values(right_bound=comments_table.c.right_bound + delta),
            scope,
        )
        shift_left = self._scoped(
            comments_table.update()
            .where(comments_table.c.left_bound >= at)
            .values(left_bound=comments_table.c.left_bound + delta),
            scope,
        )
        first, second = (
            (shift_right, shift_left) if delta > 0 else (shift_left, shift_right)
        )
        await self._execute(first)
        await self._execute(second)

    async def insert(self, comment: Comment) -> Comment:
        """Insert a comment with reserved bounds."""
        stmt = comments_table.insert().values(**comment_to_dict(comment))
        await self._execute(stmt)
        await self.session.flush()
        return comment

    async def delete_subtree(self, comment: Comment) -> int:
        """Delete a subtree and close the gap it leaves."""
        stmt = self._scoped(
            comments_table.delete().where(
                comments_table.c.left_bound >= comment.left_bound,
                comments_table.c.right_bound <= comment.right_bound,
            ),
            comment.scope,
        )
        result = await self._execute(stmt)
        width = comment.right_bound - comment.left_bound + 1
        await self.shift_bounds(comment.scope, at=comment.right_bound + 1, delta=-width)
        await self.session.flush()
        return result.rowcount or 0

    async def delete_scope(self, scope: CommentableRef) -> int:
        """Delete the whole forest."""
        stmt = self._scoped(comments_table.delete(), scope)
        result = await self._execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
