"""Comment query service: paginated and threaded reads."""

from bisect import bisect_right
from typing import Optional

import logfire

from commentable.domain.error import NotFoundError, ValidationError
from commentable.domain.model import Comment, CommentNode, Page, PageMeta
from commentable.domain.repository import CommentRepository
from commentable.domain.value import CommentableRef, CommentId, CommentOrder, UserId

from . import tree
from .base import Service
from .cache_service import CommentCacheService
from .commentable_registry import CommentableRegistry


class CommentQueryService(Service):
    """Domain service for comment reads.

    Aggregates scoped to one commentable go through the cache layer; per
    comment and per author reads always hit the store.
    """

    def __init__(
        self,
        comment_repository: CommentRepository,
        cache_service: CommentCacheService,
        registry: CommentableRegistry,
        max_items: int = 100,
    ) -> None:
        """Initialize comment query service.

        Args:
            comment_repository: Comment repository
            cache_service: Cache layer for aggregate reads
            registry: Registered commentable types
            max_items: Upper bound for the page size
        """
        self.comment_repository = comment_repository
        self.cache_service = cache_service
        self.registry = registry
        self.max_items = max_items

    async def root_comments(
        self,
        scope: CommentableRef,
        page: int = 1,
        items: int = 20,
        order: CommentOrder = CommentOrder.NEWEST,
    ) -> Page[Comment]:
        """Get one page of the root comments of a commentable.

        Args:
            scope: Commentable
            page: Page number, starting at 1
            items: Page size
            order: Creation-time order

        Returns:
            Page of root comments
        """
        self._validate_page(page, items)
        self.registry.ensure_registered(scope)
        with logfire.span(
            "comment_query.root_comments",
            commentable=str(scope),
            page=page,
            items=items,
        ):
            return await self.cache_service.fetch(
                scope,
                "root_comments",
                Page[Comment],
                lambda: self._root_page(scope, page, items, order),
                page=page,
                items=items,
                order=order.value,
            )

    async def nested_comments(
        self,
        scope: CommentableRef,
        depth: Optional[int] = None,
        page: int = 1,
        items: int = 20,
    ) -> Page[CommentNode]:
        """Get one page of root comments with their replies nested.

        The root set is paginated first, then each root on the page gets its
        replies up to `depth` levels below it.

        Args:
            scope: Commentable
            depth: Reply levels to include (0 for roots only, None for all)
            page: Page number, starting at 1
            items: Page size (counted in roots)

        Returns:
            Page of reply trees, newest root first

        Raises:
            ValidationError: If depth is negative or the page is invalid
        """
        if depth is not None and depth < 0:
            raise ValidationError("Depth must be a non-negative integer")
        self._validate_page(page, items)
        self.registry.ensure_registered(scope)
        with logfire.span(
            "comment_query.nested_comments",
            commentable=str(scope),
            depth=depth,
            page=page,
            items=items,
        ):
            return await self.cache_service.fetch(
                scope,
                "nested_comments",
                Page[CommentNode],
                lambda: self._nested_page(scope, depth, page, items),
                depth=depth,
                page=page,
                items=items,
            )

    async def comments_ordered_by_submission(
        self,
        scope: CommentableRef,
        page: int = 1,
        items: int = 20,
        order: CommentOrder = CommentOrder.NEWEST,
    ) -> Page[Comment]:
        """Get one page of every comment of a commentable, flat.

        Args:
            scope: Commentable
            page: Page number, starting at 1
            items: Page size
            order: Creation-time order

        Returns:
            Page of comments in submission order
        """
        self._validate_page(page, items)
        self.registry.ensure_registered(scope)
        with logfire.span(
            "comment_query.comments_ordered_by_submission",
            commentable=str(scope),
            page=page,
            items=items,
        ):
            return await self.cache_service.fetch(
                scope,
                "submitted",
                Page[Comment],
                lambda: self._submitted_page(scope, page, items, order),
                page=page,
                items=items,
                order=order.value,
            )

    async def has_comments(self, scope: CommentableRef) -> bool:
        """Whether the commentable has at least one comment."""
        self.registry.ensure_registered(scope)
        return await self.cache_service.fetch(
            scope,
            "has_comments",
            bool,
            lambda: self.comment_repository.exists_in_scope(scope),
        )

    async def comments_by_user(
        self,
        user_id: UserId,
        page: int = 1,
        items: int = 20,
        commentable_type: Optional[str] = None,
    ) -> Page[Comment]:
        """Get one page of a user's comments, newest first.

        Args:
            user_id: Author user ID
            page: Page number, starting at 1
            items: Page size
            commentable_type: Restrict to one commentable type

        Returns:
            Page of the user's comments
        """
        self._validate_page(page, items)
        with logfire.span(
            "comment_query.comments_by_user",
            user_id=str(user_id),
            commentable_type=commentable_type,
            page=page,
            items=items,
        ):
            count = await self.comment_repository.count_by_author(
                user_id, commentable_type
            )
            meta = PageMeta.build(count, page, items)
            results = await self.comment_repository.find_by_author(
                user_id,
                commentable_type=commentable_type,
                limit=items,
                offset=meta.offset,
            )
            logfire.info(
                "User comments retrieved", user_id=str(user_id), count=len(results)
            )
            return Page[Comment](meta=meta, results=results)

    async def get_comment(self, comment_id: CommentId) -> Comment:
        """Get a comment by ID.

        Raises:
            NotFoundError: If the comment does not exist
        """
        comment = await self.comment_repository.find_by_id(comment_id)
        if comment is None:
            logfire.warn("Comment not found", comment_id=str(comment_id))
            raise NotFoundError("Comment", str(comment_id))
        return comment

    async def ancestors(self, comment_id: CommentId) -> list[Comment]:
        """Get the comments above a comment, root first."""
        comment = await self.get_comment(comment_id)
        return await self.comment_repository.find_ancestors(comment)

    async def depth(self, comment_id: CommentId) -> int:
        """Get the nesting level of a comment (0 for roots)."""
        return len(await self.ancestors(comment_id))

    async def all_replies(self, comment_id: CommentId) -> list[Comment]:
        """Get every reply below a comment, in pre-order."""
        comment = await self.get_comment(comment_id)
        return await self.comment_repository.find_descendants(comment)

    async def paginated_replies(
        self, comment_id: CommentId, page: int = 1, items: int = 20
    ) -> Page[Comment]:
        """Get one page of the replies below a comment, in pre-order."""
        self._validate_page(page, items)
        comment = await self.get_comment(comment_id)
        meta = PageMeta.build(comment.descendant_count, page, items)
        results = await self.comment_repository.find_descendants(
            comment, limit=items, offset=meta.offset
        )
        return Page[Comment](meta=meta, results=results)

    async def _root_page(
        self, scope: CommentableRef, page: int, items: int, order: CommentOrder
    ) -> Page[Comment]:
        count = await self.comment_repository.count_roots(scope)
        meta = PageMeta.build(count, page, items)
        roots = await self.comment_repository.find_roots(
            scope, order=order, limit=items, offset=meta.offset
        )
        logfire.info("Root comments retrieved", commentable=str(scope), count=count)
        return Page[Comment](meta=meta, results=roots)

    async def _submitted_page(
        self, scope: CommentableRef, page: int, items: int, order: CommentOrder
    ) -> Page[Comment]:
        count = await self.comment_repository.count_by_scope(scope)
        meta = PageMeta.build(count, page, items)
        results = await self.comment_repository.find_by_scope(
            scope, order=order, limit=items, offset=meta.offset
        )
        return Page[Comment](meta=meta, results=results)

    async def _nested_page(
        self, scope: CommentableRef, depth: Optional[int], page: int, items: int
    ) -> Page[CommentNode]:
        root_page = await self._root_page(scope, page, items, CommentOrder.NEWEST)
        roots = root_page.results

        descendants: list[Comment] = []
        if roots and depth != 0:
            descendants = await self.comment_repository.find_subtrees(scope, roots)

        # Root intervals are disjoint, so each reply falls under the last
        # root starting before it.
        by_left = sorted(roots, key=lambda c: c.left_bound)
        lefts = [r.left_bound for r in by_left]
        groups: dict[CommentId, list[Comment]] = {r.id: [] for r in roots}
        for comment in descendants:
            owner = by_left[bisect_right(lefts, comment.left_bound) - 1]
            groups[owner.id].append(comment)

        preorder: list[Comment] = []
        for root in roots:
            preorder.append(root)
            preorder.extend(groups[root.id])

        threads = tree.build_threads(tree.limit_depth(preorder, depth))
        return Page[CommentNode](meta=root_page.meta, results=threads)

    def _validate_page(self, page: int, items: int) -> None:
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if items < 1:
            raise ValidationError("Items per page must be positive")
        if items > self.max_items:
            raise ValidationError(f"Items per page must be at most {self.max_items}")
