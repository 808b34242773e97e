"""Unit tests for CommentService."""

import asyncio
from uuid import uuid4

import pytest

from commentable.adapter.cache import InMemoryCacheClient
from commentable.domain.error import ConsistencyError, NotFoundError, ValidationError
from commentable.domain.repository import CommentRepository
from commentable.domain.service import (
    CommentableRegistry,
    CommentableResolver,
    CommentCacheService,
    CommentService,
)
from commentable.domain.service import tree
from commentable.domain.value import CommentId
from commentable.persistence.repository.inmemory import InMemoryCommentRepository
from tests.factories import make_comment, make_ref, make_user
from tests.harness import create_env_fixture

# Unit test fixture - everything in memory
unit_env = create_env_fixture()


def _bounds(comments):
    return [(c.left_bound, c.right_bound) for c in comments]


class InterleavingCommentRepository(InMemoryCommentRepository):
    """Yields to the event loop between every store call.

    Without serialization concurrent mutations would read stale bounds.
    """

    async def find_in_scope(self, scope, comment_id):
        await asyncio.sleep(0)
        return await super().find_in_scope(scope, comment_id)

    async def max_right_bound(self, scope):
        await asyncio.sleep(0)
        return await super().max_right_bound(scope)

    async def shift_bounds(self, scope, at, delta):
        await asyncio.sleep(0)
        await super().shift_bounds(scope, at, delta)

    async def insert(self, comment):
        await asyncio.sleep(0)
        return await super().insert(comment)


class FailingInsertRepository(InMemoryCommentRepository):
    """Fails after the bounds have been shifted."""

    async def insert(self, comment):
        raise RuntimeError("disk full")


class KnownIds(CommentableResolver):
    def __init__(self, ids):
        self.ids = set(ids)

    async def exists(self, commentable_id):
        return commentable_id in self.ids


def _service(repository, registry=None, verify_mutations=False):
    return CommentService(
        comment_repository=repository,
        cache_service=CommentCacheService(InMemoryCacheClient()),
        registry=registry or CommentableRegistry(types=["post"]),
        verify_mutations=verify_mutations,
    )


class TestAddComment:
    """Tests for add_comment."""

    @pytest.mark.asyncio
    async def test_first_comment_and_reply(self, unit_env):
        """A root then a reply: R1 (1,2) becomes (1,4) and C1 is (2,3)."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        scope = make_ref("post", "x")

        # Act
        root = await comment_service.add_comment(scope, "hi", make_user())
        assert (root.left_bound, root.right_bound) == (1, 2)

        reply = await comment_service.add_comment(
            scope, "reply", make_user(), parent_id=root.id
        )

        # Assert
        assert (reply.left_bound, reply.right_bound) == (2, 3)
        assert reply.parent_id == root.id
        stored_root = await comment_repo.find_by_id(root.id)
        assert (stored_root.left_bound, stored_root.right_bound) == (1, 4)

    @pytest.mark.asyncio
    async def test_replies_are_appended_after_siblings(self, unit_env):
        """Each reply goes after the parent's existing replies."""
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        scope = make_ref()

        root = await comment_service.add_comment(scope, "root", make_user())
        first = await comment_service.add_comment(
            scope, "first", make_user(), parent_id=root.id
        )
        second = await comment_service.add_comment(
            scope, "second", make_user(), parent_id=root.id
        )

        forest = await comment_repo.find_forest(scope)
        assert [c.id for c in forest] == [root.id, first.id, second.id]
        assert _bounds(forest) == [(1, 6), (2, 3), (4, 5)]

    @pytest.mark.asyncio
    async def test_nested_reply_shifts_later_threads(self, unit_env):
        """Inserting deep in the first thread moves the following roots."""
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        scope = make_ref()

        r1 = await comment_service.add_comment(scope, "r1", make_user())
        c1 = await comment_service.add_comment(
            scope, "c1", make_user(), parent_id=r1.id
        )
        r2 = await comment_service.add_comment(scope, "r2", make_user())
        assert (r2.left_bound, r2.right_bound) == (5, 6)

        g1 = await comment_service.add_comment(
            scope, "g1", make_user(), parent_id=c1.id
        )

        forest = {c.id: c for c in await comment_repo.find_forest(scope)}
        assert (forest[r1.id].left_bound, forest[r1.id].right_bound) == (1, 6)
        assert (forest[c1.id].left_bound, forest[c1.id].right_bound) == (2, 5)
        assert (g1.left_bound, g1.right_bound) == (3, 4)
        assert (forest[r2.id].left_bound, forest[r2.id].right_bound) == (7, 8)
        tree.verify_forest(forest.values())

    @pytest.mark.asyncio
    async def test_forests_are_independent(self, unit_env):
        """Bounds restart at 1 for every commentable."""
        comment_service = await unit_env.get(CommentService)
        scope_a = make_ref("post", "a")
        scope_b = make_ref("post", "b")

        await comment_service.add_comment(scope_a, "one", make_user())
        first_b = await comment_service.add_comment(scope_b, "two", make_user())

        assert (first_b.left_bound, first_b.right_bound) == (1, 2)

    @pytest.mark.asyncio
    async def test_parent_from_other_commentable_is_not_found(self, unit_env):
        """A parent must belong to the same forest."""
        comment_service = await unit_env.get(CommentService)
        other = await comment_service.add_comment(
            make_ref("post", "other"), "elsewhere", make_user()
        )

        with pytest.raises(NotFoundError, match="Comment not found"):
            await comment_service.add_comment(
                make_ref("post", "x"), "reply", make_user(), parent_id=other.id
            )

    @pytest.mark.asyncio
    async def test_unknown_parent_is_not_found(self, unit_env):
        comment_service = await unit_env.get(CommentService)

        with pytest.raises(NotFoundError):
            await comment_service.add_comment(
                make_ref(), "reply", make_user(), parent_id=CommentId(uuid4())
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["", "   ", "x" * 10001])
    async def test_invalid_body_is_rejected(self, unit_env, body):
        comment_service = await unit_env.get(CommentService)

        with pytest.raises(ValidationError):
            await comment_service.add_comment(make_ref(), body, make_user())

    @pytest.mark.asyncio
    async def test_missing_author_is_rejected(self, unit_env):
        comment_service = await unit_env.get(CommentService)

        with pytest.raises(ValidationError, match="author"):
            await comment_service.add_comment(make_ref(), "hi", None)

    @pytest.mark.asyncio
    async def test_unregistered_type_is_not_found(self, unit_env):
        comment_service = await unit_env.get(CommentService)

        with pytest.raises(NotFoundError, match="Commentable type not found"):
            await comment_service.add_comment(make_ref("photo", "1"), "hi", make_user())

    @pytest.mark.asyncio
    async def test_resolver_rejects_missing_owner(self, unit_env):
        """Registered resolvers decide whether an owner exists."""
        registry = await unit_env.get(CommentableRegistry)
        registry.register("photo", KnownIds({"7"}))
        comment_service = await unit_env.get(CommentService)

        created = await comment_service.add_comment(
            make_ref("photo", "7"), "nice", make_user()
        )
        assert created.commentable_type == "photo"

        with pytest.raises(NotFoundError, match="Commentable not found: photo:8"):
            await comment_service.add_comment(make_ref("photo", "8"), "hi", make_user())

    @pytest.mark.asyncio
    async def test_failed_insert_restores_bounds(self):
        """A failure after shifting leaves the forest as it was."""
        repository = FailingInsertRepository()
        scope = make_ref()
        root = make_comment(1, 2, scope=scope)
        await InMemoryCommentRepository.insert(repository, root)
        service = _service(repository)

        with pytest.raises(RuntimeError, match="disk full"):
            await service.add_comment(scope, "reply", make_user(), parent_id=root.id)

        forest = await repository.find_forest(scope)
        assert _bounds(forest) == [(1, 2)]


class TestConcurrentMutations:
    """Serialization of mutations within one forest."""

    @pytest.mark.asyncio
    async def test_concurrent_roots_never_overlap(self):
        repository = InterleavingCommentRepository()
        service = _service(repository)
        scope = make_ref()

        await asyncio.gather(
            *(service.add_comment(scope, f"c{i}", make_user()) for i in range(20))
        )

        forest = await repository.find_forest(scope)
        assert len(forest) == 20
        tree.verify_forest(forest)

    @pytest.mark.asyncio
    async def test_concurrent_replies_never_overlap(self):
        repository = InterleavingCommentRepository()
        service = _service(repository)
        scope = make_ref()
        root = await service.add_comment(scope, "root", make_user())

        replies = await asyncio.gather(
            *(
                service.add_comment(scope, f"r{i}", make_user(), parent_id=root.id)
                for i in range(10)
            ),
            *(service.add_comment(scope, f"n{i}", make_user()) for i in range(5)),
        )

        forest = await repository.find_forest(scope)
        assert len(forest) == 16
        tree.verify_forest(forest)
        stored_root = await repository.find_by_id(root.id)
        assert stored_root.descendant_count == 10
        assert len(replies) == 15

    @pytest.mark.asyncio
    async def test_different_forests_do_not_wait_on_each_other(self):
        repository = InterleavingCommentRepository(lock_timeout_seconds=0.5)
        service = _service(repository)
        scope_a = make_ref("post", "a")
        scope_b = make_ref("post", "b")

        async with repository.transaction(scope_a):
            created = await service.add_comment(scope_b, "free", make_user())

        assert created.left_bound == 1


class TestDeleteComment:
    """Tests for delete_comment and destroy_forest."""

    @pytest.mark.asyncio
    async def test_delete_subtree_closes_the_gap(self, unit_env):
        """Deleting K comments leaves N - K with bounds 1..2(N - K)."""
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        scope = make_ref()

        r1 = await comment_service.add_comment(scope, "r1", make_user())
        c1 = await comment_service.add_comment(
            scope, "c1", make_user(), parent_id=r1.id
        )
        await comment_service.add_comment(scope, "g1", make_user(), parent_id=c1.id)
        await comment_service.add_comment(scope, "c2", make_user(), parent_id=r1.id)
        r2 = await comment_service.add_comment(scope, "r2", make_user())
        await comment_service.add_comment(scope, "c3", make_user(), parent_id=r2.id)

        deleted = await comment_service.delete_comment(scope, c1.id)

        assert deleted == 2
        forest = await comment_repo.find_forest(scope)
        assert len(forest) == 4
        tree.verify_forest(forest)
        assert [c.body for c in forest] == ["r1", "c2", "r2", "c3"]

    @pytest.mark.asyncio
    async def test_delete_root_removes_whole_thread(self, unit_env):
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        scope = make_ref()

        r1 = await comment_service.add_comment(scope, "r1", make_user())
        await comment_service.add_comment(scope, "c1", make_user(), parent_id=r1.id)
        r2 = await comment_service.add_comment(scope, "r2", make_user())

        assert await comment_service.delete_comment(scope, r1.id) == 2

        forest = await comment_repo.find_forest(scope)
        assert [c.id for c in forest] == [r2.id]
        assert _bounds(forest) == [(1, 2)]

    @pytest.mark.asyncio
    async def test_delete_uses_current_bounds(self, unit_env):
        """Bounds read before another mutation are not trusted."""
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        scope = make_ref()

        r1 = await comment_service.add_comment(scope, "r1", make_user())
        r2 = await comment_service.add_comment(scope, "r2", make_user())
        # Shifts r2 to (5,6) after r2 was returned as (3,4)
        await comment_service.add_comment(scope, "c1", make_user(), parent_id=r1.id)

        await comment_service.delete_comment(scope, r2.id)

        forest = await comment_repo.find_forest(scope)
        assert [c.body for c in forest] == ["r1", "c1"]
        tree.verify_forest(forest)

    @pytest.mark.asyncio
    async def test_delete_unknown_comment_is_not_found(self, unit_env):
        comment_service = await unit_env.get(CommentService)

        with pytest.raises(NotFoundError):
            await comment_service.delete_comment(make_ref(), CommentId(uuid4()))

    @pytest.mark.asyncio
    async def test_delete_from_wrong_commentable_is_not_found(self, unit_env):
        comment_service = await unit_env.get(CommentService)
        comment = await comment_service.add_comment(
            make_ref("post", "a"), "hi", make_user()
        )

        with pytest.raises(NotFoundError):
            await comment_service.delete_comment(make_ref("post", "b"), comment.id)

    @pytest.mark.asyncio
    async def test_destroy_forest_only_touches_its_commentable(self, unit_env):
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        doomed = make_ref("post", "doomed")
        kept = make_ref("post", "kept")

        root = await comment_service.add_comment(doomed, "a", make_user())
        await comment_service.add_comment(doomed, "b", make_user(), parent_id=root.id)
        await comment_service.add_comment(kept, "c", make_user())

        assert await comment_service.destroy_forest(doomed) == 2
        assert await comment_repo.count_by_scope(doomed) == 0
        assert await comment_repo.count_by_scope(kept) == 1


class TestVerifyForest:
    """Tests for forest verification."""

    @pytest.mark.asyncio
    async def test_verify_reports_comment_count(self, unit_env):
        comment_service = await unit_env.get(CommentService)
        scope = make_ref()
        root = await comment_service.add_comment(scope, "r", make_user())
        await comment_service.add_comment(scope, "c", make_user(), parent_id=root.id)

        assert await comment_service.verify_forest(scope) == 2

    @pytest.mark.asyncio
    async def test_corrupted_forest_is_detected(self):
        repository = InMemoryCommentRepository()
        scope = make_ref()
        await repository.insert(make_comment(1, 4, scope=scope))
        await repository.insert(make_comment(3, 6, scope=scope))
        service = _service(repository)

        with pytest.raises(ConsistencyError):
            await service.verify_forest(scope)

    @pytest.mark.asyncio
    async def test_verified_mutation_is_rolled_back_on_corruption(self):
        """With verification on, a mutation on a corrupt forest is undone."""
        repository = InMemoryCommentRepository()
        scope = make_ref()
        await repository.insert(make_comment(1, 2, scope=scope))
        await repository.insert(make_comment(5, 6, scope=scope))  # gap
        service = _service(repository, verify_mutations=True)

        with pytest.raises(ConsistencyError):
            await service.add_comment(scope, "new", make_user())

        assert await repository.count_by_scope(scope) == 2
