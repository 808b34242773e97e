"""Integration tests for PostgresCommentRepository.

These tests run the mutation protocol against a real PostgreSQL database
(for example the docker-compose one). Point DATABASE__URL at it to enable
them; the comments table is created if missing and emptied before each test.
"""

import asyncio
import os
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from commentable.domain.error import NotFoundError
from commentable.domain.repository import CommentRepository
from commentable.domain.service import CommentService
from commentable.domain.value import CommentId
from commentable.persistence.tables import comments_table, metadata
from tests.di import build_test_container
from tests.factories import make_ref, make_user

pytestmark = pytest.mark.skipif(
    "DATABASE__URL" not in os.environ,
    reason="needs PostgreSQL (set DATABASE__URL)",
)

SCOPE = make_ref("post", "integration")


@pytest_asyncio.fixture
async def container():
    """Container with real PostgreSQL persistence and a clean table."""
    container = build_test_container(unmock={"persistence"})
    engine = await container.get(AsyncEngine)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(comments_table.delete())

    yield container

    await container.close()


async def _add(container, body, parent_id=None):
    async with container() as request:
        service = await request.get(CommentService)
        return await service.add_comment(SCOPE, body, make_user(), parent_id)


async def _forest(container):
    async with container() as request:
        repository = await request.get(CommentRepository)
        return await repository.find_forest(SCOPE)


class TestCommentRepositoryIntegration:
    """Integration tests for PostgresCommentRepository."""

    @pytest.mark.asyncio
    async def test_replies_shift_bounds_in_database(self, container):
        # Arrange
        root = await _add(container, "root")
        first = await _add(container, "first", root.id)

        # Act
        await _add(container, "second", root.id)
        await _add(container, "nested", first.id)

        # Assert
        forest = await _forest(container)
        assert [(c.body, c.left_bound, c.right_bound) for c in forest] == [
            ("root", 1, 8),
            ("first", 2, 5),
            ("nested", 3, 4),
            ("second", 6, 7),
        ]

    @pytest.mark.asyncio
    async def test_delete_subtree_closes_gap(self, container):
        root = await _add(container, "root")
        first = await _add(container, "first", root.id)
        await _add(container, "nested", first.id)
        await _add(container, "second", root.id)
        await _add(container, "other root")

        async with container() as request:
            service = await request.get(CommentService)
            deleted = await service.delete_comment(SCOPE, first.id)

        forest = await _forest(container)
        assert deleted == 2
        assert [(c.body, c.left_bound, c.right_bound) for c in forest] == [
            ("root", 1, 4),
            ("second", 2, 3),
            ("other root", 5, 6),
        ]

    @pytest.mark.asyncio
    async def test_concurrent_replies_keep_forest_consistent(self, container):
        """Mutations in separate sessions are serialized by the advisory lock."""
        root = await _add(container, "root")

        await asyncio.gather(
            *(_add(container, f"reply {i}", root.id) for i in range(10))
        )

        async with container() as request:
            service = await request.get(CommentService)
            assert await service.verify_forest(SCOPE) == 11

        forest = await _forest(container)
        assert (forest[0].left_bound, forest[0].right_bound) == (1, 22)

    @pytest.mark.asyncio
    async def test_failed_reply_rolls_back(self, container):
        await _add(container, "root")
        before = await _forest(container)

        with pytest.raises(NotFoundError):
            await _add(container, "orphan", parent_id=CommentId(uuid4()))

        assert await _forest(container) == before
