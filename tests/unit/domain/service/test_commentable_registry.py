"""Unit tests for CommentableRegistry."""

import pytest

from commentable.domain.error import NotFoundError, ValidationError
from commentable.domain.service import CommentableRegistry, CommentableResolver
from tests.factories import make_ref


class EvenIds(CommentableResolver):
    async def exists(self, commentable_id):
        return int(commentable_id) % 2 == 0


class TestRegistry:
    """Tests for type registration and owner checks."""

    def test_types_from_configuration(self):
        registry = CommentableRegistry(types=["post", "photo"])

        assert registry.registered_types == ["photo", "post"]
        assert registry.is_registered("post")
        assert not registry.is_registered("video")

    def test_malformed_type_is_rejected(self):
        registry = CommentableRegistry()

        with pytest.raises(ValidationError):
            registry.register("not a type")

    def test_unknown_type_is_not_found(self):
        registry = CommentableRegistry(types=["post"])

        with pytest.raises(NotFoundError, match="Commentable type not found: video"):
            registry.ensure_registered(make_ref("video", "1"))

    @pytest.mark.asyncio
    async def test_type_without_resolver_accepts_any_id(self):
        registry = CommentableRegistry(types=["post"])

        await registry.ensure_exists(make_ref("post", "anything"))

    @pytest.mark.asyncio
    async def test_resolver_decides_existence(self):
        registry = CommentableRegistry()
        registry.register("post", EvenIds())

        await registry.ensure_exists(make_ref("post", "2"))
        with pytest.raises(NotFoundError, match="post:3"):
            await registry.ensure_exists(make_ref("post", "3"))
