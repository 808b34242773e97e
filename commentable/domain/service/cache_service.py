"""Cache layer for aggregate comment reads.

Read aggregates are memoized per commentable under keys that share the
commentable's prefix:

    {namespace}:{type_tag}:{id}/comments/{generation}/{operation}/{param=value,...}

Every mutation of a forest bumps the forest's generation counter, stored at
`{namespace}:{type_tag}:{id}/gen`, then deletes every key under the prefix.
A read that started before the bump stores its result under the old
generation, which no later read looks up.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Awaitable, Callable, Optional, TypeVar

import logfire
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from commentable.domain.error import CacheUnavailableError
from commentable.domain.value import CommentableRef

from .base import Service

T = TypeVar("T")


class CacheClient(ABC):
    """Generic key/value cache interface.

    Implementations raise CacheUnavailableError when the backend fails.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get a value.

        Args:
            key: Cache key

        Returns:
            Stored value, or None when missing or expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        """Store a value.

        Args:
            key: Cache key
            value: Serialized value
            ttl: Time to live in seconds
        """
        pass

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increment a counter that never expires.

        A missing counter starts at 0.

        Args:
            key: Counter key

        Returns:
            Value after the increment
        """
        pass

    @abstractmethod
    async def delete_by_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix.

        Args:
            prefix: Literal key prefix

        Returns:
            Number of deleted keys
        """
        pass


@lru_cache(maxsize=None)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


class CommentCacheService(Service):
    """Memoizes aggregate reads per commentable and invalidates them."""

    def __init__(
        self,
        cache_client: CacheClient,
        ttl_seconds: int = 3600,
        namespace: str = "commentable",
    ) -> None:
        """Initialize cache service.

        Args:
            cache_client: Cache backend
            ttl_seconds: Lifetime of cached aggregates
            namespace: Prefix shared by all keys of this service
        """
        self.cache_client = cache_client
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace

    def scope_prefix(self, scope: CommentableRef) -> str:
        """Prefix shared by every cached aggregate of a commentable."""
        return f"{self.namespace}:{scope.type_tag}:{scope.id}/comments/"

    def generation_key(self, scope: CommentableRef) -> str:
        """Key of the commentable's generation counter (outside its prefix)."""
        return f"{self.namespace}:{scope.type_tag}:{scope.id}/gen"

    def key_for(
        self,
        scope: CommentableRef,
        operation: str,
        generation: int = 0,
        **params: Any,
    ) -> str:
        """Cache key for one aggregate read."""
        rendered = ",".join(
            f"{name}={'all' if value is None else value}"
            for name, value in sorted(params.items())
        )
        return f"{self.scope_prefix(scope)}{generation}/{operation}/{rendered}"

    async def generation(self, scope: CommentableRef) -> int:
        """Current generation of a commentable's aggregates (0 before any bump)."""
        raw = await self.cache_client.get(self.generation_key(scope))
        return int(raw) if raw is not None else 0

    async def fetch(
        self,
        scope: CommentableRef,
        operation: str,
        result_type: Any,
        compute: Callable[[], Awaitable[T]],
        **params: Any,
    ) -> T:
        """Return a cached aggregate, computing and storing it on a miss.

        The key is bound to the generation read before computing, so a
        value computed while a mutation commits is never served after it.
        Cache failures never fail the read: the aggregate is computed from
        the store instead.

        Args:
            scope: Commentable owning the aggregate
            operation: Aggregate name (part of the key)
            result_type: Type used to (de)serialize the value
            compute: Coroutine factory computing the value from the store
            **params: Pagination/depth parameters (part of the key)

        Returns:
            The aggregate value
        """
        adapter = _adapter(result_type)

        try:
            generation = await self.generation(scope)
            key = self.key_for(scope, operation, generation, **params)
            raw = await self.cache_client.get(key)
        except CacheUnavailableError as e:
            logfire.warn(
                "Cache read failed, querying store",
                commentable=str(scope),
                operation=operation,
                error=str(e),
            )
            return await compute()

        if raw is not None:
            try:
                value = adapter.validate_json(raw)
                logfire.debug("Cache hit", key=key)
                return value
            except PydanticValidationError:
                logfire.warn("Discarding undecodable cache entry", key=key)

        value = await compute()
        try:
            await self.cache_client.set(
                key, adapter.dump_json(value).decode("utf-8"), self.ttl_seconds
            )
        except CacheUnavailableError as e:
            logfire.warn("Cache write failed", key=key, error=str(e))
        return value

    async def invalidate(self, scope: CommentableRef) -> int:
        """Retire every cached aggregate of a commentable.

        Bumps the generation first, then deletes the retired entries. Runs
        after the mutation committed, so a failure is logged and reported as
        zero deletions instead of failing the mutation.

        Returns:
            Number of deleted cache entries
        """
        prefix = self.scope_prefix(scope)
        with logfire.span("comment_cache.invalidate", prefix=prefix):
            try:
                generation = await self.cache_client.incr(self.generation_key(scope))
                deleted = await self.cache_client.delete_by_prefix(prefix)
            except CacheUnavailableError as e:
                logfire.error(
                    "Cache invalidation failed, entries expire with their TTL",
                    prefix=prefix,
                    error=str(e),
                )
                return 0
            logfire.info(
                "Cache invalidated",
                prefix=prefix,
                generation=generation,
                deleted=deleted,
            )
            return deleted
