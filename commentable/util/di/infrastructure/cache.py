"""Cache infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide

from commentable.adapter.cache import RedisCacheClient
from commentable.config import Settings
from commentable.domain.service import CacheClient
from commentable.util.di.base import ProviderBase
from commentable.util.observability import instrument_redis


class CacheProvider(ProviderBase):
    """Cache component base."""

    __mock_component__ = "cache"


class ProdCacheProvider(CacheProvider):
    """Production cache provider using Redis."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_cache_client(self, settings: Settings) -> AsyncIterator[CacheClient]:
        """Provide Redis cache client, closed when the app shuts down."""
        instrument_redis()
        client = RedisCacheClient.from_url(settings.cache.url)
        yield client
        await client.close()
