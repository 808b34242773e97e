"""Domain layer DI providers."""

from dishka import Scope, provide

from commentable.config import Settings
from commentable.domain.repository import CommentRepository
from commentable.domain.service import (
    CacheClient,
    CommentableRegistry,
    CommentCacheService,
    CommentQueryService,
    CommentService,
)
from commentable.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Services using the repository are REQUEST-scoped to align with the
    session lifecycle. The registry and cache layer live for the app.
    """

    scope = Scope.REQUEST

    @provide(scope=Scope.APP)
    def get_commentable_registry(self, settings: Settings) -> CommentableRegistry:
        """Provide registry of commentable types from configuration.

        Resolvers checking that an owner exists can be registered on the
        returned instance at startup.
        """
        return CommentableRegistry(types=settings.commentables.types)

    @provide(scope=Scope.APP)
    def get_cache_service(
        self, cache_client: CacheClient, settings: Settings
    ) -> CommentCacheService:
        """Provide aggregate cache layer."""
        return CommentCacheService(
            cache_client=cache_client,
            ttl_seconds=settings.cache.ttl_seconds,
            namespace=settings.cache.namespace,
        )

    @provide
    def get_comment_service(
        self,
        comment_repository: CommentRepository,
        cache_service: CommentCacheService,
        registry: CommentableRegistry,
        settings: Settings,
    ) -> CommentService:
        """Provide comment mutation service."""
        return CommentService(
            comment_repository=comment_repository,
            cache_service=cache_service,
            registry=registry,
            verify_mutations=settings.persistence.verify_mutations,
        )

    @provide
    def get_query_service(
        self,
        comment_repository: CommentRepository,
        cache_service: CommentCacheService,
        registry: CommentableRegistry,
        settings: Settings,
    ) -> CommentQueryService:
        """Provide comment query service."""
        return CommentQueryService(
            comment_repository=comment_repository,
            cache_service=cache_service,
            registry=registry,
            max_items=settings.pagination.max_items,
        )
