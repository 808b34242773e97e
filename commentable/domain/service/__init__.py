"""Domain services."""

from .base import Service
from .cache_service import CacheClient, CommentCacheService
from .comment_query_service import CommentQueryService
from .comment_service import CommentService
from .commentable_registry import CommentableRegistry, CommentableResolver
from .threads import CommentThreads

__all__ = [
    "CacheClient",
    "CommentCacheService",
    "CommentQueryService",
    "CommentService",
    "CommentThreads",
    "CommentableRegistry",
    "CommentableResolver",
    "Service",
]
