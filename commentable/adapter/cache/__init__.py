"""Cache client implementations."""

from .memory import InMemoryCacheClient
from .redis_client import RedisCacheClient

__all__ = ["InMemoryCacheClient", "RedisCacheClient"]
