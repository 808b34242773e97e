"""In-process cache client for tests and single-process deployments."""

import math
import time
from typing import Callable

from commentable.domain.service.cache_service import CacheClient


class InMemoryCacheClient(CacheClient):
    """Dict-backed cache with per-key expiry.

    Expired entries are dropped lazily when read or listed.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[str, float]] = {}
        self._clock = clock

    def _alive(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry[1] <= self._clock():
            del self._entries[key]
            return False
        return True

    async def get(self, key: str) -> str | None:
        if not self._alive(key):
            return None
        return self._entries[key][0]

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._entries[key] = (value, self._clock() + ttl)

    async def incr(self, key: str) -> int:
        value = int(self._entries[key][0]) + 1 if self._alive(key) else 1
        self._entries[key] = (str(value), math.inf)
        return value

    async def delete_by_prefix(self, prefix: str) -> int:
        doomed = [key for key in list(self._entries) if key.startswith(prefix)]
        live = sum(1 for key in doomed if self._alive(key))
        for key in doomed:
            self._entries.pop(key, None)
        return live

    def keys(self) -> list[str]:
        """Keys of unexpired entries."""
        return [key for key in list(self._entries) if self._alive(key)]
