"""Mock providers for testing."""

from .cache import MockCacheProvider
from .persistence import MockPersistenceProvider
from .container import build_test_container

__all__ = [
    "MockCacheProvider",
    "MockPersistenceProvider",
    "build_test_container",
]
