"""Mock persistence providers for testing."""

from dishka import Scope, provide

from commentable.config import Settings
from commentable.domain.repository import CommentRepository
from commentable.persistence.repository.inmemory import InMemoryCommentRepository
from commentable.util.di.infrastructure.persistence import PersistenceProvider


class MockPersistenceProvider(PersistenceProvider):
    """Mock persistence provider using an in-memory repository.

    APP scope so that data survives across requests of one test app; each
    test builds its own container, which keeps tests isolated.
    """

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_comment_repository(self, settings: Settings) -> CommentRepository:
        """Provide in-memory comment repository."""
        return InMemoryCommentRepository(
            lock_timeout_seconds=settings.persistence.lock_timeout_seconds
        )
