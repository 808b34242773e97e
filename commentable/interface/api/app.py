"""FastAPI application."""

from typing import Optional

from dishka import AsyncContainer
from fastapi import FastAPI

from commentable import __version__
from commentable.interface.api.routes import comments, health
from commentable.interface.error import register_error_handlers
from commentable.util.di.container import create_container, setup_di
from commentable.util.observability import instrument_fastapi


def create_app(
    container: Optional[AsyncContainer] = None, instrument: bool = True
) -> FastAPI:
    """Create FastAPI application.

    Logfire should be configured before calling this function;
    scripts/start_app.py handles this.

    Args:
        container: DI container (production container when omitted)
        instrument: Trace requests with Logfire
    """
    app_instance = FastAPI(
        title="Commentable API",
        description="Threaded comments for any commentable entity, stored as nested sets",
        version=__version__,
    )

    if instrument:
        instrument_fastapi(app_instance)

    setup_di(app_instance, container or create_container())
    register_error_handlers(app_instance)

    app_instance.include_router(health.router)
    app_instance.include_router(comments.router)

    return app_instance
