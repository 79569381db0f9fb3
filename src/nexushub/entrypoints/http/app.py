"""FastAPI application factory.

`create_app` binds an `AppContainer` to the app; every request then gets its
own unit of work and message bus from it. Routes are plain ``def`` functions
and run in FastAPI's thread pool.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from nexushub import __version__
from nexushub.bootstrap import AppContainer, bootstrap

from .errors import register_exception_handlers
from .routers import ROUTERS

logger = logging.getLogger(__name__)


def create_app(container: AppContainer | None = None) -> FastAPI:
    """Build the HTTP API.

    Args:
        container: Application wiring. Defaults to `bootstrap()`, which reads
            ``NEXUSHUB_DB_URL``.
    """
    app = FastAPI(title="NexusHub", version=__version__)
    app.state.container = container or bootstrap()
    register_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)
    logger.debug("Created NexusHub app with %d routes", len(app.routes))
    return app
