"""
Main entrypoint for the Event Hub API.

This module assembles the FastAPI application, sets up logging and
error handling, and includes the versioned routers.  ``create_app``
builds and configures the app, which is instantiated at module import
time as ``app`` so it can be served with::

    uvicorn event_hub_api.app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import get_database_path, init_db
from .core.errors import install_exception_handlers
from .core.logging_config import setup_logging


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Apply migrations at startup; creates the database file if needed.
    init_db()
    logger.info("%s %s started (database: %s)", settings.project_name, settings.api_version, get_database_path())
    yield


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        lifespan=lifespan,
    )
    install_exception_handlers(app)
    app.include_router(v1_router, prefix="/api/v1")
    return app


app = create_app()
