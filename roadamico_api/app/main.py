"""
Main entrypoint for the RoadAmico API.

This module assembles the FastAPI application, sets up logging and
includes the versioned routers.  ``create_app`` builds and configures
the app, which is then instantiated at module import time as ``app``
so it can be served directly::

    uvicorn roadamico_api.app.main:app --reload
"""

import logging
import sqlite3
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.logging_config import setup_logging
from .api.v1.router import router as v1_router
from .core.db import init_db


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Creates the database file if needed and applies pending migrations.
    init_db()
    yield


async def storage_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
    """Answer storage failures with an opaque 500 and log the details."""
    logger.error(
        "Storage error while handling %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.add_exception_handler(sqlite3.Error, storage_error_handler)
    app.include_router(v1_router, prefix=settings.api_prefix)
    return app


app = create_app()
