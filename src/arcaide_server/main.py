"""
Arcaide Server Application Entry Point

This module defines the FastAPI application factory, registers all routers,
configures global exception handling and owns the database lifecycle.

Design Goals
------------
- Deterministic startup
- Explicit dependency initialization order
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app(settings)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI

from .config import Settings, get_settings
from .core.errors import (
    EntityNotFoundError,
    InvalidDocumentError,
    InvalidHierarchyError,
    SlugConflictError,
    conflict_handler,
    invalid_document_handler,
    invalid_hierarchy_handler,
    not_found_handler,
    unhandled_exception_handler,
)
from .db import create_engine_from_settings, create_session_factory, init_db

from .api import (
    arc_routes,
    campaign_routes,
    health_routes,
    search_routes,
    thing_routes,
)


logger = logging.getLogger("arcaide.app")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    settings : Settings, optional
        Explicit configuration. Falls back to the environment
        (``ARCAIDE_*`` variables and ``.env``).

    Returns
    -------
    FastAPI
        Fully configured FastAPI application. The engine and session
        factory are created by the lifespan hook, not here.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting arcaide-server")

        # Touch the secret so a missing value fails at startup
        _ = settings.jwt_secret.get_secret_value()

        engine = create_engine_from_settings(settings)
        await init_db(engine)

        app.state.settings = settings
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)

        logger.info(
            "Database ready (fuzzy backend %s)",
            "enabled" if settings.fuzzy_backend_enabled else "disabled",
        )

        try:
            yield
        finally:
            logger.info("Shutting down arcaide-server")
            await engine.dispose()

    app = FastAPI(
        title="arcaide-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(EntityNotFoundError, not_found_handler)
    app.add_exception_handler(SlugConflictError, conflict_handler)
    app.add_exception_handler(InvalidHierarchyError, invalid_hierarchy_handler)
    app.add_exception_handler(InvalidDocumentError, invalid_document_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(campaign_routes.router)
    app.include_router(arc_routes.router)
    app.include_router(thing_routes.router)
    app.include_router(search_routes.router)

    return app


# ---------------------------------------------------------------------
# Console Entry Point
# ---------------------------------------------------------------------

def run() -> None:
    """
    Serve the application with Uvicorn.

    The app is built through the factory so importing this module never
    reads configuration. ``uvicorn --factory arcaide_server.main:create_app``
    is equivalent.
    """
    settings = get_settings()
    uvicorn.run(
        "arcaide_server.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
