"""FastAPI application entrypoint and configuration.

This module provides the FastAPI application factory that opens the DuckDB
tile source named by ``SOURCE_URI`` for the lifetime of the app, sets up
CORS middleware, includes the tiles router and exposes a health check
endpoint for monitoring.

Example:
    The application can be run with uvicorn:
        $ SOURCE_URI="duckdb:///data/osm.db?table=roads" \\
        $     uvicorn duckdb_tiles.main:app

    Or imported and used programmatically:
        >>> from duckdb_tiles.main import create_app
        >>> app = create_app()
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

import fastapi
from fastapi.middleware import cors

from duckdb_tiles import registry, source
from duckdb_tiles.api import tiles
from duckdb_tiles.core import config, logging_setup

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


def build_registry() -> registry.TileSourceRegistry:
    """Return a registry with every bundled tile source registered."""
    tile_sources = registry.TileSourceRegistry()
    source.register_protocols(tile_sources)
    return tile_sources


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
    """Open the configured tile source on startup and close it on shutdown."""
    settings = config.get_settings()
    app.state.source = None
    if settings.source_uri:
        app.state.source = await build_registry().load(
            settings.source_uri, settings
        )
        logger.info("Serving %s", settings.source_uri)

    try:
        yield
    finally:
        if app.state.source is not None:
            error = await app.state.source.close()
            if error is not None:
                logger.error("Tile source did not close cleanly: %s", error)
            app.state.source = None


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Configures logging, sets up CORS middleware from settings, includes the
    tiles router and adds a health check endpoint.

    Returns:
        Configured FastAPI application instance ready for ASGI server.
    """
    settings = config.get_settings()
    logging_setup.configure_logging(settings.log_level)
    app = fastapi.FastAPI(
        title="DuckDB Tiles",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(tiles.router)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" if the service is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
