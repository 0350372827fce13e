"""XYZ vector tile endpoints backed by a DuckDB tile source.

This module provides REST API endpoints serving Mapbox Vector Tiles and a
TileJSON document for the source configured by ``SOURCE_URI``. Tiles are
generated on demand by DuckDB and returned gzip-compressed with
``Content-Encoding: gzip``, as MapLibre and Mapbox clients expect.

All tiles are addressed in EPSG:3857 (Web Mercator) XYZ scheme; TileJSON
bounds are reported in EPSG:4326.

Example:
    Request a vector tile:
        >>> response = client.get("/tiles/10/512/512.pbf")
        >>> # Returns gzip-compressed MVT data

    Request the TileJSON document:
        >>> response = client.get("/tiles/tile.json")
        >>> response.json()["tiles"]
        ['http://localhost:8000/tiles/{z}/{x}/{y}.pbf']
"""

from __future__ import annotations

from typing import Any

import fastapi
from fastapi import responses

from duckdb_tiles.core import config, errors
from duckdb_tiles.source import DuckDBSource

TILEJSON_VERSION = "3.0.0"

router = fastapi.APIRouter(prefix="/tiles", tags=["tiles"])


def _get_source(request: fastapi.Request) -> DuckDBSource:
    """Resolve the tile source opened during application startup.

    Raises:
        HTTPException: If no source is configured (503).
    """
    source: DuckDBSource | None = getattr(request.app.state, "source", None)
    if source is None:
        raise fastapi.HTTPException(
            status_code=503,
            detail="No tile source configured",
        )

    return source


def _tile_url_template(base: str) -> str:
    """Return the XYZ URL template for tiles served under ``base``."""
    return f"{base.rstrip('/')}/tiles/{{z}}/{{x}}/{{y}}.pbf"


@router.get("/tile.json")
async def tilejson(
    source: DuckDBSource = fastapi.Depends(_get_source),  # noqa: B008
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> dict[str, Any]:
    """Describe the configured source as a TileJSON document.

    Args:
        source: Tile source (injected via FastAPI Depends).
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        TileJSON with bounds, center, zoom range, format, vector layers and
        the tile URL template.

    Raises:
        HTTPException: If the source table has no geometry (404) or the
            metadata query fails (500).

    Example:
        Use in MapLibre GL JS:
            >>> map.addSource('roads', {
            ...     type: 'vector',
            ...     url: 'http://api/tiles/tile.json'
            ... });
    """
    try:
        info = await source.get_info()
    except errors.NoDataError as exc:
        raise fastapi.HTTPException(status_code=404, detail=str(exc)) from exc
    except errors.QueryError as exc:
        raise fastapi.HTTPException(status_code=500, detail=str(exc)) from exc

    return {
        "tilejson": TILEJSON_VERSION,
        "name": source.layer_name,
        "tiles": [_tile_url_template(str(settings.tiles_base_url))],
        **info.to_tilejson(),
    }


@router.get("/{z}/{x}/{y}.pbf")
async def vector_tile(
    z: int = fastapi.Path(ge=0),
    x: int = fastapi.Path(ge=0),
    y: int = fastapi.Path(ge=0),
    source: DuckDBSource = fastapi.Depends(_get_source),  # noqa: B008
) -> responses.Response:
    """Render an XYZ vector tile from the DuckDB source.

    Tiles without features are returned as valid, empty MVT payloads
    rather than 404s, so clients do not retry them.

    Args:
        z: Zoom level.
        x: Tile X coordinate.
        y: Tile Y coordinate.
        source: Tile source (injected via FastAPI Depends).

    Returns:
        Gzip-compressed MVT with Content-Type
        ``application/vnd.mapbox-vector-tile`` and Content-Encoding gzip.

    Raises:
        HTTPException: If the tile query or its compression fails (500).

    Example:
        Use in MapLibre GL JS:
            >>> map.addSource('roads', {
            ...     type: 'vector',
            ...     tiles: ['http://api/tiles/{z}/{x}/{y}.pbf']
            ... });
    """
    try:
        tile = await source.get_tile(z, x, y)
    except (errors.QueryError, errors.EncodingError) as exc:
        raise fastapi.HTTPException(status_code=500, detail=str(exc)) from exc

    return responses.Response(
        content=tile.data,
        media_type=tile.headers["Content-Type"],
        headers=tile.transport_headers(),
    )
