"""Bounds and TileJSON metadata for DuckDB tile sources.

Geometry is stored in EPSG:3857 (Web Mercator). Hosts want bounds in
EPSG:4326, so the bounds query reprojects every geometry with
``always_xy := true`` (longitude first) and aggregates the extent in a
single pass. Zoom range, format and the default center zoom are fixed.

Example:
    Compute metadata for a table:
        >>> from duckdb_tiles.services import metadata
        >>> bounds = metadata.fetch_bounds(conn, "roads", "geometry")
        >>> info = metadata.build_source_info(bounds, "roads")
        >>> info.center
        (4.49, 4.475, 12)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import duckdb

from duckdb_tiles.core import errors
from duckdb_tiles.db import models as db_models
from duckdb_tiles.utils import identifiers

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_CENTER_ZOOM = 12
MIN_ZOOM = 0
MAX_ZOOM = 14
TILE_FORMAT = "pbf"
SOURCE_CRS = "EPSG:3857"
BOUNDS_CRS = "EPSG:4326"


def build_bounds_sql(table: str, geometry_column: str) -> str:
    """Return the extent query for ``table`` in geographic coordinates.

    Both names are validated here as well as at source construction; they
    are embedded as quoted identifiers.
    """
    table = identifiers.validate_identifier(table, "table")
    geometry = identifiers.quote_identifier(
        identifiers.validate_identifier(geometry_column, "column")
    )
    return f"""
SELECT
  ST_XMin(extent) AS minx,
  ST_YMin(extent) AS miny,
  ST_XMax(extent) AS maxx,
  ST_YMax(extent) AS maxy
FROM (
  SELECT ST_Extent_Agg(
    ST_Transform({geometry}, '{SOURCE_CRS}', '{BOUNDS_CRS}', always_xy := true)
  ) AS extent
  FROM "{table}"
)
""".strip()


def parse_bounds(row: Sequence[object] | None) -> db_models.BBox:
    """Turn a bounds row into a BBox.

    Raises:
        NoDataError: If there is no row or any component is NULL, which is
            what an empty table or one with only NULL geometry yields.
    """
    if not row:
        raise errors.NoDataError("No data found in table")

    if len(row) != 4 or any(value is None for value in row):
        raise errors.NoDataError(
            "Unable to calculate bounds - table may be empty or contain "
            "invalid geometry data"
        )

    minx, miny, maxx, maxy = (float(value) for value in row)  # type: ignore[arg-type]
    return (minx, miny, maxx, maxy)


def fetch_bounds(
    conn: duckdb.DuckDBPyConnection,
    table: str,
    geometry_column: str,
) -> db_models.BBox:
    """Run the bounds query and return (minlon, minlat, maxlon, maxlat)."""
    sql = build_bounds_sql(table, geometry_column)
    logger.debug("Bounds query for %s: %s", table, sql)
    try:
        row = conn.execute(sql).fetchone()
    except duckdb.Error as exc:
        raise errors.QueryError(f"Bounds query failed: {exc}") from exc

    return parse_bounds(row)


def build_source_info(
    bounds: db_models.BBox,
    layer_name: str,
) -> db_models.SourceInfo:
    """Assemble SourceInfo around ``bounds`` with a centered default view."""
    center_lon = (bounds[0] + bounds[2]) / 2
    center_lat = (bounds[1] + bounds[3]) / 2

    return db_models.SourceInfo(
        bounds=bounds,
        center=(center_lon, center_lat, DEFAULT_CENTER_ZOOM),
        vector_layers=[db_models.VectorLayer(id=layer_name)],
        minzoom=MIN_ZOOM,
        maxzoom=MAX_ZOOM,
        format=TILE_FORMAT,
    )
