"""DuckDB MVT (Mapbox Vector Tiles) SQL query builder and executor.

This module generates DuckDB spatial SQL that produces one Mapbox Vector
Tile per request, runs it, and extracts the binary payload. The generated
SQL uses ST_TileEnvelope for the tile bounds, ST_AsMVTGeom to move
geometries into tile-local coordinates, and ST_AsMVT to assemble the tile.

The SQL expects geometries already stored in EPSG:3857 (Web Mercator).
DuckDB's tile functions only accept the table and geometry column as
identifiers, so they cannot be bound parameters; both are validated with
duckdb_tiles.utils.identifiers before they are interpolated. Tile
coordinates are forced through int(), property columns are quoted as
identifiers and the layer name is quoted as a string literal.

ST_AsMVTGeom flips the Y axis when moving from Web Mercator to tile space,
which reverses polygon winding. MVT v2 requires exterior rings to be
clockwise in tile space, so the geometry is passed through ST_Reverse
after the conversion.

Example:
    Build and execute the tile query:
        >>> from duckdb_tiles.services import tiles_duckdb
        >>> sql = tiles_duckdb.build_mvt_sql(
        ...     "roads", "geometry", "roads", ["id", "name"], 10, 512, 512
        ... )
        >>> mvt = tiles_duckdb.fetch_tile(conn, sql)  # raw, uncompressed

    The generated SQL:
     - Filters rows with ST_Intersects against ST_TileEnvelope(z, x, y)
     - Converts geometry to tile space with ST_AsMVTGeom
     - Corrects ring winding with ST_Reverse
     - Returns MVT binary data via ST_AsMVT, tagged with the layer name
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import duckdb

from duckdb_tiles.core import errors
from duckdb_tiles.utils import identifiers

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

MVT_GEOMETRY_KEY = "geometry"


def build_mvt_sql(
    table: str,
    geometry_column: str,
    layer_name: str,
    property_columns: Sequence[str],
    z: int,
    x: int,
    y: int,
) -> str:
    """Return an ST_AsMVT query for one tile.

    Every row whose geometry intersects the tile envelope becomes one
    feature: a struct holding the tile-space geometry under ``"geometry"``
    and each property column under its own name.

    Args:
        table: Source table name (validated here).
        geometry_column: Geometry column name (validated here).
        layer_name: Layer name written into the tile.
        property_columns: Non-geometry columns copied as feature attributes.
            A column named ``geometry`` (in any case) is left out.
        z: Zoom level.
        x: Tile X coordinate.
        y: Tile Y coordinate.

    Returns:
        SQL query string producing a single ``mvt`` BLOB column.

    Raises:
        InvalidIdentifierError: If ``table`` or ``geometry_column`` is not a
            plain identifier.
    """
    table = identifiers.validate_identifier(table, "table")
    geometry = identifiers.quote_identifier(
        identifiers.validate_identifier(geometry_column, "column")
    )
    envelope = f"ST_TileEnvelope({int(z)}, {int(x)}, {int(y)})"

    fields = [
        f'"{MVT_GEOMETRY_KEY}": ST_Reverse(ST_AsMVTGeom(t.{geometry}, '
        f"ST_Extent({envelope})))"
    ]
    for column in property_columns:
        # struct keys are case-insensitive; the feature geometry owns this one
        if column.lower() == MVT_GEOMETRY_KEY:
            logger.debug("Skipping property column %r", column)
            continue
        quoted = identifiers.quote_identifier(column)
        fields.append(f"{quoted}: t.{quoted}")

    return f"""
SELECT ST_AsMVT({{{", ".join(fields)}}}, {identifiers.quote_literal(layer_name)}) AS mvt
FROM "{table}" t
WHERE ST_Intersects(t.{geometry}, {envelope})
""".strip()


def extract_blob(value: object) -> bytes:
    """Return the raw bytes of a BLOB value, or ``b""`` when absent."""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)

    payload = getattr(value, "bytes", None)
    if payload is None:
        return b""
    return bytes(payload)


def fetch_tile(conn: duckdb.DuckDBPyConnection, sql: str) -> bytes:
    """Execute a tile query and return the uncompressed MVT payload.

    A query matching no rows is not an error; it yields ``b""``.

    Raises:
        QueryError: If DuckDB fails to execute the query.
    """
    logger.debug("Tile query: %s", sql)
    try:
        row = conn.execute(sql).fetchone()
    except duckdb.Error as exc:
        raise errors.QueryError(f"Tile query failed: {exc}") from exc

    if not row:
        return b""
    return extract_blob(row[0])
