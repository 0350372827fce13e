"""DuckDB connection lifecycle and schema introspection.

This module owns the synchronous conversations with the DuckDB engine that
are not tile queries: opening a read-only connection with the spatial
extension loaded, checking that the configured table and geometry column
exist, discovering property columns, and releasing the connection.

All catalog lookups bind the names as query parameters, so they are safe
for unvalidated input. Tile queries cannot do this (see
duckdb_tiles.services.tiles_duckdb), which is why names are validated
before they get that far.

The functions block; DuckDBSource runs them in a worker thread while
holding its per-source lock.

Example:
    Open and verify a database:
        >>> from duckdb_tiles.core.config import get_settings
        >>> from duckdb_tiles.db import connection
        >>> conn = connection.open_connection("/data/osm.db", get_settings())
        >>> connection.verify_schema(conn, "roads", "geometry")
        >>> connection.fetch_property_columns(conn, "roads", "geometry")
        ['id', 'name', 'highway']
        >>> connection.close_connection(conn)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import duckdb

from duckdb_tiles.core import errors

if TYPE_CHECKING:
    from duckdb_tiles.core import config

logger = logging.getLogger(__name__)

SPATIAL_EXTENSION = "spatial"

TABLE_EXISTS_SQL = """
SELECT table_name
FROM information_schema.tables
WHERE table_name = ?
"""

COLUMN_EXISTS_SQL = """
SELECT column_name
FROM information_schema.columns
WHERE table_name = ? AND column_name = ?
"""

PROPERTY_COLUMNS_SQL = """
SELECT column_name
FROM information_schema.columns
WHERE table_name = ? AND column_name != ?
ORDER BY ordinal_position
"""


def open_connection(
    path: str,
    settings: config.Settings,
) -> duckdb.DuckDBPyConnection:
    """Open ``path`` read-only and load the spatial extension.

    Args:
        path: Database file location.
        settings: Application settings; ``install_extensions`` controls
            whether the extension is installed before loading.

    Returns:
        An open DuckDB connection with spatial functions available.

    Raises:
        DatabaseConnectionError: If the database cannot be opened or the
            extension cannot be loaded. A connection that was opened is
            closed before the error propagates.
    """
    try:
        conn = duckdb.connect(path, read_only=True)
    except duckdb.Error as exc:
        raise errors.DatabaseConnectionError(
            f"Unable to open database {path}: {exc}"
        ) from exc

    try:
        if settings.install_extensions:
            conn.install_extension(SPATIAL_EXTENSION)
        conn.load_extension(SPATIAL_EXTENSION)
    except duckdb.Error as exc:
        conn.close()
        raise errors.DatabaseConnectionError(
            f"Unable to load {SPATIAL_EXTENSION} extension: {exc}"
        ) from exc

    logger.info("Opened %s read-only", path)
    return conn


def verify_schema(
    conn: duckdb.DuckDBPyConnection,
    table: str,
    geometry_column: str,
) -> None:
    """Check that ``table`` exists and has ``geometry_column``.

    Raises:
        TableNotFoundError: If the catalog has no such table.
        ColumnNotFoundError: If the table has no such column.
        QueryError: If the catalog query itself fails.
    """
    try:
        tables = conn.execute(TABLE_EXISTS_SQL, [table]).fetchall()
        if not tables:
            raise errors.TableNotFoundError(f"Table does not exist: {table}")

        columns = conn.execute(
            COLUMN_EXISTS_SQL, [table, geometry_column]
        ).fetchall()
    except duckdb.Error as exc:
        raise errors.QueryError(f"Schema check failed: {exc}") from exc

    if not columns:
        raise errors.ColumnNotFoundError(
            f"Geometry column does not exist: {geometry_column}"
        )


def fetch_property_columns(
    conn: duckdb.DuckDBPyConnection,
    table: str,
    geometry_column: str,
) -> list[str]:
    """Return every column of ``table`` except the geometry, in table order."""
    try:
        rows = conn.execute(
            PROPERTY_COLUMNS_SQL, [table, geometry_column]
        ).fetchall()
    except duckdb.Error as exc:
        raise errors.QueryError(f"Column discovery failed: {exc}") from exc

    return [str(row[0]) for row in rows]


def close_connection(conn: duckdb.DuckDBPyConnection) -> None:
    """Release ``conn``. Errors from the driver propagate to the caller."""
    conn.close()
