"""DuckDB-backed vector tile source.

DuckDBSource turns a ``duckdb://`` URI into a long-lived tile source: it
resolves and validates the configuration, opens the database read-only with
the spatial extension, checks the schema, and then answers tile and
metadata requests until it is closed.

All engine work happens in a worker thread (``asyncio.to_thread``) under a
per-source ``asyncio.Lock``, so concurrent requests against one source never
run overlapping queries on its connection, even when a caller is cancelled
mid-query. Property columns and metadata are computed once per source;
concurrent first requests share a single query.

Example:
    Serve a tile and its metadata:
        >>> from duckdb_tiles.source import DuckDBSource
        >>> source = await DuckDBSource.create(
        ...     "duckdb://./data/osm.db?table=roads&layer=roads"
        ... )
        >>> tile = await source.get_tile(14, 8716, 5691)
        >>> tile.headers
        {'Content-Type': 'application/vnd.mapbox-vector-tile'}
        >>> info = await source.get_info()
        >>> error = await source.close()  # None on success, never raises
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from duckdb_tiles.core import config, errors
from duckdb_tiles.db import connection
from duckdb_tiles.db import models as db_models
from duckdb_tiles.services import encoding, metadata, tiles_duckdb
from duckdb_tiles.utils import identifiers, memo
from duckdb_tiles.utils import uri as uri_utils

if TYPE_CHECKING:
    from collections.abc import Callable

    import duckdb

logger = logging.getLogger(__name__)

PROTOCOL = "duckdb:"


async def _in_thread[T](func: Callable[..., T], *args: Any) -> T:
    """Run ``func(*args)`` in a worker thread that outlives cancellation.

    A cancelled caller still waits for the thread to finish before the
    CancelledError propagates, so a lock held around this call is not
    released while the connection is in use.
    """
    task = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        while not task.done():
            try:
                await asyncio.wait([task])
            except asyncio.CancelledError:
                continue
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Cancelled call failed", exc_info=task.exception())
        raise


class DuckDBSource:
    """A tile source reading one table of a DuckDB database.

    Attributes:
        path: Absolute location of the database file.
        table: Source table name.
        geometry_column: Geometry column name (``"geometry"`` by default).
        layer_name: Layer name written into tiles (the table by default).
        connection: Open DuckDB connection, None before initialize() and
            after close().
    """

    def __init__(
        self,
        uri: uri_utils.UriInput,
        settings: config.Settings | None = None,
    ) -> None:
        """Resolve ``uri`` without touching the database.

        Raises:
            MissingTableError: If the URI has no ``table`` parameter.
        """
        resolved = uri_utils.resolve_uri(uri)
        self.settings = settings or config.get_settings()
        self.path = resolved.path
        self.table = resolved.table
        self.geometry_column = resolved.geometry_column
        self.layer_name = resolved.layer_name
        self.connection: duckdb.DuckDBPyConnection | None = None

        self._lock = asyncio.Lock()
        self._columns: memo.AsyncOnce[list[str]] = memo.AsyncOnce()
        self._info: memo.AsyncOnce[db_models.SourceInfo] = memo.AsyncOnce()

    @classmethod
    async def create(
        cls,
        uri: uri_utils.UriInput,
        settings: config.Settings | None = None,
    ) -> DuckDBSource:
        """Construct and initialize a source in one step."""
        source = cls(uri, settings)
        await source.initialize()
        return source

    async def initialize(self) -> None:
        """Validate names, open the database and verify the schema.

        Steps run strictly in order and the first failure stops the
        sequence. If the schema check fails, the connection opened for it
        is closed again. Calling it on an initialized source does nothing.

        Raises:
            InvalidIdentifierError: If the table or geometry column name is
                unsafe.
            DatabaseConnectionError: If the database or extension fails to
                load.
            TableNotFoundError: If the table does not exist.
            ColumnNotFoundError: If the geometry column does not exist.
        """
        identifiers.validate_identifier(self.table, "table")
        identifiers.validate_identifier(self.geometry_column, "column")

        async with self._lock:
            if self.connection is not None:
                return
            await _in_thread(self._connect)

    def _connect(self) -> None:
        conn = connection.open_connection(self.path, self.settings)
        try:
            connection.verify_schema(conn, self.table, self.geometry_column)
        except BaseException:
            self._discard(conn)
            raise
        self.connection = conn

    @staticmethod
    def _discard(conn: duckdb.DuckDBPyConnection) -> None:
        try:
            connection.close_connection(conn)
        except Exception:
            logger.warning("Failed to close connection", exc_info=True)

    async def _run[T](self, func: Callable[..., T], *args: Any) -> T:
        """Run ``func(conn, *args)`` in a worker thread, one at a time."""
        async with self._lock:
            if self.connection is None:
                raise errors.QueryError("source is closed")
            return await _in_thread(func, self.connection, *args)

    async def _property_columns(self) -> list[str]:
        return await self._columns.get(
            lambda: self._run(
                connection.fetch_property_columns,
                self.table,
                self.geometry_column,
            )
        )

    async def _load_info(self) -> db_models.SourceInfo:
        bounds = await self._run(
            metadata.fetch_bounds, self.table, self.geometry_column
        )
        return metadata.build_source_info(bounds, self.layer_name)

    async def get_info(self) -> db_models.SourceInfo:
        """Return bounds, center, zoom range and layers of this source.

        The first successful result is cached; later calls return the same
        object without querying.

        Raises:
            NoDataError: If the table holds no non-NULL geometry.
            QueryError: If the bounds query fails.
        """
        return await self._info.get(self._load_info)

    async def get_tile(self, z: int, x: int, y: int) -> encoding.EncodedTile:
        """Render tile ``z/x/y`` as a gzip-compressed MVT.

        Coordinates are not range-checked; tiles outside the data (or the
        valid range for ``z``) come back as empty tiles.

        Raises:
            QueryError: If column discovery or the tile query fails.
            EncodingError: If compression fails.
        """
        columns = await self._property_columns()
        sql = tiles_duckdb.build_mvt_sql(
            self.table,
            self.geometry_column,
            self.layer_name,
            columns,
            z,
            x,
            y,
        )
        raw = await self._run(tiles_duckdb.fetch_tile, sql)
        return await asyncio.to_thread(encoding.encode_tile, raw)

    async def close(
        self,
        callback: Callable[[errors.CloseError | None], Any] | None = None,
    ) -> errors.CloseError | None:
        """Release the connection without raising.

        Safe to call repeatedly. If releasing fails, the connection is kept
        so a later call can try again.

        Args:
            callback: Optional function receiving the same result.

        Returns:
            None on success, otherwise a CloseError wrapping the failure.
        """
        result: errors.CloseError | None = None
        async with self._lock:
            conn = self.connection
            if conn is not None:
                try:
                    await _in_thread(connection.close_connection, conn)
                except Exception as exc:
                    logger.warning("Closing %s failed: %s", self.path, exc)
                    result = errors.CloseError(
                        f"Unable to close {self.path}: {exc}"
                    )
                    result.__cause__ = exc
                else:
                    self.connection = None
                    logger.info("Closed %s", self.path)

        if callback is not None:
            callback(result)
        return result


def register_protocols(registry: Any) -> None:
    """Register DuckDBSource under ``duckdb:`` in a host's protocol table.

    Args:
        registry: A TileSourceRegistry, or any mutable mapping of protocol
            keys to source factories.
    """
    protocols = getattr(registry, "protocols", registry)
    protocols[PROTOCOL] = DuckDBSource
