"""Error taxonomy for DuckDB tile sources.

Every failure a tile source can report derives from TileSourceError, so a
host can catch the whole family in one place and map individual subclasses
to transport-level outcomes (for example HTTP status codes).

Engine exceptions raised by the duckdb driver are never exposed directly;
they are chained onto one of these errors with ``raise ... from exc``.

Example:
    Handle a missing dataset distinctly from a broken query:
        >>> from duckdb_tiles.core import errors
        >>> try:
        ...     info = await source.get_info()
        ... except errors.NoDataError:
        ...     info = None
"""


class TileSourceError(RuntimeError):
    """Base class for every error raised by a tile source."""


class MissingTableError(TileSourceError):
    """The source URI carries no ``table`` parameter."""


class InvalidIdentifierError(TileSourceError, ValueError):
    """A table or column name contains characters outside [A-Za-z0-9_].

    These names are interpolated into SQL as identifiers, so anything that
    is not a plain ASCII word is rejected before it can reach a query.
    """


class DatabaseConnectionError(TileSourceError):
    """The database could not be opened or the spatial extension loaded."""


class TableNotFoundError(TileSourceError):
    """The configured table is absent from the database catalog."""


class ColumnNotFoundError(TileSourceError):
    """The configured geometry column is absent from the table."""


class NoDataError(TileSourceError):
    """Bounds cannot be computed because the table holds no geometry."""


class QueryError(TileSourceError):
    """A tile or metadata query failed while executing."""


class EncodingError(TileSourceError):
    """The raw tile payload could not be compressed."""


class CloseError(TileSourceError):
    """Releasing the database connection failed."""


class UnknownProtocolError(TileSourceError, LookupError):
    """No tile source is registered for the URI scheme."""
