"""Database access for DuckDB tile sources.

This package groups the engine-facing pieces: connection lifecycle and
catalog introspection (``connection``) and the metadata records sources
report (``models``).

Example:
    Open a database and inspect it:
        >>> from duckdb_tiles.db import connection
        >>> conn = connection.open_connection(path, settings)
        >>> connection.verify_schema(conn, "roads", "geometry")
"""
