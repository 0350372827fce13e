"""Shared fixtures building throwaway DuckDB spatial databases.

Databases are created in pytest's tmp_path with the ``spatial`` extension
installed and loaded. If the extension cannot be installed (offline hosts),
tests depending on these fixtures are skipped rather than failing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import duckdb
import pytest

if TYPE_CHECKING:
    import pathlib
    from collections.abc import Callable, Iterable

    DatabaseFactory = Callable[[str, Iterable[str]], pathlib.Path]


@pytest.fixture
def make_database(tmp_path: pathlib.Path) -> DatabaseFactory:
    """Return a factory creating ``<name>.db`` from SQL statements."""

    def factory(name: str, statements: Iterable[str]) -> pathlib.Path:
        path = tmp_path / f"{name}.db"
        conn = duckdb.connect(str(path))
        try:
            try:
                conn.install_extension("spatial")
                conn.load_extension("spatial")
            except duckdb.Error as exc:
                pytest.skip(f"DuckDB spatial extension unavailable: {exc}")
            for statement in statements:
                conn.execute(statement)
        finally:
            conn.close()
        return path

    return factory


@pytest.fixture
def points_db(make_database: DatabaseFactory) -> pathlib.Path:
    """Two points at (0, 0) and (1000000, 1000000) in EPSG:3857."""
    return make_database(
        "points",
        [
            "CREATE TABLE points (id INTEGER, name VARCHAR, geometry GEOMETRY)",
            """
            INSERT INTO points VALUES
              (1, 'Point A', ST_GeomFromText('POINT(0 0)')),
              (2, 'Point B', ST_GeomFromText('POINT(1000000 1000000)'))
            """,
            "CREATE TABLE buildings (id INTEGER, geom GEOMETRY)",
        ],
    )


@pytest.fixture
def origin_db(make_database: DatabaseFactory) -> pathlib.Path:
    """A single named point at the Web Mercator origin."""
    return make_database(
        "origin",
        [
            "CREATE TABLE points (id INTEGER, name VARCHAR, geometry GEOMETRY)",
            "INSERT INTO points VALUES (1, 'origin', ST_Point(0, 0))",
        ],
    )


@pytest.fixture
def empty_db(make_database: DatabaseFactory) -> pathlib.Path:
    """An empty table and a table holding only NULL geometry."""
    return make_database(
        "empty",
        [
            "CREATE TABLE empty_points (id INTEGER, geometry GEOMETRY)",
            "CREATE TABLE null_points (id INTEGER, geometry GEOMETRY)",
            "INSERT INTO null_points VALUES (1, NULL), (2, NULL)",
        ],
    )


@pytest.fixture
def keyword_db(make_database: DatabaseFactory) -> pathlib.Path:
    """Geometry stored in a column named after a SQL keyword.

    The table also has a text column called ``geometry``, which is only an
    attribute here.
    """
    return make_database(
        "keyword",
        [
            'CREATE TABLE places (id INTEGER, "geometry" VARCHAR, "order" GEOMETRY)',
            "INSERT INTO places VALUES (1, 'label', ST_Point(0, 0))",
        ],
    )
