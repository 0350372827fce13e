"""Unit tests for duckdb_tiles.utils.uri source URI resolution.

Covers the three accepted input shapes (string, urllib.parse result and
legacy pathname/query objects) and the path rules:
    - ``./`` and ``../`` paths resolve against the working directory,
    - absolute paths pass through,
    - bare filenames resolve against the working directory,
    - host/path shapes fall back to the parsed path,
    - composed schemes such as ``xray+duckdb://`` are understood.

Parameter defaults and the MissingTableError contract are verified too.

See Also:
    - backend/duckdb_tiles/utils/uri.py for implementation.
"""

from __future__ import annotations

import os
import urllib.parse
from typing import TYPE_CHECKING

import pytest

from duckdb_tiles.core import errors
from duckdb_tiles.utils import uri

if TYPE_CHECKING:
    import pathlib


def test_absolute_path_passes_through() -> None:
    resolved = uri.resolve_uri(
        "duckdb:///data/osm.db?table=buildings&geometry=geom&layer=structures"
    )
    assert resolved.path == "/data/osm.db"
    assert resolved.table == "buildings"
    assert resolved.geometry_column == "geom"
    assert resolved.layer_name == "structures"


def test_defaults_for_geometry_and_layer() -> None:
    resolved = uri.resolve_uri("duckdb:///data/osm.db?table=points")
    assert resolved.geometry_column == "geometry"
    assert resolved.layer_name == "points"


def test_blank_optional_params_fall_back_to_defaults() -> None:
    resolved = uri.resolve_uri("duckdb:///x.db?table=points&geometry=&layer=")
    assert resolved.geometry_column == "geometry"
    assert resolved.layer_name == "points"


@pytest.mark.parametrize(
    "relative",
    ["./fixtures/params.db", "../fixtures/params.db"],
)
def test_relative_paths_resolve_against_cwd(
    relative: str,
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    resolved = uri.resolve_uri(f"duckdb://{relative}?table=buildings")

    assert os.path.isabs(resolved.path)
    assert resolved.path == os.path.normpath(os.path.join(workdir, relative))


def test_bare_filename_resolves_against_cwd(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    resolved = uri.resolve_uri("duckdb://tiles.db?table=points")
    assert resolved.path == os.path.join(str(tmp_path), "tiles.db")


def test_host_and_path_uses_parsed_path() -> None:
    resolved = uri.resolve_uri("duckdb://localhost/data/osm.db?table=roads")
    assert resolved.path == "/data/osm.db"


def test_composed_scheme_uses_duckdb_part(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    resolved = uri.resolve_uri("xray+duckdb://./osm.db?table=roads")
    assert resolved.path == os.path.join(str(tmp_path), "osm.db")


def test_percent_escapes_are_decoded() -> None:
    resolved = uri.resolve_uri("duckdb:///data/my%20tiles.db?table=roads")
    assert resolved.path == "/data/my tiles.db"


def test_first_repeated_param_wins() -> None:
    resolved = uri.resolve_uri("duckdb:///x.db?table=first&table=second")
    assert resolved.table == "first"


def test_unsafe_table_value_is_kept_verbatim() -> None:
    """Validation happens later; resolution must not mangle the value."""
    resolved = uri.resolve_uri(
        "duckdb:///x.db?table=buildings'; DROP TABLE buildings;--"
    )
    assert resolved.table == "buildings'; DROP TABLE buildings;--"


def test_split_result_input() -> None:
    parts = urllib.parse.urlsplit("duckdb:///data/osm.db?table=roads&layer=r")
    resolved = uri.resolve_uri(parts)
    assert resolved.path == "/data/osm.db"
    assert resolved.layer_name == "r"


def test_parse_result_input() -> None:
    parts = urllib.parse.urlparse("duckdb:///data/osm.db?table=roads")
    assert uri.resolve_uri(parts).path == "/data/osm.db"


def test_legacy_object_with_href_resolves_relative_path(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    legacy = uri.LegacyUri(
        pathname="/osm.db",
        query="table=roads",
        href="duckdb://./osm.db?table=roads",
    )
    resolved = uri.resolve_uri(legacy)
    assert resolved.path == os.path.join(str(tmp_path), "osm.db")


def test_legacy_object_without_href_uses_pathname() -> None:
    legacy = uri.LegacyUri(pathname="/data/osm.db", query="table=roads")
    assert uri.resolve_uri(legacy).path == "/data/osm.db"


def test_legacy_mapping_with_query_mapping() -> None:
    resolved = uri.resolve_uri(
        {
            "pathname": "/data/osm.db",
            "query": {"table": ["roads", "ignored"], "geometry": "geom"},
        }
    )
    assert resolved.path == "/data/osm.db"
    assert resolved.table == "roads"
    assert resolved.geometry_column == "geom"
    assert resolved.params == {"table": "roads", "geometry": "geom"}


@pytest.mark.parametrize(
    "value",
    [
        "duckdb:///data/osm.db",
        "duckdb:///data/osm.db?table=",
        "duckdb:///data/osm.db?geometry=geom",
    ],
)
def test_missing_table_raises(value: str) -> None:
    with pytest.raises(errors.MissingTableError, match=r"table.*required"):
        uri.resolve_uri(value)


def test_missing_table_in_legacy_form_raises() -> None:
    with pytest.raises(errors.MissingTableError):
        uri.resolve_uri(uri.LegacyUri(pathname="/x.db", query=None))


def test_unsupported_input_type() -> None:
    with pytest.raises(TypeError):
        uri.resolve_uri(42)  # type: ignore[arg-type]
