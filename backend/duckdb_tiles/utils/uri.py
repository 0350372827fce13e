"""Source URI parsing for DuckDB tile sources.

A tile source is configured by a URI of the form::

    duckdb://<path>?table=<ident>&geometry=<ident>&layer=<name>

Hosts hand that URI over in one of three shapes: the raw string, a
``urllib.parse`` split/parse result, or a legacy object carrying
``pathname``/``query`` (and optionally the original ``href``). All three are
normalized by resolve_uri() into one ResolvedUri before anything else looks
at them.

The database path is resolved against the current working directory when
it is relative (``./`` or ``../``) or a bare filename, so the resulting path
is always absolute for local files. Composed schemes such as
``xray+duckdb://`` are accepted; only the ``duckdb://`` part is inspected.

Example:
    Resolve a relative path:
        >>> from duckdb_tiles.utils import uri
        >>> resolved = uri.resolve_uri("duckdb://./data/osm.db?table=roads")
        >>> resolved.path
        '/current/working/dir/data/osm.db'
        >>> resolved.layer_name
        'roads'
"""

from __future__ import annotations

import dataclasses
import os
import re
import urllib.parse
from collections.abc import Mapping
from typing import Any

from duckdb_tiles.core import errors

DEFAULT_GEOMETRY_COLUMN = "geometry"

_RAW_PATH_RE = re.compile(r"(?:^|[+])duckdb://([^?#]+)")


@dataclasses.dataclass(frozen=True)
class LegacyUri:
    """Pre-parsed URI in the legacy ``pathname``/``query`` shape.

    Attributes:
        pathname: Path component of the URI.
        query: Raw query string or a mapping of parameter names to values.
        href: Original URI string, if the host kept it.
    """

    pathname: str | None
    query: str | Mapping[str, Any] | None = None
    href: str | None = None


UriInput = (
    str
    | urllib.parse.SplitResult
    | urllib.parse.ParseResult
    | LegacyUri
    | Mapping[str, Any]
)


@dataclasses.dataclass(frozen=True)
class ResolvedUri:
    """Canonical ``{path, params}`` form of a source URI."""

    path: str
    params: dict[str, str]

    @property
    def table(self) -> str:
        return self.params["table"]

    @property
    def geometry_column(self) -> str:
        return self.params.get("geometry") or DEFAULT_GEOMETRY_COLUMN

    @property
    def layer_name(self) -> str:
        return self.params.get("layer") or self.table


def _first_values(pairs: list[tuple[str, str]]) -> dict[str, str]:
    """Collapse repeated keys, keeping the first value like URLSearchParams."""
    params: dict[str, str] = {}
    for key, value in pairs:
        params.setdefault(key, value)
    return params


def _params_from_query(query: str | Mapping[str, Any] | None) -> dict[str, str]:
    if not query:
        return {}

    if isinstance(query, str):
        return _first_values(
            urllib.parse.parse_qsl(query.lstrip("?"), keep_blank_values=True)
        )

    params: dict[str, str] = {}
    for key, value in query.items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[0]
        params[str(key)] = "" if value is None else str(value)
    return params


def _normalize(uri: UriInput) -> tuple[str | None, str, dict[str, str]]:
    """Return (original string, parsed path, params) for any input shape."""
    if isinstance(uri, str):
        parts = urllib.parse.urlsplit(uri)
        return uri, parts.path, _params_from_query(parts.query)

    if isinstance(uri, (urllib.parse.SplitResult, urllib.parse.ParseResult)):
        return None, uri.path, _params_from_query(uri.query)

    if isinstance(uri, LegacyUri):
        return uri.href, uri.pathname or "", _params_from_query(uri.query)

    if isinstance(uri, Mapping):
        return (
            uri.get("href"),
            uri.get("pathname") or uri.get("path") or "",
            _params_from_query(uri.get("query")),
        )

    raise TypeError(f"Unsupported URI type: {type(uri).__name__}")


def resolve_path(original: str | None, parsed_path: str) -> str:
    """Resolve the database location from the original URI text.

    Args:
        original: Original URI string when available.
        parsed_path: Path component produced by URI parsing.

    Returns:
        The database path, absolute for local relative inputs.
    """
    match = _RAW_PATH_RE.search(original) if original else None
    if match is None:
        return urllib.parse.unquote(parsed_path)

    raw_path = urllib.parse.unquote(match.group(1))
    if raw_path.startswith(("./", "../")):
        return os.path.abspath(raw_path)
    if raw_path.startswith("/"):
        return raw_path
    if "/" in raw_path:
        # host/path shape; only the path part refers to the database
        return urllib.parse.unquote(parsed_path)
    return os.path.abspath(raw_path)


def resolve_uri(uri: UriInput) -> ResolvedUri:
    """Normalize a source URI into its database path and parameters.

    Args:
        uri: URI string, ``urllib.parse`` result, LegacyUri or a mapping with
            ``pathname``/``query``/``href`` keys.

    Returns:
        ResolvedUri with the resolved path and flat parameter mapping.

    Raises:
        MissingTableError: If the ``table`` parameter is absent or empty.
        TypeError: If ``uri`` is none of the supported shapes.
    """
    original, parsed_path, params = _normalize(uri)
    if not params.get("table"):
        raise errors.MissingTableError("table parameter is required in URI")

    return ResolvedUri(path=resolve_path(original, parsed_path), params=params)
