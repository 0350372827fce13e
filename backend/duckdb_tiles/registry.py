"""Protocol registry mapping URI schemes to tile source factories.

Hosts keep one registry and load sources from URIs. A source module adds
itself with its ``register_protocols`` function; the registry then picks the
factory from the URI scheme. Composed schemes such as ``xray+duckdb://``
fall back to their last component when the full scheme is unknown.

Example:
    Load a DuckDB source by URI:
        >>> from duckdb_tiles import registry, source
        >>> tiles = registry.TileSourceRegistry()
        >>> source.register_protocols(tiles)
        >>> src = await tiles.load("duckdb:///data/osm.db?table=roads")
"""

from __future__ import annotations

import urllib.parse
from typing import TYPE_CHECKING, Any, Protocol

from duckdb_tiles.core import errors

if TYPE_CHECKING:
    from duckdb_tiles.core import config


class TileSourceFactory(Protocol):
    """Anything with an async ``create(uri, settings)`` constructor."""

    async def create(
        self,
        uri: Any,
        settings: config.Settings | None = None,
    ) -> Any: ...


class TileSourceRegistry:
    """Registry of tile source factories keyed by ``"<scheme>:"``."""

    def __init__(self) -> None:
        self.protocols: dict[str, TileSourceFactory] = {}

    def factory_for(self, uri: str) -> TileSourceFactory:
        """Return the factory registered for the scheme of ``uri``.

        Raises:
            UnknownProtocolError: If neither the full scheme nor its last
                ``+``-separated component is registered.
        """
        scheme = urllib.parse.urlsplit(uri).scheme.lower()
        for key in (f"{scheme}:", f"{scheme.rsplit('+', 1)[-1]}:"):
            if key in self.protocols:
                return self.protocols[key]

        raise errors.UnknownProtocolError(
            f"No tile source registered for protocol {scheme or uri!r}"
        )

    async def load(
        self,
        uri: str,
        settings: config.Settings | None = None,
    ) -> Any:
        """Create and initialize the source described by ``uri``."""
        return await self.factory_for(uri).create(uri, settings)
