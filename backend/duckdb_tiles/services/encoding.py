"""Compression and headers for vector tile responses.

Tiles leave the source gzip-compressed, which is what tile hosts and
MapLibre/Mapbox clients expect for ``.pbf`` payloads. Empty tiles go
through the same path, so a tile with no features is a valid gzip stream
of zero bytes rather than a special case.
"""

from __future__ import annotations

import dataclasses
import gzip
import zlib

from duckdb_tiles.core import errors

MVT_CONTENT_TYPE = "application/vnd.mapbox-vector-tile"


@dataclasses.dataclass(frozen=True)
class EncodedTile:
    """A compressed tile plus the headers describing it."""

    data: bytes
    headers: dict[str, str]

    def transport_headers(self) -> dict[str, str]:
        """Headers for an HTTP response, including the content encoding."""
        return {**self.headers, "Content-Encoding": "gzip"}


def encode_tile(raw: bytes) -> EncodedTile:
    """Gzip ``raw`` and attach the vector tile content type.

    Raises:
        EncodingError: If compression fails.
    """
    try:
        data = gzip.compress(raw)
    except (TypeError, ValueError, zlib.error) as exc:
        raise errors.EncodingError(f"Unable to compress tile: {exc}") from exc

    return EncodedTile(data=data, headers={"Content-Type": MVT_CONTENT_TYPE})
