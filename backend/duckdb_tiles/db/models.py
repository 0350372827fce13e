"""Data models for tile source metadata.

This module defines the structures a tile source reports about itself.
SourceInfo mirrors a TileJSON document: geographic bounds, a default
center, the zoom range, the tile format and the vector layers contained in
each tile.

All bounds are stored in EPSG:4326 (longitude/latitude), as opposed to the
EPSG:3857 coordinates the geometry is stored in.

Example:
    Creating SourceInfo for a point layer:
        >>> from duckdb_tiles.db.models import SourceInfo, VectorLayer
        >>> info = SourceInfo(
        ...     bounds=(0.0, 0.0, 8.98, 8.95),
        ...     center=(4.49, 4.475, 12),
        ...     vector_layers=[VectorLayer(id="points")],
        ... )
        >>> info.to_tilejson()["format"]
        'pbf'
"""

from __future__ import annotations

import dataclasses
from typing import Any

BBox = tuple[float, float, float, float]
Center = tuple[float, float, int]


@dataclasses.dataclass(frozen=True)
class VectorLayer:
    """One named layer inside each vector tile.

    Attributes:
        id: Layer name as written into the tile.
        fields: Attribute name to type description. Left empty; fields are
            not derived from the table schema.
    """

    id: str
    fields: dict[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class SourceInfo:
    """Metadata describing a tile source.

    Attributes:
        bounds: (minlon, minlat, maxlon, maxlat) in EPSG:4326.
        center: (lon, lat, zoom) at the midpoint of ``bounds``.
        vector_layers: Layers present in each tile.
        minzoom: Lowest zoom level served.
        maxzoom: Highest zoom level served.
        format: Tile format tag.
    """

    bounds: BBox
    center: Center
    vector_layers: list[VectorLayer]
    minzoom: int = 0
    maxzoom: int = 14
    format: str = "pbf"

    def to_tilejson(self) -> dict[str, Any]:
        """Return the plain-dict form used by hosts and HTTP responses."""
        return {
            "bounds": list(self.bounds),
            "center": list(self.center),
            "minzoom": self.minzoom,
            "maxzoom": self.maxzoom,
            "format": self.format,
            "vector_layers": [
                dataclasses.asdict(layer) for layer in self.vector_layers
            ],
        }
