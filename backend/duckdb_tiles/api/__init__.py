"""API router subpackage for the tile server.

Submodules:
    - tiles: Endpoints serving vector tiles and TileJSON metadata from the
      configured DuckDB source.

Routers are composed into the application in duckdb_tiles.main.
"""
