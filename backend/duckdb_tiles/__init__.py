"""DuckDB vector tile source package.

This package serves Mapbox Vector Tiles straight out of a DuckDB database
whose geometry is stored in EPSG:3857 (Web Mercator). A source is
configured by a ``duckdb://`` URI naming the database file, the table, the
geometry column and the output layer; each tile request becomes one DuckDB
spatial query whose result is gzip-compressed for the host.

- Validates every name that ends up in generated SQL as an identifier
- Opens databases read-only and checks the schema before serving
- Caches bounds metadata and property columns per source, computed once
- Serializes queries per connection and runs them off the event loop
- Ships a FastAPI app serving ``/tiles/{z}/{x}/{y}.pbf`` and TileJSON

See module docstrings for details on each layer.
"""
