"""Application settings and configuration management.

This module provides Pydantic-based settings management that loads
configuration from environment variables or a .env file. Settings include
the DuckDB source URI served by the HTTP app, whether the spatial extension
should be installed on open, CORS origins, the public base URL used in
TileJSON documents, and the log level.

Example:
    Settings can be accessed via the cached get_settings() function:
        >>> from duckdb_tiles.core.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.source_uri)

    Environment variables can override defaults:
        >>> SOURCE_URI=duckdb:///data/osm.db?table=roads&layer=roads
        >>> INSTALL_EXTENSIONS=true
        >>> LOG_LEVEL=DEBUG
"""

import functools

import pydantic
import pydantic_settings


class Settings(pydantic_settings.BaseSettings):
    """Runtime configuration pulled from environment variables or defaults.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        source_uri: ``duckdb://`` URI of the tile source served over HTTP.
            None leaves the app running without a source.
        install_extensions: Run ``INSTALL spatial`` before loading it. Only
            needed on hosts where the extension is not installed yet.
        allow_origins: List of allowed CORS origins (["*"] allows all).
        tiles_base_url: Public base URL used for TileJSON tile templates.
        log_level: Root log level name.

    Example:
        Create settings with custom values:
            >>> settings = Settings(
            ...     source_uri="duckdb:///data/osm.db?table=roads",
            ...     install_extensions=True,
            ... )

        Or use environment variables:
            >>> export SOURCE_URI="duckdb:///data/osm.db?table=roads"
            >>> settings = Settings()  # Loads from environment
    """

    source_uri: str | None = None
    install_extensions: bool = False
    allow_origins: list[str] = ["*"]
    tiles_base_url: pydantic.AnyHttpUrl | str = "http://localhost:8000"
    log_level: str = "INFO"

    model_config = pydantic_settings.SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@functools.lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded from environment variables or .env file and cached
    for the lifetime of the application. Subsequent calls return the same
    cached instance.

    Returns:
        Settings instance with all configuration values populated.
    """
    return Settings()
