"""Root logger configuration for the tile server."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once with a stdout handler.

    Repeated calls only adjust the level, so app factories can call this
    freely (tests build many apps per process).

    Args:
        level: Log level name such as ``"DEBUG"`` or ``"info"``. Unknown
            names fall back to INFO.
    """
    root = logging.getLogger()
    resolved = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    if not getattr(root, "_duckdb_tiles_configured", False):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root._duckdb_tiles_configured = True  # type: ignore[attr-defined]

    root.setLevel(resolved)
