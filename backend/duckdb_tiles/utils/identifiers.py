"""Identifier validation and quoting for dynamically built SQL.

DuckDB's spatial tile functions need the table and geometry column at the
syntax level, so those names cannot be passed as bound parameters. This
module is the gate every such name goes through before it is interpolated
into a query string: only non-empty ASCII words (letters, digits and
underscores) are accepted.

The quoting helpers cover the two remaining interpolation sites: property
column names discovered from the catalog (identifiers) and the output layer
name (a string literal).

Example:
    Validate a table name taken from a URI:
        >>> from duckdb_tiles.utils import identifiers
        >>> identifiers.validate_identifier("buildings", "table")
        'buildings'
        >>> identifiers.validate_identifier("x'; DROP TABLE y;--", "table")
        Traceback (most recent call last):
        ...
        InvalidIdentifierError: Invalid table name: ...
"""

from __future__ import annotations

import re
from typing import Literal

from duckdb_tiles.core import errors

IdentifierKind = Literal["table", "column"]

_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_]+")


def is_valid_identifier(name: object) -> bool:
    """Return True if ``name`` is a non-empty ASCII word."""
    return isinstance(name, str) and _IDENTIFIER_RE.fullmatch(name) is not None


def validate_identifier(name: object, kind: IdentifierKind) -> str:
    """Return ``name`` unchanged if it is safe to embed as an identifier.

    Args:
        name: Candidate table or column name.
        kind: Which role the name plays, used in the error message.

    Returns:
        The validated name.

    Raises:
        InvalidIdentifierError: If the name is empty, not a string, or holds
            any character outside [A-Za-z0-9_].
    """
    if not is_valid_identifier(name):
        raise errors.InvalidIdentifierError(
            f"Invalid {kind} name: {name} "
            "(only alphanumeric and underscore allowed)"
        )

    return name  # type: ignore[return-value]


def quote_identifier(name: str) -> str:
    """Wrap ``name`` in double quotes, doubling any embedded quote."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Wrap ``value`` in single quotes, doubling any embedded quote."""
    return "'" + value.replace("'", "''") + "'"
