"""
Identifier utilities for the catalog sync pipelines.

This module defines:
- Namespace and FullyQualifiedTableName value types.
- quote_identifier: render a single name safely for interpolation into SQL.
- Resolution of caller-supplied catalog table names against a namespace.
- Bookkeeping-table detection so the pipelines never describe their own tables.
- Resolution of the logging namespace (caller override or configured default).

Conventions:
- Only identifiers (database/schema/table names) go through quote_identifier.
- Values are never quoted here; they are bound as named parameters.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from src import settings
from src.constants import BOOKKEEPING_TABLE_NAMES

_BARE_IDENTIFIER = re.compile(r"[A-Z0-9_]*[A-Z][A-Z0-9_]*")
_QUOTE = "`"


# -----------------------------
# Quoting
# -----------------------------


def quote_identifier(name: str | None) -> str | None:
    """
    Render `name` for interpolation into a SQL object path.

    - None passes through as None.
    - Uppercase ASCII letters, digits and underscores (with at least one letter) stay bare.
    - Anything else is wrapped in backticks with embedded backticks doubled,
      which preserves case and special characters.
    """
    if name is None:
        return None
    text = str(name)
    if _BARE_IDENTIFIER.fullmatch(text):
        return text
    return f"{_QUOTE}{text.replace(_QUOTE, _QUOTE * 2)}{_QUOTE}"


def quote_qualified_name(*parts: str) -> str:
    """Quote each part and join with dots: `quote_qualified_name("a", "B")` -> "`a`.B"."""
    if not parts:
        raise ValueError("At least one name part must be provided.")
    quoted: list[str] = []
    for part in parts:
        if part is None or str(part) == "":
            raise ValueError("Qualified name parts must not be None or empty.")
        quoted.append(quote_identifier(part))  # type: ignore[arg-type]
    return ".".join(quoted)


# -----------------------------
# Names
# -----------------------------


@dataclass(frozen=True)
class Namespace:
    """A (database, schema) pair that contains tables."""

    database: str
    schema: str

    def table(self, table_name: str) -> FullyQualifiedTableName:
        """Return the fully qualified name of `table_name` inside this namespace."""
        return FullyQualifiedTableName(self.database, self.schema, table_name)

    def __str__(self) -> str:
        return f"{self.database}.{self.schema}"


@dataclass(frozen=True)
class FullyQualifiedTableName:
    """Three-part table name: database.schema.table."""

    database: str
    schema: str
    table: str

    @property
    def quoted(self) -> str:
        """Safe SQL rendering, e.g. ``DEV.`sales`.ORDERS``."""
        return quote_qualified_name(self.database, self.schema, self.table)

    def __str__(self) -> str:
        return f"{self.database}.{self.schema}.{self.table}"


def resolve_table_name(name: str, namespace: Namespace) -> FullyQualifiedTableName:
    """
    Resolve a caller-supplied table name against `namespace`.

    'table'                  -> namespace.database, namespace.schema, table
    'schema.table'           -> namespace.database, schema, table
    'database.schema.table'  -> as given

    Backticked parts are unquoted so pre-quoted input is not quoted twice, and
    dots inside backticks belong to the part.
    """
    parts = split_qualified_name(name)
    if len(parts) > 3 or any(part == "" for part in parts):
        raise ValueError(f"Expected 'table', 'schema.table' or 'database.schema.table', got: {name!r}")
    if len(parts) == 1:
        return namespace.table(parts[0])
    if len(parts) == 2:
        return FullyQualifiedTableName(namespace.database, parts[0], parts[1])
    return FullyQualifiedTableName(parts[0], parts[1], parts[2])


def split_qualified_name(text: str) -> list[str]:
    """
    Split a dotted name on unquoted dots and unquote backticked parts.

    "`my.db`.sales.`we``ird`" -> ["my.db", "sales", "we`ird"]
    """
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    while index < len(text):
        char = text[index]
        if char == _QUOTE:
            if in_quotes and text[index + 1 : index + 2] == _QUOTE:
                current.append(_QUOTE)
                index += 2
                continue
            in_quotes = not in_quotes
        elif char == "." and not in_quotes:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        index += 1
    if in_quotes:
        raise ValueError(f"Unbalanced backtick in name: {text!r}")
    parts.append("".join(current).strip())
    return parts


# -----------------------------
# Bookkeeping tables
# -----------------------------


def is_bookkeeping_table(table_name: str, extra_names: Iterable[str] = ()) -> bool:
    """True if `table_name` is one of the pipeline's own tables (case-insensitive)."""
    upper = table_name.upper()
    if upper in BOOKKEEPING_TABLE_NAMES:
        return True
    return any(upper == extra.upper() for extra in extra_names)


# -----------------------------
# Logging namespace
# -----------------------------


def parse_namespace(text: str) -> Namespace:
    """Parse 'database.schema' (backticks on parts allowed) into a Namespace."""
    parts = split_qualified_name(text)
    if len(parts) != 2 or any(part == "" for part in parts):
        raise ValueError(f"Expected two-part name 'database.schema', got: {text!r}")
    return Namespace(parts[0], parts[1])


def resolve_logging_namespace(override: Namespace | str | None = None) -> Namespace:
    """The caller's logging namespace, or the configured default."""
    if override is None:
        return Namespace(settings.LOGGING_DATABASE, settings.LOGGING_SCHEMA)
    if isinstance(override, Namespace):
        return override
    return parse_namespace(override)
