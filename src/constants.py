"""Shared constant values used across the catalog sync pipelines."""

from typing import Final

CATALOG_TABLE_NAME: Final[str] = "CATALOG_TABLE"
CATALOG_ERRORS_TABLE_NAME: Final[str] = "CATALOG_ERRORS"
APPLY_ERRORS_TABLE_NAME: Final[str] = "APPLY_DESCRIPTION_ERRORS"
COMMENT_BACKUP_TABLE_NAME: Final[str] = "ORIGINAL_TABLE_COMMENTS_BACKUP"

BOOKKEEPING_TABLE_NAMES: Final[frozenset[str]] = frozenset(
    {
        CATALOG_TABLE_NAME,
        CATALOG_ERRORS_TABLE_NAME,
        APPLY_ERRORS_TABLE_NAME,
        COMMENT_BACKUP_TABLE_NAME,
    }
)

# information_schema.tables.table_type values that count as base tables
BASE_TABLE_TYPES: Final[tuple[str, ...]] = ("MANAGED", "EXTERNAL", "BASE TABLE")
