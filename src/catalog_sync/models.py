"""
Typed records exchanged between the pipelines and their adapters.

- CatalogEntry / ErrorRecord / CommentBackup: rows written to the bookkeeping tables.
- CatalogDescriptionRow: a catalog row read back by the applier.
- LiveComment: explicit optional result of reading a table's current comment.
- GenerationCounts / ApplyCounts: immutable run accumulators.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from src import settings
from src.catalog_sync.identifiers import FullyQualifiedTableName
from src.enums import ApplyErrorType, Domain

# ---------- rows written ----------


@dataclass(frozen=True)
class CatalogEntry:
    """One catalog row per (domain, database, schema, table)."""

    domain: str
    description: str
    name: str
    database_name: str
    schema_name: str
    table_name: str

    @classmethod
    def for_table(cls, full_table_name: FullyQualifiedTableName, description: str) -> CatalogEntry:
        """Build a TABLE-domain entry; `name` always mirrors `table_name`."""
        return cls(
            domain=Domain.TABLE,
            description=description,
            name=full_table_name.table,
            database_name=full_table_name.database,
            schema_name=full_table_name.schema,
            table_name=full_table_name.table,
        )


def truncate_error_message(error: object, max_length: int | None = None) -> str:
    """`str(error)` cut to `max_length` characters (defaults to settings)."""
    limit = settings.MAX_ERROR_MESSAGE_LENGTH if max_length is None else max_length
    return str(error)[:limit]


@dataclass(frozen=True)
class ErrorRecord:
    """A single failed operation, appended to one of the error tables."""

    database_name: str
    schema_name: str
    table_name: str
    error_message: str
    error_type: str | None = None

    @classmethod
    def from_exception(
        cls,
        full_table_name: FullyQualifiedTableName,
        error: object,
        error_type: ApplyErrorType | None = None,
        max_length: int | None = None,
    ) -> ErrorRecord:
        return cls(
            database_name=full_table_name.database,
            schema_name=full_table_name.schema,
            table_name=full_table_name.table,
            error_message=truncate_error_message(error, max_length),
            error_type=None if error_type is None else str(error_type),
        )


@dataclass(frozen=True)
class CommentBackup:
    """A table comment captured just before it is overwritten."""

    database_name: str
    schema_name: str
    table_name: str
    original_comment: str

    @classmethod
    def for_table(cls, full_table_name: FullyQualifiedTableName, comment: str) -> CommentBackup:
        return cls(
            database_name=full_table_name.database,
            schema_name=full_table_name.schema,
            table_name=full_table_name.table,
            original_comment=comment,
        )


# ---------- rows read ----------


@dataclass(frozen=True)
class CatalogDescriptionRow:
    """A non-blank TABLE description read from the catalog."""

    database_name: str
    schema_name: str
    table_name: str
    description: str

    @classmethod
    def from_row(cls, row: Any) -> CatalogDescriptionRow:
        """Map a Spark Row (or any mapping-like row) by column name."""
        return cls(
            database_name=str(row["database_name"]),
            schema_name=str(row["schema_name"]),
            table_name=str(row["table_name"]),
            description=str(row["description"]),
        )

    @property
    def full_table_name(self) -> FullyQualifiedTableName:
        return FullyQualifiedTableName(self.database_name, self.schema_name, self.table_name)


@dataclass(frozen=True)
class LiveComment:
    """
    Result of looking up a table's current comment.

    comment:
        The stored comment, or None when the table has none or is not visible.
    error:
        Single-line failure summary when the lookup itself failed, else None.
    """

    comment: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def existing(self) -> str | None:
        """The comment if it is non-blank, else None."""
        if self.comment is None or not self.comment.strip():
            return None
        return self.comment


# ---------- accumulators ----------


@dataclass(frozen=True)
class GenerationCounts:
    success: int = 0
    errors: int = 0

    def add_success(self) -> GenerationCounts:
        return replace(self, success=self.success + 1)

    def add_error(self) -> GenerationCounts:
        return replace(self, errors=self.errors + 1)


@dataclass(frozen=True)
class ApplyCounts:
    success: int = 0
    errors: int = 0
    skipped: int = 0
    backed_up: int = 0

    def add_success(self) -> ApplyCounts:
        return replace(self, success=self.success + 1)

    def add_error(self) -> ApplyCounts:
        return replace(self, errors=self.errors + 1)

    def add_skipped(self) -> ApplyCounts:
        return replace(self, skipped=self.skipped + 1)

    def add_backed_up(self) -> ApplyCounts:
        return replace(self, backed_up=self.backed_up + 1)
