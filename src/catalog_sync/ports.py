"""
Ports used by the generator and applier pipelines.

- TableMetadata: enumerate tables and read/set live table comments.
- DescriptionService: produce a description for one table.
- CatalogWriter / CatalogReader: the catalog store.
- ErrorSink / BackupSink: append-only bookkeeping tables.

Spark-backed adapters live in `metadata`, `description_service` and `store`;
tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol

from src.catalog_sync.identifiers import FullyQualifiedTableName, Namespace
from src.catalog_sync.models import (
    CatalogDescriptionRow,
    CatalogEntry,
    CommentBackup,
    ErrorRecord,
    LiveComment,
)


class TableMetadata(Protocol):
    """Live schema metadata for the target namespace."""

    def list_base_tables(self, namespace: Namespace) -> list[str]: ...

    def read_table_comment(self, full_table_name: FullyQualifiedTableName) -> LiveComment: ...

    def set_table_comment(self, full_table_name: FullyQualifiedTableName, comment: str) -> None: ...


class DescriptionService(Protocol):
    """Black-box generator: table reference + options -> description text."""

    def describe_table(
        self, full_table_name: FullyQualifiedTableName, use_table_data: bool
    ) -> str: ...


class CatalogWriter(Protocol):
    @property
    def table_name(self) -> FullyQualifiedTableName: ...

    def upsert(self, entry: CatalogEntry) -> None: ...


class CatalogReader(Protocol):
    @property
    def table_name(self) -> FullyQualifiedTableName: ...

    def read_descriptions(self, namespace: Namespace) -> list[CatalogDescriptionRow]: ...


class ErrorSink(Protocol):
    @property
    def table_name(self) -> FullyQualifiedTableName: ...

    def append(self, record: ErrorRecord) -> None: ...


class BackupSink(Protocol):
    def append(self, backup: CommentBackup) -> None: ...
