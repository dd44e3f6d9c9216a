"""
Bookkeeping table adapters: catalog store, error logs and comment backups.

- CatalogStore: Delta table holding one description per (domain, database, schema, table).
  Writes go through a single Delta MERGE so repeated or concurrent runs never
  duplicate a key.
- ErrorLog: append-only error table (one per pipeline).
- CommentBackupLog: append-only history of overwritten table comments.

Every table is created on demand with the Delta builder API. Engine failures
are re-raised as StorageError.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import pyspark.sql.types as T
from delta.tables import DeltaTable
from pyspark.sql import SparkSession

from src.catalog_sync.errors import StorageError
from src.catalog_sync.identifiers import FullyQualifiedTableName, Namespace
from src.catalog_sync.models import (
    CatalogDescriptionRow,
    CatalogEntry,
    CommentBackup,
    ErrorRecord,
)
from src.catalog_sync.sql import (
    catalog_merge_condition,
    sql_insert_comment_backup,
    sql_insert_error,
    sql_select_catalog_descriptions,
)
from src.enums import Domain
from src.logger import LOGGER

CATALOG_SCHEMA = T.StructType(
    [
        T.StructField("domain", T.StringType(), nullable=True),
        T.StructField("description", T.StringType(), nullable=True),
        T.StructField("name", T.StringType(), nullable=True),
        T.StructField("database_name", T.StringType(), nullable=True),
        T.StructField("schema_name", T.StringType(), nullable=True),
        T.StructField("table_name", T.StringType(), nullable=True),
        T.StructField("created_at", T.TimestampType(), nullable=True),
    ]
)

ERROR_SCHEMA = T.StructType(
    [
        T.StructField("database_name", T.StringType(), nullable=True),
        T.StructField("schema_name", T.StringType(), nullable=True),
        T.StructField("table_name", T.StringType(), nullable=True),
        T.StructField("error_message", T.StringType(), nullable=True),
        T.StructField("error_type", T.StringType(), nullable=True),
        T.StructField("created_at", T.TimestampType(), nullable=True),
    ]
)

COMMENT_BACKUP_SCHEMA = T.StructType(
    [
        T.StructField("database_name", T.StringType(), nullable=True),
        T.StructField("schema_name", T.StringType(), nullable=True),
        T.StructField("table_name", T.StringType(), nullable=True),
        T.StructField("original_comment", T.StringType(), nullable=True),
        T.StructField("backed_up_at", T.TimestampType(), nullable=True),
    ]
)

CATALOG_KEY_COLUMNS: tuple[str, ...] = ("domain", "database_name", "schema_name", "table_name")
CATALOG_UPDATE_COLUMNS: tuple[str, ...] = ("description", "name", "created_at")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_table_if_not_exists(
    spark: SparkSession, full_table_name: FullyQualifiedTableName, schema: T.StructType
) -> None:
    """Create a Delta table if it does not already exist."""
    try:
        (
            DeltaTable.createIfNotExists(spark)
            .tableName(full_table_name.quoted)
            .addColumns(schema)
            .execute()
        )
    except Exception as error:
        raise StorageError(f"Failed to create table {full_table_name}: {error}") from error


class CatalogStore:
    """Reads and upserts CatalogEntry rows in a caller-chosen Delta table."""

    def __init__(
        self,
        spark: SparkSession,
        table_name: FullyQualifiedTableName,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.spark = spark
        self._table_name = table_name
        self._clock = clock

    @property
    def table_name(self) -> FullyQualifiedTableName:
        return self._table_name

    def ensure_exists(self) -> None:
        create_table_if_not_exists(self.spark, self._table_name, CATALOG_SCHEMA)

    def upsert(self, entry: CatalogEntry) -> None:
        """
        Merge `entry` into the catalog.

        - Matched on (domain, database_name, schema_name, table_name):
          description, name and created_at are replaced.
        - Not matched: the row is inserted.
        """
        row = (
            entry.domain,
            entry.description,
            entry.name,
            entry.database_name,
            entry.schema_name,
            entry.table_name,
            self._clock(),
        )
        try:
            source = self.spark.createDataFrame([row], schema=CATALOG_SCHEMA)
            target = DeltaTable.forName(self.spark, self._table_name.quoted)
            (
                target.alias("t")
                .merge(source=source.alias("s"), condition=catalog_merge_condition(CATALOG_KEY_COLUMNS))
                .whenMatchedUpdate(set={column: f"s.{column}" for column in CATALOG_UPDATE_COLUMNS})
                .whenNotMatchedInsertAll()
                .execute()
            )
        except Exception as error:
            raise StorageError(
                f"Failed to upsert catalog entry for "
                f"{entry.database_name}.{entry.schema_name}.{entry.table_name}: {error}"
            ) from error
        LOGGER.debug("Catalog entry upserted for %s.%s", entry.schema_name, entry.table_name)

    def read_descriptions(self, namespace: Namespace) -> list[CatalogDescriptionRow]:
        """All non-blank TABLE descriptions recorded for `namespace`."""
        query = sql_select_catalog_descriptions(self._table_name)
        args = {
            "domain": str(Domain.TABLE),
            "database_name": namespace.database,
            "schema_name": namespace.schema,
        }
        try:
            rows = self.spark.sql(query, args=args).collect()
        except Exception as error:
            raise StorageError(str(error)) from error
        return [CatalogDescriptionRow.from_row(row) for row in rows]


class ErrorLog:
    """Append-only error table."""

    def __init__(self, spark: SparkSession, table_name: FullyQualifiedTableName) -> None:
        self.spark = spark
        self._table_name = table_name

    @property
    def table_name(self) -> FullyQualifiedTableName:
        return self._table_name

    def ensure_exists(self) -> None:
        create_table_if_not_exists(self.spark, self._table_name, ERROR_SCHEMA)

    def append(self, record: ErrorRecord) -> None:
        with_error_type = record.error_type is not None
        args = {
            "database_name": record.database_name,
            "schema_name": record.schema_name,
            "table_name": record.table_name,
            "error_message": record.error_message,
        }
        if with_error_type:
            args["error_type"] = record.error_type
        query = sql_insert_error(self._table_name, with_error_type=with_error_type)
        try:
            self.spark.sql(query, args=args).collect()
        except Exception as error:
            raise StorageError(f"Failed to write error record to {self._table_name}: {error}") from error


class CommentBackupLog:
    """Append-only history of table comments replaced by the applier."""

    def __init__(self, spark: SparkSession, table_name: FullyQualifiedTableName) -> None:
        self.spark = spark
        self._table_name = table_name

    @property
    def table_name(self) -> FullyQualifiedTableName:
        return self._table_name

    def ensure_exists(self) -> None:
        create_table_if_not_exists(self.spark, self._table_name, COMMENT_BACKUP_SCHEMA)

    def append(self, backup: CommentBackup) -> None:
        args = {
            "database_name": backup.database_name,
            "schema_name": backup.schema_name,
            "table_name": backup.table_name,
            "original_comment": backup.original_comment,
        }
        try:
            self.spark.sql(sql_insert_comment_backup(self._table_name), args=args).collect()
        except Exception as error:
            raise StorageError(f"Failed to back up comment to {self._table_name}: {error}") from error
