"""
Adapter: live table metadata over Spark SQL.

High-level flow
---------------
- list_base_tables: query `<database>.information_schema.tables` for the base
  tables of one schema.
- read_table_comment: query the same view for one table's comment. The lookup
  never raises; a failure comes back as a LiveComment with `error` set and the
  caller decides what that means.
- set_table_comment: `COMMENT ON TABLE ... IS '...'` with the comment escaped
  into the literal, failures re-raised as MetadataWriteError.
"""

from __future__ import annotations

from pyspark.sql import SparkSession

from src.catalog_sync.errors import MetadataReadError, MetadataWriteError, StorageError
from src.catalog_sync.identifiers import FullyQualifiedTableName, Namespace
from src.catalog_sync.models import LiveComment
from src.catalog_sync.sql import (
    sql_select_base_tables,
    sql_select_table_comment,
    sql_set_table_comment,
    table_type_parameter_names,
)
from src.constants import BASE_TABLE_TYPES

_MAX_ERROR_SUMMARY_LENGTH = 300


class SparkTableMetadata:
    """Reads and writes table-level metadata through `information_schema` and DDL."""

    def __init__(self, spark: SparkSession) -> None:
        self.spark = spark

    def list_base_tables(self, namespace: Namespace) -> list[str]:
        """Names of the base tables (no views) in `namespace`."""
        query = sql_select_base_tables(namespace.database, BASE_TABLE_TYPES)
        args: dict[str, str] = {"schema_name": namespace.schema}
        args.update(zip(table_type_parameter_names(BASE_TABLE_TYPES), BASE_TABLE_TYPES))
        try:
            rows = self.spark.sql(query, args=args).collect()
        except Exception as error:
            raise StorageError(f"Failed to list tables in {namespace}: {error}") from error
        return [str(row["table_name"]) for row in rows]

    def read_table_comment(self, full_table_name: FullyQualifiedTableName) -> LiveComment:
        """
        Current comment of one table.

        - No rows / NULL comment -> LiveComment(comment=None).
        - Query failure          -> LiveComment(error="<type>: <first line>").
        """
        try:
            return LiveComment(comment=self._select_comment(full_table_name))
        except MetadataReadError as error:
            return LiveComment(error=format_error_brief(error.__cause__ or error))

    def set_table_comment(self, full_table_name: FullyQualifiedTableName, comment: str) -> None:
        try:
            self.spark.sql(sql_set_table_comment(full_table_name, comment)).collect()
        except Exception as error:
            raise MetadataWriteError(str(error)) from error

    # ---------- helpers ----------

    def _select_comment(self, full_table_name: FullyQualifiedTableName) -> str | None:
        args = {"schema_name": full_table_name.schema, "table_name": full_table_name.table}
        try:
            rows = self.spark.sql(sql_select_table_comment(full_table_name), args=args).collect()
            value = rows[0]["comment"] if rows else None
        except Exception as error:
            raise MetadataReadError(str(error)) from error
        return None if value is None else str(value)


def format_error_brief(error: object) -> str:
    """Trimmed single-line summary of an exception, e.g. `AnalysisException: ...`."""
    if isinstance(error, BaseException):
        name = type(error).__name__
        text = str(error).strip()
        first_line = text.splitlines()[0] if text else ""
        brief = f"{name}: {first_line}" if first_line else name
    else:
        text = str(error).strip()
        brief = text.splitlines()[0] if text else ""
    return brief[:_MAX_ERROR_SUMMARY_LENGTH]
