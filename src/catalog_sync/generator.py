"""
Generate-and-upsert pipeline.

Flow (one pass):
  1) List the base tables of the target namespace, minus bookkeeping tables.
  2) Ask the description service for each table's description.
  3) Upsert the description into the catalog store (one row per table).
  4) Record any per-table failure in the generation error table and continue.
  5) Stop early once the error count reaches the failure ceiling.

The run returns a single status string; details of each failure live in the
error table.
"""

from __future__ import annotations

from pyspark.sql import SparkSession

from src import settings
from src.catalog_sync.description_service import SqlDescriptionService
from src.catalog_sync.errors import CatalogSyncError, StorageError
from src.catalog_sync.identifiers import (
    FullyQualifiedTableName,
    Namespace,
    is_bookkeeping_table,
    resolve_logging_namespace,
    resolve_table_name,
)
from src.catalog_sync.metadata import SparkTableMetadata
from src.catalog_sync.models import CatalogEntry, ErrorRecord, GenerationCounts
from src.catalog_sync.ports import CatalogWriter, DescriptionService, ErrorSink, TableMetadata
from src.catalog_sync.store import CatalogStore, ErrorLog
from src.constants import CATALOG_ERRORS_TABLE_NAME
from src.logger import LOGGER


class DescriptionGenerator:
    """
    Glue for enumerate → describe → upsert, one table at a time.

    No SQL here; every engine interaction goes through the injected ports.
    """

    def __init__(
        self,
        metadata: TableMetadata,
        service: DescriptionService,
        catalog: CatalogWriter,
        errors: ErrorSink,
        max_errors: int = settings.GENERATE_MAX_ERRORS,
        max_error_length: int | None = None,
    ) -> None:
        if max_errors < 1:
            raise ValueError(f"max_errors must be at least 1, got {max_errors}")
        self._metadata = metadata
        self._service = service
        self._catalog = catalog
        self._errors = errors
        self.max_errors = max_errors
        self.max_error_length = max_error_length

    # ----- public API -----

    def run(self, namespace: Namespace, use_table_data: bool) -> str:
        """Describe every eligible table in `namespace` and return a status line."""
        LOGGER.info(
            "Generating table descriptions for %s into %s (use_table_data=%s)",
            namespace,
            self._catalog.table_name,
            use_table_data,
        )
        try:
            tables = self.eligible_tables(namespace)
        except StorageError as error:
            LOGGER.error("Could not list tables in %s: %s", namespace, error)
            return f"Error listing tables in {namespace}: {error}"

        counts = GenerationCounts()
        for table_name in tables:
            counts = self._process_table(namespace.table(table_name), use_table_data, counts)
            if counts.errors >= self.max_errors:
                LOGGER.error(
                    "Stopping generation after %d errors (success=%d)", counts.errors, counts.success
                )
                return (
                    f"Stopped early after {counts.errors} errors. Success={counts.success}. "
                    f"Check {self._errors.table_name}."
                )

        LOGGER.info("Generation completed: success=%d, errors=%d", counts.success, counts.errors)
        return (
            f"Completed. Success={counts.success}, Errors={counts.errors}. "
            f"Errors logged to {self._errors.table_name}."
        )

    def eligible_tables(self, namespace: Namespace) -> list[str]:
        """Base tables of `namespace` that are not bookkeeping tables."""
        own_tables = (self._catalog.table_name.table,)
        return [
            table_name
            for table_name in self._metadata.list_base_tables(namespace)
            if not is_bookkeeping_table(table_name, own_tables)
        ]

    # ----- steps -----

    def _process_table(
        self,
        full_table_name: FullyQualifiedTableName,
        use_table_data: bool,
        counts: GenerationCounts,
    ) -> GenerationCounts:
        """Describe and upsert one table; a failure is recorded, never raised."""
        try:
            description = self._service.describe_table(full_table_name, use_table_data)
            self._catalog.upsert(CatalogEntry.for_table(full_table_name, description))
        except CatalogSyncError as error:
            LOGGER.warning("Failed to describe %s: %s", full_table_name, error)
            self._errors.append(
                ErrorRecord.from_exception(full_table_name, error, max_length=self.max_error_length)
            )
            return counts.add_error()

        LOGGER.info("Described %s", full_table_name)
        return counts.add_success()


def generate_table_descriptions(
    spark: SparkSession,
    database_name: str,
    schema_name: str,
    use_table_data: bool,
    catalog_table: str,
    logging_namespace: Namespace | str | None = None,
    max_errors: int = settings.GENERATE_MAX_ERRORS,
) -> str:
    """
    Describe every base table in `database_name.schema_name` into `catalog_table`.

    `catalog_table` may be bare (resolved inside the logging namespace) or
    two/three-part. Generation errors go to CATALOG_ERRORS in the logging namespace.
    """
    log_namespace = resolve_logging_namespace(logging_namespace)
    catalog = CatalogStore(spark, resolve_table_name(catalog_table, log_namespace))
    errors = ErrorLog(spark, log_namespace.table(CATALOG_ERRORS_TABLE_NAME))
    catalog.ensure_exists()
    errors.ensure_exists()

    generator = DescriptionGenerator(
        metadata=SparkTableMetadata(spark),
        service=SqlDescriptionService(spark),
        catalog=catalog,
        errors=errors,
        max_errors=max_errors,
    )
    return generator.run(Namespace(database_name, schema_name), use_table_data)
