"""
Apply-and-backup pipeline.

Flow (one pass):
  1) Read the non-blank TABLE descriptions recorded for the target namespace.
  2) Skip bookkeeping tables.
  3) Look up the live comment when the policy needs it.
  4) Decide: skip, back up then apply, or apply.
  5) Record backup and apply failures in the apply error table and continue.
  6) Stop early once the error count reaches the failure ceiling.

Decision table
--------------
overwrite | backup | live comment | action
false     | any    | non-blank    | skip
false     | any    | none/blank   | apply
true      | true   | non-blank    | back up, then apply
true      | true   | none/blank   | apply
true      | false  | any          | apply
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pyspark.sql import SparkSession

from src import settings
from src.catalog_sync.errors import CatalogSyncError, StorageError
from src.catalog_sync.identifiers import (
    FullyQualifiedTableName,
    Namespace,
    is_bookkeeping_table,
    resolve_logging_namespace,
    resolve_table_name,
)
from src.catalog_sync.metadata import SparkTableMetadata
from src.catalog_sync.models import (
    ApplyCounts,
    CatalogDescriptionRow,
    CommentBackup,
    ErrorRecord,
    LiveComment,
)
from src.catalog_sync.ports import BackupSink, CatalogReader, ErrorSink, TableMetadata
from src.catalog_sync.store import CatalogStore, CommentBackupLog, ErrorLog
from src.constants import APPLY_ERRORS_TABLE_NAME, COMMENT_BACKUP_TABLE_NAME
from src.enums import ApplyErrorType
from src.logger import LOGGER


class ApplyDecision(StrEnum):
    SKIP = "skip"
    APPLY = "apply"
    BACKUP_AND_APPLY = "backup_and_apply"


@dataclass(frozen=True)
class ApplyPolicy:
    """How to treat tables that already carry a comment."""

    overwrite_existing: bool = False
    backup_existing: bool = False

    @property
    def needs_live_comment(self) -> bool:
        return not self.overwrite_existing or self.backup_existing

    def decide(self, existing_comment: str | None) -> ApplyDecision:
        """`existing_comment` is the non-blank live comment, or None."""
        if existing_comment is None:
            return ApplyDecision.APPLY
        if not self.overwrite_existing:
            return ApplyDecision.SKIP
        if self.backup_existing:
            return ApplyDecision.BACKUP_AND_APPLY
        return ApplyDecision.APPLY


class DescriptionApplier:
    """
    Glue for read catalog → inspect → back up → comment, one table at a time.

    No SQL here; every engine interaction goes through the injected ports.
    """

    def __init__(
        self,
        metadata: TableMetadata,
        catalog: CatalogReader,
        errors: ErrorSink,
        backups: BackupSink | None = None,
        max_errors: int = settings.APPLY_MAX_ERRORS,
        max_error_length: int | None = None,
    ) -> None:
        if max_errors < 1:
            raise ValueError(f"max_errors must be at least 1, got {max_errors}")
        self._metadata = metadata
        self._catalog = catalog
        self._errors = errors
        self._backups = backups
        self.max_errors = max_errors
        self.max_error_length = max_error_length

    # ----- public API -----

    def run(self, namespace: Namespace, policy: ApplyPolicy) -> str:
        """Project catalog descriptions for `namespace` onto live table comments."""
        if policy.backup_existing and self._backups is None:
            raise ValueError("backup_existing requires a backup sink")

        catalog_name = self._catalog.table_name
        LOGGER.info("Applying descriptions from %s to %s (%s)", catalog_name, namespace, policy)
        try:
            rows = self._catalog.read_descriptions(namespace)
        except StorageError as error:
            LOGGER.error("Could not read catalog table %s: %s", catalog_name, error)
            return f"Error reading from catalog table {catalog_name}: {error}"

        if not rows:
            LOGGER.info("Nothing to apply for %s", namespace)
            return f"No table descriptions found in {catalog_name} for {namespace}"

        own_tables = (catalog_name.table,)
        counts = ApplyCounts()
        for row in rows:
            if is_bookkeeping_table(row.table_name, own_tables):
                continue
            counts = self._process_row(row, policy, counts)
            if counts.errors >= self.max_errors:
                LOGGER.error(
                    "Stopping apply after %d errors (success=%d)", counts.errors, counts.success
                )
                return (
                    f"Stopped early after {counts.errors} errors. Success={counts.success}, "
                    f"Skipped={counts.skipped}, Backed up={counts.backed_up}. "
                    f"Check {self._errors.table_name}."
                )

        LOGGER.info(
            "Apply completed: success=%d, errors=%d, skipped=%d, backed_up=%d",
            counts.success,
            counts.errors,
            counts.skipped,
            counts.backed_up,
        )
        return (
            f"Completed applying descriptions. Success={counts.success}, Errors={counts.errors}, "
            f"Skipped={counts.skipped}, Backed up={counts.backed_up}. "
            f"Errors logged to {self._errors.table_name}."
        )

    # ----- steps -----

    def _process_row(
        self, row: CatalogDescriptionRow, policy: ApplyPolicy, counts: ApplyCounts
    ) -> ApplyCounts:
        full_table_name = row.full_table_name
        existing = self._existing_comment(full_table_name) if policy.needs_live_comment else None
        decision = policy.decide(existing)

        if decision is ApplyDecision.SKIP:
            LOGGER.info("Skipping %s: table already has a comment", full_table_name)
            return counts.add_skipped()

        if decision is ApplyDecision.BACKUP_AND_APPLY:
            counts = self._backup(full_table_name, existing, counts)  # type: ignore[arg-type]

        try:
            self._metadata.set_table_comment(full_table_name, row.description)
        except CatalogSyncError as error:
            LOGGER.warning("Failed to set comment on %s: %s", full_table_name, error)
            self._record_error(full_table_name, error, ApplyErrorType.ALTER_TABLE)
            return counts.add_error()

        LOGGER.info("Applied description to %s", full_table_name)
        return counts.add_success()

    def _existing_comment(self, full_table_name: FullyQualifiedTableName) -> str | None:
        """Non-blank live comment; an unreadable comment counts as none."""
        lookup: LiveComment = self._metadata.read_table_comment(full_table_name)
        if lookup.failed:
            LOGGER.warning(
                "Could not read comment on %s, treating as empty: %s", full_table_name, lookup.error
            )
            return None
        return lookup.existing

    def _backup(
        self, full_table_name: FullyQualifiedTableName, comment: str, counts: ApplyCounts
    ) -> ApplyCounts:
        """Best effort: a failed backup is recorded and the apply still goes ahead."""
        try:
            self._backups.append(CommentBackup.for_table(full_table_name, comment))  # type: ignore[union-attr]
        except CatalogSyncError as error:
            LOGGER.warning("Failed to back up comment on %s: %s", full_table_name, error)
            self._record_error(full_table_name, error, ApplyErrorType.BACKUP_ERROR)
            return counts
        return counts.add_backed_up()

    def _record_error(
        self, full_table_name: FullyQualifiedTableName, error: Exception, error_type: ApplyErrorType
    ) -> None:
        self._errors.append(
            ErrorRecord.from_exception(
                full_table_name, error, error_type=error_type, max_length=self.max_error_length
            )
        )


def apply_table_descriptions(
    spark: SparkSession,
    database_name: str,
    schema_name: str,
    catalog_table: str,
    overwrite_existing: bool,
    backup_existing: bool,
    logging_namespace: Namespace | str | None = None,
    max_errors: int = settings.APPLY_MAX_ERRORS,
) -> str:
    """
    Set table comments in `database_name.schema_name` from `catalog_table`.

    Apply errors go to APPLY_DESCRIPTION_ERRORS and, when `backup_existing` is
    set, replaced comments to ORIGINAL_TABLE_COMMENTS_BACKUP, both in the
    logging namespace.
    """
    log_namespace = resolve_logging_namespace(logging_namespace)
    errors = ErrorLog(spark, log_namespace.table(APPLY_ERRORS_TABLE_NAME))
    errors.ensure_exists()

    backups: CommentBackupLog | None = None
    if backup_existing:
        backups = CommentBackupLog(spark, log_namespace.table(COMMENT_BACKUP_TABLE_NAME))
        backups.ensure_exists()

    applier = DescriptionApplier(
        metadata=SparkTableMetadata(spark),
        catalog=CatalogStore(spark, resolve_table_name(catalog_table, log_namespace)),
        errors=errors,
        backups=backups,
        max_errors=max_errors,
    )
    policy = ApplyPolicy(overwrite_existing=overwrite_existing, backup_existing=backup_existing)
    return applier.run(Namespace(database_name, schema_name), policy)
