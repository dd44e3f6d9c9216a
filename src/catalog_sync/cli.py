"""Command line entry point for the catalog sync pipelines."""

from __future__ import annotations

import typer
from pyspark.sql import SparkSession

from src import settings
from src.catalog_sync.applier import apply_table_descriptions
from src.catalog_sync.generator import generate_table_descriptions
from src.constants import CATALOG_TABLE_NAME

app = typer.Typer(
    help="catalog-sync - generate table descriptions and apply them as comments",
    no_args_is_help=True,
)

opt_catalog_table = typer.Option(
    CATALOG_TABLE_NAME,
    "--catalog-table",
    help="Catalog table: bare name (inside the logging namespace) or schema.table / db.schema.table.",
)
opt_logging_namespace = typer.Option(
    None,
    "--logging-namespace",
    help="database.schema holding the catalog, error and backup tables.",
)


def _spark_session() -> SparkSession:
    from src.runtime import spark

    return spark


@app.command("generate")
def generate(
    database_name: str = typer.Argument(..., help="Database (catalog) to describe."),
    schema_name: str = typer.Argument(..., help="Schema to describe."),
    catalog_table: str = opt_catalog_table,
    use_table_data: bool = typer.Option(
        False, "--use-table-data/--no-use-table-data", help="Let the service sample rows."
    ),
    logging_namespace: str | None = opt_logging_namespace,
    max_errors: int = typer.Option(settings.GENERATE_MAX_ERRORS, "--max-errors", min=1),
) -> None:
    """Generate descriptions for every base table and upsert them into the catalog."""
    status = generate_table_descriptions(
        _spark_session(),
        database_name=database_name,
        schema_name=schema_name,
        use_table_data=use_table_data,
        catalog_table=catalog_table,
        logging_namespace=logging_namespace,
        max_errors=max_errors,
    )
    typer.echo(status)


@app.command("apply")
def apply(
    database_name: str = typer.Argument(..., help="Database (catalog) to update."),
    schema_name: str = typer.Argument(..., help="Schema to update."),
    catalog_table: str = opt_catalog_table,
    overwrite_existing: bool = typer.Option(
        False, "--overwrite-existing/--keep-existing", help="Replace comments that are already set."
    ),
    backup_existing: bool = typer.Option(
        False, "--backup-existing/--no-backup", help="Save replaced comments before overwriting."
    ),
    logging_namespace: str | None = opt_logging_namespace,
    max_errors: int = typer.Option(settings.APPLY_MAX_ERRORS, "--max-errors", min=1),
) -> None:
    """Set table comments from the catalog."""
    status = apply_table_descriptions(
        _spark_session(),
        database_name=database_name,
        schema_name=schema_name,
        catalog_table=catalog_table,
        overwrite_existing=overwrite_existing,
        backup_existing=backup_existing,
        logging_namespace=logging_namespace,
        max_errors=max_errors,
    )
    typer.echo(status)


if __name__ == "__main__":
    app()
