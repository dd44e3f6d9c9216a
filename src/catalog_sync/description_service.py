"""
Adapter: description service backed by a SQL-callable procedure.

The procedure takes the quoted fully qualified table name plus an options
struct and returns a single JSON cell shaped like:

    {"TABLE": [{"description": "..."}], "COLUMNS": [...]}

Only the table-level description is used. `CALL` needs a Databricks runtime;
on an engine without it every call fails with ServiceInvocationError, which
the generator records per table like any other service failure.
"""

from __future__ import annotations

import json
from typing import Any

from pyspark.sql import SparkSession

from src import settings
from src.catalog_sync.errors import ServiceInvocationError
from src.catalog_sync.identifiers import FullyQualifiedTableName
from src.catalog_sync.sql import sql_call_description_procedure


class SqlDescriptionService:
    """Calls the description procedure once per table."""

    def __init__(
        self,
        spark: SparkSession,
        procedure_name: str = settings.DESCRIPTION_PROCEDURE,
        describe_columns: bool = False,
    ) -> None:
        self.spark = spark
        self.procedure_name = procedure_name
        self.describe_columns = describe_columns

    def describe_table(self, full_table_name: FullyQualifiedTableName, use_table_data: bool) -> str:
        query = sql_call_description_procedure(self.procedure_name)
        args = {
            "table_name": full_table_name.quoted,
            "describe_columns": self.describe_columns,
            "use_table_data": bool(use_table_data),
        }
        try:
            rows = self.spark.sql(query, args=args).collect()
        except Exception as error:
            raise ServiceInvocationError(
                f"{self.procedure_name} failed for {full_table_name}: {error}"
            ) from error
        if not rows:
            raise ServiceInvocationError(f"{self.procedure_name} returned no rows for {full_table_name}")
        return parse_description_payload(rows[0][0])


def parse_description_payload(payload: Any) -> str:
    """
    Extract `TABLE[0].description` from the procedure's JSON output.

    Accepts the raw JSON text or an already-decoded mapping.

    Raises:
        ServiceInvocationError: if the payload is not JSON or lacks the field.
    """
    try:
        document = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
        description = document["TABLE"][0]["description"]
    except (TypeError, ValueError, KeyError, IndexError) as error:
        raise ServiceInvocationError(f"Malformed description payload: {error!r}") from error
    if not isinstance(description, str):
        raise ServiceInvocationError(
            f"Malformed description payload: description is {type(description).__name__}"
        )
    return description
