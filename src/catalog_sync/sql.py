"""
SQL string builders for the catalog sync pipelines.

Query text uses named parameter markers (`:name`) for values; the caller
binds them with `spark.sql(query, args={...})`.

Conventions:
- Identifiers (database/schema/table/procedure names) are rendered through
  `quote_identifier` / `quote_qualified_name` only.
- Values (filters, error messages, flags) are never rendered into the text.
- The one exception is `COMMENT ON TABLE ... IS <literal>`: the parser only
  accepts a string literal there, so the comment goes through
  `escape_sql_literal`.
"""

from __future__ import annotations

from collections.abc import Sequence

from src.catalog_sync.identifiers import FullyQualifiedTableName, quote_qualified_name

# ---------- information_schema ----------


def sql_select_base_tables(database_name: str, table_types: Sequence[str]) -> str:
    """
    Return `table_name` for every base table in one schema of `database_name`.

    Binds: `:schema_name` plus `:table_type_0` ... `:table_type_N`.
    """
    tables_view = _info_schema_table(database_name, "tables")
    type_markers = ", ".join(f":{name}" for name in table_type_parameter_names(table_types))
    return f"""
    SELECT
      table_name
    FROM {tables_view}
    WHERE table_schema = :schema_name
      AND table_type IN ({type_markers})
    ORDER BY table_name
    """


def table_type_parameter_names(table_types: Sequence[str]) -> list[str]:
    return [f"table_type_{index}" for index in range(len(table_types))]


def sql_select_table_comment(full_table_name: FullyQualifiedTableName) -> str:
    """
    Return at most one row with the table-level `comment`.

    Binds: `:schema_name`, `:table_name`.
    """
    tables_view = _info_schema_table(full_table_name.database, "tables")
    return f"""
    SELECT
      comment
    FROM {tables_view}
    WHERE table_schema = :schema_name
      AND table_name   = :table_name
    """


# ---------- live metadata ----------


def sql_set_table_comment(full_table_name: FullyQualifiedTableName, comment: str) -> str:
    """COMMENT ON TABLE ... IS '<escaped comment>' (no parameters)."""
    return f"COMMENT ON TABLE {full_table_name.quoted} IS '{escape_sql_literal(comment)}'"


def escape_sql_literal(value: str | None) -> str:
    """
    Escape a Python string for use inside a single-quoted Spark SQL literal.

    Spark unescapes backslash sequences in literals and does not accept a
    doubled quote inside one literal, so backslashes are doubled first and
    quotes are backslash-escaped. None renders as the empty string.
    """
    return (value or "").replace("\\", "\\\\").replace("'", "\\'")


# ---------- description service ----------


def sql_call_description_procedure(procedure_name: str) -> str:
    """
    CALL <procedure>(:table_name, named_struct(...)).

    Binds: `:table_name` (quoted FQN string), `:describe_columns`, `:use_table_data`.

    Needs an engine with `CALL` support (Databricks SQL procedures); open
    source Spark 3.5 rejects the statement at parse time.
    """
    procedure = quote_qualified_name(*procedure_name.split("."))
    return f"CALL {procedure}(:table_name, {sql_description_options()})"


def sql_description_options() -> str:
    """Options struct passed to the procedure. Binds: `:describe_columns`, `:use_table_data`."""
    return (
        "named_struct("
        "'describe_columns', :describe_columns, "
        "'use_table_data', :use_table_data)"
    )


# ---------- bookkeeping tables ----------


def sql_select_catalog_descriptions(catalog_table: FullyQualifiedTableName) -> str:
    """
    Non-blank descriptions for one namespace and domain.

    Binds: `:domain`, `:database_name`, `:schema_name`.
    """
    return f"""
    SELECT
      database_name,
      schema_name,
      table_name,
      description
    FROM {catalog_table.quoted}
    WHERE domain = :domain
      AND database_name = :database_name
      AND schema_name = :schema_name
      AND description IS NOT NULL
      AND TRIM(description) != ''
    """


def sql_insert_error(errors_table: FullyQualifiedTableName, with_error_type: bool) -> str:
    """
    Append one error row; `created_at` is stamped by the engine.

    Binds: `:database_name`, `:schema_name`, `:table_name`, `:error_message`
    and `:error_type` when `with_error_type` is set (otherwise the column stays NULL).
    """
    columns = ["database_name", "schema_name", "table_name", "error_message"]
    if with_error_type:
        columns.append("error_type")
    markers = ", ".join(f":{column}" for column in columns)
    return (
        f"INSERT INTO {errors_table.quoted} ({', '.join(columns)}, created_at) "
        f"VALUES ({markers}, current_timestamp())"
    )


def sql_insert_comment_backup(backup_table: FullyQualifiedTableName) -> str:
    """
    Append one backup row; `backed_up_at` is stamped by the engine.

    Binds: `:database_name`, `:schema_name`, `:table_name`, `:original_comment`.
    """
    return (
        f"INSERT INTO {backup_table.quoted} "
        "(database_name, schema_name, table_name, original_comment, backed_up_at) "
        "VALUES (:database_name, :schema_name, :table_name, :original_comment, current_timestamp())"
    )


def catalog_merge_condition(keys: Sequence[str], target: str = "t", source: str = "s") -> str:
    """Join condition for the catalog upsert: `t.k1 = s.k1 AND t.k2 = s.k2 ...`."""
    return " AND ".join(f"{target}.{key} = {source}.{key}" for key in keys)


# ---------- helpers ----------


def _info_schema_table(database_name: str, view_name: str) -> str:
    """Quoted `<database>.information_schema.<view>` path."""
    return quote_qualified_name(database_name, "information_schema", view_name)
