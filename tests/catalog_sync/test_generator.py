from datetime import datetime, timedelta

import pytest

import src.catalog_sync.generator as generator_mod
from src.catalog_sync.errors import ServiceInvocationError, StorageError
from src.catalog_sync.generator import DescriptionGenerator, generate_table_descriptions
from src.catalog_sync.identifiers import FullyQualifiedTableName, Namespace

NAMESPACE = Namespace("dev", "sales")
CATALOG = FullyQualifiedTableName("dev", "metadata", "CATALOG_TABLE")
ERRORS = FullyQualifiedTableName("dev", "metadata", "CATALOG_ERRORS")


# ---------- in-memory fakes ----------


class FakeMetadata:
    def __init__(self, tables, error=None):
        self.tables = tables
        self.error = error

    def list_base_tables(self, namespace):
        if self.error is not None:
            raise self.error
        return list(self.tables)


class FakeService:
    """Returns '<table> v<n>' descriptions; raises for names in `failing`."""

    def __init__(self, failing=(), version=1):
        self.failing = set(failing)
        self.version = version
        self.calls = []

    def describe_table(self, full_table_name, use_table_data):
        self.calls.append((full_table_name, use_table_data))
        if full_table_name.table in self.failing:
            raise ServiceInvocationError(f"service failed for {full_table_name.table}")
        return f"{full_table_name.table} v{self.version}"


class FakeCatalog:
    """Keyed dict with MERGE semantics and a ticking clock."""

    def __init__(self, table_name=CATALOG, failing=()):
        self.table_name = table_name
        self.failing = set(failing)
        self.rows = {}
        self._now = datetime(2026, 1, 1)

    def upsert(self, entry):
        if entry.table_name in self.failing:
            raise StorageError("merge conflict")
        self._now += timedelta(seconds=1)
        key = (entry.domain, entry.database_name, entry.schema_name, entry.table_name)
        self.rows[key] = {"description": entry.description, "name": entry.name, "created_at": self._now}


class FakeErrors:
    def __init__(self):
        self.table_name = ERRORS
        self.records = []

    def append(self, record):
        self.records.append(record)


def make_generator(tables, failing=(), catalog=None, max_errors=200):
    errors = FakeErrors()
    catalog = catalog or FakeCatalog()
    service = FakeService(failing=failing)
    generator = DescriptionGenerator(
        metadata=FakeMetadata(tables),
        service=service,
        catalog=catalog,
        errors=errors,
        max_errors=max_errors,
    )
    return generator, service, catalog, errors


# ---------- tests ----------


def test_describes_every_table_and_reports_counts():
    generator, service, catalog, errors = make_generator(["orders", "customers"])

    status = generator.run(NAMESPACE, use_table_data=True)

    assert status == (
        "Completed. Success=2, Errors=0. Errors logged to dev.metadata.CATALOG_ERRORS."
    )
    assert [c[0] for c in service.calls] == [NAMESPACE.table("orders"), NAMESPACE.table("customers")]
    assert all(flag is True for _, flag in service.calls)
    assert catalog.rows[("TABLE", "dev", "sales", "orders")]["description"] == "orders v1"
    assert errors.records == []


def test_running_twice_keeps_one_row_per_table_with_newer_timestamp():
    catalog = FakeCatalog()
    first, _, _, _ = make_generator(["orders", "customers"], catalog=catalog)
    first.run(NAMESPACE, use_table_data=False)
    first_stamp = catalog.rows[("TABLE", "dev", "sales", "orders")]["created_at"]

    second, service, _, _ = make_generator(["orders", "customers"], catalog=catalog)
    service.version = 2
    second.run(NAMESPACE, use_table_data=False)

    assert len(catalog.rows) == 2
    row = catalog.rows[("TABLE", "dev", "sales", "orders")]
    assert row["description"] == "orders v2"
    assert row["name"] == "orders"
    assert row["created_at"] > first_stamp


def test_bookkeeping_tables_are_never_described():
    tables = ["orders", "catalog_table", "CATALOG_ERRORS", "Apply_Description_Errors",
              "original_table_comments_backup"]
    generator, service, catalog, _ = make_generator(tables)

    status = generator.run(NAMESPACE, use_table_data=False)

    assert [c[0].table for c in service.calls] == ["orders"]
    assert [key[3] for key in catalog.rows] == ["orders"]
    assert "Success=1" in status


def test_custom_catalog_table_name_is_skipped_too():
    catalog = FakeCatalog(table_name=FullyQualifiedTableName("dev", "sales", "table_docs"))
    generator, service, _, _ = make_generator(["orders", "TABLE_DOCS"], catalog=catalog)
    generator.run(NAMESPACE, use_table_data=False)
    assert [c[0].table for c in service.calls] == ["orders"]


def test_service_failure_is_recorded_and_leaves_prior_entry_untouched():
    catalog = FakeCatalog()
    first, _, _, _ = make_generator(["orders", "broken"], catalog=catalog)
    first.run(NAMESPACE, use_table_data=False)
    before = dict(catalog.rows[("TABLE", "dev", "sales", "broken")])

    second, service, _, errors = make_generator(["orders", "broken", "items"], failing={"broken"}, catalog=catalog)
    service.version = 2
    status = second.run(NAMESPACE, use_table_data=False)

    assert status == "Completed. Success=2, Errors=1. Errors logged to dev.metadata.CATALOG_ERRORS."
    assert catalog.rows[("TABLE", "dev", "sales", "broken")] == before
    (record,) = errors.records
    assert (record.database_name, record.schema_name, record.table_name) == ("dev", "sales", "broken")
    assert "service failed for broken" in record.error_message
    assert record.error_type is None


def test_storage_failure_is_recorded_and_run_continues():
    catalog = FakeCatalog(failing={"orders"})
    generator, _, _, errors = make_generator(["orders", "items"], catalog=catalog)

    status = generator.run(NAMESPACE, use_table_data=False)

    assert "Success=1, Errors=1" in status
    assert errors.records[0].table_name == "orders"
    assert "merge conflict" in errors.records[0].error_message


def test_error_messages_are_truncated():
    generator, _, _, errors = make_generator(["broken"], failing={"broken"})
    generator.max_error_length = 5
    generator.run(NAMESPACE, use_table_data=False)
    assert errors.records[0].error_message == "servi"


def test_stops_once_error_ceiling_is_reached():
    tables = ["a", "b", "c", "d", "e"]
    generator, service, _, errors = make_generator(tables, failing={"a", "c", "d"}, max_errors=2)

    status = generator.run(NAMESPACE, use_table_data=False)

    assert status == "Stopped early after 2 errors. Success=1. Check dev.metadata.CATALOG_ERRORS."
    assert [c[0].table for c in service.calls] == ["a", "b", "c"]
    assert len(errors.records) == 2


def test_listing_failure_is_reported_in_status():
    generator = DescriptionGenerator(
        metadata=FakeMetadata([], error=StorageError("no such schema")),
        service=FakeService(),
        catalog=FakeCatalog(),
        errors=FakeErrors(),
    )
    assert generator.run(NAMESPACE, use_table_data=False) == (
        "Error listing tables in dev.sales: no such schema"
    )


def test_max_errors_must_be_positive():
    with pytest.raises(ValueError):
        make_generator([], max_errors=0)


def test_default_ceiling_is_200():
    generator = DescriptionGenerator(FakeMetadata([]), FakeService(), FakeCatalog(), FakeErrors())
    assert generator.max_errors == 200


# ---------- wiring ----------


def test_generate_table_descriptions_wires_spark_adapters(monkeypatch):
    created = {}

    class StubStore:
        def __init__(self, spark, table_name):
            self.table_name = table_name
            created["catalog"] = self

        def ensure_exists(self):
            created["catalog_ensured"] = True

    class StubErrorLog(StubStore):
        def __init__(self, spark, table_name):
            self.table_name = table_name
            created["errors"] = self

        def ensure_exists(self):
            created["errors_ensured"] = True

    class StubGenerator:
        def __init__(self, metadata, service, catalog, errors, max_errors):
            created["max_errors"] = max_errors

        def run(self, namespace, use_table_data):
            return f"ran {namespace} {use_table_data}"

    monkeypatch.setattr(generator_mod, "CatalogStore", StubStore)
    monkeypatch.setattr(generator_mod, "ErrorLog", StubErrorLog)
    monkeypatch.setattr(generator_mod, "DescriptionGenerator", StubGenerator)

    status = generate_table_descriptions(
        object(), "dev", "sales", True, "docs", logging_namespace="ops.audit", max_errors=7
    )

    assert status == "ran dev.sales True"
    assert created["catalog"].table_name == FullyQualifiedTableName("ops", "audit", "docs")
    assert created["errors"].table_name == FullyQualifiedTableName("ops", "audit", "CATALOG_ERRORS")
    assert created["catalog_ensured"] and created["errors_ensured"]
    assert created["max_errors"] == 7
