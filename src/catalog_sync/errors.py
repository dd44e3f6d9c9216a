"""
Error kinds raised by the catalog sync adapters.

Adapters wrap engine exceptions into one of these so the pipelines can turn
any per-table failure into an error record without inspecting Spark internals.
"""

from __future__ import annotations


class CatalogSyncError(Exception):
    """Base class for catalog sync failures."""


class ServiceInvocationError(CatalogSyncError):
    """The description service call failed or returned a malformed payload."""


class StorageError(CatalogSyncError):
    """Reading or writing the catalog, error or backup tables failed."""


class MetadataReadError(CatalogSyncError):
    """Reading a table's live comment failed."""


class MetadataWriteError(CatalogSyncError):
    """Setting a table's live comment failed."""
