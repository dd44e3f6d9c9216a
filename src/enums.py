"""Enumerations used throughout the catalog sync pipelines."""

from enum import StrEnum


class Catalog(StrEnum):
    """Catalog name in Unity Catalog."""

    DEV = "dev"
    PROD = "prod"


class Medallion(StrEnum):
    """Layer in the medallion architecture."""

    METADATA = "metadata"


class Domain(StrEnum):
    """Kind of object a catalog entry describes."""

    TABLE = "TABLE"


class ApplyErrorType(StrEnum):
    """Which sub-step of the apply pipeline failed."""

    BACKUP_ERROR = "BACKUP_ERROR"
    ALTER_TABLE = "ALTER_TABLE"
