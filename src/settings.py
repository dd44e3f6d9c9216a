"""Configuration values sourced from environment variables."""

import os
from typing import Final

from src.enums import Catalog, Medallion

_logging_database = os.getenv(key="LOGGING_DATABASE", default="dev")
_logging_schema = os.getenv(key="LOGGING_SCHEMA", default=Medallion.METADATA)


LOGGING_DATABASE: Final[str] = Catalog(_logging_database)
LOGGING_SCHEMA: Final[str] = _logging_schema
DESCRIPTION_PROCEDURE: Final[str] = os.getenv(
    key="DESCRIPTION_PROCEDURE", default="AI_GENERATE_TABLE_DESC"
)
MAX_ERROR_MESSAGE_LENGTH: Final[int] = int(
    os.getenv(key="MAX_ERROR_MESSAGE_LENGTH", default="8000")
)
GENERATE_MAX_ERRORS: Final[int] = int(os.getenv(key="GENERATE_MAX_ERRORS", default="200"))
APPLY_MAX_ERRORS: Final[int] = int(os.getenv(key="APPLY_MAX_ERRORS", default="100"))
LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="catalog-sync")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)
