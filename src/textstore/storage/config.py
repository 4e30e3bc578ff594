"""Storage configuration models and utilities.

This module provides configuration management for storage backends,
including backend selection, connection endpoints and per-call deadlines.
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

BackendName = Literal["mongo", "sqlite"]


class StorageConfig(BaseModel):
    """Global storage configuration.

    Attributes:
        backend: Which backend to connect ("mongo" or "sqlite")
        mongo_uri: Connection URI for the document store
        sqlite_path: Path of the single-file relational store
        sqlite_reset_on_connect: Delete any existing SQLite file before connecting
        sqlite_table: Name of the table created on first connect
        connect_timeout_seconds: Bound on establishing the document store connection
        ping_timeout_seconds: Bound on the construction-time liveness check
        operation_timeout_seconds: Bound on point operations (create/get/update/delete)
        list_databases_timeout_seconds: Bound on listing databases
        list_collections_timeout_seconds: Bound on listing collections
        close_timeout_seconds: Bound on closing the connection at shutdown

    Example:
        >>> config = StorageConfig(backend="sqlite", sqlite_path="/tmp/text.db")
        >>> config.operation_timeout_seconds
        5.0
    """

    backend: BackendName = Field(default="sqlite", description="Backend to connect")
    mongo_uri: str = Field(
        default="mongodb://127.0.0.1:27017", description="Document store connection URI"
    )
    sqlite_path: str = Field(default="./testdb.db", description="SQLite database file")
    sqlite_reset_on_connect: bool = Field(
        default=False, description="Discard the SQLite file before connecting"
    )
    sqlite_table: str = Field(default="textfiles", description="Table created on connect")
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    ping_timeout_seconds: float = Field(default=5.0, gt=0)
    operation_timeout_seconds: float = Field(default=5.0, gt=0)
    list_databases_timeout_seconds: float = Field(default=2.0, gt=0)
    list_collections_timeout_seconds: float = Field(default=20.0, gt=0)
    close_timeout_seconds: float = Field(default=2.0, gt=0)

    model_config = ConfigDict(frozen=True)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def load_config_from_env() -> StorageConfig:
    """Load storage configuration from environment variables.

    Automatically loads variables from .env file if present in the project root.

    Reads configuration from environment variables with the following patterns:
    - TEXTSTORE_BACKEND: Backend to connect (mongo or sqlite)
    - TEXTSTORE_MONGO_URI: Document store connection URI
    - TEXTSTORE_SQLITE_PATH: SQLite database file path
    - TEXTSTORE_SQLITE_RESET_ON_CONNECT: Discard the SQLite file on connect (true/false)
    - TEXTSTORE_CONNECT_TIMEOUT_SECONDS: Connection establishment bound
    - TEXTSTORE_PING_TIMEOUT_SECONDS: Liveness check bound
    - TEXTSTORE_OPERATION_TIMEOUT_SECONDS: Point operation bound
    - TEXTSTORE_LIST_DATABASES_TIMEOUT_SECONDS: Database listing bound
    - TEXTSTORE_LIST_COLLECTIONS_TIMEOUT_SECONDS: Collection listing bound
    - TEXTSTORE_CLOSE_TIMEOUT_SECONDS: Shutdown bound

    Returns:
        StorageConfig loaded from environment

    Raises:
        ValueError: If a numeric variable cannot be parsed
        pydantic.ValidationError: If a value is out of range

    Example:
        >>> import os
        >>> os.environ["TEXTSTORE_BACKEND"] = "mongo"
        >>> config = load_config_from_env()
        >>> config.backend
        'mongo'
    """
    # Load environment variables from .env file
    load_dotenv()

    return StorageConfig(
        backend=os.getenv("TEXTSTORE_BACKEND", "sqlite").lower(),
        mongo_uri=os.getenv("TEXTSTORE_MONGO_URI", "mongodb://127.0.0.1:27017"),
        sqlite_path=os.getenv("TEXTSTORE_SQLITE_PATH", "./testdb.db"),
        sqlite_reset_on_connect=_env_bool("TEXTSTORE_SQLITE_RESET_ON_CONNECT", "false"),
        connect_timeout_seconds=float(os.getenv("TEXTSTORE_CONNECT_TIMEOUT_SECONDS", "10")),
        ping_timeout_seconds=float(os.getenv("TEXTSTORE_PING_TIMEOUT_SECONDS", "5")),
        operation_timeout_seconds=float(os.getenv("TEXTSTORE_OPERATION_TIMEOUT_SECONDS", "5")),
        list_databases_timeout_seconds=float(
            os.getenv("TEXTSTORE_LIST_DATABASES_TIMEOUT_SECONDS", "2")
        ),
        list_collections_timeout_seconds=float(
            os.getenv("TEXTSTORE_LIST_COLLECTIONS_TIMEOUT_SECONDS", "20")
        ),
        close_timeout_seconds=float(os.getenv("TEXTSTORE_CLOSE_TIMEOUT_SECONDS", "2")),
    )
