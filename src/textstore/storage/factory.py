"""Backend selection.

Maps the configured backend name to its implementation and connects it.
"""

from typing import Optional

from textstore.observability.logging import get_logger
from textstore.storage.base import StorageBackend
from textstore.storage.config import StorageConfig, load_config_from_env
from textstore.storage.mongo_backend import MongoBackend
from textstore.storage.sqlite_backend import SQLiteBackend

logger = get_logger(__name__)

BACKENDS = {
    MongoBackend.name: MongoBackend,
    SQLiteBackend.name: SQLiteBackend,
}


async def connect_backend(config: Optional[StorageConfig] = None) -> StorageBackend:
    """Create and connect the configured storage backend.

    Args:
        config: Storage configuration; loaded from the environment if omitted

    Returns:
        A connected backend

    Raises:
        BackendConnectionError: If the backend cannot connect
        ValueError: If the configured backend is unknown
    """
    config = config or load_config_from_env()
    backend_cls = BACKENDS.get(config.backend)
    if backend_cls is None:
        raise ValueError(f"Unknown storage backend '{config.backend}'")

    logger.info("backend_connecting", backend=config.backend)
    return await backend_cls.connect(config)
