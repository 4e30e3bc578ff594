"""Storage layer for textstore record persistence.

This module provides the storage backend contract and its MongoDB and
SQLite implementations.
"""

# NOTE: Lazy imports so that importing the models does not pull in both drivers.
# Import these directly when needed:
# from textstore.storage.base import StorageBackend
# from textstore.storage.mongo_backend import MongoBackend
# from textstore.storage.sqlite_backend import SQLiteBackend
# from textstore.storage.factory import connect_backend

__all__ = [
    "StorageBackend",
    "MongoBackend",
    "SQLiteBackend",
    "connect_backend",
]


def __getattr__(name: str):
    """Lazy load attributes to avoid importing every driver up front."""
    if name == "StorageBackend":
        from textstore.storage.base import StorageBackend

        return StorageBackend
    elif name == "MongoBackend":
        from textstore.storage.mongo_backend import MongoBackend

        return MongoBackend
    elif name == "SQLiteBackend":
        from textstore.storage.sqlite_backend import SQLiteBackend

        return SQLiteBackend
    elif name == "connect_backend":
        from textstore.storage.factory import connect_backend

        return connect_backend
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
