"""FastAPI dependencies for route handlers.

This module provides dependency injection functions that hand the shared
storage backend to API routes.
"""

from typing import Optional

from fastapi import Request

from textstore.storage.base import StorageBackend
from textstore.storage.errors import BackendConnectionError


def get_optional_backend(request: Request) -> Optional[StorageBackend]:
    """Get the storage backend attached to the application, if any.

    Args:
        request: FastAPI request object

    Returns:
        The backend set up by the application lifespan, or None
    """
    return getattr(request.app.state, "backend", None)


def get_backend(request: Request) -> StorageBackend:
    """Get the storage backend for a request.

    Args:
        request: FastAPI request object

    Returns:
        The shared backend instance

    Raises:
        BackendConnectionError: If the application has no backend
    """
    backend = get_optional_backend(request)
    if backend is None:
        raise BackendConnectionError("Storage backend is not connected")
    return backend
