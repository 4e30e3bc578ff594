"""API route handlers for textstore.

This module exports all API routers for inclusion in the main FastAPI
application.
"""

from textstore.api.routes.health import router as health_router
from textstore.api.routes.storage import router as storage_router

__all__ = [
    "health_router",
    "storage_router",
]
