"""textstore API module.

This module provides the FastAPI application and route handlers
for the textstore service.
"""

from textstore.api.app import app, create_app

__all__ = ["app", "create_app"]
