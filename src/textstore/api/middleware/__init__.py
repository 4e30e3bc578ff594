"""API middleware components.

This module exports middleware for error handling and request tracing.
"""

from textstore.api.middleware.correlation import CorrelationIdMiddleware
from textstore.api.middleware.error_handler import setup_error_handlers

__all__ = ["CorrelationIdMiddleware", "setup_error_handlers"]
