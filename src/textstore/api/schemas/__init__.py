"""API request/response schemas for textstore.

This module exports all API schemas for easy import and use in route handlers.
"""

from textstore.api.schemas.storage import (
    MessageResponse,
    RecordCreatedResponse,
    RecordUpdateRequest,
)

__all__ = [
    "MessageResponse",
    "RecordCreatedResponse",
    "RecordUpdateRequest",
]
