"""Pydantic schemas for storage API requests and responses.

Records and targets are exchanged as the storage models themselves; this
module only adds the envelopes the routes need on top of them.
"""

from pydantic import BaseModel, Field


class RecordCreatedResponse(BaseModel):
    """Response for a created record.

    Attributes:
        id: Backend-assigned identifier of the new record
    """

    id: int = Field(..., description="Backend-assigned record identifier")


class RecordUpdateRequest(BaseModel):
    """Request for replacing a record's content.

    Attributes:
        title: New title
        text: New body text
    """

    title: str = Field(default="", description="Record title")
    text: str = Field(default="", description="Record body text")


class MessageResponse(BaseModel):
    """Plain confirmation message.

    Attributes:
        message: Human-readable outcome
    """

    message: str
