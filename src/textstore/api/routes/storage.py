"""Storage API route handlers.

Each route maps one inbound request to exactly one storage contract call
on the shared backend. Contract errors propagate to the error handlers,
which turn them into generic failure responses.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status
from fastapi.responses import JSONResponse

from textstore.api.dependencies import get_backend
from textstore.api.schemas.storage import (
    MessageResponse,
    RecordCreatedResponse,
    RecordUpdateRequest,
)
from textstore.observability.logging import get_logger
from textstore.storage.base import StorageBackend
from textstore.storage.models import INT64_MAX, ConnectionTarget, Record

logger = get_logger(__name__)

router = APIRouter(prefix="/storage", tags=["storage"])

NOTHING_DELETED_MESSAGE = "No matching document found and deleted"

RecordId = Annotated[int, Path(le=INT64_MAX, description="Backend-assigned record identifier")]


@router.get("/databases", response_model=list[str])
async def list_databases(backend: StorageBackend = Depends(get_backend)) -> list[str]:
    """List all databases visible to the backend."""
    return await backend.list_databases()


@router.get("/databases/{database}/collections", response_model=list[str])
async def list_collections(
    database: str, backend: StorageBackend = Depends(get_backend)
) -> list[str]:
    """List all collections (tables) of a database."""
    return await backend.list_collections(database)


@router.get("/target", response_model=ConnectionTarget)
async def get_target(backend: StorageBackend = Depends(get_backend)) -> ConnectionTarget:
    """Return the database and collection record operations currently use."""
    return backend.target


@router.put("/target", response_model=MessageResponse)
async def set_target(
    target: ConnectionTarget, backend: StorageBackend = Depends(get_backend)
) -> MessageResponse:
    """Store the database and collection for subsequent record requests."""
    await backend.set_target(target)
    return MessageResponse(message="Successfully set the connection data")


@router.post(
    "/records", response_model=RecordCreatedResponse, status_code=status.HTTP_201_CREATED
)
async def create_record(
    record: Record, backend: StorageBackend = Depends(get_backend)
) -> RecordCreatedResponse:
    """Create a new record. Any identifier in the body is ignored."""
    record_id = await backend.create(record)
    return RecordCreatedResponse(id=record_id)


@router.get("/records/{record_id}", response_model=Record)
async def get_record(
    record_id: RecordId, backend: StorageBackend = Depends(get_backend)
) -> Record:
    """Find and return one record."""
    return await backend.get(record_id)


@router.put("/records/{record_id}", response_model=Record)
async def update_record(
    record_id: RecordId,
    request: RecordUpdateRequest,
    backend: StorageBackend = Depends(get_backend),
) -> Record:
    """Replace the title and text of an existing record."""
    return await backend.update(Record(id=record_id, title=request.title, text=request.text))


@router.delete("/records/{record_id}", response_model=None)
async def delete_record(
    record_id: RecordId, backend: StorageBackend = Depends(get_backend)
) -> Response:
    """Remove one record.

    Returns:
        204 No Content when a record was removed, or 200 with a message when
        nothing matched the identifier
    """
    if await backend.delete(record_id):
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=MessageResponse(message=NOTHING_DELETED_MESSAGE).model_dump(),
    )
