"""Liveness endpoint for load balancers.

The service is healthy exactly when its storage backend is connected.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from textstore.api.dependencies import get_optional_backend
from textstore.observability.logging import get_logger
from textstore.storage.base import StorageBackend

logger = get_logger(__name__)
router = APIRouter(tags=["health"])

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Status of one dependency of the service."""

    status: str
    message: Optional[str] = None


class HealthReport(BaseModel):
    """Body of ``GET /health``.

    Attributes:
        status: ``healthy`` when every component is healthy
        components: Per-component status, keyed by component name
        version: Service version
    """

    status: str
    components: dict[str, ComponentHealth]
    version: str = "0.1.0"


def check_backend_health(backend: Optional[StorageBackend]) -> ComponentHealth:
    """Describe the backend's connection state.

    Args:
        backend: Backend attached to the app, or None before startup

    Returns:
        Healthy only for a connected backend
    """
    if backend is None:
        return ComponentHealth(status=UNHEALTHY, message="Backend not initialized")
    if backend.connected:
        return ComponentHealth(status=HEALTHY, message=f"{backend.name} backend connected")
    return ComponentHealth(
        status=UNHEALTHY, message=f"{backend.name} backend is {backend.state.value}"
    )


@router.get(
    "/health",
    response_model=HealthReport,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthReport}},
)
async def health_check(
    backend: Optional[StorageBackend] = Depends(get_optional_backend),
) -> JSONResponse:
    """Report backend health: 200 when connected, 503 otherwise."""
    components = {"backend": check_backend_health(backend)}
    healthy = all(component.status == HEALTHY for component in components.values())
    report = HealthReport(status=HEALTHY if healthy else UNHEALTHY, components=components)
    if not healthy:
        logger.warning("health_check_failed", components=report.model_dump()["components"])
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report.model_dump(),
    )
