"""FastAPI application for the textstore service.

``create_app`` wires the storage routes, health and metrics endpoints,
request tracing and error handlers around one storage backend. The backend
is connected once when the app starts and closed once when it stops; a
backend that cannot connect keeps the app from starting at all.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST

from textstore.api.middleware.correlation import CorrelationIdMiddleware
from textstore.api.middleware.error_handler import setup_error_handlers
from textstore.api.routes.health import router as health_router
from textstore.api.routes.storage import router as storage_router
from textstore.observability.logging import setup_logging
from textstore.observability.metrics import get_metrics_collector
from textstore.storage.base import StorageBackend
from textstore.storage.config import StorageConfig
from textstore.storage.errors import BackendConnectionError, StorageError
from textstore.storage.factory import connect_backend

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _configure_logging_from_env() -> None:
    setup_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=os.getenv("JSON_LOGS", "true").lower() == "true",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the storage backend for the lifetime of the app.

    A backend passed to ``create_app`` is used as is; otherwise one is
    connected from ``app.state.storage_config`` (or the environment).

    Raises:
        BackendConnectionError: If the backend cannot connect; startup aborts
    """
    _configure_logging_from_env()

    backend: Optional[StorageBackend] = app.state.backend
    if backend is None:
        try:
            backend = await connect_backend(app.state.storage_config)
        except BackendConnectionError as e:
            logger.critical("Storage backend unavailable, refusing to start: %s", e.message)
            raise
        app.state.backend = backend
    logger.info("Serving with the %s storage backend", backend.name)

    try:
        yield
    finally:
        try:
            await backend.close()
        except StorageError as e:
            logger.error("Storage backend did not close cleanly: [%s] %s", e.code, e.message)
        logger.info("Storage backend %s released", backend.name)


def create_app(
    config: Optional[StorageConfig] = None,
    backend: Optional[StorageBackend] = None,
) -> FastAPI:
    """Build the textstore API.

    Args:
        config: Storage configuration used at startup; read from the environment if omitted
        backend: Already connected backend to serve instead of connecting one

    Returns:
        FastAPI application whose lifespan owns the backend

    Examples:
        >>> app = create_app(StorageConfig(backend="sqlite", sqlite_path="/tmp/text.db"))
        >>> # uvicorn textstore.api.app:app --port 10000
    """
    app = FastAPI(
        title="textstore API",
        description="Document CRUD over pluggable storage backends",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.storage_config = config
    app.state.backend = backend

    app.add_middleware(CorrelationIdMiddleware)  # type: ignore[arg-type]
    setup_error_handlers(app)

    app.include_router(storage_router)
    app.include_router(health_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(
            content=get_metrics_collector().generate_metrics(),
            media_type=CONTENT_TYPE_LATEST,
        )

    return app


# Served by `uvicorn textstore.api.app:app`; the backend comes from the environment
app = create_app()
