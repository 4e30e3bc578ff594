"""Exception handlers turning storage failures into JSON responses.

Every ``StorageError`` maps to the same generic failure status. Clients tell
failures apart by the ``code`` field of the body, never by the status.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from textstore.storage.errors import BackendError, StorageError

logger = logging.getLogger(__name__)


def error_body(code: str, message: str, **extra: Any) -> dict[str, Any]:
    return {"code": code, "message": message, **extra}


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Render a storage failure as ``{"code", "message"}``."""
    # Contract outcomes such as a missing record log at info
    log = logger.warning if isinstance(exc, BackendError) else logger.info
    log("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Render a model validation failure raised inside a route as a 400.

    Request parsing errors never get here; FastAPI answers those with 422.
    """
    errors = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("validation_error", "Request validation failed", errors=errors),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error", "An internal server error occurred"),
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register the storage, validation and fallback handlers on ``app``.

    Args:
        app: Application to configure
    """
    app.add_exception_handler(StorageError, storage_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
