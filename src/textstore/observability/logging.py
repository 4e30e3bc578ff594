"""Structured logging for textstore.

structlog renders every event, as JSON lines or as console output, on top of
stdlib ``logging`` so uvicorn and SQLAlchemy records share one stream. The
correlation ID of the request being served lives in a ``ContextVar`` and is
stamped onto each storage event logged while serving it.
"""

import logging
import sys
from contextvars import ContextVar, Token
from typing import Any, Optional

import structlog
from structlog.typing import Processor

CORRELATION_KEY = "correlation_id"

_correlation_id: ContextVar[Optional[str]] = ContextVar("textstore_correlation_id", default=None)


def add_correlation_id(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor adding the current correlation ID to an event.

    A correlation ID bound explicitly on the logger takes precedence.
    """
    current = _correlation_id.get()
    if current is not None:
        event_dict.setdefault(CORRELATION_KEY, current)
    return event_dict


def _renderers(json_logs: bool) -> list[Processor]:
    if json_logs:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Minimum level name to emit, e.g. ``"DEBUG"``; unknown names mean INFO
        json_logs: Render JSON lines instead of human-readable console output

    Example:
        >>> setup_logging(log_level="DEBUG", json_logs=False)
        >>> get_logger(__name__).info("backend_connected", backend="sqlite")
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            *_renderers(json_logs),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger for the module ``name``."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str) -> Token:
    """Make ``correlation_id`` current for this context.

    Returns:
        Token restoring the previous value when passed to ``reset_correlation_id``
    """
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    _correlation_id.reset(token)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)
