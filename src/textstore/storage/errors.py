"""Custom exceptions for the storage layer.

This module defines the exception hierarchy raised by storage backends,
providing structured error handling with status codes and error codes.

Every storage error maps to the same generic failure status; the ``code``
attribute is what distinguishes one failure from another on the wire.
"""

from typing import Optional

GENERIC_FAILURE_STATUS = 500


class StorageError(Exception):
    """Base exception for all storage-related errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
        status_code: HTTP status code for API responses
    """

    def __init__(
        self, message: str, code: str, status_code: int = GENERIC_FAILURE_STATUS
    ) -> None:
        """Initialize storage error.

        Args:
            message: Human-readable error description
            code: Machine-readable error code
            status_code: HTTP status code (defaults to the generic failure status)
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class BackendConnectionError(StorageError):
    """Raised when a backend connection cannot be established or verified.

    Fatal when raised during construction; the owning process must not start.
    Also raised when an operation is attempted on a backend that is not
    connected (for example after ``close()``).
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="connection_error")


class UnsupportedOperationError(StorageError):
    """Raised when an operation has no meaning for the backend.

    Example: listing databases on a backend with a single implicit database.
    """

    def __init__(self, message: str, code: str = "unsupported_operation") -> None:
        super().__init__(message=message, code=code)


class TargetNotSetError(UnsupportedOperationError):
    """Raised when a record operation is attempted before a target is set."""

    def __init__(self, backend: str) -> None:
        super().__init__(
            message=f"No database and collection is set for backend '{backend}'",
            code="target_not_set",
        )
        self.backend = backend


class InvalidTargetError(StorageError):
    """Raised when a target names something the backend cannot address."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="invalid_target")


class RecordNotFoundError(StorageError):
    """Raised when a record cannot be found in the current target."""

    def __init__(self, record_id: int) -> None:
        super().__init__(
            message=f"No document with id {record_id}",
            code="record_not_found",
        )
        self.record_id = record_id


class BackendError(StorageError):
    """Raised for lower-level failures reported by the storage client.

    Covers network loss, malformed queries, serialization failures and
    aborted transactions. The driver exception is chained as ``__cause__``.
    """

    def __init__(
        self, message: str, operation: Optional[str] = None, code: str = "backend_error"
    ) -> None:
        super().__init__(message=message, code=code)
        self.operation = operation


class DeadlineExceededError(BackendError):
    """Raised when a storage call does not finish within its deadline."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(
            message=f"Operation '{operation}' exceeded its {timeout_seconds:g}s deadline",
            operation=operation,
            code="deadline_exceeded",
        )
        self.timeout_seconds = timeout_seconds
