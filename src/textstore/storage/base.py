"""Abstract storage backend interface and shared lifecycle plumbing.

This module defines the Protocol every storage backend implements, enabling
backend swapping without touching callers, plus ``BackendBase`` which holds
the connection state, the current target and the deadline/metrics wrapper
the concrete backends share.

Concurrency contract:
    A backend instance is shared by every concurrent request. The target is
    an immutable ``ConnectionTarget`` that ``set_target`` swaps in a single
    assignment, and each record operation snapshots it once on entry. A
    concurrent ``set_target`` therefore only affects calls that start after
    it; no call ever runs against a mix of two targets.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Protocol, TypeVar

from textstore.observability.logging import get_logger
from textstore.observability.metrics import get_metrics_collector
from textstore.storage.config import StorageConfig
from textstore.storage.errors import (
    BackendConnectionError,
    BackendError,
    DeadlineExceededError,
    StorageError,
    TargetNotSetError,
)
from textstore.storage.models import BackendState, ConnectionTarget, Record

logger = get_logger(__name__)

T = TypeVar("T")


class StorageBackend(Protocol):
    """Protocol for storage backend operations.

    This protocol defines the interface that all backend implementations
    must follow. Record operations resolve against the current target.
    """

    name: str

    @property
    def state(self) -> BackendState:
        """Current connection lifecycle state."""
        ...

    @property
    def connected(self) -> bool:
        """Whether the backend is connected and usable."""
        ...

    @property
    def target(self) -> ConnectionTarget:
        """The target record operations currently resolve against."""
        ...

    async def list_databases(self) -> list[str]:
        """List logical databases visible to the connection.

        Returns:
            Database names

        Raises:
            UnsupportedOperationError: If the backend has a single implicit database
        """
        ...

    async def list_collections(self, database: str) -> list[str]:
        """List collection (or table) names under a database.

        Args:
            database: Database name; ignored by single-database backends

        Returns:
            Collection names
        """
        ...

    async def set_target(self, target: ConnectionTarget) -> None:
        """Replace the target for subsequent record operations.

        Args:
            target: New database/collection pair

        Raises:
            UnsupportedOperationError: If the backend rejects target switching
            InvalidTargetError: If the backend cannot address the target
        """
        ...

    async def create(self, record: Record) -> int:
        """Persist a new record, ignoring any caller-supplied identifier.

        Args:
            record: Record to persist

        Returns:
            Backend-assigned identifier

        Raises:
            TargetNotSetError: If no target is set
            BackendError: If the backend fails
        """
        ...

    async def get(self, record_id: int) -> Record:
        """Retrieve a record by identifier.

        Args:
            record_id: Identifier of the record

        Returns:
            The stored record

        Raises:
            RecordNotFoundError: If no record has that identifier
        """
        ...

    async def update(self, record: Record) -> Record:
        """Replace the title and text of an existing record.

        Args:
            record: Record carrying an existing identifier

        Returns:
            The updated record

        Raises:
            RecordNotFoundError: If the identifier does not exist
        """
        ...

    async def delete(self, record_id: int) -> bool:
        """Delete a record by identifier.

        Args:
            record_id: Identifier of the record

        Returns:
            True if a record was removed, False if none matched
        """
        ...

    async def close(self) -> None:
        """Close the connection handle. Safe to call more than once."""
        ...


class BackendBase(ABC):
    """Connection state and target handling shared by concrete backends.

    Subclasses set ``name`` and ``driver_errors`` (the client library's
    exception types, which are wrapped in ``BackendError``) and implement the
    storage operations on top of ``_run`` and ``_snapshot_target``. They
    must also implement ``_close_handle``, which releases the client.
    """

    name: str = "backend"
    driver_errors: tuple[type[Exception], ...] = ()

    def __init__(self, config: StorageConfig) -> None:
        self.config = config
        self._state = BackendState.UNCONNECTED
        self._target = ConnectionTarget()

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is BackendState.CONNECTED

    @property
    def target(self) -> ConnectionTarget:
        return self._target

    async def set_target(self, target: ConnectionTarget) -> None:
        self._require_connected("set_target")
        self._validate_target(target)
        self._target = target
        logger.info(
            "target_set",
            backend=self.name,
            database=target.database,
            collection=target.collection,
        )

    async def close(self) -> None:
        """Close the connection handle once, under the close deadline.

        The handle is always asked to close and the backend always ends up
        ``CLOSED``, even when closing fails; the failure is still raised.
        """
        if self._state is BackendState.CLOSED:
            return
        timeout = self.config.close_timeout_seconds
        try:
            await asyncio.wait_for(self._close_handle(), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("backend_close_timed_out", backend=self.name, timeout_seconds=timeout)
            raise DeadlineExceededError("close", timeout) from e
        except self.driver_errors as e:
            logger.warning("backend_close_failed", backend=self.name, error=str(e))
            raise BackendError(f"close failed: {e}", operation="close") from e
        finally:
            self._state = BackendState.CLOSED
            logger.info("backend_closed", backend=self.name)

    @abstractmethod
    async def _close_handle(self) -> None:
        """Release the connection handle. Called at most once, by ``close``."""

    def _validate_target(self, target: ConnectionTarget) -> None:
        """Hook for backends that restrict which targets they accept."""

    def _target_is_usable(self, target: ConnectionTarget) -> bool:
        return target.is_set

    def _require_connected(self, operation: str) -> None:
        if self._state is not BackendState.CONNECTED:
            raise BackendConnectionError(
                f"Backend '{self.name}' is {self._state.value}; cannot run '{operation}'"
            )

    def _snapshot_target(self, operation: str) -> ConnectionTarget:
        """Return the current target, failing if the backend cannot use it."""
        self._require_connected(operation)
        target = self._target
        if not self._target_is_usable(target):
            raise TargetNotSetError(self.name)
        return target

    async def _run(self, operation: str, awaitable: Awaitable[T], timeout: float) -> T:
        """Await a backend call under a deadline, translating driver errors.

        Args:
            operation: Contract operation name, used in errors, logs and metrics
            awaitable: The backend call
            timeout: Deadline in seconds

        Returns:
            The call's result

        Raises:
            DeadlineExceededError: If the deadline expires
            BackendError: If the client library raises
            StorageError: Domain errors raised by the call pass through unchanged
        """
        status = "error"
        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(awaitable, timeout=timeout)
            status = "success"
            return result
        except asyncio.TimeoutError as e:
            status = "deadline_exceeded"
            logger.warning(
                "backend_operation_timed_out",
                backend=self.name,
                operation=operation,
                timeout_seconds=timeout,
            )
            raise DeadlineExceededError(operation, timeout) from e
        except StorageError as e:
            status = e.code
            raise
        except self.driver_errors as e:
            status = "backend_error"
            logger.warning(
                "backend_operation_failed",
                backend=self.name,
                operation=operation,
                error=str(e),
            )
            raise BackendError(f"{operation} failed: {e}", operation=operation) from e
        finally:
            get_metrics_collector().record_storage_operation(
                backend=self.name,
                operation=operation,
                status=status,
                duration_seconds=time.perf_counter() - start,
            )
