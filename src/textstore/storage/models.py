"""Storage domain models.

Provides the data models exchanged through the storage contract using
Pydantic for validation and serialization.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Largest identifier either backend can store
INT64_MAX = 2**63 - 1


class BackendState(str, Enum):
    """Connection lifecycle state of a backend instance.

    ``CONNECTED`` and ``FAILED`` are the two outcomes of construction;
    ``CLOSED`` is reached once at shutdown.
    """

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"
    CLOSED = "closed"


class Record(BaseModel):
    """A persisted text document.

    The identifier is assigned by the backend on create; ``0`` means the
    record has not been persisted yet.

    Attributes:
        id: Backend-assigned identifier, unique within its target
        title: Document title
        text: Document body text
    """

    id: int = Field(default=0, ge=0, le=INT64_MAX)
    title: str = ""
    text: str = ""

    @property
    def is_persisted(self) -> bool:
        """Whether the record carries a backend-assigned identifier."""
        return self.id != 0


class ConnectionTarget(BaseModel):
    """The database and collection (or table) a backend operates against.

    Empty strings mean "unset". Instances are frozen: changing the target
    means replacing the whole object, so a reader always sees a consistent
    pair.

    Attributes:
        database: Logical database name
        collection: Collection name (table name for relational backends)
    """

    database: str = ""
    collection: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def is_set(self) -> bool:
        """Whether both database and collection are set."""
        return bool(self.database) and bool(self.collection)
